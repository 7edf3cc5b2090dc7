from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from campaign_portal.core.config import settings
from campaign_portal.core.exceptions import AgentNotFound
from campaign_portal.core.security import ROLE_ADMIN, ROLE_AGENT, decode_token
from campaign_portal.db.session import get_db
from campaign_portal.models import Agent
from campaign_portal.services.agents import agent_service

# The client must send "Authorization: Bearer <token>"
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_admin(token: str = Depends(oauth2_scheme)) -> dict:
    """
    Validates the JWT token. If valid, returns the admin identity.
    If invalid, raises 401 Unauthorized.
    """
    payload = decode_token(token)
    if payload is None or payload.get("sub") is None or payload.get("role") != ROLE_ADMIN:
        raise _credentials_exception()
    return {"username": payload["sub"], "role": ROLE_ADMIN}


def get_current_agent(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Agent:
    """
    Resolves the agent behind a token issued by the identity provider
    (sub = agent user id, role = agent).
    """
    payload = decode_token(token)
    if payload is None or payload.get("sub") is None or payload.get("role") != ROLE_AGENT:
        raise _credentials_exception()

    agent = agent_service.get_by_user_id(db, payload["sub"])
    if agent is None:
        raise AgentNotFound()
    return agent
