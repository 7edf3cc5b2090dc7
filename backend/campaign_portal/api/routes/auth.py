import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, EmailStr

from campaign_portal.core.config import settings
from campaign_portal.core.deps import get_current_admin
from campaign_portal.core.security import ROLE_ADMIN, create_access_token, verify_admin_credentials

router = APIRouter()
logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: dict


@router.post("/login", response_model=LoginResponse)
def login(login_data: LoginRequest, response: Response):
    if not verify_admin_credentials(login_data.email, login_data.password):
        logger.warning(f"⚠️ Failed admin login for {login_data.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    access_token = create_access_token(data={"sub": settings.ADMIN_EMAIL, "role": ROLE_ADMIN})

    # HttpOnly cookie for the admin portal, token also returned for API clients
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/"
    )

    logger.info(f"🔐 Admin {login_data.email} logged in")
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": {
            "email": settings.ADMIN_EMAIL,
            "name": "Admin",
            "role": ROLE_ADMIN
        }
    }


@router.get("/me")
def get_current_user_info(admin: dict = Depends(get_current_admin)):
    """Get current authenticated admin info"""
    return {
        "email": admin["username"],
        "name": "Admin",
        "role": admin["role"]
    }
