# tests/api/test_auth_api.py

from fastapi.testclient import TestClient

from campaign_portal.core.config import settings

from tests.utils.auth import get_agent_headers


def test_root(client: TestClient):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["service"] == settings.PROJECT_NAME


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_login_success(client: TestClient):
    response = client.post(
        "/api/auth/login",
        json={"email": settings.ADMIN_EMAIL, "password": settings.ADMIN_PASSWORD},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "admin"
    assert "access_token" in response.cookies

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == settings.ADMIN_EMAIL


def test_login_wrong_password(client: TestClient):
    response = client.post(
        "/api/auth/login",
        json={"email": settings.ADMIN_EMAIL, "password": "wrong-password"},
    )
    assert response.status_code == 401


def test_me_requires_token(client: TestClient):
    assert client.get("/api/auth/me").status_code == 401


def test_me_rejects_garbage_token(client: TestClient):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_agent_token_is_not_admin(client: TestClient):
    response = client.get("/api/admin/campaigns", headers=get_agent_headers("user_1"))
    assert response.status_code == 401
