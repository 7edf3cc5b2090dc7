# tests/conftest.py

import os

# Keep the app's own engine and log file out of the way before it is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from campaign_portal import models  # noqa: F401
from campaign_portal.db.base import Base
from campaign_portal.db.session import get_db
from campaign_portal.main import app
from campaign_portal.services.pin_pool import pin_pool

from tests.utils.auth import get_admin_headers


# --- Test Database Setup ---
# One shared in-memory connection, so every session sees the same data
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function", autouse=True)
def setup_test_database():
    Base.metadata.create_all(bind=engine)
    pin_pool.clear_cache()
    yield
    pin_pool.clear_cache()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db():
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def other_db():
    """A second session, standing in for a concurrent request."""
    session = TestingSessionLocal()
    yield session
    session.close()


# --- Test Client Fixtures ---
@pytest.fixture(scope="function")
def client():
    """
    Provides a TestClient bound to the test database.
    """

    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def admin_headers() -> dict:
    return get_admin_headers()
