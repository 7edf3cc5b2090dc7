from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from sqlalchemy import text

from campaign_portal import models  # noqa: F401  registers every table on Base.metadata
from campaign_portal.api.routes import admin, agent, auth, health, public
from campaign_portal.core.config import settings
from campaign_portal.core.exceptions import PortalError, portal_error_handler
from campaign_portal.core.logging import setup_logging
from campaign_portal.db.base import Base
from campaign_portal.db.session import SessionLocal, engine

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for startup and shutdown"""
    # Startup
    logger.info(f"🚀 Starting {settings.PROJECT_NAME} ({settings.ENVIRONMENT})...")

    # Create database tables
    logger.info("📦 Creating database tables...")
    Base.metadata.create_all(bind=engine)

    # Test database connection
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        logger.info("✅ Database connection successful")
    except Exception as e:
        logger.error(f"❌ Database connection failed: {e}")
        raise
    finally:
        db.close()

    yield

    # Shutdown
    logger.info("👋 Shutting down...")


# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Recruitment event campaigns: invitations, registration, PIN check-in/check-out and rewards",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(PortalError, portal_error_handler)

# Include routers
app.include_router(health.router, prefix=settings.API_PREFIX, tags=["Health"])
app.include_router(auth.router, prefix=f"{settings.API_PREFIX}/auth", tags=["Auth"])
app.include_router(admin.router, prefix=f"{settings.API_PREFIX}/admin", tags=["Admin"])
app.include_router(agent.router, prefix=f"{settings.API_PREFIX}/agent", tags=["Agent"])
app.include_router(public.router, prefix=f"{settings.API_PREFIX}/public", tags=["Public"])


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "status": "operational",
        "docs": "/docs",
        "endpoints": {
            "health": f"{settings.API_PREFIX}/health",
            "login": f"{settings.API_PREFIX}/auth/login",
            "admin": f"{settings.API_PREFIX}/admin",
            "agent": f"{settings.API_PREFIX}/agent",
            "register": f"{settings.API_PREFIX}/public/register/{{token}}",
            "check_in": f"{settings.API_PREFIX}/public/check-in?slot={{slot_id}}",
            "check_out": f"{settings.API_PREFIX}/public/check-out?slot={{slot_id}}",
        },
    }


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000, reload=False)
