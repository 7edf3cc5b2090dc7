from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    PROJECT_NAME: str = "Campaign Portal"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"

    # Database
    DATABASE_URL: str = "sqlite:///./campaign_portal.db"

    # Security
    SECRET_KEY: str = "change-me-3f1c9a7e5b2d4f6a8c0e1b3d5f7a9c2e"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Admin credentials
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = "admin123"

    # PIN pool
    PIN_CODE_MIN: int = 100000
    PIN_CODE_MAX: int = 999999
    MAX_PIN_BATCH: int = 1000

    # Invitations
    MAX_INVITATION_BATCH: int = 100
    REGISTRATION_BASE_URL: str = "http://localhost:5173"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "app.log"  # empty string disables the file handler

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
