from typing import List, Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    ENVIRONMENT: str = "development"
    NAME: str = "ESEP Portal"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api/v1"
    """Pydantic v2 doesn't support parsing List[str] from a plain comma-separated string by default anymore."""
    ALLOWED_HOSTS: Union[str, List[str]] = "http://localhost:5173,http://localhost:8080"
    LOG_LEVEL: str = "info"
    TIMEZONE: str = "Asia/Kolkata"

    # Database
    DATABASE_URL: str = "sqlite:///./esep.db"

    # Authentication & Security
    JWT_SECRET_KEY: str = "<your-jwt-secret-key>"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # Seeded super admin
    SUPER_ADMIN_USERNAME: str = "eva"
    SUPER_ADMIN_PASSWORD: str = "<your-super-admin-password>"
    SUPER_ADMIN_FULL_NAME: str = "Super Admin"
    SUPER_ADMIN_EMAIL: str = "admin@example.com"

    # Registration lifecycle
    DEFAULT_EXPIRY_DAYS: int = 30
    EXPIRING_ALERT_WINDOW_DAYS: int = 5
    CUSTOMER_ID_PREFIX: str = "ESEP"
    REGISTRATION_FEED_ACCOUNT_NAME: str = "Main Cash"

    # Redis & Celery
    REDIS_PASSWORD: str = ""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @field_validator("ALLOWED_HOSTS", mode="before")
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if not v:
            return []
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


settings = Settings()
