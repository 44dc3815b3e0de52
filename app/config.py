"""
Application configuration for CareXchange
Values come from the environment (or a .env file loaded at startup)
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # API
    APP_NAME: str = "CareXchange"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")

    # Database
    DATABASE_URL: str = Field(default="sqlite:///./carexchange.db")

    # Sessions
    JWT_SECRET: str = Field(default="change-me")
    JWT_ALGORITHM: str = "HS256"
    SESSION_TTL_DAYS: int = Field(default=30)

    # Passwords and one-time tokens
    BCRYPT_ROUNDS: int = Field(default=12)
    RESET_TOKEN_TTL_MINUTES: int = Field(default=60)

    # Links placed in outgoing emails
    APP_URL: str = Field(default="http://localhost:3000")

    # Email SMTP configuration
    SMTP_HOST: str = Field(default="")
    SMTP_PORT: int = Field(default=587)
    SMTP_USERNAME: str = Field(default="")
    SMTP_PASSWORD: str = Field(default="")
    SMTP_USE_TLS: bool = Field(default=True)
    EMAIL_FROM: str = Field(default="noreply@carexchange.app")
    EMAIL_FROM_NAME: str = "CareXchange"

    # File storage
    UPLOAD_DIR: str = Field(default="./public/uploads")
    MAX_AVATAR_SIZE: int = Field(default=5 * 1024 * 1024)  # 5MB

    # CORS (comma separated)
    CORS_ALLOW_ORIGINS: str = Field(default="*")

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = Field(default=True)

    class Config:
        case_sensitive = True

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def session_max_age(self) -> int:
        """Cookie max-age in seconds"""
        return self.SESSION_TTL_DAYS * 24 * 60 * 60

    @property
    def cors_origins(self) -> list[str]:
        origins = [item.strip() for item in self.CORS_ALLOW_ORIGINS.split(",") if item.strip()]
        return origins or ["*"]

    @property
    def smtp_enabled(self) -> bool:
        return bool(self.SMTP_HOST and self.EMAIL_FROM)
