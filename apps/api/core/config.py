"""
Centralized configuration management with validation.

All environment variables are loaded and validated here.
This ensures consistent configuration across the application.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Literal, Optional
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation."""

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Database Configuration
    # DATABASE_URL wins when set (any SQLAlchemy URL); otherwise the Postgres parts are composed.
    DATABASE_URL: Optional[str] = Field(default=None)
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: str = Field(default="postgres")
    POSTGRES_DB: str = Field(default="gym_management")
    POSTGRES_HOST: str = Field(default="postgres")
    POSTGRES_PORT: int = Field(default=5432)

    # Database Pool Configuration
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=0)
    DB_POOL_TIMEOUT: int = Field(default=30)
    DB_POOL_RECYCLE: int = Field(default=3600)  # 1 hour

    # Redis Configuration
    REDIS_URL: str = Field(default="redis://redis:6379/0")

    # JWT Authentication - REQUIRED for token signing
    # Must be set via environment variable, never use default in production
    SECRET_KEY: str = Field(
        default=...,  # Required - no default
        description="JWT signing key. Must be cryptographically secure (32+ chars). "
                    "Generate with: python -c \"import secrets; print(secrets.token_urlsafe(32))\""
    )
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=24 * 60)

    # Local calendar used for "today" (attendance, invoices, completions)
    GYM_TIMEZONE: str = Field(default="Asia/Colombo")

    # WebAuthn relying party
    WEBAUTHN_RP_ID: str = Field(default="localhost")
    WEBAUTHN_RP_NAME: str = Field(default="Gym Management System")
    WEBAUTHN_ORIGIN: str = Field(default="http://localhost:5173")
    # 0 disables expiry (challenges then live until consumed or overwritten)
    WEBAUTHN_CHALLENGE_TTL_S: int = Field(default=300, ge=0)
    CHALLENGE_STORE_BACKEND: Literal["memory", "redis"] = Field(default="memory")

    # Memberships requested by members start in this state
    MEMBERSHIP_REQUEST_INITIAL_STATUS: Literal["pending", "active"] = Field(default="pending")

    # PayHere checkout
    PAYHERE_MERCHANT_ID: Optional[str] = Field(default=None)
    PAYHERE_MERCHANT_SECRET: Optional[str] = Field(default=None)
    PAYHERE_SANDBOX: bool = Field(default=True)
    PAYHERE_CURRENCY: str = Field(default="LKR")
    PAYHERE_RETURN_URL: str = Field(default="http://localhost:5173/member/payments?status=success")
    PAYHERE_CANCEL_URL: str = Field(default="http://localhost:5173/member/payments?status=cancelled")
    PAYHERE_NOTIFY_URL: str = Field(default="http://localhost:8000/api/payments/payhere/notify")

    # API Configuration
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000)
    API_RELOAD: bool = Field(default=False)

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")  # json or text

    # Celery Configuration
    CELERY_BROKER_URL: str = Field(default="redis://redis:6379/0")
    CELERY_RESULT_BACKEND: str = Field(default="redis://redis:6379/0")
    CELERY_TASK_ALWAYS_EAGER: bool = Field(default=False)

    # Email Configuration
    EMAIL_ENABLED: bool = Field(default=False)
    SMTP_SERVER: str = Field(default="localhost")
    SMTP_PORT: int = Field(default=587)
    SMTP_USERNAME: Optional[str] = Field(default=None)
    SMTP_PASSWORD: Optional[str] = Field(default=None)
    FROM_EMAIL: str = Field(default="no-reply@gym.com")
    FROM_NAME: str = Field(default="Gym Management System")

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # CORS - comma-separated list of allowed origins for production
    # e.g., "https://gym.example.com,https://admin.gym.example.com"
    CORS_ORIGINS: Optional[str] = Field(default=None)


# Global settings instance
settings = Settings()
