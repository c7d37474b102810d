"""
Core configuration settings for the FastAPI application.
"""

import json
import logging
from typing import List, Optional, Union

from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "Portfolio API"
    ENVIRONMENT: str = "development"  # staging, production, development
    DEBUG: bool = False

    # CORS
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []

    # Logging Configuration
    LOG_LEVEL: str = "INFO"

    # SMTP transport (names kept compatible with the site's existing .env files)
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None
    NODEMAILER_SENDER_EMAIL: Optional[str] = None
    NODEMAILER_SENDER_NAME: Optional[str] = None

    # Inbox that receives contact form messages
    CONTACT_RECIPIENT_EMAIL: Optional[str] = None

    # Log instead of sending when SMTP is not configured.
    # Unset means "simulate in development only".
    EMAIL_SIMULATE: Optional[bool] = None

    # Rewording suggestions provider: "fake" (offline) or "openai"
    LLM_PROVIDER: str = "fake"
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.7

    @property
    def contact_recipient(self) -> Optional[str]:
        """Address contact messages are delivered to."""
        return self.CONTACT_RECIPIENT_EMAIL or self.NODEMAILER_SENDER_EMAIL

    @property
    def simulate_email(self) -> bool:
        """Whether an unconfigured transport should simulate delivery."""
        if self.EMAIL_SIMULATE is not None:
            return self.EMAIL_SIMULATE
        return self.ENVIRONMENT == "development"

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        """Parse CORS origins from environment variable."""
        if isinstance(v, str):
            if not v:
                return []
            if v.startswith("["):
                try:
                    data = json.loads(v)
                except json.JSONDecodeError as exc:  # pragma: no cover - guard rail
                    logger.warning(
                        "Failed to decode BACKEND_CORS_ORIGINS JSON: %s", exc
                    )
                    return []
                if isinstance(data, list):
                    return [str(i).strip() for i in data]
                return data
            return [i.strip() for i in v.split(",") if i.strip()]
        if isinstance(v, list):
            return v
        raise ValueError(v)

    @field_validator(
        "SMTP_HOST",
        "SMTP_USER",
        "SMTP_PASS",
        "NODEMAILER_SENDER_EMAIL",
        "NODEMAILER_SENDER_NAME",
        "CONTACT_RECIPIENT_EMAIL",
        "OPENAI_API_KEY",
        mode="before",
    )
    @classmethod
    def blank_as_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty environment values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("SMTP_PORT", mode="before")
    @classmethod
    def default_smtp_port(cls, v):
        """Fall back to the submission port when SMTP_PORT is absent or blank."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return 587
        return v

    @field_validator("EMAIL_SIMULATE", mode="before")
    @classmethod
    def blank_flag_as_none(cls, v):
        """Treat an empty EMAIL_SIMULATE as unset so the environment decides."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    model_config = SettingsConfigDict(
        case_sensitive=True, env_file=".env", extra="ignore"
    )


settings = Settings()
