"""
SMTP relay configuration.

Credentials come from the environment (optionally via a local .env file) and
are loaded once at process start into an immutable Settings object that is
handed to the application explicitly.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

DEFAULT_SMTP_HOST = "smtp.gmail.com"
DEFAULT_SMTP_PORT = 587  # submission port, upgraded with STARTTLS
DEFAULT_SMTP_TIMEOUT = 30.0


class MissingCredentialsError(ValueError):
    """Raised when GMAIL_FROM or GMAIL_PASSWORD is not set."""


class Settings(BaseModel):
    """Read-only SMTP account and server settings."""

    model_config = {"frozen": True}

    gmail_from: str
    gmail_password: str = Field(repr=False)
    smtp_host: str = DEFAULT_SMTP_HOST
    smtp_port: int = DEFAULT_SMTP_PORT
    smtp_timeout: float = DEFAULT_SMTP_TIMEOUT


def _read_number(name: str, default, cast):
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def load_settings() -> Settings:
    """
    Build Settings from environment variables.

    Required:
      GMAIL_FROM       account address used to authenticate
      GMAIL_PASSWORD   account (app) password

    Optional:
      SMTP_HOST        default smtp.gmail.com
      SMTP_PORT        default 587
      SMTP_TIMEOUT     socket timeout in seconds, default 30

    Raises:
        MissingCredentialsError: if either credential is empty
        ValueError: if SMTP_PORT or SMTP_TIMEOUT is not numeric
    """
    gmail_from = os.getenv("GMAIL_FROM", "").strip()
    gmail_password = os.getenv("GMAIL_PASSWORD", "")

    missing = [
        name
        for name, value in (("GMAIL_FROM", gmail_from), ("GMAIL_PASSWORD", gmail_password))
        if not value
    ]
    if missing:
        raise MissingCredentialsError(
            f"{' and '.join(missing)} must be set in environment variables"
        )

    return Settings(
        gmail_from=gmail_from,
        gmail_password=gmail_password,
        smtp_host=os.getenv("SMTP_HOST", "").strip() or DEFAULT_SMTP_HOST,
        smtp_port=_read_number("SMTP_PORT", DEFAULT_SMTP_PORT, int),
        smtp_timeout=_read_number("SMTP_TIMEOUT", DEFAULT_SMTP_TIMEOUT, float),
    )
