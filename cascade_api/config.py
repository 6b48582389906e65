import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

logger = logging.getLogger(__name__)


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    return int(_env(name, str(default)))


def _env_bool(name: str, default: bool = False) -> bool:
    return (_env(name, "true" if default else "false") or "").lower() == "true"


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, read once from the environment."""

    # Database
    database_url: Optional[str] = None
    db_pool_size: int = 20
    db_max_overflow: int = 30
    db_pool_timeout: int = 30
    db_pool_recycle: int = 300
    db_log_slow_queries: bool = True
    db_slow_query_threshold: float = 1.0

    # HTTP surface
    allowed_origins: tuple[str, ...] = ("*",)
    frontend_url: str = ""

    # Square (payment links)
    square_access_token: Optional[str] = None
    square_location_id: Optional[str] = None
    square_environment: str = "production"  # sandbox or production

    # Email
    sendgrid_api_key: Optional[str] = None
    sendgrid_reply_email: Optional[str] = None
    resend_api_key: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = None
    smtp_secure: bool = False
    smtp_from: Optional[str] = None
    smtp_from_name: str = "Cascade Builder Services"

    # Twilio (voice tokens + SMS)
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_api_key: Optional[str] = None
    twilio_api_secret: Optional[str] = None
    twilio_twiml_app_sid: Optional[str] = None
    twilio_phone_number: Optional[str] = None
    twilio_client_identity: Optional[str] = None

    # Telnyx (voice tokens)
    telnyx_api_key: Optional[str] = None
    telnyx_connection_id: Optional[str] = None
    telnyx_client_username: Optional[str] = None

    # Gusto OAuth
    gusto_client_id: Optional[str] = None
    gusto_client_secret: Optional[str] = None
    gusto_redirect_uri: Optional[str] = None
    gusto_token_url: str = "https://api.gusto-demo.com/oauth/token"

    # Cloudflare R2 (uploads)
    r2_account_id: Optional[str] = None
    r2_access_key_id: Optional[str] = None
    r2_secret_access_key: Optional[str] = None
    r2_bucket_name: str = "warranty-claims"
    r2_public_url: Optional[str] = None

    # Web push
    vapid_public_key: Optional[str] = None
    vapid_private_key: Optional[str] = None
    vapid_subject: str = "mailto:support@cascadeconnect.com"

    # Identity / secrets
    clerk_jwt_key: Optional[str] = None
    token_encryption_key: Optional[str] = None

    @property
    def email_from_address(self) -> Optional[str]:
        return self.sendgrid_reply_email or self.smtp_from or self.smtp_user

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_pass)


def load_settings() -> Settings:
    """Build a Settings object from the current environment"""
    origins = _env("ALLOWED_ORIGINS", "*")
    return Settings(
        database_url=_env("DATABASE_URL") or _env("NETLIFY_DATABASE_URL"),
        db_pool_size=_env_int("DB_POOL_SIZE", 20),
        db_max_overflow=_env_int("DB_MAX_OVERFLOW", 30),
        db_pool_timeout=_env_int("DB_POOL_TIMEOUT", 30),
        db_pool_recycle=_env_int("DB_POOL_RECYCLE", 300),
        db_log_slow_queries=_env_bool("DB_LOG_SLOW_QUERIES", True),
        db_slow_query_threshold=float(_env("DB_SLOW_QUERY_THRESHOLD", "1.0")),
        allowed_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        frontend_url=_env("FRONTEND_URL", ""),
        square_access_token=_env("SQUARE_ACCESS_TOKEN"),
        square_location_id=_env("SQUARE_LOCATION_ID"),
        square_environment=_env("SQUARE_ENVIRONMENT", "production"),
        sendgrid_api_key=_env("SENDGRID_API_KEY"),
        sendgrid_reply_email=_env("SENDGRID_REPLY_EMAIL"),
        resend_api_key=_env("RESEND_API_KEY"),
        smtp_host=_env("SMTP_HOST"),
        smtp_port=_env_int("SMTP_PORT", 587),
        smtp_user=_env("SMTP_USER"),
        smtp_pass=_env("SMTP_PASS"),
        smtp_secure=_env_bool("SMTP_SECURE", False),
        smtp_from=_env("SMTP_FROM"),
        smtp_from_name=_env("SMTP_FROM_NAME", "Cascade Builder Services"),
        twilio_account_sid=_env("TWILIO_ACCOUNT_SID"),
        twilio_auth_token=_env("TWILIO_AUTH_TOKEN"),
        twilio_api_key=_env("TWILIO_API_KEY"),
        twilio_api_secret=_env("TWILIO_API_SECRET"),
        twilio_twiml_app_sid=_env("TWILIO_TWIML_APP_SID"),
        twilio_phone_number=_env("TWILIO_PHONE_NUMBER"),
        twilio_client_identity=_env("TWILIO_CLIENT_IDENTITY"),
        telnyx_api_key=_env("TELNYX_API_KEY"),
        telnyx_connection_id=_env("TELNYX_CONNECTION_ID"),
        telnyx_client_username=_env("TELNYX_CLIENT_USERNAME"),
        gusto_client_id=_env("GUSTO_CLIENT_ID"),
        gusto_client_secret=_env("GUSTO_CLIENT_SECRET"),
        gusto_redirect_uri=_env("GUSTO_REDIRECT_URI"),
        gusto_token_url=_env("GUSTO_TOKEN_URL", "https://api.gusto-demo.com/oauth/token"),
        r2_account_id=_env("R2_ACCOUNT_ID"),
        r2_access_key_id=_env("R2_ACCESS_KEY_ID"),
        r2_secret_access_key=_env("R2_SECRET_ACCESS_KEY"),
        r2_bucket_name=_env("R2_BUCKET_NAME", "warranty-claims"),
        r2_public_url=_env("R2_PUBLIC_URL"),
        vapid_public_key=_env("VAPID_PUBLIC_KEY"),
        vapid_private_key=_env("VAPID_PRIVATE_KEY"),
        vapid_subject=_env("VAPID_SUBJECT", "mailto:support@cascadeconnect.com"),
        clerk_jwt_key=_env("CLERK_JWT_KEY"),
        token_encryption_key=_env("TOKEN_ENCRYPTION_KEY"),
    )


@lru_cache
def get_settings() -> Settings:
    """FastAPI dependency: the settings loaded at process start"""
    settings = load_settings()
    if not settings.database_url:
        logger.warning("⚠️ DATABASE_URL not set - database-backed endpoints will fail")
    return settings
