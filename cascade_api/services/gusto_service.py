"""
Gusto Payroll OAuth Service
Authorization-code exchange and token storage
"""

import logging
from typing import Optional

import httpx
from cryptography.fernet import Fernet
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import Settings
from ..models_integrations import IntegrationToken

logger = logging.getLogger(__name__)

PROVIDER = "gusto"
PAYROLL_DASHBOARD_PATH = "/dashboard?tab=payroll&refresh_session=true"


# ============================================
# Token encryption
# ============================================


def get_cipher(settings: Settings) -> Optional[Fernet]:
    if not settings.token_encryption_key:
        return None
    return Fernet(settings.token_encryption_key.encode())


def encrypt_token(settings: Settings, token: Optional[str]) -> Optional[str]:
    """Encrypt a token for storage; stored as received when no key is configured"""
    if token is None:
        return None
    cipher = get_cipher(settings)
    if not cipher:
        logger.warning("⚠️ TOKEN_ENCRYPTION_KEY not set - storing OAuth token unencrypted")
        return token
    return cipher.encrypt(token.encode()).decode()


# ============================================
# OAuth flow
# ============================================


def validate_gusto_config(settings: Settings) -> None:
    if not (settings.gusto_client_id and settings.gusto_client_secret and settings.gusto_redirect_uri):
        logger.error("❌ Gusto OAuth environment variables are not fully set")
        raise HTTPException(
            status_code=500,
            detail=(
                "Gusto OAuth environment variables are not fully set. "
                "Set GUSTO_CLIENT_ID, GUSTO_CLIENT_SECRET and GUSTO_REDIRECT_URI."
            ),
        )


async def exchange_authorization_code(settings: Settings, code: str) -> dict:
    """POST the code to Gusto's token endpoint and return the token payload"""
    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.post(
            settings.gusto_token_url,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            json={
                "client_id": settings.gusto_client_id,
                "client_secret": settings.gusto_client_secret,
                "redirect_uri": settings.gusto_redirect_uri,
                "code": code,
                "grant_type": "authorization_code",
            },
        )

    if response.status_code >= 400:
        try:
            details = response.json()
        except ValueError:
            details = response.text or "Token exchange failed"
        logger.error(f"❌ Gusto token exchange failed ({response.status_code}): {details}")
        raise HTTPException(
            status_code=response.status_code,
            detail={"error": "Failed to exchange authorization code for tokens", "details": details},
        )

    tokens = response.json()
    if not tokens.get("access_token"):
        logger.error("❌ Gusto token response missing access_token")
        raise HTTPException(status_code=502, detail="Invalid token response from Gusto")
    return tokens


def store_tokens(
    db: Session,
    settings: Settings,
    user_id: str,
    access_token: str,
    refresh_token: Optional[str],
) -> IntegrationToken:
    """Upsert the (user, gusto) token pair. Persistence failures surface as 500."""
    try:
        record = (
            db.query(IntegrationToken)
            .filter(IntegrationToken.user_id == user_id, IntegrationToken.provider == PROVIDER)
            .first()
        )
        if record:
            record.access_token = encrypt_token(settings, access_token)
            record.refresh_token = encrypt_token(settings, refresh_token)
        else:
            record = IntegrationToken(
                user_id=user_id,
                provider=PROVIDER,
                access_token=encrypt_token(settings, access_token),
                refresh_token=encrypt_token(settings, refresh_token),
            )
            db.add(record)
        db.commit()
        db.refresh(record)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"❌ Failed to persist Gusto tokens for user {user_id}")
        raise HTTPException(status_code=500, detail="Failed to store Gusto tokens") from e

    logger.info(f"✅ Stored Gusto tokens for user {user_id}")
    return record


def is_connected(db: Session, user_id: str) -> bool:
    return (
        db.query(IntegrationToken.id)
        .filter(IntegrationToken.user_id == user_id, IntegrationToken.provider == PROVIDER)
        .first()
        is not None
    )


def payroll_redirect_url(settings: Settings) -> str:
    return f"{settings.frontend_url.rstrip('/')}{PAYROLL_DASHBOARD_PATH}"
