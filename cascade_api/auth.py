import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException
from jose import JWTError, jwt

from .config import Settings, get_settings

logger = logging.getLogger(__name__)


def extract_user_id(authorization: Optional[str]) -> Optional[str]:
    """Pull the opaque user id out of an Authorization header value.

    Accepts both `Bearer <id>` and a bare id.
    """
    if not authorization:
        return None
    value = authorization.strip()
    if value.lower().startswith("bearer "):
        value = value[7:].strip()
    return value or None


def _looks_like_jwt(value: str) -> bool:
    return value.count(".") == 2


def verify_clerk_session(token: str, public_key: str) -> str:
    """Verify a Clerk session token (RS256) and return its subject"""
    try:
        payload = jwt.decode(
            token,
            public_key,
            algorithms=["RS256"],
            options={"verify_aud": False},
        )
    except JWTError as e:
        logger.warning(f"⚠️ Clerk session verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid session token") from e

    user_id = payload.get("sub")
    if not user_id:
        logger.error(f"❌ Session token missing 'sub'. Claims: {list(payload.keys())}")
        raise HTTPException(status_code=401, detail="Invalid session token")
    return user_id


async def get_current_user_id(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> str:
    """Resolve the caller's user id or fail with 401.

    When CLERK_JWT_KEY is configured, JWT-shaped values are verified and the
    `sub` claim is used. Any other value is trusted as the user id.
    """
    user_id = extract_user_id(authorization)
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized. Please sign in.")

    if settings.clerk_jwt_key and _looks_like_jwt(user_id):
        return verify_clerk_session(user_id, settings.clerk_jwt_key)

    return user_id
