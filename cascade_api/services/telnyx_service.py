"""
Telnyx Service
Short-lived telephony credentials for the WebRTC voice client
"""

import logging
from datetime import datetime, timedelta, timezone

import httpx
from fastapi import HTTPException

from ..config import Settings

logger = logging.getLogger(__name__)

TELNYX_API_URL = "https://api.telnyx.com/v2"
CREDENTIAL_TTL = timedelta(hours=24)


def _telnyx_error(response: httpx.Response, stage: str) -> HTTPException:
    logger.error(f"❌ Telnyx {stage} failed ({response.status_code}): {response.text}")
    return HTTPException(
        status_code=response.status_code,
        detail=f"Failed to generate token: Telnyx {stage} error ({response.status_code})",
    )


async def create_telnyx_token(settings: Settings, user_id: str) -> dict:
    """
    Create an on-demand telephony credential, then mint a JWT for it.

    Returns:
        {token, username, password, connectionId, expiresAt}
    """
    if not settings.telnyx_api_key:
        logger.error("❌ Missing TELNYX_API_KEY")
        raise HTTPException(status_code=500, detail="Server configuration error: Missing Telnyx API key")
    if not settings.telnyx_connection_id:
        logger.error("❌ Missing TELNYX_CONNECTION_ID")
        raise HTTPException(
            status_code=500, detail="Server configuration error: Missing Telnyx Connection ID"
        )

    name = settings.telnyx_client_username or user_id
    expires_at = (datetime.now(timezone.utc) + CREDENTIAL_TTL).isoformat().replace("+00:00", "Z")
    headers = {
        "Authorization": f"Bearer {settings.telnyx_api_key}",
        "Content-Type": "application/json",
    }

    async with httpx.AsyncClient(timeout=30.0) as client:
        cred_response = await client.post(
            f"{TELNYX_API_URL}/telephony_credentials",
            headers=headers,
            json={
                "connection_id": settings.telnyx_connection_id,
                "name": name,
                "expires_at": expires_at,
            },
        )
        if cred_response.status_code >= 400:
            raise _telnyx_error(cred_response, "credential")

        credential = cred_response.json().get("data") or {}
        logger.info(f"✅ Telnyx credential generated: {credential.get('id')} (user: {user_id})")

        token_response = await client.post(
            f"{TELNYX_API_URL}/telephony_credentials/{credential.get('id')}/token",
            headers=headers,
        )
        if token_response.status_code >= 400:
            raise _telnyx_error(token_response, "token")

    # The token endpoint answers with the bare JWT; some accounts wrap it in {"data": {"token"}}
    if "application/json" in token_response.headers.get("content-type", ""):
        token = (token_response.json().get("data") or {}).get("token")
    else:
        token = token_response.text.strip()

    return {
        "token": token,
        "username": credential.get("sip_username"),
        "password": credential.get("sip_password"),
        "connectionId": settings.telnyx_connection_id,
        "expiresAt": credential.get("expires_at") or expires_at,
    }
