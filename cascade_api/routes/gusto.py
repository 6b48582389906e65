"""
Gusto payroll OAuth callback and connection status
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..database import get_db
from ..services.gusto_service import (
    exchange_authorization_code,
    is_connected,
    payroll_redirect_url,
    store_tokens,
    validate_gusto_config,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["gusto"])


@router.get("/gusto-oauth-callback")
async def gusto_oauth_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    """
    Complete the Gusto OAuth flow.

    `state` carries the user id that started the flow. On success the tokens
    are stored and the browser is sent back to the payroll tab.
    """
    if not code:
        raise HTTPException(status_code=400, detail="Missing authorization code")
    if not state:
        raise HTTPException(status_code=400, detail="Missing user state; cannot link account")

    validate_gusto_config(settings)

    logger.info(f"🔗 Gusto OAuth callback for user: {state}")
    tokens = await exchange_authorization_code(settings, code)
    store_tokens(db, settings, state, tokens["access_token"], tokens.get("refresh_token"))

    return RedirectResponse(url=payroll_redirect_url(settings), status_code=302)


@router.get("/gusto-status")
async def gusto_status(
    userId: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    if not userId:
        raise HTTPException(status_code=400, detail="Missing userId")
    return {"isConnected": is_connected(db, userId)}
