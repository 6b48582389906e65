"""
Voice token routes for the Twilio and Telnyx calling clients
"""

import logging

from fastapi import APIRouter, Depends

from ..auth import get_current_user_id
from ..config import Settings, get_settings
from ..services.telnyx_service import create_telnyx_token
from ..services.twilio_service import create_voice_access_token

logger = logging.getLogger(__name__)
router = APIRouter(tags=["voice"])


@router.api_route("/twilio-token", methods=["GET", "POST"])
async def twilio_token(
    user_id: str = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
):
    """Access token with a Voice grant, valid for one hour"""
    return create_voice_access_token(settings, user_id)


@router.get("/telnyx-token")
async def telnyx_token(
    user_id: str = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
):
    return await create_telnyx_token(settings, user_id)
