"""
SMS routes: send through Twilio, take its webhooks and read conversation threads
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_user_id
from ..config import Settings, get_settings
from ..database import get_db
from ..models_sms import SmsMessage, SmsThread
from ..services.twilio_service import (
    get_thread_messages,
    list_threads,
    record_inbound_sms,
    send_sms,
    update_message_status,
)
from ..shared.validators import normalize_phone_number, validate_us_phone

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sms", tags=["sms"])

# Empty TwiML: acknowledge without an automated reply
EMPTY_TWIML = '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'


class SendSmsRequest(BaseModel):
    to: Optional[str] = None
    message: Optional[str] = None


def message_to_dict(message: SmsMessage) -> dict:
    return {
        "id": message.id,
        "direction": message.direction,
        "body": message.body,
        "status": message.status,
        "twilioSid": message.twilio_sid,
        "error": message.error_message,
        "createdAt": message.created_at.isoformat(),
    }


def thread_to_dict(thread: SmsThread) -> dict:
    return {
        "id": thread.id,
        "phoneNumber": thread.phone_number,
        "lastMessageAt": thread.last_message_at.isoformat(),
    }


@router.post("/send")
async def send_text_message(
    data: SendSmsRequest,
    user_id: str = Depends(get_current_user_id),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    if not data.to or not data.message or not data.message.strip():
        raise HTTPException(status_code=400, detail="Missing required fields: to, message")

    try:
        to_phone = validate_us_phone(data.to)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    logger.info(f"📱 User {user_id} sending SMS to {to_phone}")
    message = await send_sms(db, settings, to_phone, data.message)
    return {"success": True, "message": message_to_dict(message)}


@router.get("/threads")
async def get_threads(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return [thread_to_dict(t) for t in list_threads(db)]


@router.get("/threads/{phone}/messages")
async def get_messages(
    phone: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Thread history, oldest first"""
    phone_number = normalize_phone_number(phone)
    if not phone_number:
        raise HTTPException(status_code=400, detail=f"Invalid phone number: {phone}")
    return [message_to_dict(m) for m in get_thread_messages(db, phone_number)]


def twiml_response(status_code: int = 200) -> Response:
    return Response(content=EMPTY_TWIML, media_type="text/xml", status_code=status_code)


# ============================================
# Twilio webhooks (form-encoded, no user session)
# ============================================


@router.post("/webhook")
async def inbound_sms_webhook(
    From: Optional[str] = Form(None),
    Body: Optional[str] = Form(None),
    MessageSid: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    """Incoming text from an external number"""
    if not From or not Body:
        logger.error("❌ SMS webhook missing From or Body")
        return twiml_response(400)

    phone_number = normalize_phone_number(From)
    if not phone_number:
        logger.warning(f"⚠️ SMS webhook from unrecognized number {From} - not stored")
        return twiml_response()

    logger.info(f"📱 Received SMS from {phone_number}: {Body[:50]}")
    record_inbound_sms(db, phone_number, Body, MessageSid)
    return twiml_response()


@router.post("/status-webhook")
async def sms_status_webhook(
    MessageSid: Optional[str] = Form(None),
    MessageStatus: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    """Delivery status callback for messages sent through /sms/send"""
    if not MessageSid or not MessageStatus:
        logger.error("❌ SMS status webhook missing MessageSid or MessageStatus")
        return twiml_response(400)

    update_message_status(db, MessageSid, MessageStatus)
    return twiml_response()
