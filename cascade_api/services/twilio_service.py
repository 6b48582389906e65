"""
Twilio Service
Voice access tokens for the mobile/web VoIP client and outbound SMS
"""

import logging
import time
from datetime import datetime
from typing import Optional

import httpx
from fastapi import HTTPException
from jose import jwt
from sqlalchemy.orm import Session

from ..config import Settings
from ..models_sms import SmsMessage, SmsThread
from ..shared.validators import sanitize_identity

logger = logging.getLogger(__name__)

TWILIO_API_URL = "https://api.twilio.com/2010-04-01"
VOICE_TOKEN_TTL = 3600


# ============================================
# Voice access tokens
# ============================================


def resolve_client_identity(settings: Settings, user_id: str) -> str:
    """The single shared client identity when configured, else one per user"""
    if settings.twilio_client_identity:
        return settings.twilio_client_identity
    return sanitize_identity(user_id)


def create_voice_access_token(settings: Settings, user_id: str) -> dict:
    """
    Build a Twilio Access Token carrying a Voice grant.

    The token is an HS256 JWT signed with the API key secret, in the format
    the Twilio Voice SDKs expect (`cty: twilio-fpa;v=1`).
    """
    if not (
        settings.twilio_account_sid
        and settings.twilio_api_key
        and settings.twilio_api_secret
        and settings.twilio_twiml_app_sid
    ):
        logger.error("❌ Missing Twilio voice configuration")
        raise HTTPException(
            status_code=500,
            detail=(
                "Twilio credentials not configured. Set TWILIO_ACCOUNT_SID, TWILIO_API_KEY, "
                "TWILIO_API_SECRET and TWILIO_TWIML_APP_SID."
            ),
        )

    identity = resolve_client_identity(settings, user_id)
    now = int(time.time())
    payload = {
        "jti": f"{settings.twilio_api_key}-{now}",
        "iss": settings.twilio_api_key,
        "sub": settings.twilio_account_sid,
        "iat": now,
        "exp": now + VOICE_TOKEN_TTL,
        "grants": {
            "identity": identity,
            "voice": {
                "incoming": {"allow": True},
                "outgoing": {"application_sid": settings.twilio_twiml_app_sid},
            },
        },
    }

    try:
        token = jwt.encode(
            payload,
            settings.twilio_api_secret,
            algorithm="HS256",
            headers={"cty": "twilio-fpa;v=1"},
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to generate Twilio token: {str(e)}") from e

    logger.info(f"🎟️ Twilio voice token issued: identity={identity} (user: {user_id})")
    return {"token": token, "identity": identity, "expiresIn": VOICE_TOKEN_TTL}


# ============================================
# SMS
# ============================================


def _get_or_create_thread(db: Session, phone_number: str) -> SmsThread:
    thread = db.query(SmsThread).filter(SmsThread.phone_number == phone_number).first()
    if not thread:
        thread = SmsThread(phone_number=phone_number)
        db.add(thread)
        db.flush()
    return thread


async def send_sms(db: Session, settings: Settings, to_phone: str, message_body: str) -> SmsMessage:
    """
    Send an SMS through Twilio's Messages API and record it on the thread.

    The message row is stored whether Twilio accepts it or not; a rejected
    send is recorded as `failed` and then raised with Twilio's status code.
    """
    if not (settings.twilio_account_sid and settings.twilio_auth_token and settings.twilio_phone_number):
        logger.error("❌ Missing Twilio SMS configuration")
        raise HTTPException(
            status_code=500,
            detail="Twilio SMS not configured. Set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER.",
        )

    account_sid = settings.twilio_account_sid
    logger.info(f"🚀 Sending SMS to Twilio API for {to_phone}")

    async with httpx.AsyncClient(timeout=10.0) as client:
        response = await client.post(
            f"{TWILIO_API_URL}/Accounts/{account_sid}/Messages.json",
            auth=(account_sid, settings.twilio_auth_token),
            data={"To": to_phone, "From": settings.twilio_phone_number, "Body": message_body},
        )

    logger.info(f"📡 Twilio API response status: {response.status_code}")

    try:
        result = response.json()
    except ValueError:
        result = {}

    thread = _get_or_create_thread(db, to_phone)
    message = SmsMessage(thread_id=thread.id, direction="outbound", body=message_body)
    thread.last_message_at = datetime.utcnow()

    if response.status_code in (200, 201):
        message.status = "sent"
        message.twilio_sid = result.get("sid")
        db.add(message)
        db.commit()
        db.refresh(message)
        logger.info(f"✅ SMS sent successfully: sid={message.twilio_sid}")
        return message

    error_message: Optional[str] = result.get("message") or response.text or "Twilio rejected the message"
    message.status = "failed"
    message.error_message = error_message
    db.add(message)
    db.commit()
    logger.error(f"❌ Twilio API error ({response.status_code}): {error_message}")
    raise HTTPException(status_code=response.status_code, detail=f"Twilio Error: {error_message}")


def list_threads(db: Session) -> list[SmsThread]:
    return db.query(SmsThread).order_by(SmsThread.last_message_at.desc()).all()


def get_thread_messages(db: Session, phone_number: str) -> list[SmsMessage]:
    thread = db.query(SmsThread).filter(SmsThread.phone_number == phone_number).first()
    if not thread:
        return []
    return (
        db.query(SmsMessage)
        .filter(SmsMessage.thread_id == thread.id)
        .order_by(SmsMessage.created_at.asc(), SmsMessage.id.asc())
        .all()
    )


# ============================================
# Webhooks (inbound messages and delivery status)
# ============================================

# Twilio MessageStatus -> stored status
STATUS_MAP = {
    "delivered": "delivered",
    "failed": "failed",
    "undelivered": "failed",
}


def record_inbound_sms(
    db: Session, phone_number: str, message_body: str, message_sid: Optional[str] = None
) -> SmsMessage:
    """Store a message received from an external number on its thread"""
    thread = _get_or_create_thread(db, phone_number)
    message = SmsMessage(
        thread_id=thread.id,
        direction="inbound",
        body=message_body,
        twilio_sid=message_sid,
        status="delivered",
    )
    thread.last_message_at = datetime.utcnow()
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.info(f"📥 Inbound SMS from {phone_number} saved on thread {thread.id}")
    return message


def update_message_status(db: Session, message_sid: str, twilio_status: str) -> Optional[SmsMessage]:
    """Apply a Twilio delivery callback to the stored message, if we have it"""
    message = db.query(SmsMessage).filter(SmsMessage.twilio_sid == message_sid).first()
    if not message:
        logger.warning(f"⚠️ Status callback for unknown message {message_sid}")
        return None

    message.status = STATUS_MAP.get(twilio_status, "sent")
    db.commit()
    logger.info(f"📱 SMS {message_sid} status: {twilio_status} -> {message.status}")
    return message
