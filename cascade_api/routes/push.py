"""
Web Push subscription management
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..database import get_db
from ..models_push import PushSubscription

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/push-subscribe", tags=["push"])


class SubscriptionKeys(BaseModel):
    p256dh: Optional[str] = None
    auth: Optional[str] = None


class BrowserSubscription(BaseModel):
    endpoint: Optional[str] = None
    keys: Optional[SubscriptionKeys] = None


class SubscribeRequest(BaseModel):
    userId: Optional[str] = None
    subscription: Optional[BrowserSubscription] = None


class UnsubscribeRequest(BaseModel):
    userId: Optional[str] = None
    endpoint: Optional[str] = None


@router.post("")
async def subscribe(data: SubscribeRequest, response: Response, db: Session = Depends(get_db)):
    """Upsert by endpoint: 201 for a new browser, 200 when an existing one is refreshed"""
    sub = data.subscription
    if not (data.userId and sub and sub.endpoint and sub.keys and sub.keys.p256dh and sub.keys.auth):
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: userId, subscription.endpoint, subscription.keys",
        )

    existing = db.query(PushSubscription).filter(PushSubscription.endpoint == sub.endpoint).first()
    if existing:
        existing.user_id = data.userId
        existing.p256dh_key = sub.keys.p256dh
        existing.auth_key = sub.keys.auth
        db.commit()
        logger.info(f"🔔 Push subscription updated for user {data.userId}")
        response.status_code = 200
        return {"success": True, "message": "Subscription updated", "subscriptionId": existing.id}

    subscription = PushSubscription(
        user_id=data.userId,
        endpoint=sub.endpoint,
        p256dh_key=sub.keys.p256dh,
        auth_key=sub.keys.auth,
    )
    db.add(subscription)
    db.commit()
    db.refresh(subscription)
    logger.info(f"🔔 Push subscription created for user {data.userId}")
    response.status_code = 201
    return {"success": True, "message": "Subscription created", "subscriptionId": subscription.id}


@router.delete("")
async def unsubscribe(data: UnsubscribeRequest, db: Session = Depends(get_db)):
    if not data.userId or not data.endpoint:
        raise HTTPException(status_code=400, detail="Missing required fields: userId, endpoint")

    deleted = (
        db.query(PushSubscription)
        .filter(PushSubscription.user_id == data.userId, PushSubscription.endpoint == data.endpoint)
        .delete()
    )
    db.commit()

    if not deleted:
        raise HTTPException(status_code=404, detail="Subscription not found")

    logger.info(f"🔕 Push subscription removed for user {data.userId}")
    return {"success": True, "message": "Subscription removed"}


@router.get("/vapid-public-key")
async def vapid_public_key(settings: Settings = Depends(get_settings)):
    """Application server key for pushManager.subscribe()"""
    if not settings.vapid_public_key:
        raise HTTPException(status_code=500, detail="Push notifications not configured. Set VAPID_PUBLIC_KEY.")
    return {"publicKey": settings.vapid_public_key}
