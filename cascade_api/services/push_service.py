"""
Push Notification Service
Delivers Web Push notifications to every browser a user has subscribed
"""

import json
import logging
from typing import Iterable, Optional

from pywebpush import WebPushException, webpush
from sqlalchemy.orm import Session

from ..config import Settings
from ..models_push import PushSubscription

logger = logging.getLogger(__name__)

DEFAULT_ICON = "/logo.svg"


def push_configured(settings: Settings) -> bool:
    return bool(settings.vapid_public_key and settings.vapid_private_key)


def build_payload(title: str, body: str, url: str, icon: Optional[str] = None) -> str:
    return json.dumps(
        {
            "title": title,
            "body": body,
            "icon": icon or DEFAULT_ICON,
            "badge": DEFAULT_ICON,
            "url": url,
        }
    )


def send_to_user(
    db: Session,
    settings: Settings,
    user_id: str,
    title: str,
    body: str,
    url: str,
    icon: Optional[str] = None,
) -> int:
    """
    Push one notification to all of a user's subscriptions.

    Subscriptions the push service reports as gone (410) are deleted.
    Returns the number of subscriptions that accepted the push.
    """
    if not push_configured(settings):
        logger.warning("⚠️ VAPID keys not configured - push notification skipped")
        return 0

    subscriptions = db.query(PushSubscription).filter(PushSubscription.user_id == user_id).all()
    if not subscriptions:
        logger.info(f"ℹ️ User {user_id} has no push subscriptions")
        return 0

    payload = build_payload(title, body, url, icon)
    delivered = 0
    expired = 0

    for subscription in subscriptions:
        try:
            webpush(
                subscription_info={
                    "endpoint": subscription.endpoint,
                    "keys": {"p256dh": subscription.p256dh_key, "auth": subscription.auth_key},
                },
                data=payload,
                vapid_private_key=settings.vapid_private_key,
                vapid_claims={"sub": settings.vapid_subject},
            )
            delivered += 1
        except WebPushException as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"❌ Push to {subscription.endpoint[:50]} failed ({status}): {e}")
            if status == 410:
                logger.info(f"🗑️ Removing expired push subscription {subscription.id}")
                db.delete(subscription)
                expired += 1

    if expired:
        db.commit()

    logger.info(f"📬 Push sent to {delivered}/{len(subscriptions)} subscription(s) for user {user_id}")
    return delivered


def send_to_users(
    db: Session,
    settings: Settings,
    user_ids: Iterable[str],
    title: str,
    body: str,
    url: str,
    icon: Optional[str] = None,
) -> int:
    return sum(send_to_user(db, settings, user_id, title, body, url, icon) for user_id in user_ids)
