"""
Contact Sync Service
Keeps the allowlist of known callers that the mobile app uploads
"""

import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models_contacts import UserContact
from ..shared.validators import normalize_phone_number

logger = logging.getLogger(__name__)

BATCH_SIZE = 100
MAX_REPORTED_ERRORS = 10


def contact_to_dict(contact: UserContact) -> dict:
    return {
        "id": contact.id,
        "userId": contact.user_id,
        "phoneNumber": contact.phone_number,
        "name": contact.name,
        "createdAt": contact.created_at.isoformat() if contact.created_at else None,
        "updatedAt": contact.updated_at.isoformat() if contact.updated_at else None,
    }


def _upsert_contact(db: Session, user_id: str, phone_number: str, name: Optional[str]) -> None:
    """Insert or re-own a contact keyed by phone number"""
    existing = db.query(UserContact).filter(UserContact.phone_number == phone_number).first()
    if existing:
        existing.name = name
        existing.user_id = user_id
    else:
        db.add(UserContact(user_id=user_id, phone_number=phone_number, name=name))
    db.flush()


def sync_contacts(db: Session, user_id: str, contacts: list[Any]) -> dict:
    """
    Upsert a device contact list in batches.

    Invalid numbers and rows that fail to write are counted, not raised.
    Only the first few error strings are returned.
    """
    if not contacts:
        return {"success": True, "message": "No contacts to sync", "synced": 0, "failed": 0, "errors": []}

    synced = 0
    failed = 0
    errors: list[str] = []

    for start in range(0, len(contacts), BATCH_SIZE):
        batch = contacts[start:start + BATCH_SIZE]

        for contact in batch:
            if not isinstance(contact, dict):
                failed += 1
                errors.append(f"Invalid contact entry: {contact!r}")
                continue

            phone = contact.get("phone")
            name = contact.get("name") or None
            normalized = normalize_phone_number(phone if isinstance(phone, str) else None)
            if not normalized:
                failed += 1
                errors.append(f"Invalid phone number: {phone} ({name})")
                continue

            savepoint = db.begin_nested()
            try:
                _upsert_contact(db, user_id, normalized, name)
                savepoint.commit()
                synced += 1
            except SQLAlchemyError as e:
                savepoint.rollback()
                failed += 1
                errors.append(f"Failed to sync {normalized}: {str(e)}")

        db.commit()
        logger.info(f"📇 Contact batch {start // BATCH_SIZE + 1} done for {user_id}: synced={synced}, failed={failed}")

    return {
        "success": True,
        "message": f"Successfully synced {synced} contacts ({failed} failed)",
        "synced": synced,
        "failed": failed,
        "errors": errors[:MAX_REPORTED_ERRORS],
    }


def list_contacts(db: Session, user_id: str) -> list[UserContact]:
    return db.query(UserContact).filter(UserContact.user_id == user_id).order_by(UserContact.name.asc()).all()


def delete_contacts(db: Session, user_id: str) -> int:
    count = db.query(UserContact).filter(UserContact.user_id == user_id).delete()
    db.commit()
    return count


def find_known_contact(db: Session, phone: str) -> Optional[UserContact]:
    """Global lookup used by call routing"""
    normalized = normalize_phone_number(phone)
    if not normalized:
        return None
    return db.query(UserContact).filter(UserContact.phone_number == normalized).first()
