"""
Contact sync routes for the mobile app
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_user_id
from ..database import get_db
from ..services.contact_service import (
    contact_to_dict,
    delete_contacts,
    find_known_contact,
    list_contacts,
    sync_contacts,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/contact-sync", tags=["contacts"])


class ContactSyncRequest(BaseModel):
    contacts: Optional[Any] = None


@router.post("")
async def sync_device_contacts(
    data: ContactSyncRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    if not isinstance(data.contacts, list):
        raise HTTPException(status_code=400, detail="contacts array required")

    logger.info(f"📇 Syncing {len(data.contacts)} contacts for user {user_id}")
    return sync_contacts(db, user_id, data.contacts)


@router.get("")
async def get_contacts(
    phone: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """With ?phone= checks whether any user knows the number, else lists the caller's contacts"""
    if phone:
        contact = find_known_contact(db, phone)
        return {"isKnown": contact is not None, "contact": contact_to_dict(contact) if contact else None}

    contacts = [contact_to_dict(c) for c in list_contacts(db, user_id)]
    return {"contacts": contacts, "count": len(contacts)}


@router.delete("")
async def clear_contacts(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    count = delete_contacts(db, user_id)
    logger.info(f"🗑️ Cleared {count} contacts for user {user_id}")
    return {"success": True, "message": f"Deleted {count} contacts", "count": count}
