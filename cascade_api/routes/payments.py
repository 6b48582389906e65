"""
Square payment link route used by the invoice editor
"""

import logging
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..config import Settings, get_settings
from ..services.square_service import create_payment_link, validate_square_config

logger = logging.getLogger(__name__)
router = APIRouter(tags=["square"])


class PaymentLinkRequest(BaseModel):
    orderId: Optional[str] = None
    amount: Optional[Decimal] = None
    name: Optional[str] = None
    description: Optional[str] = None
    idempotencyKey: Optional[str] = None


class PaymentLinkResponse(BaseModel):
    url: str
    id: str


@router.post("/create-payment-link", response_model=PaymentLinkResponse)
async def create_invoice_payment_link(
    data: PaymentLinkRequest,
    settings: Settings = Depends(get_settings),
):
    """Create a hosted Square checkout link for an invoice total"""
    validate_square_config(settings)

    if not data.amount or not data.name:
        raise HTTPException(status_code=400, detail="Missing required fields (amount, name)")

    return await create_payment_link(
        settings,
        order_id=data.orderId,
        amount=data.amount,
        name=data.name,
        description=data.description,
        idempotency_key=data.idempotencyKey,
    )
