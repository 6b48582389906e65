"""
Square Payment Link Service
Creates hosted checkout links for invoices through the Online Checkout API
"""
import logging
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

import httpx
from fastapi import HTTPException

from ..config import Settings
from ..shared.validators import mask_secret

logger = logging.getLogger(__name__)

SQUARE_VERSION = "2024-02-22"
SQUARE_PRODUCTION_URL = "https://connect.squareup.com"
SQUARE_SANDBOX_URL = "https://connect.squareupsandbox.com"


def square_base_url(environment: str) -> str:
    if (environment or "").lower() == "sandbox":
        return SQUARE_SANDBOX_URL
    return SQUARE_PRODUCTION_URL


def to_minor_units(amount) -> int:
    """Dollars to integer cents, rounding half up"""
    cents = Decimal(str(amount)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def validate_square_config(settings: Settings) -> None:
    """Reject missing or obviously swapped Square credentials with a 500"""
    access_token = settings.square_access_token
    location_id = settings.square_location_id

    if not access_token or not location_id:
        logger.error("❌ Square configuration missing")
        raise HTTPException(
            status_code=500,
            detail=(
                "Square configuration missing. Ensure you have set SQUARE_ACCESS_TOKEN and "
                "SQUARE_LOCATION_ID. (Do not use Application ID for Location ID)."
            ),
        )

    if access_token.startswith("sq0idp-"):
        msg = (
            "Invalid Square Configuration: You provided an Application ID (sq0idp-...) as the "
            "SQUARE_ACCESS_TOKEN. Please use the Production Access Token (starts with EAAA...) "
            "from Square Dashboard -> Credentials."
        )
        logger.error(f"❌ {msg}")
        raise HTTPException(status_code=500, detail=msg)

    if location_id.startswith("sq0idp-") or location_id.startswith("sq0app-"):
        msg = (
            "Invalid Square Configuration: You provided an Application ID (sq0idp-...) as the "
            "SQUARE_LOCATION_ID. Please find your specific Location ID in Square Dashboard -> Locations."
        )
        logger.error(f"❌ {msg}")
        raise HTTPException(status_code=500, detail=msg)


def build_payment_link_payload(
    *,
    order_id: Optional[str],
    amount,
    name: str,
    description: Optional[str],
    location_id: str,
    idempotency_key: Optional[str] = None,
) -> Dict[str, Any]:
    """Request body for POST /v2/online-checkout/payment-links"""
    if not idempotency_key:
        idempotency_key = f"{order_id}-{int(time.time() * 1000)}"

    return {
        "idempotency_key": idempotency_key,
        "quick_pay": {
            "name": name,
            "price_money": {"amount": to_minor_units(amount), "currency": "USD"},
            "location_id": location_id,
        },
        "description": description or f"Invoice #{order_id}",
        "checkout_options": {"allow_tipping": False},
    }


def describe_square_error(data: Dict[str, Any], environment: str) -> str:
    """Turn Square's error list into a message the operator can act on"""
    errors = data.get("errors") or []
    if not errors:
        return "Failed to create Square link"

    err = errors[0]
    if err.get("category") == "AUTHENTICATION_ERROR":
        return f"Square Auth Failed: {err.get('detail')}. Verify Token and Environment ({environment})."
    if err.get("code") == "LOCATION_MISMATCH":
        return "Square Location Mismatch: The Location ID provided does not belong to this Access Token."
    return f"Square Error: {err.get('detail') or err.get('code')}"


async def create_payment_link(
    settings: Settings,
    *,
    order_id: Optional[str],
    amount,
    name: str,
    description: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> Dict[str, str]:
    """
    Create a Square quick-pay payment link.

    Returns:
        {"url": ..., "id": ...}

    Raises:
        HTTPException: 500 for configuration problems, the vendor status for
        Square errors
    """
    validate_square_config(settings)

    environment = settings.square_environment
    base_url = square_base_url(environment)
    payload = build_payment_link_payload(
        order_id=order_id,
        amount=amount,
        name=name,
        description=description,
        location_id=settings.square_location_id,
        idempotency_key=idempotency_key,
    )

    logger.info(
        f"💳 Creating Square payment link: env={environment}, "
        f"location={settings.square_location_id}, token={mask_secret(settings.square_access_token)}"
    )

    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.post(
            f"{base_url}/v2/online-checkout/payment-links",
            headers={
                "Authorization": f"Bearer {settings.square_access_token}",
                "Content-Type": "application/json",
                "Square-Version": SQUARE_VERSION,
            },
            json=payload,
        )

    try:
        data = response.json()
    except ValueError:
        data = {}

    if response.status_code >= 400:
        logger.error(f"❌ Square API error ({response.status_code}): {data}")
        raise HTTPException(
            status_code=response.status_code,
            detail=describe_square_error(data, environment),
        )

    link = data.get("payment_link") or {}
    logger.info(f"✅ Square payment link created: {link.get('id')}")
    # long_url stays on Square's own domain; the short url has had certificate issues
    return {"url": link.get("long_url") or link.get("url"), "id": link.get("id")}
