"""Shared validation utilities"""

import re
from typing import Optional

PHONE_DIGITS_RE = re.compile(r"\D")


def normalize_phone_number(phone: Optional[str], default_country_code: str = "1") -> Optional[str]:
    """
    Normalize a phone number to E.164 format.

    Ten-digit numbers are treated as US/Canada and get the default country
    code. Eleven or more digits are assumed to already carry a country code.

    Returns:
        "+<digits>" or None when the number has fewer than 10 digits
    """
    if not phone:
        return None

    digits = PHONE_DIGITS_RE.sub("", phone)
    if not digits:
        return None

    if len(digits) == 10:
        digits = default_country_code + digits
    elif len(digits) < 10:
        return None

    return f"+{digits}"


def validate_us_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number for outbound SMS.

    Raises:
        ValueError: If the phone number cannot be normalized
    """
    normalized = normalize_phone_number(phone)
    if not normalized:
        raise ValueError("Invalid phone number. Use a 10-digit US number or +<country><number>.")
    return normalized


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """Show only the last few characters of a credential in logs"""
    if not value:
        return "<unset>"
    if len(value) <= visible:
        return "*" * len(value)
    return f"{'*' * 6}{value[-visible:]}"


def sanitize_identity(value: str) -> str:
    """Twilio client identities allow only letters, digits, '_' and '-'"""
    return re.sub(r"[^a-zA-Z0-9_-]", "_", value)
