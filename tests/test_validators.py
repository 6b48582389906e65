import pytest

from cascade_api.shared.validators import (
    mask_secret,
    normalize_phone_number,
    sanitize_identity,
    validate_us_phone,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("555-123-4567", "+15551234567"),
        ("(555) 123 4567", "+15551234567"),
        ("1 555 123 4567", "+15551234567"),
        ("+44 20 7946 0958", "+442079460958"),
        ("123456789", None),
        ("", None),
        (None, None),
        ("call me", None),
    ],
)
def test_normalize_phone_number(raw, expected):
    assert normalize_phone_number(raw) == expected


def test_validate_us_phone_raises_for_short_numbers():
    with pytest.raises(ValueError):
        validate_us_phone("555-1234")


def test_mask_secret_keeps_last_characters():
    assert mask_secret("EAAAabcdef1234") == "******1234"
    assert mask_secret(None) == "<unset>"
    assert mask_secret("abc") == "***"


def test_sanitize_identity():
    assert sanitize_identity("user_2abc-XY") == "user_2abc-XY"
    assert sanitize_identity("a.b@c d") == "a_b_c_d"
