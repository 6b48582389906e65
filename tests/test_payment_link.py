import json

import httpx

from cascade_api.services.square_service import (
    build_payment_link_payload,
    describe_square_error,
    to_minor_units,
)


def square_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "payment_link": {
                "id": "PL123",
                "url": "https://square.link/u/abc",
                "long_url": "https://checkout.square.site/merchant/abc",
            }
        },
    )


def test_amount_is_sent_in_cents(client, mock_http):
    calls = mock_http(square_ok)

    response = client.post(
        "/create-payment-link",
        json={"orderId": "INV-1001", "amount": "10.00", "name": "Invoice INV-1001"},
    )

    assert response.status_code == 200
    assert response.json() == {"url": "https://checkout.square.site/merchant/abc", "id": "PL123"}

    request = calls[0]
    assert request.url.host == "connect.squareupsandbox.com"
    assert request.url.path == "/v2/online-checkout/payment-links"
    assert request.headers["Authorization"] == "Bearer EAAAtest-token"
    assert request.headers["Square-Version"] == "2024-02-22"

    body = json.loads(request.content)
    assert body["quick_pay"]["price_money"] == {"amount": 1000, "currency": "USD"}
    assert body["quick_pay"]["location_id"] == "LOC123"
    assert body["description"] == "Invoice #INV-1001"


def test_missing_amount_or_name_is_400(client, mock_http):
    calls = mock_http(square_ok)
    response = client.post("/create-payment-link", json={"orderId": "INV-1"})
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields (amount, name)"
    assert calls == []


def test_missing_configuration_is_500(client, use_settings, mock_http):
    use_settings(square_access_token=None)
    calls = mock_http(square_ok)

    response = client.post("/create-payment-link", json={"amount": 5, "name": "x"})
    assert response.status_code == 500
    assert "SQUARE_ACCESS_TOKEN" in response.json()["error"]
    assert calls == []


def test_application_id_as_token_is_rejected(client, use_settings):
    use_settings(square_access_token="sq0idp-abc")
    response = client.post("/create-payment-link", json={"amount": 5, "name": "x"})
    assert response.status_code == 500
    assert "Application ID" in response.json()["error"]


def test_vendor_status_is_passed_through(client, mock_http):
    mock_http(
        lambda request: httpx.Response(
            401,
            json={"errors": [{"category": "AUTHENTICATION_ERROR", "code": "UNAUTHORIZED", "detail": "Bad token"}]},
        )
    )

    response = client.post("/create-payment-link", json={"amount": 5, "name": "x"})
    assert response.status_code == 401
    assert response.json()["error"].startswith("Square Auth Failed: Bad token")


def test_minor_units_round_half_up():
    assert to_minor_units("10.00") == 1000
    assert to_minor_units(0.105) == 11
    assert to_minor_units(19.99) == 1999


def test_payload_keeps_supplied_idempotency_key():
    payload = build_payment_link_payload(
        order_id="INV-9",
        amount="12.50",
        name="Invoice",
        description="Kitchen remodel",
        location_id="LOC",
        idempotency_key="fixed-key",
    )
    assert payload["idempotency_key"] == "fixed-key"
    assert payload["description"] == "Kitchen remodel"
    assert payload["checkout_options"] == {"allow_tipping": False}


def test_location_mismatch_message():
    message = describe_square_error({"errors": [{"code": "LOCATION_MISMATCH"}]}, "production")
    assert message.startswith("Square Location Mismatch")
