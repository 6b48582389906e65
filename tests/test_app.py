from fastapi.testclient import TestClient

from cascade_api.main import app


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_cors_preflight(client):
    response = client.options(
        "/invoices",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert response.text == "OK"


def test_malformed_json_is_400(client):
    response = client.post(
        "/expenses",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert "error" in response.json()


def test_unexpected_error_keeps_cors_headers(client):
    browser = TestClient(app, raise_server_exceptions=False)
    headers = {"Origin": "http://localhost:5173"}
    invoice = {"id": "inv-dup", "invoiceNumber": "INV-1", "clientName": "Acme", "date": "2026-03-01", "total": 10}

    assert browser.post("/invoices", json=invoice, headers=headers).status_code == 201
    response = browser.post("/invoices", json=invoice, headers=headers)

    assert response.status_code == 500
    assert "error" in response.json()
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
