from urllib.parse import parse_qs

import httpx

from cascade_api.models_sms import SmsMessage

AUTH = {"Authorization": "Bearer user_123"}


def twilio_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(201, json={"sid": "SM123", "status": "queued"})


def test_send_records_outbound_message(client, mock_http):
    calls = mock_http(twilio_ok)

    response = client.post("/sms/send", headers=AUTH, json={"to": "(555) 123-4567", "message": "Crew arrives at 8"})

    assert response.status_code == 200
    message = response.json()["message"]
    assert message["status"] == "sent"
    assert message["twilioSid"] == "SM123"
    assert message["direction"] == "outbound"

    request = calls[0]
    assert request.url.path == "/2010-04-01/Accounts/ACtest/Messages.json"
    assert request.headers["Authorization"].startswith("Basic ")
    form = parse_qs(request.content.decode())
    assert form == {"To": ["+15551234567"], "From": ["+15550000000"], "Body": ["Crew arrives at 8"]}


def test_threads_and_history(client, mock_http):
    mock_http(twilio_ok)
    client.post("/sms/send", headers=AUTH, json={"to": "5551234567", "message": "first"})
    client.post("/sms/send", headers=AUTH, json={"to": "5551234567", "message": "second"})
    client.post("/sms/send", headers=AUTH, json={"to": "5559876543", "message": "other"})

    threads = client.get("/sms/threads", headers=AUTH).json()
    assert [t["phoneNumber"] for t in threads] == ["+15559876543", "+15551234567"]

    history = client.get("/sms/threads/5551234567/messages", headers=AUTH).json()
    assert [m["body"] for m in history] == ["first", "second"]


def test_twilio_rejection_is_recorded_and_passed_through(client, mock_http, db_session):
    mock_http(lambda request: httpx.Response(400, json={"code": 21211, "message": "Invalid 'To' Phone Number"}))

    response = client.post("/sms/send", headers=AUTH, json={"to": "5551234567", "message": "hello"})

    assert response.status_code == 400
    assert response.json()["error"] == "Twilio Error: Invalid 'To' Phone Number"
    failed = db_session.query(SmsMessage).one()
    assert failed.status == "failed"
    assert failed.error_message == "Invalid 'To' Phone Number"


def test_invalid_number_is_400(client, mock_http):
    calls = mock_http(twilio_ok)
    response = client.post("/sms/send", headers=AUTH, json={"to": "12345", "message": "hi"})
    assert response.status_code == 400
    assert calls == []


def test_send_requires_authorization(client):
    assert client.post("/sms/send", json={"to": "5551234567", "message": "hi"}).status_code == 401


class TestWebhooks:
    def test_inbound_message_joins_thread(self, client, mock_http):
        mock_http(twilio_ok)
        client.post("/sms/send", headers=AUTH, json={"to": "5551234567", "message": "Crew arrives at 8"})

        response = client.post(
            "/sms/webhook",
            data={"From": "+15551234567", "Body": "Thanks, gate code is 4411", "MessageSid": "SMin1"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/xml")
        assert response.text == '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'

        history = client.get("/sms/threads/5551234567/messages", headers=AUTH).json()
        assert [(m["direction"], m["body"]) for m in history] == [
            ("outbound", "Crew arrives at 8"),
            ("inbound", "Thanks, gate code is 4411"),
        ]
        assert history[1]["status"] == "delivered"
        assert history[1]["twilioSid"] == "SMin1"

    def test_inbound_without_body_is_400(self, client, db_session):
        response = client.post("/sms/webhook", data={"From": "+15551234567"})
        assert response.status_code == 400
        assert db_session.query(SmsMessage).count() == 0

    def test_status_callback_updates_stored_message(self, client, mock_http, db_session):
        mock_http(twilio_ok)
        client.post("/sms/send", headers=AUTH, json={"to": "5551234567", "message": "hello"})

        response = client.post("/sms/status-webhook", data={"MessageSid": "SM123", "MessageStatus": "delivered"})
        assert response.status_code == 200
        assert db_session.query(SmsMessage).filter_by(twilio_sid="SM123").one().status == "delivered"

        client.post("/sms/status-webhook", data={"MessageSid": "SM123", "MessageStatus": "undelivered"})
        db_session.expire_all()
        assert db_session.query(SmsMessage).filter_by(twilio_sid="SM123").one().status == "failed"

    def test_status_callback_for_unknown_message_is_acknowledged(self, client):
        response = client.post("/sms/status-webhook", data={"MessageSid": "SMnope", "MessageStatus": "sent"})
        assert response.status_code == 200

    def test_status_callback_missing_fields_is_400(self, client):
        assert client.post("/sms/status-webhook", data={"MessageSid": "SM123"}).status_code == 400
