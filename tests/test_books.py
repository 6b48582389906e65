from cascade_api.models import Invoice


def invoice_payload(**overrides):
    payload = {
        "id": "inv-1",
        "invoiceNumber": "INV-1001",
        "clientName": "Harbor View HOA",
        "clientEmail": "board@harborview.org",
        "projectDetails": "Deck repair",
        "date": "2026-03-01",
        "dueDate": "2026-03-31",
        "total": 1250.5,
        "status": "sent",
        "items": [
            {"id": "li-1", "description": "Labor", "quantity": 10, "rate": 95, "amount": 950},
            {"id": "li-2", "description": "Materials", "quantity": 1, "rate": 300.5, "amount": 300.5},
        ],
    }
    payload.update(overrides)
    return payload


class TestInvoices:
    def test_create_then_get_keeps_total_at_two_decimals(self, client):
        response = client.post("/invoices", json=invoice_payload(total="99.999"))
        assert response.status_code == 201
        assert response.json()["total"] == 100.0

        fetched = client.get("/invoices/inv-1").json()
        assert fetched["total"] == 100.0
        assert fetched["invoiceNumber"] == "INV-1001"
        assert [item["id"] for item in fetched["items"]] == ["li-1", "li-2"]

    def test_missing_text_fields_come_back_as_empty_strings(self, client):
        client.post(
            "/invoices",
            json=invoice_payload(clientEmail=None, projectDetails=None, paymentLink=None),
        )
        body = client.get("/invoices/inv-1").json()
        assert body["clientEmail"] == ""
        assert body["paymentLink"] == ""
        assert body["checkNumber"] == ""

    def test_list_orders_by_date_descending(self, client):
        client.post("/invoices", json=invoice_payload(id="a", date="2026-01-01"))
        client.post("/invoices", json=invoice_payload(id="b", date="2026-02-01"))

        ids = [inv["id"] for inv in client.get("/invoices").json()]
        assert ids == ["b", "a"]

    def test_get_missing_invoice_returns_404(self, client):
        response = client.get("/invoices/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Invoice not found"}

    def test_replace_updates_every_field(self, client):
        client.post("/invoices", json=invoice_payload())
        response = client.put(
            "/invoices/inv-1",
            json=invoice_payload(status="paid", datePaid="2026-03-15", checkNumber="1042", items=[]),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "paid"
        assert body["datePaid"] == "2026-03-15"
        assert body["checkNumber"] == "1042"
        assert body["items"] == []

    def test_replace_missing_invoice_is_404_and_inserts_nothing(self, client, db_session):
        response = client.put("/invoices/ghost", json=invoice_payload(id="ghost"))
        assert response.status_code == 404
        assert db_session.query(Invoice).count() == 0

    def test_delete_is_idempotent(self, client):
        client.post("/invoices", json=invoice_payload())
        assert client.delete("/invoices/inv-1").status_code == 204
        assert client.delete("/invoices/inv-1").status_code == 204
        assert client.get("/invoices").json() == []

    def test_invalid_status_is_rejected_with_400(self, client):
        response = client.post("/invoices", json=invoice_payload(status="void"))
        assert response.status_code == 400
        assert "status" in response.json()["error"]

    def test_missing_id_is_rejected(self, client):
        payload = invoice_payload()
        del payload["id"]
        response = client.post("/invoices", json=payload)
        assert response.status_code == 400


class TestExpenses:
    def test_create_and_list(self, client):
        response = client.post(
            "/expenses",
            json={
                "id": "exp-1",
                "date": "2026-02-10",
                "payee": "Lumber Yard",
                "category": "Materials",
                "amount": "412.345",
                "description": "Cedar boards",
            },
        )
        assert response.status_code == 201
        assert response.json()["amount"] == 412.35

        expenses = client.get("/expenses").json()
        assert len(expenses) == 1
        assert expenses[0]["payee"] == "Lumber Yard"

    def test_delete_missing_expense_returns_204(self, client):
        assert client.delete("/expenses/unknown").status_code == 204

    def test_missing_required_field_is_400(self, client):
        response = client.post("/expenses", json={"id": "exp-2", "date": "2026-02-10"})
        assert response.status_code == 400
        assert "error" in response.json()


class TestBooksClients:
    def test_create_derives_legacy_address(self, client):
        response = client.post(
            "/clients",
            json={
                "id": "c-1",
                "companyName": "Summit Property Group",
                "addressLine1": "12 Main St",
                "city": "Bend",
                "state": "OR",
                "zip": "97701",
            },
        )
        assert response.status_code == 201
        body = response.json()
        assert body["address"] == "12 Main St Bend OR"
        assert body["checkPayorName"] == ""

    def test_list_is_alphabetical(self, client):
        client.post("/clients", json={"id": "c-2", "companyName": "Zephyr Homes"})
        client.post("/clients", json={"id": "c-1", "companyName": "Alder Builders"})

        names = [c["companyName"] for c in client.get("/clients").json()]
        assert names == ["Alder Builders", "Zephyr Homes"]

    def test_replace_and_delete(self, client):
        client.post("/clients", json={"id": "c-1", "companyName": "Alder Builders"})

        response = client.put(
            "/clients/c-1",
            json={"companyName": "Alder Builders LLC", "address": "PO Box 9", "checkPayorName": "Alder"},
        )
        assert response.status_code == 200
        assert response.json()["address"] == "PO Box 9"

        assert client.delete("/clients/c-1").status_code == 204
        assert client.get("/clients").json() == []

    def test_replace_missing_client_is_404(self, client):
        response = client.put("/clients/missing", json={"companyName": "Nobody"})
        assert response.status_code == 404
        assert response.json()["error"] == "Client not found"
