"""
Customer master data: validation, uniqueness, soft delete and order history.
"""

import pytest

from conftest import CUSTOMER_PAYLOAD, order_payload
from filterops.extensions import db
from filterops.models import AuditRecord, Customer


class TestCreateCustomer:

    def test_create(self, client, office_headers):
        resp = client.post("/api/customers", json=CUSTOMER_PAYLOAD, headers=office_headers)
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["customerNumber"] == "C-1001"
        assert body["status"] == "active"
        assert body["isDeleted"] is False

    def test_duplicate_number_is_400(self, client, office_headers):
        client.post("/api/customers", json=CUSTOMER_PAYLOAD, headers=office_headers)
        resp = client.post("/api/customers", json=CUSTOMER_PAYLOAD, headers=office_headers)
        assert resp.status_code == 400
        assert resp.get_json()["details"]["field"] == "customerNumber"

    def test_missing_required_fields_listed(self, client, office_headers):
        resp = client.post("/api/customers", json={"name": "Only a name"}, headers=office_headers)
        assert resp.status_code == 400
        details = resp.get_json()["details"]
        assert "customerNumber is required" in details
        assert "postalCode is required" in details

    @pytest.mark.parametrize("field,value", [
        ("postalCode", "1234"),
        ("postalCode", "12a45"),
        ("email", "not-an-email"),
        ("latitude", 91),
        ("longitude", -181),
        ("status", "sleeping"),
    ])
    def test_field_validation(self, client, office_headers, field, value):
        resp = client.post("/api/customers", json=dict(CUSTOMER_PAYLOAD, **{field: value}), headers=office_headers)
        assert resp.status_code == 400

    def test_field_service_forbidden(self, client, field_headers):
        resp = client.post("/api/customers", json=CUSTOMER_PAYLOAD, headers=field_headers)
        assert resp.status_code == 403


class TestListAndUpdate:

    def test_search(self, client, office_headers, customer):
        resp = client.get("/api/customers?search=berlin", headers=office_headers)
        assert [c["id"] for c in resp.get_json()] == [customer.id]

        resp = client.get("/api/customers?search=hamburg", headers=office_headers)
        assert resp.get_json() == []

    def test_update(self, client, office_headers, customer):
        resp = client.patch(
            f"/api/customers/{customer.id}",
            json={"status": "on_vacation", "vacationStartDate": "2025-07-01", "vacationEndDate": "2025-07-14"},
            headers=office_headers,
        )
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "on_vacation"
        assert body["vacationStartDate"] == "2025-07-01"

    def test_update_unknown_key(self, client, office_headers, customer):
        resp = client.patch(f"/api/customers/{customer.id}", json={"isDeleted": True}, headers=office_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Invalid updates"

    def test_update_to_taken_number(self, client, office_headers, customer):
        other = client.post(
            "/api/customers", json=dict(CUSTOMER_PAYLOAD, customerNumber="C-2002"), headers=office_headers,
        ).get_json()
        resp = client.patch(f"/api/customers/{other['id']}", json={"customerNumber": "C-1001"}, headers=office_headers)
        assert resp.status_code == 400


class TestSoftDelete:

    def test_delete_hides_customer(self, client, admin_headers, customer):
        resp = client.delete(f"/api/customers/{customer.id}", headers=admin_headers)
        assert resp.status_code == 200

        assert db.session.get(Customer, customer.id).is_deleted is True
        assert client.get(f"/api/customers/{customer.id}", headers=admin_headers).status_code == 404
        assert client.get("/api/customers", headers=admin_headers).get_json() == []

        deleted = client.get("/api/customers?deleted=true", headers=admin_headers).get_json()
        assert [c["id"] for c in deleted] == [customer.id]

    def test_delete_twice(self, client, admin_headers, customer):
        client.delete(f"/api/customers/{customer.id}", headers=admin_headers)
        resp = client.delete(f"/api/customers/{customer.id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Customer already deleted"

    def test_delete_is_audited(self, client, admin_headers, customer):
        client.delete(f"/api/customers/{customer.id}", headers=admin_headers)
        record = db.session.query(AuditRecord).filter_by(collection_name="customers", action="delete").one()
        fields = {c["field"] for c in record.changes}
        assert "is_deleted" in fields

    def test_back_office_cannot_delete(self, client, office_headers, customer):
        assert client.delete(f"/api/customers/{customer.id}", headers=office_headers).status_code == 403


class TestCustomerOrders:

    def test_history_rows(self, client, admin_headers, customer, item):
        client.post("/api/orders", json=order_payload(customer.id, item.id), headers=admin_headers)
        resp = client.get(f"/api/customers/{customer.id}/orders", headers=admin_headers)
        assert resp.status_code == 200
        rows = resp.get_json()
        assert [r["startDate"] for r in rows] == ["2025-01-15", "2025-01-08", "2025-01-01"]
        assert set(rows[0]) == {
            "id", "orderNumber", "status", "startDate", "endDate", "totalNetAmount", "totalGrossAmount",
        }
