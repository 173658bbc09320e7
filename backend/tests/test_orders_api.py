"""
Order lifecycle over HTTP: series creation, drafts, updates, deletion,
driver assignment, delivery sequencing and images.
"""

import re

import pytest

from conftest import order_payload
from filterops.extensions import db
from filterops.models import AuditRecord, Order, OrderLine


ORDER_NUMBER = re.compile(r"^A-\d{4}-\d{4,}$")


def _create(client, headers, payload):
    resp = client.post("/api/orders", json=payload, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


def _all_orders():
    return db.session.query(Order).order_by(Order.start_date.asc(), Order.id.asc()).all()


# =============================================================================
# CREATE
# =============================================================================


class TestCreateSeries:

    def test_weekly_series(self, client, admin_headers, customer, item):
        orders = _create(client, admin_headers, order_payload(customer.id, item.id))

        assert [o["startDate"] for o in orders] == ["2025-01-01", "2025-01-08", "2025-01-15"]

        main, *members = orders
        assert main["mainOrder"] is True
        assert main["originalOrderNumber"] is None
        assert main["endDate"] == "2025-01-15"
        assert main["status"] == "pending"

        for member in members:
            assert member["mainOrder"] is False
            assert member["originalOrderNumber"] == main["orderNumber"]
            assert member["endDate"] == member["startDate"]
            assert member["frequency"] == "weekly"
            assert member["items"][0]["quantity"] == 2
            assert member["totalGrossAmount"] == 23.8

        numbers = [o["orderNumber"] for o in orders]
        assert len(set(numbers)) == 3
        assert all(ORDER_NUMBER.match(n) for n in numbers)

    def test_twenty_one_days_gives_main_and_two_members(self, client, admin_headers, customer, item):
        orders = _create(client, admin_headers, order_payload(customer.id, item.id, endDate="2025-01-21"))
        assert len(orders) == 3
        assert sum(1 for o in orders if o["mainOrder"]) == 1

    def test_one_time_order(self, client, office_headers, customer, item):
        orders = _create(client, office_headers, order_payload(
            customer.id, item.id, frequency="one_time", endDate="2025-01-01",
        ))
        assert len(orders) == 1
        assert orders[0]["mainOrder"] is True

    def test_lines_stored_as_submitted(self, client, admin_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        line = main["items"][0]
        assert line["item"]["id"] == item.id
        assert line["unitPrice"] == 10.0
        assert line["netAmount"] == 20.0

    def test_each_order_audited(self, client, admin_headers, customer, item):
        _create(client, admin_headers, order_payload(customer.id, item.id))
        created = db.session.query(AuditRecord).filter_by(collection_name="orders", action="create").count()
        assert created == 3

    def test_missing_field_reports_first_missing(self, client, admin_headers, customer, item):
        payload = order_payload(customer.id, item.id)
        del payload["startDate"]
        del payload["totalNetAmount"]
        resp = client.post("/api/orders", json=payload, headers=admin_headers)
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["error"] == "Missing required field"
        assert "startDate" in body["message"]

    def test_empty_items_is_missing(self, client, admin_headers, customer, item):
        resp = client.post("/api/orders", json=order_payload(customer.id, item.id, items=[]), headers=admin_headers)
        assert resp.status_code == 400
        assert "items" in resp.get_json()["message"]

    def test_start_after_end(self, client, admin_headers, customer, item):
        resp = client.post(
            "/api/orders",
            json=order_payload(customer.id, item.id, startDate="2025-02-01", endDate="2025-01-01"),
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert db.session.query(Order).count() == 0

    def test_unknown_frequency(self, client, admin_headers, customer, item):
        resp = client.post(
            "/api/orders", json=order_payload(customer.id, item.id, frequency="hourly"), headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_inactive_customer_writes_nothing(self, client, admin_headers, customer, item):
        client.patch(f"/api/customers/{customer.id}", json={"status": "inactive"}, headers=admin_headers)
        resp = client.post("/api/orders", json=order_payload(customer.id, item.id), headers=admin_headers)
        assert resp.status_code == 400
        assert db.session.query(Order).count() == 0
        assert db.session.query(OrderLine).count() == 0

    def test_inactive_item_writes_nothing(self, client, admin_headers, customer, item):
        client.delete(f"/api/items/{item.id}", headers=admin_headers)
        resp = client.post("/api/orders", json=order_payload(customer.id, item.id), headers=admin_headers)
        assert resp.status_code == 400
        assert db.session.query(Order).count() == 0

    def test_missing_item(self, client, admin_headers, customer, item):
        payload = order_payload(customer.id, item.id)
        payload["items"][0]["item"] = 9999
        resp = client.post("/api/orders", json=payload, headers=admin_headers)
        assert resp.status_code == 404

    def test_unknown_key_rejected(self, client, admin_headers, customer, item):
        resp = client.post(
            "/api/orders", json=order_payload(customer.id, item.id, mainOrder=True), headers=admin_headers,
        )
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["error"] == "Invalid updates"
        assert body["details"] == ["mainOrder"]


class TestDrafts:

    def test_draft_needs_only_customer(self, client, admin_headers, customer):
        orders = _create(client, admin_headers, {"status": "draft", "customer": customer.id})
        assert len(orders) == 1
        assert orders[0]["status"] == "draft"
        assert orders[0]["mainOrder"] is True
        assert orders[0]["startDate"] is None

    def test_draft_without_customer(self, client, admin_headers):
        resp = client.post("/api/orders", json={"status": "draft"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_promotion_generates_members(self, client, admin_headers, customer, item):
        draft = _create(client, admin_headers, {"status": "draft", "customer": customer.id})[0]

        payload = order_payload(customer.id, item.id)
        del payload["customer"]
        resp = client.patch(f"/api/orders/{draft['id']}", json=payload, headers=admin_headers)
        assert resp.status_code == 200
        assert db.session.query(Order).count() == 1

        resp = client.patch(f"/api/orders/{draft['id']}/status", json={"status": "pending"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "pending"

        orders = _all_orders()
        assert [o.start_date.isoformat() for o in orders] == ["2025-01-01", "2025-01-08", "2025-01-15"]
        assert all(o.original_order_number == draft["orderNumber"] for o in orders[1:])

    def test_incomplete_draft_cannot_be_promoted(self, client, admin_headers, customer):
        draft = _create(client, admin_headers, {"status": "draft", "customer": customer.id})[0]
        resp = client.patch(f"/api/orders/{draft['id']}/status", json={"status": "pending"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Missing required field"
        assert db.session.get(Order, draft["id"]).status == "draft"

    def test_promotion_without_delivery_dates_rejected(self, client, admin_headers, customer, item):
        payload = order_payload(
            customer.id, item.id, status="draft", frequency="weekdays",
            startDate="2025-01-04", endDate="2025-01-05",
        )
        draft = _create(client, admin_headers, payload)[0]

        resp = client.patch(f"/api/orders/{draft['id']}/status", json={"status": "pending"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "The schedule does not produce any delivery date"
        assert db.session.get(Order, draft["id"]).status == "draft"
        assert db.session.query(Order).count() == 1

    def test_cannot_return_to_draft(self, client, admin_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        resp = client.patch(f"/api/orders/{main['id']}/status", json={"status": "draft"}, headers=admin_headers)
        assert resp.status_code == 400


# =============================================================================
# READ
# =============================================================================


class TestListOrders:

    def test_only_main_orders_by_default(self, client, field_headers, admin_headers, customer, item):
        _create(client, admin_headers, order_payload(customer.id, item.id))
        resp = client.get("/api/orders", headers=field_headers)
        assert resp.status_code == 200
        assert len(resp.get_json()) == 1

        resp = client.get("/api/orders?allOrders=true", headers=field_headers)
        assert len(resp.get_json()) == 3

    def test_date_filter(self, client, admin_headers, customer, item):
        _create(client, admin_headers, order_payload(customer.id, item.id))
        resp = client.get("/api/orders?date=2025-01-08&allOrders=true", headers=admin_headers)
        assert [o["startDate"] for o in resp.get_json()] == ["2025-01-08"]

    def test_month_filter(self, client, admin_headers, customer, item):
        _create(client, admin_headers, order_payload(customer.id, item.id, endDate="2025-02-12"))
        resp = client.get("/api/orders?year=2025&month=2&allOrders=true", headers=admin_headers)
        assert {o["startDate"][:7] for o in resp.get_json()} == {"2025-02"}

    def test_bad_date_filter(self, client, admin_headers):
        resp = client.get("/api/orders?date=yesterday", headers=admin_headers)
        assert resp.status_code == 400

    def test_get_missing_order(self, client, admin_headers):
        assert client.get("/api/orders/999", headers=admin_headers).status_code == 404

    def test_unassigned(self, client, admin_headers, customer, item, driver):
        orders = _create(client, admin_headers, order_payload(customer.id, item.id))
        client.post(
            "/api/orders/assign-driver",
            json={"driverId": driver.id, "orderIds": [orders[0]["id"]]},
            headers=admin_headers,
        )
        resp = client.get("/api/orders/unassigned", headers=admin_headers)
        ids = {o["id"] for o in resp.get_json()}
        assert ids == {orders[1]["id"], orders[2]["id"]}


# =============================================================================
# UPDATE
# =============================================================================


class TestUpdateOrder:

    def test_member_schedule_change_rejected(self, client, admin_headers, customer, item):
        main, member, _ = _create(client, admin_headers, order_payload(customer.id, item.id))
        resp = client.patch(f"/api/orders/{member['id']}", json={"startDate": "2025-01-09"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["details"]["mainOrderNumber"] == main["orderNumber"]

    def test_member_non_schedule_update_allowed(self, client, admin_headers, customer, item):
        _, member, _ = _create(client, admin_headers, order_payload(customer.id, item.id))
        resp = client.patch(f"/api/orders/{member['id']}", json={"driverNote": "Ring twice"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["driverNote"] == "Ring twice"

    def test_frequency_change_keeps_started_members(self, client, admin_headers, customer, item):
        orders = _create(client, admin_headers, order_payload(customer.id, item.id, endDate="2025-03-31"))
        main = orders[0]
        started = orders[1]
        assert started["startDate"] == "2025-01-08"

        resp = client.patch(f"/api/orders/{started['id']}/status", json={"status": "in_progress"}, headers=admin_headers)
        assert resp.status_code == 200

        resp = client.patch(f"/api/orders/{main['id']}", json={"frequency": "monthly"}, headers=admin_headers)
        assert resp.status_code == 200

        members = (
            db.session.query(Order)
            .filter(Order.original_order_number == main["orderNumber"])
            .order_by(Order.start_date.asc())
            .all()
        )
        assert [(m.start_date.isoformat(), m.status) for m in members] == [
            ("2025-01-08", "in_progress"),
            ("2025-02-01", "pending"),
            ("2025-03-01", "pending"),
        ]
        assert all(m.id != main["id"] for m in members)

    def test_regeneration_is_audited(self, client, admin_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        client.patch(f"/api/orders/{main['id']}", json={"endDate": "2025-01-22"}, headers=admin_headers)

        deletes = db.session.query(AuditRecord).filter_by(collection_name="orders", action="delete").count()
        assert deletes == 2
        assert db.session.query(Order).count() == 4

    def test_schedule_without_delivery_dates_keeps_series(self, client, admin_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        resp = client.patch(
            f"/api/orders/{main['id']}",
            json={"frequency": "weekdays", "startDate": "2025-01-04", "endDate": "2025-01-05"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "The schedule does not produce any delivery date"
        assert [o.start_date.isoformat() for o in _all_orders()] == ["2025-01-01", "2025-01-08", "2025-01-15"]
        assert db.session.get(Order, main["id"]).frequency == "weekly"

    def test_null_mandatory_field_rejected(self, client, admin_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        resp = client.patch(f"/api/orders/{main['id']}", json={"totalNetAmount": None}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Missing required field"

    def test_unknown_key_rejected(self, client, admin_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        resp = client.patch(f"/api/orders/{main['id']}", json={"orderNumber": "A-1999-0001"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["details"] == ["orderNumber"]


# =============================================================================
# DELETE
# =============================================================================


class TestDeleteOrder:

    def test_deleting_member_removes_series(self, client, admin_headers, customer, item):
        orders = _create(client, admin_headers, order_payload(customer.id, item.id))
        resp = client.delete(f"/api/orders/{orders[1]['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["deletedCount"] == 3
        assert db.session.query(Order).count() == 0
        assert db.session.query(OrderLine).count() == 0

    def test_deleting_main_removes_series(self, client, admin_headers, customer, item):
        orders = _create(client, admin_headers, order_payload(customer.id, item.id))
        resp = client.delete(f"/api/orders/{orders[0]['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["deletedCount"] == 3
        assert db.session.query(Order).count() == 0
        assert db.session.query(OrderLine).count() == 0

    def test_only_pending_or_draft(self, client, admin_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        client.patch(f"/api/orders/{main['id']}/status", json={"status": "completed"}, headers=admin_headers)
        resp = client.delete(f"/api/orders/{main['id']}", headers=admin_headers)
        assert resp.status_code == 400
        assert db.session.query(Order).count() == 3

    def test_back_office_cannot_delete(self, client, admin_headers, office_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        assert client.delete(f"/api/orders/{main['id']}", headers=office_headers).status_code == 403


# =============================================================================
# DRIVERS AND ROUTES
# =============================================================================


class TestAssignment:

    def test_assign_counts_changed(self, client, admin_headers, customer, item, driver):
        orders = _create(client, admin_headers, order_payload(customer.id, item.id))
        ids = [o["id"] for o in orders]

        resp = client.post("/api/orders/assign-driver", json={"driverId": driver.id, "orderIds": ids[:2]}, headers=admin_headers)
        assert resp.get_json()["modifiedCount"] == 2

        resp = client.post("/api/orders/assign-driver", json={"driverId": driver.id, "orderIds": ids}, headers=admin_headers)
        assert resp.get_json()["modifiedCount"] == 1

        resp = client.post("/api/orders/assign-driver", json={"driverId": driver.id, "orderIds": ids}, headers=admin_headers)
        assert resp.status_code == 400

    def test_unknown_driver(self, client, admin_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        resp = client.post("/api/orders/assign-driver", json={"driverId": 999, "orderIds": [main["id"]]}, headers=admin_headers)
        assert resp.status_code == 404

    def test_unassign_clears_sequence(self, client, admin_headers, field_headers, customer, item, driver):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        client.patch(f"/api/orders/{main['id']}/assigned-driver", json={"assignedDriver": driver.id}, headers=field_headers)
        client.post(
            "/api/orders/update-sequence",
            json={"orderIds": [main["id"]], "driverId": driver.id, "date": "2025-01-01"},
            headers=admin_headers,
        )
        resp = client.patch(f"/api/orders/{main['id']}/assigned-driver", json={"assignedDriver": None}, headers=field_headers)
        assert resp.status_code == 200
        assert resp.get_json()["assignedDriver"] is None
        assert resp.get_json()["deliverySequence"] is None


class TestDeliverySequence:

    def test_positions_follow_list_order(self, client, admin_headers, customer, item, driver):
        orders = _create(client, admin_headers, order_payload(customer.id, item.id))
        ids = [o["id"] for o in orders]
        client.post("/api/orders/assign-driver", json={"driverId": driver.id, "orderIds": ids}, headers=admin_headers)

        resp = client.post(
            "/api/orders/update-sequence",
            json={"orderIds": list(reversed(ids)), "driverId": driver.id, "date": "2025-01-08"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["date"] == "2025-01-08"
        assert [(o["id"], o["deliverySequence"]) for o in body["orders"]] == [
            (ids[2], 1), (ids[1], 2), (ids[0], 3),
        ]

    def test_foreign_order_aborts_everything(self, client, admin_headers, admin_identity, customer, item, driver):
        from conftest import DRIVER_PAYLOAD
        from filterops.services import driver_service

        other = driver_service.create_driver(dict(DRIVER_PAYLOAD, driverNumber="D-02"), admin_identity)
        orders = _create(client, admin_headers, order_payload(customer.id, item.id))
        ids = [o["id"] for o in orders]
        client.post("/api/orders/assign-driver", json={"driverId": driver.id, "orderIds": ids[:2]}, headers=admin_headers)
        client.post("/api/orders/assign-driver", json={"driverId": other.id, "orderIds": ids[2:]}, headers=admin_headers)

        resp = client.post(
            "/api/orders/update-sequence",
            json={"orderIds": ids, "driverId": driver.id, "date": "2025-01-01"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert all(o.delivery_sequence is None for o in _all_orders())

    def test_duplicates_rejected(self, client, admin_headers, customer, item, driver):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        resp = client.post(
            "/api/orders/update-sequence",
            json={"orderIds": [main["id"], main["id"]], "driverId": driver.id, "date": "2025-01-01"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_bad_date_rejected(self, client, admin_headers, customer, item, driver):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        client.post("/api/orders/assign-driver", json={"driverId": driver.id, "orderIds": [main["id"]]}, headers=admin_headers)
        resp = client.post(
            "/api/orders/update-sequence",
            json={"orderIds": [main["id"]], "driverId": driver.id, "date": "08.01.2025"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert db.session.get(Order, main["id"]).delivery_sequence is None

    def test_missing_order(self, client, admin_headers, driver):
        resp = client.post(
            "/api/orders/update-sequence",
            json={"orderIds": [12345], "driverId": driver.id, "date": "2025-01-01"},
            headers=admin_headers,
        )
        assert resp.status_code == 404


# =============================================================================
# NARROW PATCHES AND IMAGES
# =============================================================================


class TestFieldUpdates:

    def test_article_number(self, client, admin_headers, field_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        resp = client.patch(f"/api/orders/{main['id']}/article-number", json={"articleNumber": " ART-9 "}, headers=field_headers)
        assert resp.status_code == 200
        assert resp.get_json()["articleNumber"] == "ART-9"

    def test_invalid_status(self, client, admin_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        resp = client.patch(f"/api/orders/{main['id']}/status", json={"status": "lost"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_warehouse_cannot_change_status(self, client, admin_headers, warehouse_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        resp = client.patch(f"/api/orders/{main['id']}/status", json={"status": "delivered"}, headers=warehouse_headers)
        assert resp.status_code == 403


class TestImages:

    def test_upload_url_then_attach(self, client, admin_headers, field_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]

        resp = client.post(
            f"/api/orders/{main['id']}/images/upload-url",
            json={"imageType": "before", "contentType": "image/png"},
            headers=field_headers,
        )
        assert resp.status_code == 200
        file_name = resp.get_json()["fileName"]
        assert file_name.startswith(f"{main['id']}/before_")

        resp = client.patch(
            f"/api/orders/{main['id']}/images",
            json={"imageType": "before", "action": "add", "fileName": file_name},
            headers=field_headers,
        )
        assert resp.get_json()["beforeImages"] == [file_name]

        resp = client.patch(
            f"/api/orders/{main['id']}/images",
            json={"imageType": "before", "action": "remove", "fileName": file_name},
            headers=field_headers,
        )
        assert resp.get_json()["beforeImages"] == []

    def test_non_image_content_type(self, client, admin_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        resp = client.post(
            f"/api/orders/{main['id']}/images/upload-url",
            json={"imageType": "after", "contentType": "application/pdf"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_bulk_replace_limit(self, client, admin_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        names = [f"{main['id']}/after_{i}.jpg" for i in range(11)]

        resp = client.patch(f"/api/orders/{main['id']}/images", json={"afterImages": names}, headers=admin_headers)
        assert resp.status_code == 400

        resp = client.patch(f"/api/orders/{main['id']}/images", json={"afterImages": names[:10]}, headers=admin_headers)
        assert resp.status_code == 200
        assert len(resp.get_json()["afterImages"]) == 10

        resp = client.post(
            f"/api/orders/{main['id']}/images/upload-url",
            json={"imageType": "after", "contentType": "image/jpeg"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_remove_missing_image(self, client, admin_headers, customer, item):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        resp = client.patch(
            f"/api/orders/{main['id']}/images",
            json={"imageType": "before", "action": "remove", "fileName": "nope.jpg"},
            headers=admin_headers,
        )
        assert resp.status_code == 404

    @pytest.mark.parametrize("body", [
        {"imageType": "during", "action": "add", "fileName": "x.jpg"},
        {"imageType": "before", "action": "rotate", "fileName": "x.jpg"},
        {"beforeImages": ["a.jpg"], "status": "completed"},
    ])
    def test_invalid_image_patches(self, client, admin_headers, customer, item, body):
        main = _create(client, admin_headers, order_payload(customer.id, item.id))[0]
        resp = client.patch(f"/api/orders/{main['id']}/images", json=body, headers=admin_headers)
        assert resp.status_code == 400
