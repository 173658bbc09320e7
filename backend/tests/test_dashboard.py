"""
Dashboard counters.
"""

from datetime import date

from conftest import CUSTOMER_PAYLOAD, order_payload
from filterops.services import customer_service, dashboard_service, order_service


STAT_KEYS = {
    "totalCustomers",
    "activeCustomers",
    "inactiveCustomers",
    "totalOrdersToday",
    "totalOrdersMonth",
    "draftOrders",
    "activeOrders",
    "totalItems",
    "totalDrivers",
}


def test_counts(app, admin_identity, customer, item, driver):
    order_service.create_order(order_payload(customer.id, item.id), admin_identity)
    order_service.create_order({"status": "draft", "customer": customer.id}, admin_identity)

    inactive = customer_service.create_customer(
        dict(CUSTOMER_PAYLOAD, customerNumber="C-2002", status="inactive"), admin_identity,
    )
    gone = customer_service.create_customer(dict(CUSTOMER_PAYLOAD, customerNumber="C-3003"), admin_identity)
    customer_service.delete_customer(gone.id, admin_identity)
    assert inactive.status == "inactive"

    stats = dashboard_service.get_dashboard_stats(as_of=date(2025, 1, 8))

    assert set(stats) == STAT_KEYS
    assert stats["totalCustomers"] == 2
    assert stats["activeCustomers"] == 1
    assert stats["inactiveCustomers"] == 1
    assert stats["totalOrdersToday"] == 1
    assert stats["totalOrdersMonth"] == 3
    assert stats["draftOrders"] == 1
    assert stats["activeOrders"] == 3
    assert stats["totalItems"] == 1
    assert stats["totalDrivers"] == 1


def test_december_month_window(app, admin_identity, customer, item):
    order_service.create_order(
        order_payload(customer.id, item.id, startDate="2025-12-24", endDate="2026-01-07"), admin_identity,
    )
    stats = dashboard_service.get_dashboard_stats(as_of=date(2025, 12, 1))
    assert stats["totalOrdersMonth"] == 2


def test_endpoint(client, office_headers):
    resp = client.get("/api/dashboard/stats", headers=office_headers)
    assert resp.status_code == 200
    assert set(resp.get_json()) == STAT_KEYS
