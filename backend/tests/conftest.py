"""
Pytest fixtures for the filterops backend tests.

Provides an in-memory database per test, one account per role with a
session token, and sample customer/item/driver records.
"""

import pytest

from filterops import create_app
from filterops.config import TestingConfig
from filterops.extensions import db
from filterops.permissions import UserRole
from filterops.services import (
    customer_service,
    driver_service,
    item_service,
    session_service,
    user_service,
)


PASSWORD = "Password123!"


@pytest.fixture(scope='function')
def app():
    """Create application with a fresh schema for every test."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def make_user(role: str, email: str | None = None):
    """Create a user with the given role. Returns (user, token)."""
    user = user_service.bootstrap_user(
        email or f"{role}@filterops.test", PASSWORD, role.replace("_", " ").title(), "Tester", role,
    )
    _, token = session_service.create_session(user)
    return user, token


@pytest.fixture(scope='function')
def admin(app):
    return make_user(UserRole.ADMIN.value)


@pytest.fixture(scope='function')
def admin_headers(admin):
    return auth_headers(admin[1])


@pytest.fixture(scope='function')
def admin_identity(admin):
    return user_service.identity_for(admin[0])


@pytest.fixture(scope='function')
def office_headers(app):
    return auth_headers(make_user(UserRole.BACK_OFFICE.value)[1])


@pytest.fixture(scope='function')
def field_headers(app):
    return auth_headers(make_user(UserRole.FIELD_SERVICE.value)[1])


@pytest.fixture(scope='function')
def warehouse_headers(app):
    return auth_headers(make_user(UserRole.WAREHOUSE.value)[1])


CUSTOMER_PAYLOAD = {
    "customerNumber": "C-1001",
    "name": "Bäckerei Sonnenschein",
    "street": "Hauptstraße",
    "houseNumber": "12a",
    "postalCode": "10115",
    "city": "Berlin",
}

ITEM_PAYLOAD = {
    "filterType": "Pocket Filter F7",
    "length": 592,
    "width": 592,
    "depth": 360,
    "unitOfMeasure": "mm",
}

DRIVER_PAYLOAD = {
    "driverNumber": "D-01",
    "name": "Jonas Weber",
    "street": "Lindenweg",
    "houseNumber": "3",
    "postalCode": "10245",
    "city": "Berlin",
    "password": "driver-secret",
}


@pytest.fixture(scope='function')
def customer(app, admin_identity):
    return customer_service.create_customer(dict(CUSTOMER_PAYLOAD), admin_identity)


@pytest.fixture(scope='function')
def item(app, admin_identity):
    return item_service.create_item(dict(ITEM_PAYLOAD), admin_identity)


@pytest.fixture(scope='function')
def driver(app, admin_identity):
    return driver_service.create_driver(dict(DRIVER_PAYLOAD), admin_identity)


def order_payload(customer_id: int, item_id: int, **overrides) -> dict:
    """Complete recurring order body: weekly from 2025-01-01 to 2025-01-15."""
    payload = {
        "customer": customer_id,
        "items": [{
            "item": item_id,
            "quantity": 2,
            "unitPrice": 10.0,
            "vatRate": 19,
            "netAmount": 20.0,
            "grossAmount": 23.8,
        }],
        "startDate": "2025-01-01",
        "endDate": "2025-01-15",
        "frequency": "weekly",
        "totalNetAmount": 20.0,
        "totalGrossAmount": 23.8,
        "paymentMethod": "bank_transfer",
    }
    payload.update(overrides)
    return payload
