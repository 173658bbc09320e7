# Overview: Service-layer operations for customers; encapsulates business logic and database work.

"""
Customer master data.

Deletion is a soft delete: is_deleted/deleted_at are set and the row stays
so historical orders keep their customer. Deleted customers are invisible to
get/update and only listed on request.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ConflictError, NotFoundError, StateError
from ..extensions import db
from ..models import AuditAction, Customer, CustomerStatus, Order
from ..validation import PatchModel, apply_patch, wire_field
from . import audit_service
from .session_service import AuthIdentity
from filterops.time_utils import utcnow


COLLECTION = "customers"


@dataclass
class CustomerPatch(PatchModel):
    REQUIRED_ON_CREATE = ("customer_number", "name", "street", "house_number", "postal_code", "city")

    customer_number: str = wire_field("customerNumber", "str", nullable=False, max_length=64)
    name: str = wire_field("name", "str", nullable=False, max_length=255)
    street: str = wire_field("street", "str", nullable=False, max_length=255)
    house_number: str = wire_field("houseNumber", "str", nullable=False, max_length=32)
    postal_code: str = wire_field("postalCode", "postal_code", nullable=False)
    city: str = wire_field("city", "str", nullable=False, max_length=128)
    mobile_number: str | None = wire_field("mobileNumber", "str", max_length=32)
    email: str | None = wire_field("email", "email", max_length=255)
    status: str = wire_field("status", "enum", nullable=False, enum=CustomerStatus)
    vacation_start_date: object = wire_field("vacationStartDate", "date")
    vacation_end_date: object = wire_field("vacationEndDate", "date")
    visit_time_range: str | None = wire_field("visitTimeRange", "str", max_length=64)
    latitude: float | None = wire_field("latitude", "float", min_value=-90, max_value=90)
    longitude: float | None = wire_field("longitude", "float", min_value=-180, max_value=180)


def _ensure_unique_number(customer_number: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Customer.id).filter(Customer.customer_number == customer_number)
    if exclude_id is not None:
        query = query.filter(Customer.id != exclude_id)
    if query.first():
        raise ConflictError(
            "customerNumber", customer_number,
            status_code=400,
            message=f"Customer number '{customer_number}' already exists",
        )


def create_customer(payload, identity: AuthIdentity) -> Customer:
    patch = CustomerPatch.from_payload(payload, partial=False)
    values = patch.provided()

    _ensure_unique_number(values["customer_number"])

    customer = Customer(status=CustomerStatus.ACTIVE.value, is_deleted=False)
    apply_patch(customer, values)
    db.session.add(customer)
    db.session.commit()

    audit_service.record_create(identity, COLLECTION, customer)
    return customer


def list_customers(*, search: str | None = None, status: str | None = None, deleted: bool = False) -> list[Customer]:
    """
    Search matches customer number, name, city or postal code (case-insensitive).

    `deleted=True` (or status="deleted") lists soft-deleted customers instead.
    """
    if status == "deleted":
        deleted, status = True, None

    query = db.session.query(Customer).filter(Customer.is_deleted.is_(deleted))

    if status:
        query = query.filter(Customer.status == status)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Customer.customer_number.ilike(pattern),
            Customer.name.ilike(pattern),
            Customer.city.ilike(pattern),
            Customer.postal_code.ilike(pattern),
        ))

    return query.order_by(Customer.name.asc()).all()


def get_customer(customer_id: int, *, include_deleted: bool = False) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if not customer or (customer.is_deleted and not include_deleted):
        raise NotFoundError("Customer not found")
    return customer


def update_customer(customer_id: int, payload, identity: AuthIdentity) -> Customer:
    patch = CustomerPatch.from_payload(payload, partial=True)
    customer = get_customer(customer_id)
    values = patch.provided()

    if "customer_number" in values and values["customer_number"] != customer.customer_number:
        _ensure_unique_number(values["customer_number"], exclude_id=customer.id)

    before = audit_service.snapshot(customer)
    apply_patch(customer, values)
    db.session.commit()

    audit_service.record_update(identity, COLLECTION, customer, before)
    return customer


def delete_customer(customer_id: int, identity: AuthIdentity) -> None:
    customer = db.session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError("Customer not found")
    if customer.is_deleted:
        raise StateError("Customer is already deleted", label="Customer already deleted")

    before = audit_service.snapshot(customer)
    customer.is_deleted = True
    customer.deleted_at = utcnow()
    db.session.commit()

    audit_service.record_change(
        identity, AuditAction.DELETE, COLLECTION, customer.id,
        audit_service.compare_snapshots(before, audit_service.snapshot(customer)),
    )


def get_customer_orders(customer_id: int) -> list[Order]:
    customer = get_customer(customer_id)
    return (
        db.session.query(Order)
        .filter(Order.customer_id == customer.id)
        .order_by(Order.start_date.desc(), Order.id.desc())
        .all()
    )
