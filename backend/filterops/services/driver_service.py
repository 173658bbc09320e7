# Overview: Service-layer operations for drivers; encapsulates business logic and database work.

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Driver, DriverStatus, Order
from ..validation import PatchModel, apply_patch, wire_field
from . import audit_service
from .auth_service import hash_password
from .session_service import AuthIdentity


COLLECTION = "drivers"


@dataclass
class DriverPatch(PatchModel):
    REQUIRED_ON_CREATE = (
        "driver_number", "name", "street", "house_number", "postal_code", "city", "password",
    )

    driver_number: str = wire_field("driverNumber", "str", nullable=False, max_length=64)
    name: str = wire_field("name", "str", nullable=False, max_length=255)
    street: str = wire_field("street", "str", nullable=False, max_length=255)
    house_number: str = wire_field("houseNumber", "str", nullable=False, max_length=32)
    postal_code: str = wire_field("postalCode", "postal_code", nullable=False)
    city: str = wire_field("city", "str", nullable=False, max_length=128)
    mobile_number: str | None = wire_field("mobileNumber", "str", max_length=32)
    email: str | None = wire_field("email", "email", max_length=255)
    # Plaintext; hashed before it reaches the model
    password: str | None = wire_field("password", "raw")
    status: str = wire_field("status", "enum", nullable=False, enum=DriverStatus)
    vacation_start_date: object = wire_field("vacationStartDate", "date")
    vacation_end_date: object = wire_field("vacationEndDate", "date")
    latitude: float | None = wire_field("latitude", "float", min_value=-90, max_value=90)
    longitude: float | None = wire_field("longitude", "float", min_value=-180, max_value=180)


def _ensure_unique_number(driver_number: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Driver.id).filter(Driver.driver_number == driver_number)
    if exclude_id is not None:
        query = query.filter(Driver.id != exclude_id)
    if query.first():
        raise ConflictError(
            "driverNumber", driver_number,
            status_code=400,
            message=f"Driver number '{driver_number}' already exists",
        )


def create_driver(payload, identity: AuthIdentity) -> Driver:
    patch = DriverPatch.from_payload(payload, partial=False)
    values = patch.provided()

    _ensure_unique_number(values["driver_number"])

    driver = Driver(status=DriverStatus.ACTIVE.value)
    driver.password_hash = hash_password(values.pop("password"))
    apply_patch(driver, values)
    db.session.add(driver)
    db.session.commit()

    audit_service.record_create(identity, COLLECTION, driver)
    return driver


def list_drivers(*, search: str | None = None, status: str | None = None) -> list[Driver]:
    query = db.session.query(Driver)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(db.or_(
            Driver.driver_number.ilike(pattern),
            Driver.name.ilike(pattern),
            Driver.city.ilike(pattern),
            Driver.postal_code.ilike(pattern),
        ))

    if status:
        query = query.filter(Driver.status == status)

    return query.order_by(Driver.name.asc()).all()


def get_driver(driver_id: int) -> Driver:
    driver = db.session.get(Driver, driver_id)
    if not driver:
        raise NotFoundError("Driver not found")
    return driver


def update_driver(driver_id: int, payload, identity: AuthIdentity) -> Driver:
    """Password is only replaced when a non-empty value is sent."""
    patch = DriverPatch.from_payload(payload, partial=True)
    driver = get_driver(driver_id)
    values = patch.provided()

    if "driver_number" in values and values["driver_number"] != driver.driver_number:
        _ensure_unique_number(values["driver_number"], exclude_id=driver.id)

    before = audit_service.snapshot(driver)

    password = values.pop("password", None)
    if password:
        driver.password_hash = hash_password(password)

    apply_patch(driver, values)
    db.session.commit()

    audit_service.record_update(identity, COLLECTION, driver, before)
    return driver


def delete_driver(driver_id: int, identity: AuthIdentity) -> None:
    """
    Hard delete. Orders assigned to the driver are unassigned first so no
    order points at a missing driver.
    """
    driver = get_driver(driver_id)
    before = audit_service.snapshot(driver)

    unassigned = (
        db.session.query(Order)
        .filter(Order.assigned_driver_id == driver.id)
        .update(
            {Order.assigned_driver_id: None, Order.delivery_sequence: None},
            synchronize_session=False,
        )
    )

    db.session.delete(driver)
    db.session.commit()

    if unassigned:
        current_app.logger.info("Driver %s deleted; %s orders unassigned", driver_id, unassigned)

    audit_service.record_delete(identity, COLLECTION, driver_id, before)
