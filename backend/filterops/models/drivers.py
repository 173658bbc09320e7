from __future__ import annotations

from enum import Enum

from ..extensions import db
from filterops.time_utils import to_iso_date, to_utc_z


class DriverStatus(str, Enum):
    ACTIVE = "active"
    ON_VACATION = "on_vacation"
    INACTIVE = "inactive"


class Driver(db.Model):
    """
    Delivery driver. Orders reference drivers through assigned_driver_id.

    The password hash is never serialized.
    """
    __tablename__ = "drivers"
    __table_args__ = (
        db.UniqueConstraint("driver_number", name="uq_drivers_number"),
        db.Index("ix_drivers_search", "driver_number", "name", "city", "postal_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    driver_number = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)

    street = db.Column(db.String(255), nullable=False)
    house_number = db.Column(db.String(32), nullable=False)
    postal_code = db.Column(db.String(5), nullable=False)
    city = db.Column(db.String(128), nullable=False)

    mobile_number = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    status = db.Column(db.String(32), nullable=False, default=DriverStatus.ACTIVE.value)
    vacation_start_date = db.Column(db.Date, nullable=True)
    vacation_end_date = db.Column(db.Date, nullable=True)

    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "driverNumber": self.driver_number,
            "name": self.name,
            "mobileNumber": self.mobile_number,
            "email": self.email,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "driverNumber": self.driver_number,
            "name": self.name,
            "street": self.street,
            "houseNumber": self.house_number,
            "postalCode": self.postal_code,
            "city": self.city,
            "mobileNumber": self.mobile_number,
            "email": self.email,
            "status": self.status,
            "vacationStartDate": to_iso_date(self.vacation_start_date),
            "vacationEndDate": to_iso_date(self.vacation_end_date),
            "latitude": self.latitude,
            "longitude": self.longitude,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
