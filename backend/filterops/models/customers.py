from __future__ import annotations

from enum import Enum

from ..extensions import db
from filterops.time_utils import to_iso_date, to_utc_z


class CustomerStatus(str, Enum):
    ACTIVE = "active"
    ON_VACATION = "on_vacation"
    INACTIVE = "inactive"


class Customer(db.Model):
    """
    Delivery customer master data.

    SOFT DELETE: is_deleted is a tombstone orthogonal to status. A deleted
    customer keeps its last lifecycle status and its order history.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("customer_number", name="uq_customers_number"),
        db.Index("ix_customers_search", "customer_number", "name", "city", "postal_code"),
        db.Index("ix_customers_deleted_status", "is_deleted", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_number = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)

    street = db.Column(db.String(255), nullable=False)
    house_number = db.Column(db.String(32), nullable=False)
    postal_code = db.Column(db.String(5), nullable=False)
    city = db.Column(db.String(128), nullable=False)

    mobile_number = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)

    status = db.Column(db.String(32), nullable=False, default=CustomerStatus.ACTIVE.value)
    vacation_start_date = db.Column(db.Date, nullable=True)
    vacation_end_date = db.Column(db.Date, nullable=True)
    visit_time_range = db.Column(db.String(64), nullable=True)

    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)

    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    @property
    def is_active(self) -> bool:
        return not self.is_deleted and self.status == CustomerStatus.ACTIVE.value

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "customerNumber": self.customer_number,
            "name": self.name,
            "street": self.street,
            "houseNumber": self.house_number,
            "postalCode": self.postal_code,
            "city": self.city,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerNumber": self.customer_number,
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
            "visitTimeRange": self.visit_time_range,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "isDeleted": self.is_deleted,
            "deletedAt": to_utc_z(self.deleted_at) if self.deleted_at else None,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
