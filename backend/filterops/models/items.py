from __future__ import annotations

from enum import Enum

from ..extensions import db
from filterops.time_utils import to_utc_z


class UnitOfMeasure(str, Enum):
    MM = "mm"
    CM = "cm"
    M = "m"


class Item(db.Model):
    """
    Filter catalog line.

    UNIQUENESS: (filter_type, length, width, depth, unit_of_measure).
    SOFT DELETE: is_active=False keeps the row for historical order lines
    but blocks use in new or updated orders.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.UniqueConstraint(
            "filter_type", "length", "width", "depth", "unit_of_measure",
            name="uq_items_combination",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    filter_type = db.Column(db.String(128), nullable=False, index=True)
    length = db.Column(db.Float, nullable=False)
    width = db.Column(db.Float, nullable=False)
    depth = db.Column(db.Float, nullable=False)
    unit_of_measure = db.Column(db.String(8), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "filterType": self.filter_type,
            "length": self.length,
            "width": self.width,
            "depth": self.depth,
            "unitOfMeasure": self.unit_of_measure,
        }

    def to_dict(self) -> dict:
        data = self.to_summary()
        data.update({
            "isActive": self.is_active,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        })
        return data
