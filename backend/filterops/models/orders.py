from __future__ import annotations

from enum import Enum

from ..extensions import db
from filterops.time_utils import to_iso_date, to_utc_z


class OrderStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    DENIED_BY_CUSTOMER = "denied_by_customer"
    CUSTOMER_NOT_AVAILABLE = "customer_not_available"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    PAUSED = "paused"


class PaymentMethod(str, Enum):
    CASH_PAYMENT = "cash_payment"
    BANK_TRANSFER = "bank_transfer"
    MONTHLY_TRANSFER = "monthly_transfer"


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKDAYS = "weekdays"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    EVERY_3RD_WEEK = "every_3rd_week"
    EVERY_5TH_WEEK = "every_5th_week"
    SIX_WEEKS = "6_weeks"
    EIGHT_WEEKS = "8_weeks"
    TWICE_IN_A_WEEK = "twice_in_a_week"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUALLY = "semi_annually"
    ANNUALLY = "annually"
    ONE_TIME = "one_time"


class ImageType(str, Enum):
    BEFORE = "before"
    AFTER = "after"


MAX_IMAGES_PER_TYPE = 10

# Orders in these states may be deleted (whole series).
DELETABLE_STATUSES = frozenset({OrderStatus.PENDING.value, OrderStatus.DRAFT.value})


class Order(db.Model):
    """
    Delivery order.

    SERIES INVARIANT: a recurring series has exactly one row with
    main_order=True; every other member stores the main order's
    order_number in original_order_number and has main_order=False.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.UniqueConstraint("order_number", name="uq_orders_order_number"),
        db.Index("ix_orders_customer", "customer_id"),
        db.Index("ix_orders_start_date", "start_date"),
        db.Index("ix_orders_driver_date", "assigned_driver_id", "start_date"),
        db.Index("ix_orders_status", "status"),
        db.Index("ix_orders_main", "main_order"),
        db.Index("ix_orders_original_number", "original_order_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(32), nullable=False)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)

    payment_method = db.Column(db.String(32), nullable=True)
    driver_note = db.Column(db.Text, nullable=True)
    article_number = db.Column(db.String(64), nullable=True)

    status = db.Column(db.String(32), nullable=False, default=OrderStatus.PENDING.value)

    # Drafts may be saved without a schedule
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    frequency = db.Column(db.String(32), nullable=True)

    assigned_driver_id = db.Column(db.Integer, db.ForeignKey("drivers.id"), nullable=True)
    delivery_sequence = db.Column(db.Integer, nullable=True)

    total_net_amount = db.Column(db.Float, nullable=False, default=0)
    total_gross_amount = db.Column(db.Float, nullable=False, default=0)

    main_order = db.Column(db.Boolean, nullable=False, default=False)
    original_order_number = db.Column(db.String(32), nullable=True)

    before_images = db.Column(db.JSON, nullable=False, default=list)
    after_images = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("orders", lazy=True))
    assigned_driver = db.relationship("Driver", backref=db.backref("orders", lazy=True))
    lines = db.relationship(
        "OrderLine",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="OrderLine.position",
    )

    @property
    def series_number(self) -> str:
        """Order number shared by the whole series this order belongs to."""
        if self.main_order or not self.original_order_number:
            return self.order_number
        return self.original_order_number

    @property
    def is_draft(self) -> bool:
        return self.status == OrderStatus.DRAFT.value

    def images_for(self, image_type: ImageType | str) -> list[str]:
        if ImageType(image_type) is ImageType.BEFORE:
            return list(self.before_images or [])
        return list(self.after_images or [])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "customer": self.customer.to_summary() if self.customer else None,
            "items": [line.to_dict() for line in self.lines],
            "paymentMethod": self.payment_method,
            "driverNote": self.driver_note,
            "articleNumber": self.article_number,
            "status": self.status,
            "startDate": to_iso_date(self.start_date),
            "endDate": to_iso_date(self.end_date),
            "frequency": self.frequency,
            "assignedDriver": self.assigned_driver.to_summary() if self.assigned_driver else None,
            "deliverySequence": self.delivery_sequence,
            "totalNetAmount": self.total_net_amount,
            "totalGrossAmount": self.total_gross_amount,
            "mainOrder": self.main_order,
            "originalOrderNumber": self.original_order_number,
            "beforeImages": list(self.before_images or []),
            "afterImages": list(self.after_images or []),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }

    def to_customer_history_row(self) -> dict:
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "status": self.status,
            "startDate": to_iso_date(self.start_date),
            "endDate": to_iso_date(self.end_date),
            "totalNetAmount": self.total_net_amount,
            "totalGrossAmount": self.total_gross_amount,
        }


class OrderLine(db.Model):
    """
    Line item of an order. Amounts are stored as submitted, never recomputed.
    """
    __tablename__ = "order_lines"
    __table_args__ = (
        db.Index("ix_order_lines_order", "order_id", "position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Float, nullable=False)
    vat_rate = db.Column(db.Float, nullable=False)
    net_amount = db.Column(db.Float, nullable=False)
    gross_amount = db.Column(db.Float, nullable=False)

    item = db.relationship("Item")

    def to_payload(self) -> dict:
        """Line in the shape accepted by order create/update."""
        return {
            "item": self.item_id,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "vatRate": self.vat_rate,
            "netAmount": self.net_amount,
            "grossAmount": self.gross_amount,
        }

    def to_dict(self) -> dict:
        data = self.to_payload()
        data["item"] = self.item.to_summary() if self.item else {"id": self.item_id}
        return data
