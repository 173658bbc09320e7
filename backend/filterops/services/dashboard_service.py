# Overview: Read-only aggregate counts for the back-office dashboard.

from __future__ import annotations

from datetime import date

from sqlalchemy import func

from ..extensions import db
from ..models import Customer, CustomerStatus, Driver, DriverStatus, Item, Order, OrderStatus
from filterops.time_utils import today


def _count(model, *conditions) -> int:
    return db.session.query(func.count(model.id)).filter(*conditions).scalar() or 0


def get_dashboard_stats(as_of: date | None = None) -> dict:
    """
    Counts are over all orders (main orders and series members alike);
    "today" and "month" are matched on the delivery start date.
    """
    day = as_of or today()
    month_start = day.replace(day=1)
    next_month = date(day.year + 1, 1, 1) if day.month == 12 else date(day.year, day.month + 1, 1)

    not_deleted = Customer.is_deleted.is_(False)

    return {
        "totalCustomers": _count(Customer, not_deleted),
        "activeCustomers": _count(Customer, not_deleted, Customer.status == CustomerStatus.ACTIVE.value),
        "inactiveCustomers": _count(Customer, not_deleted, Customer.status == CustomerStatus.INACTIVE.value),
        "totalOrdersToday": _count(Order, Order.start_date == day),
        "totalOrdersMonth": _count(Order, Order.start_date >= month_start, Order.start_date < next_month),
        "draftOrders": _count(Order, Order.status == OrderStatus.DRAFT.value),
        "activeOrders": _count(
            Order,
            Order.status.notin_([OrderStatus.DRAFT.value, OrderStatus.CANCELLED.value]),
        ),
        "totalItems": _count(Item, Item.is_active.is_(True)),
        "totalDrivers": _count(Driver, Driver.status != DriverStatus.INACTIVE.value),
    }
