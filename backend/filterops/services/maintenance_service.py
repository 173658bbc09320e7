# Overview: Service-layer operations for maintenance; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Order
from . import session_service


def find_orphaned_orders() -> list[Order]:
    """
    Series members whose main order no longer exists.

    A member is orphaned when no row with main_order=True carries its
    original_order_number.
    """
    main_numbers = db.session.query(Order.order_number).filter(Order.main_order.is_(True))
    return (
        db.session.query(Order)
        .filter(
            Order.main_order.is_(False),
            Order.original_order_number.isnot(None),
            Order.original_order_number.notin_(main_numbers),
        )
        .order_by(Order.original_order_number.asc(), Order.start_date.asc())
        .all()
    )


def delete_orphaned_orders(orders: list[Order]) -> int:
    for order in orders:
        db.session.delete(order)
    db.session.commit()
    return len(orders)


def cleanup_sessions() -> int:
    """Delete revoked and expired session tokens."""
    return session_service.cleanup_expired_sessions()
