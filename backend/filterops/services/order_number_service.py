# Overview: Service-layer operations for order numbers; allocates year-scoped sequential identifiers.

"""
Order Number Allocator

Format: A-<year>-<NNNN> (sequence zero-padded to 4 digits, one sequence per
calendar year).

Allocation is a read-then-propose loop:
1. Find the highest stored number for the year.
2. Propose the next `count` sequences.
3. If any proposal is already stored, restart after the largest colliding
   sequence. Give up after ORDER_NUMBER_MAX_ATTEMPTS rounds.

CONCURRENCY: Not isolated. Two requests can read the same maximum and
propose the same block; the unique constraint on orders.order_number
rejects the loser's insert. Exhaustion fails closed, there is no
timestamp-based fallback.
"""

from __future__ import annotations

import re

from flask import current_app
from sqlalchemy import func

from ..errors import OrderNumberAllocationError
from ..extensions import db
from ..models import Order


ORDER_NUMBER_PREFIX = "A"
ORDER_NUMBER_RE = re.compile(r"^A-(\d{4})-(\d{4,})$")


def format_order_number(year: int, sequence: int) -> str:
    return f"{ORDER_NUMBER_PREFIX}-{year}-{sequence:04d}"


def is_valid_order_number(value) -> bool:
    return isinstance(value, str) and ORDER_NUMBER_RE.match(value) is not None


def parse_order_number(value: str) -> tuple[int, int] | None:
    """Returns (year, sequence) or None for malformed numbers."""
    if not isinstance(value, str):
        return None
    match = ORDER_NUMBER_RE.match(value)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def _year_prefix(year: int) -> str:
    return f"{ORDER_NUMBER_PREFIX}-{year}-"


def get_last_sequence(year: int) -> int:
    """Highest stored sequence for the year, 0 when the year is empty."""
    latest = (
        db.session.query(Order.order_number)
        .filter(Order.order_number.like(f"{_year_prefix(year)}%"))
        .order_by(func.length(Order.order_number).desc(), Order.order_number.desc())
        .first()
    )
    if not latest:
        return 0
    parsed = parse_order_number(latest[0])
    return parsed[1] if parsed else 0


def _taken_sequences(candidates: list[str]) -> list[int]:
    rows = (
        db.session.query(Order.order_number)
        .filter(Order.order_number.in_(candidates))
        .all()
    )
    sequences = []
    for (number,) in rows:
        parsed = parse_order_number(number)
        if parsed:
            sequences.append(parsed[1])
    return sequences


def allocate_order_numbers(year: int, count: int, *, max_attempts: int | None = None) -> list[str]:
    """
    Allocate `count` fresh order numbers for `year`.

    Returned numbers are distinct from each other and from every stored
    number at the time of the check. Raises OrderNumberAllocationError when
    every attempt collides; no partial batch is ever returned.
    """
    if count < 1:
        return []
    if max_attempts is None:
        max_attempts = current_app.config.get("ORDER_NUMBER_MAX_ATTEMPTS", 10)

    start = get_last_sequence(year) + 1

    for attempt in range(1, max_attempts + 1):
        candidates = [format_order_number(year, start + i) for i in range(count)]
        taken = _taken_sequences(candidates)
        if not taken:
            return candidates

        current_app.logger.warning(
            "Order number collision for %s (attempt %s/%s): %s taken",
            year, attempt, max_attempts, len(taken),
        )
        start = max(taken) + 1

    raise OrderNumberAllocationError(
        f"Could not allocate {count} order number(s) for {year} after {max_attempts} attempts"
    )


def allocate_order_number(year: int) -> str:
    return allocate_order_numbers(year, 1)[0]
