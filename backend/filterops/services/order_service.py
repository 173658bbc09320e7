# Overview: Service-layer operations for orders; encapsulates business logic and database work.

"""
Order Lifecycle Manager

A non-draft order is always part of a series: the main order (mainOrder=True)
holds the canonical number and the full schedule (start, end, frequency);
every further delivery date is a member order with its own number whose
originalOrderNumber points at the main order. A one-off order is a series of
one.

Drafts are single main orders without members. Their series is generated
when they are promoted out of draft.

LIFECYCLE:
- create: draft (customer only) or full series (all mandatory fields)
- update: allowlisted fields; schedule changes on a main order regenerate
  the still-pending members
- delete: pending/draft only, always removes the whole series
- assign / sequence / status / article number / images: narrow patches

Multi-step operations commit once at the end. They are not retried and not
isolated from concurrent requests; the order number unique constraint is the
only guard.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from flask import current_app

from ..errors import (
    DependencyError,
    NotFoundError,
    StateError,
    ValidationError,
)
from ..extensions import db
from ..models import (
    DELETABLE_STATUSES,
    MAX_IMAGES_PER_TYPE,
    Customer,
    Driver,
    Frequency,
    ImageType,
    Item,
    Order,
    OrderLine,
    OrderStatus,
    PaymentMethod,
)
from ..validation import PatchModel, parse_id, parse_id_list, wire_field
from . import audit_service, storage_service
from .order_number_service import allocate_order_numbers
from .recurrence_service import generate_recurring_dates
from .session_service import AuthIdentity
from filterops.time_utils import parse_iso_date, today


COLLECTION = "orders"

SCHEDULE_FIELDS = ("start_date", "end_date", "frequency")

# First missing field wins, in this order
MANDATORY_FIELDS = (
    ("items", "items"),
    ("start_date", "startDate"),
    ("end_date", "endDate"),
    ("frequency", "frequency"),
    ("total_net_amount", "totalNetAmount"),
    ("total_gross_amount", "totalGrossAmount"),
)

# Copied from the main order onto every generated member
_SERIES_FIELDS = (
    "customer_id",
    "payment_method",
    "driver_note",
    "article_number",
    "frequency",
    "total_net_amount",
    "total_gross_amount",
)


@dataclass
class OrderPatch(PatchModel):
    customer: object = wire_field("customer", "raw", nullable=False)
    items: list = wire_field("items", "raw", nullable=False)
    payment_method: str | None = wire_field("paymentMethod", "enum", enum=PaymentMethod)
    driver_note: str | None = wire_field("driverNote", "str")
    start_date: date | None = wire_field("startDate", "date")
    end_date: date | None = wire_field("endDate", "date")
    frequency: str | None = wire_field("frequency", "enum", enum=Frequency)
    assigned_driver: object = wire_field("assignedDriver", "raw")
    total_net_amount: float | None = wire_field("totalNetAmount", "float")
    total_gross_amount: float | None = wire_field("totalGrossAmount", "float")
    article_number: str | None = wire_field("articleNumber", "str", max_length=64)


@dataclass
class OrderCreate(OrderPatch):
    status: str = wire_field("status", "enum", nullable=False, enum=OrderStatus)


@dataclass(frozen=True)
class LineInput:
    item_id: int
    quantity: int
    unit_price: float
    vat_rate: float
    net_amount: float
    gross_amount: float

    def to_model(self, position: int) -> OrderLine:
        return OrderLine(
            item_id=self.item_id,
            position=position,
            quantity=self.quantity,
            unit_price=self.unit_price,
            vat_rate=self.vat_rate,
            net_amount=self.net_amount,
            gross_amount=self.gross_amount,
        )


def _line_number(raw: dict, key: str, index: int, *, integer: bool = False) -> float:
    value = raw.get(key)
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        kind = "an integer" if integer else "a number"
        raise ValidationError(f"items[{index}].{key} must be {kind}")
    if integer and (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"items[{index}].{key} must be an integer")
    return int(value) if integer else float(value)


def parse_lines(raw) -> list[LineInput]:
    """Shape check only; existence and activity are checked by _resolve_items."""
    if not isinstance(raw, list):
        raise ValidationError("items must be a list")

    lines = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValidationError(f"items[{index}] must be an object")
        if entry.get("item") is None:
            raise ValidationError(f"items[{index}].item is required")
        quantity = _line_number(entry, "quantity", index, integer=True)
        if quantity < 1:
            raise ValidationError(f"items[{index}].quantity must be >= 1")
        lines.append(LineInput(
            item_id=parse_id(entry["item"], f"items[{index}].item"),
            quantity=quantity,
            unit_price=_line_number(entry, "unitPrice", index),
            vat_rate=_line_number(entry, "vatRate", index),
            net_amount=_line_number(entry, "netAmount", index),
            gross_amount=_line_number(entry, "grossAmount", index),
        ))
    return lines


def _resolve_items(lines: list[LineInput]) -> None:
    for line in lines:
        item = db.session.get(Item, line.item_id)
        if not item:
            raise NotFoundError(f"Item {line.item_id} not found")
        if not item.is_active:
            raise DependencyError(f"Item {line.item_id} is not active")


def _resolve_customer(raw) -> Customer:
    customer_id = parse_id(raw, "customer")
    customer = db.session.get(Customer, customer_id)
    if not customer or customer.is_deleted:
        raise NotFoundError("Customer not found")
    if not customer.is_active:
        raise DependencyError("Customer is not active")
    return customer


def _resolve_driver(raw) -> Driver | None:
    if raw is None:
        return None
    driver = db.session.get(Driver, parse_id(raw, "assignedDriver"))
    if not driver:
        raise NotFoundError("Driver not found")
    return driver


def _first_missing(state: dict) -> str | None:
    for attr, wire in MANDATORY_FIELDS:
        value = state.get(attr)
        if value is None or (attr == "items" and not value):
            return wire
    return None


def _require_mandatory(state: dict) -> None:
    missing = _first_missing(state)
    if missing:
        raise ValidationError(f"{missing} is required", label="Missing required field")


def _check_schedule(start: date | None, end: date | None, frequency: str | None) -> None:
    if frequency == Frequency.ONE_TIME.value or start is None or end is None:
        return
    if start > end:
        raise ValidationError("startDate must be on or before endDate")


def _expand(start: date, end: date | None, frequency: str) -> list[date]:
    return generate_recurring_dates(
        start, end, frequency,
        twice_weekly_mode=current_app.config.get("TWICE_WEEKLY_GAP_MODE", "alternate"),
    )


def _require_dates(start: date, end: date | None, frequency: str) -> list[date]:
    dates = _expand(start, end, frequency)
    if not dates:
        raise ValidationError("The schedule does not produce any delivery date")
    return dates


def _order_state(order: Order) -> dict:
    return {
        "items": list(order.lines),
        "start_date": order.start_date,
        "end_date": order.end_date,
        "frequency": order.frequency,
        "total_net_amount": order.total_net_amount,
        "total_gross_amount": order.total_gross_amount,
    }


def _set_lines(order: Order, lines: list[LineInput]) -> None:
    order.lines = [line.to_model(position) for position, line in enumerate(lines)]


def _copy_lines(source: Order) -> list[OrderLine]:
    return [
        OrderLine(
            item_id=line.item_id,
            position=line.position,
            quantity=line.quantity,
            unit_price=line.unit_price,
            vat_rate=line.vat_rate,
            net_amount=line.net_amount,
            gross_amount=line.gross_amount,
        )
        for line in source.lines
    ]


def _build_members(main: Order, dates: list[date], numbers: list[str]) -> list[Order]:
    members = []
    for delivery_date, number in zip(dates, numbers):
        member = Order(
            order_number=number,
            status=OrderStatus.PENDING.value,
            start_date=delivery_date,
            end_date=delivery_date,
            main_order=False,
            original_order_number=main.order_number,
            before_images=[],
            after_images=[],
        )
        for attr in _SERIES_FIELDS:
            setattr(member, attr, getattr(main, attr))
        member.lines = _copy_lines(main)
        members.append(member)
    return members


def _series_members(series_number: str) -> list[Order]:
    return (
        db.session.query(Order)
        .filter(Order.original_order_number == series_number, Order.main_order.is_(False))
        .order_by(Order.start_date.asc(), Order.id.asc())
        .all()
    )


def _generate_members(main: Order, *, skip_dates: set[date] | None = None) -> list[Order]:
    """Add members for every delivery date after the main order's own date."""
    schedule = _expand(main.start_date, main.end_date, main.frequency)
    if schedule:
        main.start_date = schedule[0]
    dates = schedule[1:]
    if skip_dates:
        dates = [d for d in dates if d not in skip_dates]
    if not dates:
        return []
    numbers = allocate_order_numbers(today().year, len(dates))
    members = _build_members(main, dates, numbers)
    db.session.add_all(members)
    return members


# --- create -----------------------------------------------------------------


def create_order(payload, identity: AuthIdentity) -> list[Order]:
    """
    Create a draft (status "draft") or a full series.

    Returns every created order, main order first.
    """
    patch = OrderCreate.from_payload(payload, partial=True)
    values = patch.provided()

    status = values.pop("status", OrderStatus.PENDING.value)
    if status not in (OrderStatus.DRAFT.value, OrderStatus.PENDING.value):
        raise ValidationError("status must be draft or pending when creating an order")

    if "customer" not in values:
        raise ValidationError("customer is required", label="Missing required field")
    customer = _resolve_customer(values.pop("customer"))

    lines = parse_lines(values.pop("items")) if "items" in values else []
    driver = _resolve_driver(values.pop("assigned_driver")) if "assigned_driver" in values else None

    if status == OrderStatus.DRAFT.value:
        _resolve_items(lines)
        _check_schedule(values.get("start_date"), values.get("end_date"), values.get("frequency"))
        return [_create_draft(customer, lines, driver, values, identity)]

    _require_mandatory({**values, "items": lines})
    _resolve_items(lines)
    _check_schedule(values["start_date"], values["end_date"], values["frequency"])
    return _create_series(customer, lines, driver, values, identity)


def _new_main_order(number: str, customer: Customer, lines, driver, values: dict, status: str) -> Order:
    order = Order(
        order_number=number,
        customer_id=customer.id,
        status=status,
        main_order=True,
        original_order_number=None,
        assigned_driver_id=driver.id if driver else None,
        total_net_amount=0,
        total_gross_amount=0,
        before_images=[],
        after_images=[],
    )
    for attr, value in values.items():
        if value is not None or attr not in ("total_net_amount", "total_gross_amount"):
            setattr(order, attr, value)
    _set_lines(order, lines)
    return order


def _create_draft(customer, lines, driver, values, identity) -> Order:
    number = allocate_order_numbers(today().year, 1)[0]
    order = _new_main_order(number, customer, lines, driver, values, OrderStatus.DRAFT.value)
    db.session.add(order)
    db.session.commit()

    current_app.logger.info("Draft order %s created", order.order_number)
    audit_service.record_create(identity, COLLECTION, order)
    return order


def _create_series(customer, lines, driver, values, identity) -> list[Order]:
    dates = _require_dates(values["start_date"], values["end_date"], values["frequency"])

    numbers = allocate_order_numbers(today().year, len(dates))

    main = _new_main_order(numbers[0], customer, lines, driver, values, OrderStatus.PENDING.value)
    main.start_date = dates[0]
    members = _build_members(main, dates[1:], numbers[1:])

    db.session.add(main)
    db.session.add_all(members)
    db.session.commit()

    current_app.logger.info(
        "Order series %s created with %s member(s)", main.order_number, len(members),
    )

    orders = [main] + members
    for order in orders:
        audit_service.record_create(identity, COLLECTION, order)
    return orders


# --- queries ----------------------------------------------------------------


def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")
    return order


def _query_date(raw, name: str) -> date:
    try:
        parsed = parse_iso_date(raw)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"{name} must be an ISO-8601 date")
    return parsed


def _query_int(raw, name: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")


def list_orders(args) -> list[Order]:
    """
    Filters (query string): search, status, date, startDate+endDate, customer,
    driver, year+month, allOrders. Without allOrders=true only main orders
    are listed.
    """
    query = db.session.query(Order)

    search = args.get("search")
    if search:
        query = query.filter(Order.order_number.ilike(f"%{search.strip()}%"))

    if args.get("status"):
        query = query.filter(Order.status == args["status"])

    if args.get("date"):
        query = query.filter(Order.start_date == _query_date(args["date"], "date"))

    if args.get("startDate") and args.get("endDate"):
        query = query.filter(
            Order.start_date >= _query_date(args["startDate"], "startDate"),
            Order.start_date <= _query_date(args["endDate"], "endDate"),
        )

    if args.get("customer"):
        query = query.filter(Order.customer_id == parse_id(args["customer"], "customer"))

    if args.get("driver"):
        query = query.filter(Order.assigned_driver_id == parse_id(args["driver"], "driver"))

    if args.get("year") and args.get("month"):
        year = _query_int(args["year"], "year")
        month = _query_int(args["month"], "month")
        if not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12")
        first = date(year, month, 1)
        following = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        query = query.filter(Order.start_date >= first, Order.start_date < following)

    if args.get("allOrders") != "true":
        query = query.filter(Order.main_order.is_(True))

    return query.order_by(Order.start_date.desc(), Order.id.desc()).all()


def list_unassigned_orders() -> list[Order]:
    return (
        db.session.query(Order)
        .filter(Order.assigned_driver_id.is_(None))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


# --- update -----------------------------------------------------------------


def update_order(order_id: int, payload, identity: AuthIdentity) -> Order:
    patch = OrderPatch.from_payload(payload, partial=True)
    order = get_order(order_id)
    values = patch.provided()

    customer = _resolve_customer(values.pop("customer")) if "customer" in values else None

    lines = None
    if "items" in values:
        lines = parse_lines(values.pop("items"))
        _resolve_items(lines)

    driver_given = "assigned_driver" in values
    driver = _resolve_driver(values.pop("assigned_driver")) if driver_given else None

    schedule_change = any(attr in values for attr in SCHEDULE_FIELDS)

    if schedule_change and not order.main_order:
        raise StateError(
            "Cannot update the schedule of a recurring order directly. "
            f"Please update the main order {order.series_number} instead.",
            details={"mainOrderNumber": order.series_number},
        )

    merged = _order_state(order)
    merged.update({attr: value for attr, value in values.items() if attr in merged})
    if lines is not None:
        merged["items"] = lines

    if not order.is_draft:
        _require_mandatory(merged)
    _check_schedule(merged["start_date"], merged["end_date"], merged["frequency"])
    if schedule_change and not order.is_draft:
        _require_dates(merged["start_date"], merged["end_date"], merged["frequency"])

    before = audit_service.snapshot(order)

    if customer is not None:
        order.customer_id = customer.id
    if lines is not None:
        _set_lines(order, lines)
    if driver_given:
        order.assigned_driver_id = driver.id if driver else None
    for attr, value in values.items():
        setattr(order, attr, value)

    removed, created = [], []
    if schedule_change and not order.is_draft:
        removed, created = _regenerate_series(order)

    db.session.commit()

    audit_service.record_update(identity, COLLECTION, order, before)
    for member_id, snap in removed:
        audit_service.record_delete(identity, COLLECTION, member_id, snap)
    for member in created:
        audit_service.record_create(identity, COLLECTION, member)
    return order


def _regenerate_series(main: Order) -> tuple[list[tuple[int, dict]], list[Order]]:
    """
    Replace the pending members of a series after a schedule change.

    Members that already left pending are kept and their dates are not
    generated again. Caller commits and audits the returned
    (removed id, snapshot) pairs and created members.
    """
    removed = []
    kept_dates = set()
    for member in _series_members(main.order_number):
        if member.status == OrderStatus.PENDING.value:
            removed.append((member.id, audit_service.snapshot(member)))
            db.session.delete(member)
        elif member.start_date is not None:
            kept_dates.add(member.start_date)

    db.session.flush()
    created = _generate_members(main, skip_dates=kept_dates)
    db.session.flush()

    current_app.logger.info(
        "Series %s regenerated: %s pending member(s) removed, %s kept, %s created",
        main.order_number, len(removed), len(kept_dates), len(created),
    )

    return removed, created


# --- delete -----------------------------------------------------------------


def delete_order(order_id: int, identity: AuthIdentity) -> int:
    """
    Delete the whole series the order belongs to.

    Only a pending or draft order may be targeted. Returns the number of
    orders removed.
    """
    order = get_order(order_id)
    if order.status not in DELETABLE_STATUSES:
        raise StateError("Can only delete pending or draft orders")

    series_number = order.series_number
    doomed = {order.id: order}
    main = db.session.query(Order).filter(Order.order_number == series_number).first()
    if main:
        doomed[main.id] = main
    for member in _series_members(series_number):
        doomed[member.id] = member

    snapshots = [(o.id, audit_service.snapshot(o)) for o in doomed.values()]
    for doomed_order in doomed.values():
        db.session.delete(doomed_order)
    db.session.commit()

    current_app.logger.info("Order series %s deleted (%s orders)", series_number, len(snapshots))

    for doomed_id, snap in snapshots:
        audit_service.record_delete(identity, COLLECTION, doomed_id, snap)
    return len(snapshots)


# --- driver assignment and routing ------------------------------------------


def assign_orders_to_driver(payload, identity: AuthIdentity) -> int:
    """Returns the number of orders whose driver actually changed."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    driver_id = parse_id(payload.get("driverId"), "driverId")
    order_ids = parse_id_list(payload.get("orderIds"), "orderIds")

    driver = db.session.get(Driver, driver_id)
    if not driver:
        raise NotFoundError("Driver not found")

    orders = db.session.query(Order).filter(Order.id.in_(order_ids)).all()
    changed = [o for o in orders if o.assigned_driver_id != driver.id]
    if not changed:
        raise ValidationError("No orders were updated")

    snapshots = {o.id: audit_service.snapshot(o) for o in changed}
    for order in changed:
        order.assigned_driver_id = driver.id
    db.session.commit()

    for order in changed:
        audit_service.record_update(identity, COLLECTION, order, snapshots[order.id])
    return len(changed)


def update_delivery_sequence(payload, identity: AuthIdentity) -> dict:
    """
    Write 1-based delivery positions for one driver's day.

    All-or-nothing: a missing order or one assigned to another driver aborts
    before anything is written. `date` names the route day; it is validated
    and echoed back but does not filter the orders, so a route may carry
    orders scheduled on other days.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    order_ids = parse_id_list(payload.get("orderIds"), "orderIds")
    driver_id = parse_id(payload.get("driverId"), "driverId")
    if not payload.get("date"):
        raise ValidationError("date is required")
    route_date = _query_date(payload["date"], "date")

    if len(set(order_ids)) != len(order_ids):
        raise ValidationError("orderIds must not contain duplicates")

    if not db.session.get(Driver, driver_id):
        raise NotFoundError("Driver not found")

    orders = {o.id: o for o in db.session.query(Order).filter(Order.id.in_(order_ids)).all()}

    missing = [i for i in order_ids if i not in orders]
    if missing:
        raise NotFoundError("One or more orders not found", details=missing)

    foreign = [i for i in order_ids if orders[i].assigned_driver_id != driver_id]
    if foreign:
        raise ValidationError("One or more orders are not assigned to this driver", details=foreign)

    snapshots = {i: audit_service.snapshot(orders[i]) for i in order_ids}
    for position, order_id in enumerate(order_ids, start=1):
        orders[order_id].delivery_sequence = position
    db.session.commit()

    for order_id in order_ids:
        audit_service.record_update(identity, COLLECTION, orders[order_id], snapshots[order_id])

    return {
        "driverId": driver_id,
        "date": route_date.isoformat(),
        "orders": [
            {"id": i, "orderNumber": orders[i].order_number, "deliverySequence": orders[i].delivery_sequence}
            for i in order_ids
        ],
    }


# --- narrow patches ----------------------------------------------------------


def update_order_status(order_id: int, payload, identity: AuthIdentity) -> Order:
    """
    A non-draft order cannot return to draft. Promoting a draft validates the
    mandatory fields and generates its series members.
    """
    if not isinstance(payload, dict) or payload.get("status") is None:
        raise ValidationError("status is required")
    try:
        status = OrderStatus(payload["status"]).value
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(f"status must be one of: {allowed}")

    order = get_order(order_id)

    if status == OrderStatus.DRAFT.value and not order.is_draft:
        raise StateError("An order cannot be moved back to draft")

    promoting = order.is_draft and status != OrderStatus.DRAFT.value
    if promoting:
        state = _order_state(order)
        _require_mandatory(state)
        _resolve_items(order.lines)
        _check_schedule(order.start_date, order.end_date, order.frequency)
        _require_dates(order.start_date, order.end_date, order.frequency)

    before = audit_service.snapshot(order)
    order.status = status

    created = []
    if promoting:
        created = _generate_members(order)
        current_app.logger.info(
            "Draft %s promoted to %s with %s member(s)", order.order_number, status, len(created),
        )

    db.session.commit()

    audit_service.record_update(identity, COLLECTION, order, before)
    for member in created:
        audit_service.record_create(identity, COLLECTION, member)
    return order


def update_article_number(order_id: int, payload, identity: AuthIdentity) -> Order:
    if not isinstance(payload, dict) or "articleNumber" not in payload:
        raise ValidationError("articleNumber is required")
    value = payload["articleNumber"]
    if value is not None and not isinstance(value, str):
        raise ValidationError("articleNumber must be a string")

    order = get_order(order_id)
    before = audit_service.snapshot(order)
    order.article_number = value.strip() if value else None
    db.session.commit()

    audit_service.record_update(identity, COLLECTION, order, before)
    return order


def update_assigned_driver(order_id: int, payload, identity: AuthIdentity) -> Order:
    """`assignedDriver: null` unassigns the order."""
    if not isinstance(payload, dict) or "assignedDriver" not in payload:
        raise ValidationError("assignedDriver is required")

    order = get_order(order_id)
    driver = _resolve_driver(payload["assignedDriver"])

    before = audit_service.snapshot(order)
    order.assigned_driver_id = driver.id if driver else None
    if driver is None:
        order.delivery_sequence = None
    db.session.commit()

    audit_service.record_update(identity, COLLECTION, order, before)
    return order


# --- images -----------------------------------------------------------------


def _image_type(raw) -> ImageType:
    try:
        return ImageType(raw)
    except ValueError:
        raise ValidationError("imageType must be one of: before, after")


def _image_list(raw, name: str) -> list[str]:
    if not isinstance(raw, list) or not all(isinstance(v, str) and v.strip() for v in raw):
        raise ValidationError(f"{name} must be a list of file names")
    if len(raw) > MAX_IMAGES_PER_TYPE:
        raise ValidationError(f"{name} cannot hold more than {MAX_IMAGES_PER_TYPE} images")
    return [v.strip() for v in raw]


def _set_images(order: Order, image_type: ImageType, images: list[str]) -> None:
    if image_type is ImageType.BEFORE:
        order.before_images = images
    else:
        order.after_images = images


def create_image_upload_url(order_id: int, payload) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    order = get_order(order_id)
    image_type = _image_type(payload.get("imageType"))
    if len(order.images_for(image_type)) >= MAX_IMAGES_PER_TYPE:
        raise ValidationError(f"Maximum of {MAX_IMAGES_PER_TYPE} {image_type.value} images reached")

    return storage_service.create_upload_url(
        order.id,
        image_type.value,
        payload.get("contentType"),
        payload.get("fileName"),
    )


def update_order_images(order_id: int, payload, identity: AuthIdentity) -> Order:
    """
    Two body forms:
    - single change: {"imageType", "action": "add"|"remove", "fileName"}
    - bulk replace: {"beforeImages": [...], "afterImages": [...]} (either or both)
    """
    if not isinstance(payload, dict) or not payload:
        raise ValidationError("Invalid JSON payload")

    order = get_order(order_id)
    before = audit_service.snapshot(order)

    if "beforeImages" in payload or "afterImages" in payload:
        unknown = sorted(set(payload) - {"beforeImages", "afterImages"})
        if unknown:
            raise ValidationError(
                f"Invalid field(s) provided for update: {', '.join(unknown)}",
                details=unknown, label="Invalid updates",
            )
        if "beforeImages" in payload:
            _set_images(order, ImageType.BEFORE, _image_list(payload["beforeImages"], "beforeImages"))
        if "afterImages" in payload:
            _set_images(order, ImageType.AFTER, _image_list(payload["afterImages"], "afterImages"))
    else:
        image_type = _image_type(payload.get("imageType"))
        file_name = payload.get("fileName")
        if not isinstance(file_name, str) or not file_name.strip():
            raise ValidationError("fileName is required")
        file_name = file_name.strip()
        images = order.images_for(image_type)

        action = payload.get("action")
        if action == "add":
            if file_name in images:
                raise ValidationError(f"{file_name} is already attached")
            if len(images) >= MAX_IMAGES_PER_TYPE:
                raise ValidationError(f"Maximum of {MAX_IMAGES_PER_TYPE} {image_type.value} images reached")
            images.append(file_name)
        elif action == "remove":
            if file_name not in images:
                raise NotFoundError("Image not found")
            images.remove(file_name)
        else:
            raise ValidationError("action must be one of: add, remove")
        _set_images(order, image_type, images)

    db.session.commit()
    audit_service.record_update(identity, COLLECTION, order, before)
    return order
