# Overview: Service-layer operations for the filter catalog; encapsulates business logic and database work.

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import AuditAction, Item, UnitOfMeasure
from ..validation import PatchModel, apply_patch, wire_field
from . import audit_service
from .session_service import AuthIdentity


COLLECTION = "items"

_COMBINATION = ("filter_type", "length", "width", "depth", "unit_of_measure")


@dataclass
class ItemPatch(PatchModel):
    REQUIRED_ON_CREATE = _COMBINATION

    filter_type: str = wire_field("filterType", "str", nullable=False, max_length=128)
    length: float = wire_field("length", "float", nullable=False, min_value=0)
    width: float = wire_field("width", "float", nullable=False, min_value=0)
    depth: float = wire_field("depth", "float", nullable=False, min_value=0)
    unit_of_measure: str = wire_field("unitOfMeasure", "enum", nullable=False, enum=UnitOfMeasure)
    is_active: bool = wire_field("isActive", "bool", nullable=False)


def _ensure_unique_combination(values: dict, exclude_id: int | None = None) -> None:
    query = db.session.query(Item.id).filter(
        *(getattr(Item, attr) == values[attr] for attr in _COMBINATION)
    )
    if exclude_id is not None:
        query = query.filter(Item.id != exclude_id)
    if query.first():
        value = {ItemPatch.wire_name(attr): values[attr] for attr in _COMBINATION}
        raise ConflictError(
            "combination", value,
            message="An item with this filter type and dimensions already exists",
        )


def create_item(payload, identity: AuthIdentity) -> Item:
    patch = ItemPatch.from_payload(payload, partial=False)
    values = patch.provided()

    _ensure_unique_combination(values)

    item = Item(is_active=True)
    apply_patch(item, values)
    db.session.add(item)
    db.session.commit()

    audit_service.record_create(identity, COLLECTION, item)
    return item


def list_items(*, search: str | None = None, is_active: bool | None = None) -> list[Item]:
    query = db.session.query(Item)

    if search:
        query = query.filter(Item.filter_type.ilike(f"%{search.strip()}%"))

    if is_active is not None:
        query = query.filter(Item.is_active.is_(is_active))

    return query.order_by(Item.filter_type.asc(), Item.id.asc()).all()


def get_item(item_id: int) -> Item:
    item = db.session.get(Item, item_id)
    if not item:
        raise NotFoundError("Item not found")
    return item


def update_item(item_id: int, payload, identity: AuthIdentity) -> Item:
    patch = ItemPatch.from_payload(payload, partial=True)
    item = get_item(item_id)
    values = patch.provided()

    if any(attr in values for attr in _COMBINATION):
        merged = {attr: values.get(attr, getattr(item, attr)) for attr in _COMBINATION}
        _ensure_unique_combination(merged, exclude_id=item.id)

    before = audit_service.snapshot(item)
    apply_patch(item, values)
    db.session.commit()

    audit_service.record_update(identity, COLLECTION, item, before)
    return item


def deactivate_item(item_id: int, identity: AuthIdentity) -> Item:
    """Items are never removed; historical order lines keep pointing at them."""
    item = get_item(item_id)
    before = audit_service.snapshot(item)
    item.is_active = False
    db.session.commit()

    audit_service.record_change(
        identity, AuditAction.DELETE, COLLECTION, item.id,
        audit_service.compare_snapshots(before, audit_service.snapshot(item)),
    )
    return item
