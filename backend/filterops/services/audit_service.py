# Overview: Service-layer operations for audit; encapsulates business logic and database work.

"""
Audit Recorder

Field-level change log for users, customers, drivers, items and orders.

Recording is best-effort: the mutation has already been committed when the
audit row is written, and a failure to write it is logged and swallowed.

Snapshots are flat dicts keyed by model attribute name with JSON-safe
values. Identity and bookkeeping columns are excluded and secrets are
masked, so they never appear in a change list.
"""

from __future__ import annotations

import json
import math
from datetime import date, datetime
from typing import Any

from flask import current_app
from sqlalchemy import Date, DateTime, func

from ..errors import NotFoundError, StateError, ValidationError
from ..extensions import db
from ..models import AuditAction, AuditRecord, Customer, Driver, Item, Order, User
from .session_service import AuthIdentity
from filterops.time_utils import parse_iso_date, parse_iso_datetime, to_utc_z, utcnow


MASK = "***"

EXCLUDED_FIELDS = frozenset({"id", "created_at", "updated_at"})
MASKED_FIELDS = frozenset({"password_hash"})

# Series dates are owned by regeneration and never replayed onto a row.
NON_REVERTIBLE_FIELDS: dict[str, frozenset[str]] = {
    "orders": frozenset({"start_date", "end_date", "frequency"}),
}

COLLECTIONS: dict[str, type] = {
    "users": User,
    "customers": Customer,
    "drivers": Driver,
    "items": Item,
    "orders": Order,
}

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _json_safe(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def snapshot(obj) -> dict:
    """Flat JSON-safe view of a model row for diffing."""
    data = {}
    for column in obj.__table__.columns:
        attr = column.key
        if attr in EXCLUDED_FIELDS:
            continue
        value = getattr(obj, attr)
        data[attr] = MASK if attr in MASKED_FIELDS and value else _json_safe(value)

    if isinstance(obj, Order):
        data["items"] = [line.to_payload() for line in obj.lines]

    return data


def _same(old: Any, new: Any) -> bool:
    return json.dumps(old, sort_keys=True, default=str) == json.dumps(new, sort_keys=True, default=str)


def compare_snapshots(old: dict | None, new: dict | None) -> list[dict]:
    """
    Diff two snapshots into [{"field", "oldValue", "newValue"}].

    Deep equality is decided on the serialized form. Keys starting with an
    underscore are internal and never reported.
    """
    old = old or {}
    new = new or {}
    changes = []
    for key in list(old.keys()) + [k for k in new.keys() if k not in old]:
        if key.startswith("_") or key in EXCLUDED_FIELDS:
            continue
        old_value = old.get(key)
        new_value = new.get(key)
        if _same(old_value, new_value):
            continue
        changes.append({"field": key, "oldValue": old_value, "newValue": new_value})
    return changes


def record_change(
    identity: AuthIdentity,
    action: AuditAction | str,
    collection_name: str,
    document_id: int,
    changes: list[dict],
) -> AuditRecord | None:
    """
    Append one audit record.

    Never raises: a failure is logged and the caller continues with the
    already-committed mutation.
    """
    try:
        record = AuditRecord(
            user_id=identity.user_id,
            user_name=identity.name,
            action=AuditAction(action).value,
            collection_name=collection_name,
            document_id=document_id,
            changes=changes,
            timestamp=utcnow(),
            ip_address=identity.ip_address,
            user_agent=identity.user_agent,
        )
        db.session.add(record)
        db.session.commit()
        return record
    except Exception:
        db.session.rollback()
        current_app.logger.exception(
            "Failed to write audit record for %s/%s", collection_name, document_id
        )
        return None


def record_create(identity: AuthIdentity, collection_name: str, obj) -> AuditRecord | None:
    return record_change(
        identity, AuditAction.CREATE, collection_name, obj.id,
        compare_snapshots(None, snapshot(obj)),
    )


def record_update(identity: AuthIdentity, collection_name: str, obj, before: dict) -> AuditRecord | None:
    """Writes an update record only when something actually changed."""
    changes = compare_snapshots(before, snapshot(obj))
    if not changes:
        return None
    return record_change(identity, AuditAction.UPDATE, collection_name, obj.id, changes)


def record_delete(identity: AuthIdentity, collection_name: str, document_id: int, before: dict) -> AuditRecord | None:
    return record_change(
        identity, AuditAction.DELETE, collection_name, document_id,
        compare_snapshots(before, None),
    )


def _positive_int(raw, name: str, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a positive integer")
    if value < 1:
        raise ValidationError(f"{name} must be a positive integer")
    return value


def list_audit_records(filters: dict) -> dict:
    """
    Paged audit listing, newest first.

    Filters: collectionName, documentId, userId, action, page, limit.
    """
    query = db.session.query(AuditRecord)

    if filters.get("collectionName"):
        query = query.filter(AuditRecord.collection_name == filters["collectionName"])
    if filters.get("documentId"):
        query = query.filter(AuditRecord.document_id == _positive_int(filters["documentId"], "documentId", 0))
    if filters.get("userId"):
        query = query.filter(AuditRecord.user_id == _positive_int(filters["userId"], "userId", 0))
    if filters.get("action"):
        try:
            action = AuditAction(filters["action"]).value
        except ValueError:
            raise ValidationError("action must be one of: create, update, delete")
        query = query.filter(AuditRecord.action == action)

    page = _positive_int(filters.get("page"), "page", 1)
    limit = min(_positive_int(filters.get("limit"), "limit", DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE)

    total = query.count()
    records = (
        query.order_by(AuditRecord.timestamp.desc(), AuditRecord.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "audits": [r.to_dict() for r in records],
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit) if total else 0,
    }


def get_audit_record(audit_id: int) -> AuditRecord:
    record = db.session.get(AuditRecord, audit_id)
    if not record:
        raise NotFoundError("Audit log not found")
    return record


def _parse_bound(raw, name: str):
    if not raw:
        return None
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 date or datetime")


def get_audit_stats(start_date: str | None = None, end_date: str | None = None) -> dict:
    conditions = []
    start = _parse_bound(start_date, "startDate")
    end = _parse_bound(end_date, "endDate")
    if start:
        conditions.append(AuditRecord.timestamp >= start)
    if end:
        conditions.append(AuditRecord.timestamp <= end)

    total = db.session.query(func.count(AuditRecord.id)).filter(*conditions).scalar()

    by_action = (
        db.session.query(AuditRecord.action, func.count(AuditRecord.id))
        .filter(*conditions)
        .group_by(AuditRecord.action)
        .all()
    )
    by_collection = (
        db.session.query(AuditRecord.collection_name, func.count(AuditRecord.id))
        .filter(*conditions)
        .group_by(AuditRecord.collection_name)
        .all()
    )
    by_user = (
        db.session.query(AuditRecord.user_id, func.max(AuditRecord.user_name), func.count(AuditRecord.id))
        .filter(*conditions)
        .group_by(AuditRecord.user_id)
        .all()
    )

    return {
        "totalChanges": total or 0,
        "changesByAction": [{"action": a, "count": c} for a, c in by_action],
        "changesByCollection": [{"collectionName": n, "count": c} for n, c in by_collection],
        "changesByUser": [{"userId": u, "userName": n, "count": c} for u, n, c in by_user],
    }


def _restore_value(model, attr: str, value):
    """Turn a snapshot value back into what the column expects."""
    column = model.__table__.columns.get(attr)
    if value is None or column is None:
        return value
    if isinstance(column.type, DateTime):
        return parse_iso_datetime(value)
    if isinstance(column.type, Date):
        return parse_iso_date(value)
    return value


def revert_change(audit_id: int, identity: AuthIdentity) -> AuditRecord:
    """
    Replay the old values of an update record onto its target row.

    Only update records can be reverted. Masked secrets, order line items and
    order schedule fields are not restorable and are skipped. The revert
    itself is logged as a new update record with old and new values swapped.
    """
    audit = get_audit_record(audit_id)

    model = COLLECTIONS.get(audit.collection_name)
    if model is None:
        raise ValidationError(
            f"Cannot revert changes for collection: {audit.collection_name}",
            label="Unsupported collection",
        )

    if audit.action != AuditAction.UPDATE.value:
        raise StateError(f"Reverting {audit.action} operations is not supported")

    target = db.session.get(model, audit.document_id)
    if target is None:
        raise NotFoundError(f"{audit.collection_name} record {audit.document_id} no longer exists")

    columns = set(model.__table__.columns.keys())
    skipped = NON_REVERTIBLE_FIELDS.get(audit.collection_name, frozenset())
    reverted = []
    for change in audit.changes or []:
        attr = change.get("field")
        if attr not in columns or attr in EXCLUDED_FIELDS or attr in MASKED_FIELDS or attr in skipped:
            continue
        setattr(target, attr, _restore_value(model, attr, change.get("oldValue")))
        reverted.append({
            "field": attr,
            "oldValue": change.get("newValue"),
            "newValue": change.get("oldValue"),
        })

    if not reverted:
        raise StateError("Audit record has no revertible changes")

    db.session.commit()
    current_app.logger.info(
        "Reverted audit %s on %s/%s (%s fields)",
        audit.id, audit.collection_name, audit.document_id, len(reverted),
    )

    record_change(identity, AuditAction.UPDATE, audit.collection_name, audit.document_id, reverted)
    return audit
