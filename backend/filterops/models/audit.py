from __future__ import annotations

from enum import Enum

from ..extensions import db
from filterops.time_utils import to_utc_z


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AuditRecord(db.Model):
    """
    Field-level change log for customers, drivers, items, users and orders.

    IMMUTABLE: Never update or delete. Append-only; a revert is written as a
    new update record.

    document_id is a plain integer (no foreign key): records outlive the rows
    they describe.
    """
    __tablename__ = "audit_records"
    __table_args__ = (
        db.Index("ix_audit_records_target", "collection_name", "document_id"),
        db.Index("ix_audit_records_user", "user_id"),
        db.Index("ix_audit_records_timestamp", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, nullable=False)
    user_name = db.Column(db.String(255), nullable=False)

    action = db.Column(db.String(16), nullable=False, index=True)
    collection_name = db.Column(db.String(64), nullable=False)
    document_id = db.Column(db.Integer, nullable=False)

    # [{"field": ..., "oldValue": ..., "newValue": ...}]
    changes = db.Column(db.JSON, nullable=False, default=list)

    timestamp = db.Column(db.DateTime(timezone=True), nullable=False)

    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "userName": self.user_name,
            "action": self.action,
            "collectionName": self.collection_name,
            "documentId": self.document_id,
            "changes": list(self.changes or []),
            "timestamp": to_utc_z(self.timestamp),
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
        }
