# Overview: Flask API routes for the audit trail; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_roles
from ..permissions import ADMIN_ONLY
from ..services import audit_service


audit_bp = Blueprint("audit", __name__, url_prefix="/api/audit")


@audit_bp.get("")
@require_auth
def list_audit_route(identity):
    """
    Query parameters: collectionName, documentId, userId, action, page, limit.

    Returns:
        {audits, total, page, limit, totalPages}
    """
    return jsonify(audit_service.list_audit_records(request.args))


@audit_bp.get("/stats/overview")
@require_auth
def audit_stats_route(identity):
    return jsonify(audit_service.get_audit_stats(
        request.args.get("startDate"),
        request.args.get("endDate"),
    ))


@audit_bp.get("/<int:audit_id>")
@require_auth
def get_audit_route(audit_id: int, identity):
    return jsonify(audit_service.get_audit_record(audit_id).to_dict())


@audit_bp.post("/<int:audit_id>/revert")
@require_auth
@require_roles(ADMIN_ONLY)
def revert_audit_route(audit_id: int, identity):
    """Only update records can be reverted."""
    audit = audit_service.revert_change(audit_id, identity)
    return jsonify({"message": "Change reverted successfully", "audit": audit.to_dict()})
