# Overview: Flask API routes for the filter catalog; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_roles
from ..errors import ValidationError
from ..permissions import ADMIN_ONLY, OFFICE_ROLES
from ..services import item_service


items_bp = Blueprint("items", __name__, url_prefix="/api/items")


@items_bp.post("")
@require_auth
@require_roles(OFFICE_ROLES)
def create_item_route(identity):
    """Request body: {filterType, length, width, depth, unitOfMeasure}"""
    item = item_service.create_item(request.get_json(silent=True), identity)
    return jsonify(item.to_dict()), 201


@items_bp.get("")
@require_auth
def list_items_route(identity):
    raw = request.args.get("isActive")
    if raw is None:
        is_active = None
    elif raw.lower() in ("true", "false"):
        is_active = raw.lower() == "true"
    else:
        raise ValidationError("isActive must be true or false")

    items = item_service.list_items(search=request.args.get("search"), is_active=is_active)
    return jsonify([i.to_dict() for i in items])


@items_bp.get("/<int:item_id>")
@require_auth
def get_item_route(item_id: int, identity):
    return jsonify(item_service.get_item(item_id).to_dict())


@items_bp.patch("/<int:item_id>")
@require_auth
@require_roles(OFFICE_ROLES)
def update_item_route(item_id: int, identity):
    item = item_service.update_item(item_id, request.get_json(silent=True), identity)
    return jsonify(item.to_dict())


@items_bp.delete("/<int:item_id>")
@require_auth
@require_roles(ADMIN_ONLY)
def delete_item_route(item_id: int, identity):
    """Marks the item inactive; the row is kept."""
    item_service.deactivate_item(item_id, identity)
    return jsonify({"message": "Item marked as inactive"})
