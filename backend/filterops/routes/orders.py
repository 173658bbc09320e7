# Overview: Flask API routes for orders and recurring series; parses input and returns JSON responses.

"""
Order Routes

SECURITY:
- list/get: any authenticated user
- create/update/unassigned/assignment/sequencing: admin, back_office
- delete: admin
- status/article number/driver/images: admin, back_office, field_service

Static paths (/unassigned, /assign-driver, /update-sequence) are registered
before /<id> routes.
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_roles
from ..permissions import ADMIN_ONLY, FIELD_ROLES, OFFICE_ROLES
from ..services import order_service


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@require_auth
@require_roles(OFFICE_ROLES)
def create_order_route(identity):
    """
    Create a draft or a recurring series.

    Draft: {"status": "draft", "customer": id, ...}
    Series: {customer, items, startDate, endDate, frequency,
             totalNetAmount, totalGrossAmount, paymentMethod?, driverNote?}

    Returns:
        201 with the array of created orders, main order first
    """
    orders = order_service.create_order(request.get_json(silent=True), identity)
    return jsonify([o.to_dict() for o in orders]), 201


@orders_bp.get("")
@require_auth
def list_orders_route(identity):
    """
    Query parameters: search, status, date, startDate + endDate, customer,
    driver, year + month, allOrders ("true" includes series members).
    """
    return jsonify([o.to_dict() for o in order_service.list_orders(request.args)])


@orders_bp.get("/unassigned")
@require_auth
@require_roles(OFFICE_ROLES)
def unassigned_orders_route(identity):
    return jsonify([o.to_dict() for o in order_service.list_unassigned_orders()])


@orders_bp.post("/assign-driver")
@require_auth
@require_roles(OFFICE_ROLES)
def assign_driver_route(identity):
    """Request body: {driverId, orderIds: [...]}"""
    modified = order_service.assign_orders_to_driver(request.get_json(silent=True), identity)
    return jsonify({"message": "Orders assigned successfully", "modifiedCount": modified})


@orders_bp.post("/update-sequence")
@require_auth
@require_roles(OFFICE_ROLES)
def update_sequence_route(identity):
    """Request body: {orderIds: [...] (in delivery order), driverId, date}"""
    result = order_service.update_delivery_sequence(request.get_json(silent=True), identity)
    return jsonify({"message": "Delivery sequence updated successfully", **result})


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int, identity):
    return jsonify(order_service.get_order(order_id).to_dict())


@orders_bp.patch("/<int:order_id>")
@require_auth
@require_roles(OFFICE_ROLES)
def update_order_route(order_id: int, identity):
    order = order_service.update_order(order_id, request.get_json(silent=True), identity)
    return jsonify(order.to_dict())


@orders_bp.delete("/<int:order_id>")
@require_auth
@require_roles(ADMIN_ONLY)
def delete_order_route(order_id: int, identity):
    """Deletes the whole series the order belongs to."""
    deleted = order_service.delete_order(order_id, identity)
    return jsonify({"message": "Order deleted successfully", "deletedCount": deleted})


@orders_bp.patch("/<int:order_id>/status")
@require_auth
@require_roles(FIELD_ROLES)
def update_status_route(order_id: int, identity):
    order = order_service.update_order_status(order_id, request.get_json(silent=True), identity)
    return jsonify(order.to_dict())


@orders_bp.patch("/<int:order_id>/article-number")
@require_auth
@require_roles(FIELD_ROLES)
def update_article_number_route(order_id: int, identity):
    order = order_service.update_article_number(order_id, request.get_json(silent=True), identity)
    return jsonify(order.to_dict())


@orders_bp.patch("/<int:order_id>/assigned-driver")
@require_auth
@require_roles(FIELD_ROLES)
def update_assigned_driver_route(order_id: int, identity):
    order = order_service.update_assigned_driver(order_id, request.get_json(silent=True), identity)
    return jsonify(order.to_dict())


@orders_bp.post("/<int:order_id>/images/upload-url")
@require_auth
@require_roles(FIELD_ROLES)
def image_upload_url_route(order_id: int, identity):
    """Request body: {imageType: before|after, contentType, fileName?}"""
    return jsonify(order_service.create_image_upload_url(order_id, request.get_json(silent=True)))


@orders_bp.patch("/<int:order_id>/images")
@require_auth
@require_roles(FIELD_ROLES)
def update_images_route(order_id: int, identity):
    order = order_service.update_order_images(order_id, request.get_json(silent=True), identity)
    return jsonify(order.to_dict())
