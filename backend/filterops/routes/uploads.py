# Overview: Receives files PUT to signed upload links and serves stored order images.

import os

from flask import Blueprint, current_app, jsonify, request, send_from_directory

from ..decorators import require_auth
from ..services import storage_service


uploads_bp = Blueprint("uploads", __name__, url_prefix="/api/uploads")


@uploads_bp.put("/<path:key>")
def upload_route(key: str):
    """
    Target of the uploadUrl issued by POST /api/orders/<id>/images/upload-url.

    No bearer token: the signed, time-limited link authorizes the upload.

    Returns:
    - 201: {key, fileName, size}
    - 400: missing, tampered or expired signature; wrong content type
    """
    result = storage_service.store_upload(
        key,
        request.args.get("signature"),
        request.mimetype,
        request.get_data(),
    )
    return jsonify(result), 201


@uploads_bp.get("/<path:key>")
@require_auth
def download_route(key: str, identity):
    return send_from_directory(os.path.abspath(current_app.config["UPLOAD_FOLDER"]), key)
