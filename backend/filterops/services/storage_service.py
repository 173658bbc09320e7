# Overview: Signed, time-limited upload links for order images in object storage.

"""
Object storage collaborator.

Image bytes never travel through the order endpoints. The API hands out a
signed upload URL for a key under UPLOAD_KEY_PREFIX; the client PUTs the
file to that URL (served by routes/uploads.py) and then attaches the
returned fileName to the order through the images patch.

Links are signed with the app SECRET_KEY (itsdangerous) and expire after
UPLOAD_URL_EXPIRES_SECONDS. Stored files live under UPLOAD_FOLDER.
"""

from __future__ import annotations

import mimetypes
import os
import time

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import safe_join

from ..errors import ValidationError


ALLOWED_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

_SALT = "order-image-upload"


def _get_serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key=current_app.config["SECRET_KEY"], salt=_SALT)


def _extension(content_type: str, file_name: str | None) -> str:
    if file_name:
        ext = os.path.splitext(file_name)[1].lstrip(".").lower()
        if ext and mimetypes.types_map.get(f".{ext}", "").startswith("image/"):
            return ext
    return ALLOWED_CONTENT_TYPES[content_type]


def build_file_name(order_id: int, image_type: str, content_type: str, original_name: str | None = None) -> str:
    """<orderId>/<before|after>_<epoch millis>.<ext>"""
    millis = int(time.time() * 1000)
    return f"{order_id}/{image_type}_{millis}.{_extension(content_type, original_name)}"


def create_upload_url(order_id: int, image_type: str, content_type, original_name: str | None = None) -> dict:
    if not isinstance(content_type, str) or content_type.lower() not in ALLOWED_CONTENT_TYPES:
        raise ValidationError("Invalid content type. Only image files are allowed.")
    content_type = content_type.lower()

    file_name = build_file_name(order_id, image_type, content_type, original_name)
    key = f"{current_app.config['UPLOAD_KEY_PREFIX']}/{file_name}"
    expires_in = current_app.config["UPLOAD_URL_EXPIRES_SECONDS"]

    signature = _get_serializer().dumps({"key": key, "contentType": content_type})
    base_url = current_app.config["UPLOAD_BASE_URL"].rstrip("/")

    return {
        "uploadUrl": f"{base_url}/{key}?signature={signature}",
        "fileName": file_name,
        "key": key,
        "contentType": content_type,
        "expiresIn": expires_in,
    }


def verify_upload_signature(signature: str) -> dict:
    """
    Decode a signature issued by create_upload_url.

    Raises ValidationError when the signature is invalid or expired.
    """
    try:
        return _get_serializer().loads(
            signature, max_age=current_app.config["UPLOAD_URL_EXPIRES_SECONDS"],
        )
    except SignatureExpired:
        raise ValidationError("Upload link has expired")
    except BadSignature:
        raise ValidationError("Upload link signature is invalid")


def store_upload(key: str, signature: str | None, content_type: str | None, data: bytes) -> dict:
    """
    Accept a PUT to an issued upload URL and write the file.

    The signed key and content type must match the request exactly; the
    signature is the only credential.
    """
    if not signature:
        raise ValidationError("Upload link signature is missing")
    claims = verify_upload_signature(signature)

    if claims.get("key") != key:
        raise ValidationError("Upload link does not match this key")
    if (content_type or "").lower() != claims.get("contentType"):
        raise ValidationError(f"Content-Type must be {claims.get('contentType')}")
    if not data:
        raise ValidationError("Upload body is empty")
    if len(data) > current_app.config["UPLOAD_MAX_BYTES"]:
        raise ValidationError("Upload exceeds the maximum file size")

    path = safe_join(current_app.config["UPLOAD_FOLDER"], key)
    if path is None:
        raise ValidationError("Invalid upload key")

    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as fh:
        fh.write(data)

    prefix = f"{current_app.config['UPLOAD_KEY_PREFIX']}/"
    file_name = key[len(prefix):] if key.startswith(prefix) else key
    current_app.logger.info("Stored upload %s (%s bytes)", key, len(data))
    return {"key": key, "fileName": file_name, "size": len(data)}
