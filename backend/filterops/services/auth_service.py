# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for password hashing for
both back-office users and drivers.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 6 characters required
- Session tokens managed separately (see session_service.py)
- Inactive users cannot log in
"""

import bcrypt
from flask import current_app

from ..errors import AuthenticationError, ValidationError
from ..extensions import db
from ..models import User
from filterops.time_utils import utcnow


MIN_PASSWORD_LENGTH = 6


def validate_password_strength(password) -> None:
    """Raises ValidationError when the password is missing or too short."""
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for length before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. A malformed stored hash counts as a
    mismatch.
    """
    if not isinstance(password, str) or not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def authenticate(email: str, password: str) -> User:
    """
    Authenticate user with email and password.

    Returns the User and stamps last_login_at on success.
    Raises AuthenticationError for unknown email, wrong password or an
    inactive account; the message does not reveal which.
    """
    if not email or not password:
        raise ValidationError("Email and password are required")
    if not isinstance(email, str) or not isinstance(password, str):
        raise ValidationError("Email and password must be strings")

    user = db.session.query(User).filter(User.email == email.strip().lower()).first()

    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password", label="Invalid credentials")

    if not user.is_active:
        raise AuthenticationError("Account is deactivated", label="Invalid credentials")

    user.last_login_at = utcnow()
    db.session.commit()
    return user
