# backend/filterops/config.py
from __future__ import annotations
import os


BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the instance folder unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///filterops.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # bcrypt cost factor for user and driver passwords
    BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 12)

    # Session tokens
    SESSION_ABSOLUTE_TIMEOUT_HOURS = _env_int("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24)
    SESSION_IDLE_TIMEOUT_HOURS = _env_int("SESSION_IDLE_TIMEOUT_HOURS", 8)

    # Order numbering: A-<year>-<NNNN>
    ORDER_NUMBER_MAX_ATTEMPTS = _env_int("ORDER_NUMBER_MAX_ATTEMPTS", 10)

    # "alternate" -> 3/4 day gaps, "truncate" -> every 3 days
    TWICE_WEEKLY_GAP_MODE = os.environ.get("TWICE_WEEKLY_GAP_MODE", "alternate")

    # Signed upload links; files land under UPLOAD_FOLDER/<UPLOAD_KEY_PREFIX>/
    UPLOAD_BASE_URL = os.environ.get("UPLOAD_BASE_URL", "http://localhost:5000/api/uploads")
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", os.path.join(BASE_DIR, "uploads"))
    UPLOAD_MAX_BYTES = _env_int("UPLOAD_MAX_BYTES", 10 * 1024 * 1024)
    UPLOAD_KEY_PREFIX = os.environ.get("UPLOAD_KEY_PREFIX", "orders")
    UPLOAD_URL_EXPIRES_SECONDS = _env_int("UPLOAD_URL_EXPIRES_SECONDS", 3600)

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    ]


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_LEVEL = "WARNING"
    BCRYPT_ROUNDS = 4
