from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/tally.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///tally.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Frontend dev servers allowed to call the API
    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    }

    # Restock pack size applied when a material is created without one
    DEFAULT_PACK_SIZE = int(os.environ.get("DEFAULT_PACK_SIZE", "24"))

    # Forward-only order lifecycle (cancel allowed from any open state)
    ENFORCE_ORDER_TRANSITIONS = _env_flag("ENFORCE_ORDER_TRANSITIONS", True)

    # Public URL prefix for uploaded design files
    DESIGN_UPLOAD_URL_PREFIX = "/uploads/designs"
