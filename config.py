"""
Application configuration.
This module defines the configuration settings for the replenishment engine, including database connection,
logging level and the engine's tuning knobs. It uses environment variables for anything deployment specific and
defaults for development. In production, set DATABASE_URL and SECRET_KEY explicitly.
"""

import os
from decimal import Decimal
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """Base configuration shared by all environments."""

    # IMPORTANT: change this in production
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me-please")

    # Database: SQLite for development (simple file in project folder)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'inventory.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Dead pooled connections fail fast instead of hanging a request
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # CSRF protection for forms (JSON API blueprint is exempt)
    WTF_CSRF_ENABLED = True

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Replenishment tuning
    DEFAULT_BUFFER_FACTOR = Decimal(os.environ.get("DEFAULT_BUFFER_FACTOR", "1.2"))
    SUPPLIER_HISTORY_LIMIT = int(os.environ.get("SUPPLIER_HISTORY_LIMIT", "3"))
    FALLBACK_SUPPLIER_LIMIT = int(os.environ.get("FALLBACK_SUPPLIER_LIMIT", "3"))

    # Raise on freight allocation drift instead of returning best-effort values
    ALLOCATION_STRICT = _env_bool("ALLOCATION_STRICT", False)

    APP_NAME = "Inventory Replenishment Engine"


class TestConfig(Config):
    """In-memory database, strict allocation checks."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = "DEBUG"
    ALLOCATION_STRICT = True
