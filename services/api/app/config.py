"""Environment-driven settings.

Read at call time rather than import time so tests can override them with monkeypatch
before first use.
"""

from __future__ import annotations

import os

_TRUTHY = {"1", "true", "yes", "y"}


def database_url() -> str:
    # Local-only default. Production must provide DATABASE_URL explicitly.
    return os.getenv("DATABASE_URL", "sqlite+pysqlite:///.local/pos.db")


def db_auto_create() -> bool:
    return os.getenv("POS_DB_AUTO_CREATE", "true").strip().lower() in _TRUTHY


def promotion_source() -> str:
    return os.getenv("POS_PROMOTION_SOURCE", "mock").strip().lower()


def timezone_name() -> str:
    return os.getenv("POS_TIMEZONE", "Asia/Ho_Chi_Minh")


def log_level() -> str:
    return os.getenv("POS_LOG_LEVEL", "INFO").strip().upper()


def log_file() -> str | None:
    return os.getenv("POS_LOG_FILE") or None
