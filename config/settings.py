"""
Tracechain - Django Settings (Infrastructure Only)
===================================================
Django hosts the ORM-backed ledger substrate and the logging config.
The supply-chain engines do not depend on Django.

Environment:
    TRACECHAIN_SECRET_KEY      - Django secret key
    TRACECHAIN_DATABASE_PATH   - SQLite file for the ledger
    TRACECHAIN_LOG_LEVEL       - level of the tracechain.* loggers
    TRACECHAIN_LEDGER_BACKEND  - "django" (default) or "memory"
    TRACECHAIN_REQUIRE_VERIFIED_IDENTITY - "1" to require verified claims
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get(
    "TRACECHAIN_SECRET_KEY", "tracechain-dev-key-replace-before-deployment",
)

DEBUG = os.environ.get("TRACECHAIN_DEBUG", "0") == "1"

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "core.ledger",
]

MIDDLEWARE = []

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get(
            "TRACECHAIN_DATABASE_PATH", str(BASE_DIR / "tracechain.sqlite3"),
        ),
    }
}

# ── Time ──────────────────────────────────────────────────────
TIME_ZONE = "UTC"
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Supply chain ──────────────────────────────────────────────
SUPPLY_CHAIN = {
    "LEDGER_BACKEND": os.environ.get("TRACECHAIN_LEDGER_BACKEND", "django"),
    "REQUIRE_VERIFIED_IDENTITY": (
        os.environ.get("TRACECHAIN_REQUIRE_VERIFIED_IDENTITY", "0") == "1"
    ),
}

# ── Logging ───────────────────────────────────────────────────
TRACECHAIN_LOG_LEVEL = os.environ.get("TRACECHAIN_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "loggers": {
        "tracechain": {
            "handlers": ["console"],
            "level": TRACECHAIN_LOG_LEVEL,
            "propagate": True,
        },
    },
}
