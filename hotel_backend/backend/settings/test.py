# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS
- In-memory SQLite (fast, isolated)
- Cheap password hashing
- Throttling off so API tests never hit 429
- Any staff email domain accepted unless a test overrides it
- Outgoing mail kept in memory (django.core.mail.outbox)
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import REST_FRAMEWORK

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
}

STAFF_EMAIL_DOMAIN = ""
BILLING_SETTLEMENT_MAX_ATTEMPTS = 3
EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
EMAIL_VERIFY_URL = "http://testserver/verify-email"
