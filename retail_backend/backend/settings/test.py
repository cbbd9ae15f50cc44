# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS
- SQLite unless DATABASE_URL says otherwise
- Fast password hashing
- Quiet logs
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING

DEBUG = False
TESTING = True

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

LOYALTY_POINT_VALUE = "100"
EXPIRY_ALERT_DAYS = 30

for _logger in LOGGING["loggers"].values():
    _logger["level"] = "WARNING"
