"""Test package. Settings are read at import time, so point them at SQLite before any app import."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-signing-secret-0123456789abcdef")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
