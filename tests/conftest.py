"""Test-wide environment: token secrets and an in-memory database, set before scribe is imported."""

import os

os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret-0123456789abcdef")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("APP_ENV", "dev")
