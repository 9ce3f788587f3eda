"""Core app configuration, database, errors and session tokens."""

from scribe.core.config import get_settings, settings
from scribe.core.database import atomic, get_db

__all__ = ["atomic", "get_settings", "settings", "get_db"]
