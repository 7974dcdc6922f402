"""Core app configuration, database and password hashing."""

from ani3lix.core.config import get_settings, settings
from ani3lix.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
