"""Core app configuration, database, security and error taxonomy."""

from greencdn.core.config import get_settings, settings
from greencdn.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
