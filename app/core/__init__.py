"""Core app configuration, database and credential handling."""

from app.core.config import Settings, get_settings
from app.core.database import get_db

__all__ = ["Settings", "get_settings", "get_db"]
