"""Core app configuration, database, security and error handling."""

from app.core.config import get_settings, settings
from app.core.database import get_db
from app.core.security import TokenConfig, TokenService

__all__ = ["get_settings", "settings", "get_db", "TokenConfig", "TokenService"]
