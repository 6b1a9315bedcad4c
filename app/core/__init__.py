"""Core app configuration, errors, request context and database."""

from app.core.config import get_settings, settings
from app.core.database import exec_tx, get_db, transaction

__all__ = ["get_settings", "settings", "get_db", "exec_tx", "transaction"]
