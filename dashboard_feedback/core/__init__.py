"""Core application utilities.

Request dependencies live in ``core.dependencies``; they build services and
are imported from there directly.
"""

from .config import Settings, get_settings
from .database import (
    async_session_factory,
    close_db,
    engine,
    get_session,
    get_session_context,
    init_db,
)
from .security import (
    create_access_token,
    decode_token,
    hash_password,
    user_id_from_token,
    verify_password,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "engine",
    "async_session_factory",
    "get_session",
    "get_session_context",
    "init_db",
    "close_db",
    # Security
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_token",
    "user_id_from_token",
]
