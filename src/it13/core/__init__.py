"""
Core module - Configuration, database, security, and infrastructure adapters.
"""

from it13.core.config import get_settings, settings
from it13.core.database import Base, close_db, get_db, init_db
from it13.core.redis import close_redis, get_redis, init_redis
from it13.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    hash_password_async,
    verify_password,
    verify_password_async,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    # Redis
    "get_redis",
    "init_redis",
    "close_redis",
    # Security
    "hash_password",
    "hash_password_async",
    "verify_password",
    "verify_password_async",
    "create_access_token",
    "decode_token",
]
