"""
Database package initializer exposing key public interfaces for configuration,
engine/session management and the referential rules of the schema.
"""

from .base import AppendOnlyMixin, AuditMixin, Base, TenantMixin, utcnow
from .config import get_settings, Settings
from .relationships import Dependent, dependents_of
from .session import (
    INCLUDE_DELETED,
    build_engine,
    build_session_maker,
    create_schema,
    get_async_session,
    get_engine,
    get_session_maker,
)

# Import models to ensure they are registered with SQLAlchemy metadata
# when the db package is imported.
from . import models as models  # noqa: F401

__all__ = [
    "AppendOnlyMixin",
    "AuditMixin",
    "Base",
    "TenantMixin",
    "utcnow",
    "Settings",
    "get_settings",
    "Dependent",
    "dependents_of",
    "INCLUDE_DELETED",
    "build_engine",
    "build_session_maker",
    "create_schema",
    "get_async_session",
    "get_engine",
    "get_session_maker",
    "models",
]
