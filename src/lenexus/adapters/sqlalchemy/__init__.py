"""SQLAlchemy adapter package for Le Nexus."""

from __future__ import annotations

from .mappings import metadata, record_table, setting_table
from .repositories import SqlAlchemyRecordRepository, SqlAlchemySettingsRepository
from .unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCatalogUnitOfWork",
    "SqlAlchemyRecordRepository",
    "SqlAlchemySettingsRepository",
    "StartupError",
    "is_started",
    "metadata",
    "record_table",
    "setting_table",
    "shutdown",
    "startup",
]
