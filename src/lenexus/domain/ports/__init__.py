"""Domain port definitions for adapters."""

from __future__ import annotations

from .metadata import EnrichmentPayload, MetadataSource, MetadataSourceError
from .persistence import RecordRepository, SettingsRepository
from .unit_of_work import (
    CatalogRepositories,
    CatalogUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "CatalogRepositories",
    "CatalogUnitOfWork",
    "EnrichmentPayload",
    "MetadataSource",
    "MetadataSourceError",
    "RecordRepository",
    "RepositoryCollection",
    "SettingsRepository",
    "UnitOfWork",
]
