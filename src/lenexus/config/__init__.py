"""Application configuration helpers."""

from __future__ import annotations

from .enrichment import load_field_filters, save_field_filter
from .env import optional_env_var
from .errors import ConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .jikan import JikanConfig, get_jikan_config
from .logging import configure_logging
from .scheduler import (
    SchedulerConfig,
    load_last_run,
    load_scheduler_config,
    save_last_run,
    save_scheduler_config,
)
from .storage import StorageConfig, get_storage_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "JikanConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SchedulerConfig",
    "StorageConfig",
    "configure_logging",
    "get_jikan_config",
    "get_storage_config",
    "load_field_filters",
    "load_last_run",
    "load_scheduler_config",
    "optional_env_var",
    "save_field_filter",
    "save_last_run",
    "save_scheduler_config",
]
