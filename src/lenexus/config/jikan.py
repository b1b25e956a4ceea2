"""Jikan (MyAnimeList) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_JIKAN_BASE_URL = "https://api.jikan.moe/v4"
JIKAN_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True, slots=True)
class JikanConfig:
    resilience: ResilienceConfig
    search_limit: int = 5


def get_jikan_config(*, resilience: ResilienceConfig | None = None) -> JikanConfig:
    base_url = optional_env_var("JIKAN_BASE_URL") or DEFAULT_JIKAN_BASE_URL
    return JikanConfig(
        resilience=resilience
        or ResilienceConfig(
            name="jikan",
            base_url=base_url,
            timeout_seconds=JIKAN_TIMEOUT_SECONDS,
            # Jikan allows 3 requests per second and answers 429 beyond that
            ratelimit=RateLimit(max_calls=3, per_seconds=1.0),
            retry=RetryPolicy(total=3, backoff_factor=3.0),
            cache=CacheConfig(backend="memory", default_ttl_seconds=3600.0),
        ),
    )
