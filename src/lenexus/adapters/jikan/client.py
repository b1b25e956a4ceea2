"""Jikan API client."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, ValidationError

from lenexus.adapters.http_resilience import ResilientClient
from lenexus.domain.ports.metadata import MetadataSourceError

from .schema import (
    JikanAnime,
    JikanAnimeResponse,
    JikanAnimeSearch,
    JikanManga,
    JikanMangaResponse,
    JikanMangaSearch,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from lenexus.config.http_resilience import ResilienceConfig
    from lenexus.config.jikan import JikanConfig

log = getLogger(__name__)


class JikanAPIError(MetadataSourceError):
    """Raised when the Jikan API fails or returns an unexpected response."""


class JikanClient:
    """Low-level HTTP client for the Jikan API."""

    def __init__(
        self,
        *,
        config: JikanConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    def fetch_manga(self, *, mal_id: int) -> JikanManga:
        response = asyncio.run(self._get(f"manga/{mal_id}/full", {}, JikanMangaResponse))
        return response.data

    def fetch_anime(self, *, mal_id: int) -> JikanAnime:
        response = asyncio.run(self._get(f"anime/{mal_id}/full", {}, JikanAnimeResponse))
        return response.data

    def search_manga(self, *, query: str, limit: int = 1) -> JikanMangaSearch:
        params = {"q": query, "limit": str(limit)}
        return asyncio.run(self._get("manga", params, JikanMangaSearch))

    def search_anime(self, *, query: str, limit: int = 1) -> JikanAnimeSearch:
        params = {"q": query, "limit": str(limit)}
        return asyncio.run(self._get("anime", params, JikanAnimeSearch))

    async def _get[TModel: BaseModel](
        self,
        path: str,
        params: dict[str, str],
        model: type[TModel],
    ) -> TModel:
        if self._resilience.base_url is None:
            raise JikanAPIError("Missing Jikan base_url in resilience configuration")

        log.debug("Jikan GET %s params=%s", path, params)
        async with self._client_factory(self._resilience) as client:
            try:
                response = await client.get(path, params=params)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise JikanAPIError(f"Jikan request {path} failed: {exc}") from exc
            try:
                payload = response.json()
            except ValueError as exc:
                raise JikanAPIError(f"Jikan returned invalid JSON for {path}") from exc

        if not isinstance(payload, dict):
            raise JikanAPIError("Unexpected Jikan response payload")
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise JikanAPIError(f"Invalid Jikan response for {path}: {exc}") from exc
