"""Jikan (MyAnimeList) enrichment adapter."""

from __future__ import annotations

from .client import JikanAPIError, JikanClient
from .fetcher import build_jikan_sources, fetch_anime_payload, fetch_manga_payload
from .translator import translate_anime, translate_manga

__all__ = [
    "JikanAPIError",
    "JikanClient",
    "build_jikan_sources",
    "fetch_anime_payload",
    "fetch_manga_payload",
    "translate_anime",
    "translate_manga",
]
