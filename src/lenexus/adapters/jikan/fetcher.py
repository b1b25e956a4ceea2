"""Jikan metadata sources for manga and anime records."""

from __future__ import annotations

from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from lenexus.domain.model import MediaType

from .client import JikanClient
from .translator import translate_anime, translate_manga

if TYPE_CHECKING:
    from lenexus.config.jikan import JikanConfig
    from lenexus.domain.model import Record
    from lenexus.domain.ports import EnrichmentPayload, MetadataSource

    from .schema import JikanAnime, JikanAnimeSearch, JikanManga, JikanMangaSearch

log = getLogger(__name__)

_TITLE_FIELDS = ("title", "title_romaji", "title_english", "title_native")


class JikanLookupClient(Protocol):
    def fetch_manga(self, *, mal_id: int) -> JikanManga: ...

    def fetch_anime(self, *, mal_id: int) -> JikanAnime: ...

    def search_manga(self, *, query: str, limit: int = 1) -> JikanMangaSearch: ...

    def search_anime(self, *, query: str, limit: int = 1) -> JikanAnimeSearch: ...


def build_jikan_sources(
    config: JikanConfig,
    *,
    client: JikanLookupClient | None = None,
) -> dict[MediaType, MetadataSource]:
    """Return metadata sources keyed by the media types Jikan covers."""

    active_client = client or JikanClient(config=config)
    return {
        MediaType.MANGA: partial(
            fetch_manga_payload,
            client=active_client,
            search_limit=config.search_limit,
        ),
        MediaType.ANIME: partial(
            fetch_anime_payload,
            client=active_client,
            search_limit=config.search_limit,
        ),
    }


def fetch_manga_payload(
    record: Record,
    *,
    client: JikanLookupClient,
    search_limit: int = 1,
) -> EnrichmentPayload:
    """Look a manga up by MyAnimeList id, else by title (first hit wins).

    Returns an empty payload when nothing matches. Client failures propagate as
    ``JikanAPIError``.
    """

    mal_id = record_mal_id(record)
    if mal_id is not None:
        return translate_manga(client.fetch_manga(mal_id=mal_id))

    query = search_query(record)
    if query is None:
        log.info("Record %s has neither a MyAnimeList id nor a title", record.id)
        return {}
    results = client.search_manga(query=query, limit=search_limit)
    if not results.data:
        log.info("Jikan search returned no manga for record %s (%r)", record.id, query)
        return {}
    return translate_manga(results.data[0])


def fetch_anime_payload(
    record: Record,
    *,
    client: JikanLookupClient,
    search_limit: int = 1,
) -> EnrichmentPayload:
    mal_id = record_mal_id(record)
    if mal_id is not None:
        return translate_anime(client.fetch_anime(mal_id=mal_id))

    query = search_query(record)
    if query is None:
        log.info("Record %s has neither a MyAnimeList id nor a title", record.id)
        return {}
    results = client.search_anime(query=query, limit=search_limit)
    if not results.data:
        log.info("Jikan search returned no anime for record %s (%r)", record.id, query)
        return {}
    return translate_anime(results.data[0])


def record_mal_id(record: Record) -> int | None:
    value = record.get("mal_id")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip()) or None
    return None


def search_query(record: Record) -> str | None:
    for name in _TITLE_FIELDS:
        value = record.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None
