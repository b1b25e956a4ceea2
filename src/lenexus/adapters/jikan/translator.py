"""Translate Jikan entries into enrichment payloads."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from lenexus.domain.model import PublicationStatus

if TYPE_CHECKING:
    from lenexus.domain.ports import EnrichmentPayload

    from .schema import (
        JikanAnime,
        JikanDateRange,
        JikanEntry,
        JikanImages,
        JikanManga,
        JikanNamedResource,
    )

log = getLogger(__name__)

MANGA_STATUS_MAP: Final[dict[str, PublicationStatus]] = {
    "Publishing": PublicationStatus.ONGOING,
    "Finished": PublicationStatus.FINISHED,
    "On Hiatus": PublicationStatus.HIATUS,
    "Discontinued": PublicationStatus.CANCELLED,
    "Not yet published": PublicationStatus.UPCOMING,
}

ANIME_STATUS_MAP: Final[dict[str, PublicationStatus]] = {
    "Currently Airing": PublicationStatus.ONGOING,
    "Finished Airing": PublicationStatus.FINISHED,
    "Not yet aired": PublicationStatus.UPCOMING,
}

# Korean and Chinese comics are typed by MyAnimeList; everything else is Japanese.
_LANGUAGE_BY_MANGA_TYPE: Final[dict[str, str]] = {
    "manhwa": "ko",
    "manhua": "zh",
}
_DEFAULT_MANGA_LANGUAGE: Final[str] = "ja"


def translate_manga(entry: JikanManga) -> EnrichmentPayload:
    payload = _translate_entry(entry, MANGA_STATUS_MAP)
    payload.update(
        {
            "chapter_count": entry.chapters,
            "volume_count": entry.volumes,
            "authors": _names(entry.authors),
            "original_language": original_language(entry.type),
            **_date_range(entry.published),
        }
    )
    return _without_missing(payload)


def translate_anime(entry: JikanAnime) -> EnrichmentPayload:
    payload = _translate_entry(entry, ANIME_STATUS_MAP)
    payload.update(
        {
            "episode_count": entry.episodes,
            "studios": _names(entry.studios),
            **_date_range(entry.aired),
        }
    )
    return _without_missing(payload)


def original_language(media_subtype: str | None) -> str:
    if media_subtype is None:
        return _DEFAULT_MANGA_LANGUAGE
    return _LANGUAGE_BY_MANGA_TYPE.get(media_subtype.strip().lower(), _DEFAULT_MANGA_LANGUAGE)


def _translate_entry(
    entry: JikanEntry,
    status_map: dict[str, PublicationStatus],
) -> dict[str, object]:
    return {
        "mal_id": entry.mal_id,
        "title": entry.title,
        "title_romaji": entry.title,
        "title_native": entry.title_japanese,
        "title_english": entry.title_english,
        "alternative_titles": list(entry.title_synonyms),
        "description": entry.synopsis,
        "genres": _names(entry.genres),
        "themes": _names(entry.themes),
        "demographics": _names(entry.demographics),
        "score": entry.score,
        "media_subtype": entry.type,
        "publication_status": _status(entry, status_map),
        "cover_url": _cover_url(entry.images),
    }


def _status(entry: JikanEntry, status_map: dict[str, PublicationStatus]) -> str | None:
    if entry.status is None:
        return None
    status = status_map.get(entry.status)
    if status is None:
        log.debug("Jikan entry %s: unmapped status %r", entry.mal_id, entry.status)
        return None
    return status.value


def _names(resources: list[JikanNamedResource]) -> list[str]:
    return [resource.name for resource in resources if resource.name]


def _cover_url(images: JikanImages | None) -> str | None:
    if images is None or images.jpg is None:
        return None
    return images.jpg.large_image_url or images.jpg.image_url


def _date_range(dates: JikanDateRange | None) -> dict[str, str | None]:
    if dates is None:
        return {}
    return {"start_date": _date_part(dates.from_), "end_date": _date_part(dates.to)}


def _date_part(timestamp: str | None) -> str | None:
    return timestamp[:10] if timestamp else None


def _without_missing(payload: dict[str, object]) -> dict[str, object]:
    return {name: value for name, value in payload.items() if value is not None}
