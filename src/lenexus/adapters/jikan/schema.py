"""Jikan (MyAnimeList) v4 response schemas."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)

type JikanTimestamp = str  # ISO 8601, e.g. 1989-08-25T00:00:00+00:00


class JikanBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow")
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        # Jikan payloads are wide; unmodeled keys are expected
        log.debug(
            "Jikan %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class JikanNamedResource(JikanBaseModel):
    mal_id: int | None = None
    type: str | None = None
    name: str
    url: str | None = None


class JikanImageSet(JikanBaseModel):
    image_url: str | None = None
    small_image_url: str | None = None
    large_image_url: str | None = None


class JikanImages(JikanBaseModel):
    jpg: JikanImageSet | None = None
    webp: JikanImageSet | None = None


class JikanTitle(JikanBaseModel):
    type: str
    title: str


class JikanDateRange(JikanBaseModel):
    from_: JikanTimestamp | None = Field(default=None, alias="from")
    to: JikanTimestamp | None = None
    string: str | None = None


class JikanEntry(JikanBaseModel):
    mal_id: int
    url: str | None = None
    images: JikanImages | None = None
    titles: list[JikanTitle] = Field(default_factory=list[JikanTitle])
    title: str
    title_english: str | None = None
    title_japanese: str | None = None
    title_synonyms: list[str] = Field(default_factory=list[str])
    type: str | None = None
    status: str | None = None
    score: float | None = None
    synopsis: str | None = None
    background: str | None = None
    genres: list[JikanNamedResource] = Field(default_factory=list[JikanNamedResource])
    explicit_genres: list[JikanNamedResource] = Field(default_factory=list[JikanNamedResource])
    themes: list[JikanNamedResource] = Field(default_factory=list[JikanNamedResource])
    demographics: list[JikanNamedResource] = Field(default_factory=list[JikanNamedResource])


class JikanManga(JikanEntry):
    chapters: int | None = None
    volumes: int | None = None
    publishing: bool | None = None
    published: JikanDateRange | None = None
    authors: list[JikanNamedResource] = Field(default_factory=list[JikanNamedResource])
    serializations: list[JikanNamedResource] = Field(default_factory=list[JikanNamedResource])


class JikanAnime(JikanEntry):
    episodes: int | None = None
    airing: bool | None = None
    aired: JikanDateRange | None = None
    season: str | None = None
    year: int | None = None
    studios: list[JikanNamedResource] = Field(default_factory=list[JikanNamedResource])


class JikanPagination(JikanBaseModel):
    last_visible_page: int | None = None
    has_next_page: bool = False


class JikanMangaResponse(JikanBaseModel):
    data: JikanManga


class JikanAnimeResponse(JikanBaseModel):
    data: JikanAnime


class JikanMangaSearch(JikanBaseModel):
    data: list[JikanManga] = Field(default_factory=list[JikanManga])
    pagination: JikanPagination | None = None


class JikanAnimeSearch(JikanBaseModel):
    data: list[JikanAnime] = Field(default_factory=list[JikanAnime])
    pagination: JikanPagination | None = None
