"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class MediaType(StrEnum):
    MANGA = "manga"
    ANIME = "anime"
    ADULT_GAME = "adult_game"
    MOVIE = "movie"
    TV_SHOW = "tv_show"
    BOOK = "book"


class PublicationStatus(StrEnum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    FINISHED = "finished"
    HIATUS = "hiatus"
    CANCELLED = "cancelled"
