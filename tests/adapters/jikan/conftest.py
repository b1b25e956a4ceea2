"""Shared fixtures for Jikan adapter tests."""

from __future__ import annotations

from typing import Any

import pytest

from lenexus.config.http_resilience import ResilienceConfig, RetryPolicy
from lenexus.config.jikan import JikanConfig



def _named(mal_id: int, name: str, kind: str = "manga") -> dict[str, Any]:
    return {"mal_id": mal_id, "type": kind, "name": name, "url": f"https://myanimelist.net/{mal_id}"}


@pytest.fixture
def manga_payload() -> dict[str, Any]:
    return {
        "mal_id": 2,
        "url": "https://myanimelist.net/manga/2/Berserk",
        "images": {
            "jpg": {
                "image_url": "https://cdn.myanimelist.net/images/manga/1/157897.jpg",
                "large_image_url": "https://cdn.myanimelist.net/images/manga/1/157897l.jpg",
            }
        },
        "approved": True,
        "titles": [{"type": "Default", "title": "Berserk"}],
        "title": "Berserk",
        "title_english": "Berserk",
        "title_japanese": "ベルセルク",
        "title_synonyms": ["Berserk: The Prototype"],
        "type": "Manga",
        "chapters": None,
        "volumes": None,
        "status": "On Hiatus",
        "publishing": False,
        "published": {
            "from": "1989-08-25T00:00:00+00:00",
            "to": None,
            "string": "Aug 25, 1989 to ?",
        },
        "score": 9.47,
        "rank": 1,
        "synopsis": "Guts, a former mercenary now known as the Black Swordsman...",
        "authors": [_named(1868, "Miura, Kentarou", "people")],
        "serializations": [_named(2, "Young Animal")],
        "genres": [_named(1, "Action"), _named(2, "Adventure")],
        "explicit_genres": [],
        "themes": [_named(58, "Gore")],
        "demographics": [_named(41, "Seinen")],
    }


@pytest.fixture
def anime_payload() -> dict[str, Any]:
    return {
        "mal_id": 457,
        "images": {"jpg": {"image_url": "https://cdn.myanimelist.net/images/anime/2/73862.jpg"}},
        "title": "Mushishi",
        "title_english": "Mushi-Shi",
        "title_japanese": "蟲師",
        "title_synonyms": [],
        "type": "TV",
        "episodes": 26,
        "status": "Finished Airing",
        "airing": False,
        "aired": {"from": "2005-10-23T00:00:00+00:00", "to": "2006-06-19T00:00:00+00:00"},
        "score": 8.66,
        "synopsis": "Mushi: the most basic forms of life in the world.",
        "studios": [_named(8, "Artland", "anime")],
        "genres": [_named(2, "Adventure", "anime")],
        "themes": [_named(29, "Historical", "anime")],
        "demographics": [_named(41, "Seinen", "anime")],
        "trailer": {"youtube_id": None},
    }


@pytest.fixture
def jikan_config() -> JikanConfig:
    return JikanConfig(
        resilience=ResilienceConfig(
            name="jikan-test",
            base_url="https://api.jikan.test/v4",
            retry=RetryPolicy(total=0),
            ratelimit=None,
            cache=None,
        ),
        search_limit=3,
    )
