"""Merge rules deciding when enrichment may overwrite a record field.

A rule table is plain configuration: one instance per media type, built once at
startup and handed to the merge engine. The engine itself knows nothing about
manga or movies.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Final

from lenexus.domain.model import MediaType


class MergeRule(StrEnum):
    FILL_IF_EMPTY = "fill_if_empty"
    """Accept the incoming value only when the current value is empty."""

    ALWAYS_ACCEPT = "always_accept"
    """Accept any non-empty incoming value (preferred-source fields)."""


@dataclass(frozen=True, slots=True)
class FieldRule:
    rule: MergeRule = MergeRule.FILL_IF_EMPTY
    value_types: tuple[type, ...] | None = None

    def __post_init__(self) -> None:
        # tables may be built from plain configuration strings
        object.__setattr__(self, "rule", MergeRule(self.rule))


DEFAULT_FIELD_RULE: Final[FieldRule] = FieldRule()


def is_empty(value: object) -> bool:
    """Return whether ``value`` carries no information.

    ``None``, blank strings and empty collections are empty. Numbers, including
    zero, and booleans are never empty.
    """

    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list | tuple | set | frozenset | Mapping):
        return len(value) == 0
    return False


@dataclass(frozen=True, slots=True)
class RuleTable:
    """Field name to merge rule mapping for one media type."""

    media_type: MediaType
    rules: Mapping[str, FieldRule] = field(default_factory=dict[str, FieldRule])

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", MappingProxyType(dict(self.rules)))

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(self.rules)

    def knows(self, field_name: str) -> bool:
        return field_name in self.rules

    def rule_for(self, field_name: str) -> FieldRule:
        return self.rules.get(field_name, DEFAULT_FIELD_RULE)

    def accepts_type(self, field_name: str, value: object) -> bool:
        value_types = self.rule_for(field_name).value_types
        if value_types is None:
            return True
        # bool is an int subclass; only accept it where it is declared
        if isinstance(value, bool) and bool not in value_types:
            return False
        return isinstance(value, value_types)

    def with_overrides(self, overrides: Mapping[str, MergeRule | str | FieldRule]) -> RuleTable:
        """Return a table with some field assignments replaced or added."""

        rules = dict(self.rules)
        for name, override in overrides.items():
            if isinstance(override, FieldRule):
                rules[name] = override
            else:
                rules[name] = FieldRule(MergeRule(override), self.rule_for(name).value_types)
        return RuleTable(self.media_type, rules)


RuleTables = Mapping[MediaType, RuleTable]

_TEXT = (str,)
_INT = (int,)
_NUMBER = (int, float)
_LIST = (tuple, list)


def _fill(value_types: tuple[type, ...]) -> FieldRule:
    return FieldRule(MergeRule.FILL_IF_EMPTY, value_types)


def _prefer(value_types: tuple[type, ...]) -> FieldRule:
    return FieldRule(MergeRule.ALWAYS_ACCEPT, value_types)


_COMMON: Final[dict[str, FieldRule]] = {
    "title": _fill(_TEXT),
    "title_localized": _prefer(_TEXT),
    "description": _fill(_TEXT),
    "genres": _fill(_LIST),
    "themes": _fill(_LIST),
    "cover_url": _fill(_TEXT),
}

_MYANIMELIST: Final[dict[str, FieldRule]] = {
    "mal_id": _fill(_INT),
    "title_romaji": _prefer(_TEXT),
    "title_native": _prefer(_TEXT),
    "title_english": _prefer(_TEXT),
    "alternative_titles": _fill(_LIST),
    "demographics": _fill(_LIST),
    "publication_status": _prefer(_TEXT),
    "score": _prefer(_NUMBER),
    "start_date": _fill(_TEXT),
    "end_date": _fill(_TEXT),
    "media_subtype": _prefer(_TEXT),
}

_DEFAULT_RULES: Final[dict[MediaType, dict[str, FieldRule]]] = {
    MediaType.MANGA: {
        **_COMMON,
        **_MYANIMELIST,
        "authors": _fill(_LIST),
        "chapter_count": _prefer(_INT),
        "volume_count": _prefer(_INT),
        "chapter_count_localized": _prefer(_INT),
        "volume_count_localized": _prefer(_INT),
        "publisher_localized": _fill(_TEXT),
        "year_localized": _fill(_INT),
        "original_language": _fill(_TEXT),
    },
    MediaType.ANIME: {
        **_COMMON,
        **_MYANIMELIST,
        "studios": _fill(_LIST),
        "episode_count": _prefer(_INT),
    },
    MediaType.ADULT_GAME: {
        **_COMMON,
        "developer": _fill(_TEXT),
        "engine": _fill(_TEXT),
        "version": _prefer(_TEXT),
        "publication_status": _prefer(_TEXT),
    },
    MediaType.MOVIE: {
        **_COMMON,
        "tmdb_id": _fill(_INT),
        "original_title": _fill(_TEXT),
        "release_year": _fill(_INT),
        "runtime_minutes": _fill(_INT),
    },
    MediaType.TV_SHOW: {
        **_COMMON,
        "tmdb_id": _fill(_INT),
        "original_title": _fill(_TEXT),
        "season_count": _prefer(_INT),
        "episode_count": _prefer(_INT),
        "publication_status": _prefer(_TEXT),
    },
    MediaType.BOOK: {
        **_COMMON,
        "authors": _fill(_LIST),
        "publisher": _fill(_TEXT),
        "isbn": _fill(_TEXT),
        "page_count": _fill(_INT),
        "year": _fill(_INT),
    },
}


def default_rule_tables() -> dict[MediaType, RuleTable]:
    """Build the stock rule table of every media type."""

    return {
        media_type: RuleTable(media_type, rules) for media_type, rules in _DEFAULT_RULES.items()
    }
