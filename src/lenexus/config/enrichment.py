"""Per-media-type selection of the fields enrichment may fill."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from lenexus.domain.model import MediaType

from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from lenexus.domain.ports import SettingsRepository

FIELD_FILTER_KEY: Final[str] = "enrichment.fields.{media_type}"


def load_field_filters(settings: SettingsRepository) -> dict[MediaType, frozenset[str]]:
    """Return the enabled field set of every media type that restricts enrichment.

    Media types without a stored selection are absent: all their fields are enabled.
    """

    filters: dict[MediaType, frozenset[str]] = {}
    for media_type in MediaType:
        key = FIELD_FILTER_KEY.format(media_type=media_type.value)
        value = settings.get(key)
        if value is None:
            continue
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ConfigurationError(f"Invalid value for {key}: {value!r}")
        filters[media_type] = frozenset(value)
    return filters


def save_field_filter(
    settings: SettingsRepository,
    media_type: MediaType,
    fields: Iterable[str] | None,
) -> None:
    """Store the enabled fields of a media type; ``None`` enables every field."""

    key = FIELD_FILTER_KEY.format(media_type=media_type.value)
    settings.set(key, sorted(set(fields)) if fields is not None else None)
