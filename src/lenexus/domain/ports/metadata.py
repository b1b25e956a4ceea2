"""Port definitions for remote metadata sources."""

from __future__ import annotations

from collections.abc import Callable, Mapping

from lenexus.domain.model import Record

EnrichmentPayload = Mapping[str, object]

MetadataSource = Callable[[Record], EnrichmentPayload]
"""Fetch candidate field values for a record; an empty mapping means no match."""


class MetadataSourceError(RuntimeError):
    """Raised by a metadata source when fetching or decoding fails."""
