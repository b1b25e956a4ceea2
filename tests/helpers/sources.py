from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from lenexus.domain.model import Record
    from lenexus.domain.ports import EnrichmentPayload


class FakeSource:
    """Metadata source returning a canned payload and recording its calls."""

    def __init__(
        self,
        payload: EnrichmentPayload | None = None,
        *,
        error: Exception | None = None,
        on_call: Callable[[Record], None] | None = None,
    ) -> None:
        self.payload: EnrichmentPayload = payload or {}
        self.error = error
        self.on_call = on_call
        self.calls: list[Record] = []

    def __call__(self, record: Record) -> EnrichmentPayload:
        self.calls.append(record)
        if self.on_call is not None:
            self.on_call(record)
        if self.error is not None:
            raise self.error
        return self.payload
