"""At most one enrichment pass per record at a time."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterator


class RecordGate:
    """Non-blocking per-key gate shared by manual and scheduled passes.

    ``acquire`` yields ``True`` when the caller owns the key for the duration of
    the ``with`` block and ``False`` when another pass already holds it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._in_flight: set[Hashable] = set()

    @contextmanager
    def acquire(self, key: Hashable) -> Iterator[bool]:
        with self._lock:
            if key in self._in_flight:
                owned = False
            else:
                self._in_flight.add(key)
                owned = True
        try:
            yield owned
        finally:
            if owned:
                with self._lock:
                    self._in_flight.discard(key)

    def is_held(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._in_flight
