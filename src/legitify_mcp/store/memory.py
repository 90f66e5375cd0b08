"""In-memory log store."""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from legitify_mcp.store.base import LogStore, LogStream, Record


class InMemoryLogStore(LogStore):
    """Process-local store with the same append/read semantics as the file store.

    Records are deep-copied on the way in and out so callers cannot mutate
    what has been appended.
    """

    def __init__(self) -> None:
        self._streams: dict[LogStream, list[Record]] = {stream: [] for stream in LogStream}
        self._lock = threading.Lock()
        self._decision_lock = threading.Lock()

    def append(self, stream: LogStream, record: Record) -> None:
        with self._lock:
            self._streams[stream].append(copy.deepcopy(record))

    def read_all(self, stream: LogStream) -> list[Record]:
        with self._lock:
            return copy.deepcopy(self._streams[stream])

    @contextmanager
    def decision_lock(self) -> Iterator[None]:
        with self._decision_lock:
            yield
