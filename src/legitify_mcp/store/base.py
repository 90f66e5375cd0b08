"""Append-only log store contract."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import AbstractContextManager
from typing import Any

Record = dict[str, Any]


class LogStream(str, enum.Enum):
    """The two independent record streams kept by the store."""

    REQUESTS = "requests"
    RECEIPTS = "receipts"


class LogStoreError(RuntimeError):
    """Raised when a record cannot be durably written or a stream cannot be read."""


class LogStore(ABC):
    """Append-only storage of ordered record streams.

    There is no update or delete: the state of the world is whatever the
    streams contain, in append order.
    """

    @abstractmethod
    def append(self, stream: LogStream, record: Record) -> None:
        """Durably append one record; raise LogStoreError on failure."""

    @abstractmethod
    def read_all(self, stream: LogStream) -> list[Record]:
        """Return every intact record of ``stream`` in append order.

        A stream that was never written reads as an empty list.
        """

    @abstractmethod
    def decision_lock(self) -> AbstractContextManager[None]:
        """Exclusive section for check-then-append sequences."""

    def iter_reversed(self, stream: LogStream) -> Iterator[Record]:
        """Yield records newest first."""
        return reversed(self.read_all(stream))
