"""JSON-lines file implementation of the log store."""

from __future__ import annotations

import fcntl
import json
import logging
import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from legitify_mcp.store.base import LogStore, LogStoreError, LogStream, Record
from legitify_mcp.utils.serialization import json_default

logger = logging.getLogger(__name__)

REQUESTS_FILENAME = "attestation-requests.jsonl"
RECEIPTS_FILENAME = "attestation-responses.jsonl"


class JsonlLogStore(LogStore):
    """One append-only ``.jsonl`` file per stream.

    Each record is a single line written with one ``write`` on an
    ``O_APPEND`` descriptor while holding an exclusive ``flock``; readers take
    a shared ``flock``, so they never see half of a record. ``flock`` makes
    this POSIX-only.
    """

    def __init__(
        self,
        directory: str,
        requests_path: str | None = None,
        receipts_path: str | None = None,
        fsync: bool = True,
    ) -> None:
        self._dir = Path(directory)
        self._paths = {
            LogStream.REQUESTS: Path(requests_path or self._dir / REQUESTS_FILENAME),
            LogStream.RECEIPTS: Path(receipts_path or self._dir / RECEIPTS_FILENAME),
        }
        self._fsync = fsync
        self._stream_locks = {stream: threading.Lock() for stream in LogStream}
        self._decision_lock = threading.Lock()
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            for path in self._paths.values():
                path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise LogStoreError(f"Cannot create store directory {self._dir}: {exc}") from exc

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, stream: LogStream) -> Path:
        return self._paths[stream]

    @property
    def decision_lock_path(self) -> Path:
        # Lives beside the receipt log so every writer of that log shares it.
        return self._paths[LogStream.RECEIPTS].with_suffix(".lock")

    def append(self, stream: LogStream, record: Record) -> None:
        path = self._paths[stream]
        line = json.dumps(record, ensure_ascii=False, default=json_default) + "\n"
        data = line.encode("utf-8")

        with self._stream_locks[stream]:
            try:
                fd = os.open(path, os.O_RDWR | os.O_APPEND | os.O_CREAT, 0o644)
            except OSError as exc:
                raise LogStoreError(f"Cannot open {path} for append: {exc}") from exc
            try:
                fcntl.flock(fd, fcntl.LOCK_EX)
                if _ends_without_newline(fd):
                    # A writer died mid-record; terminate its fragment so this
                    # record starts on its own line.
                    data = b"\n" + data
                _write_fully(fd, data)
                if self._fsync:
                    os.fsync(fd)
            except OSError as exc:
                raise LogStoreError(f"Failed to append to {path}: {exc}") from exc
            finally:
                os.close(fd)

    def read_all(self, stream: LogStream) -> list[Record]:
        path = self._paths[stream]
        try:
            handle = path.open("rb")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise LogStoreError(f"Cannot open {path} for reading: {exc}") from exc

        with handle:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_SH)
                try:
                    data = handle.read()
                finally:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
            except OSError as exc:
                raise LogStoreError(f"Failed to read {path}: {exc}") from exc

        return _parse_lines(data, path)

    @contextmanager
    def decision_lock(self) -> Iterator[None]:
        lock_path = self.decision_lock_path
        with self._decision_lock:
            try:
                handle = lock_path.open("a+b")
            except OSError as exc:
                raise LogStoreError(f"Cannot open lock file {lock_path}: {exc}") from exc
            with handle:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


def _ends_without_newline(fd: int) -> bool:
    size = os.fstat(fd).st_size
    if size == 0:
        return False
    return os.pread(fd, 1, size - 1) != b"\n"


def _write_fully(fd: int, data: bytes) -> None:
    view = memoryview(data)
    written = 0
    while written < len(data):
        written += os.write(fd, view[written:])


def _parse_lines(data: bytes, path: Path) -> list[Record]:
    lines = data.split(b"\n")
    # Everything after the final newline is either empty or an unterminated
    # fragment from a crashed writer.
    tail = lines.pop()
    if tail.strip():
        logger.warning("Skipping unterminated record at end of %s", path)

    records: list[Record] = []
    for lineno, raw in enumerate(lines, start=1):
        if not raw.strip():
            continue
        try:
            obj = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Skipping corrupt record %s:%d: %s", path, lineno, exc)
            continue
        if not isinstance(obj, dict):
            logger.warning("Skipping non-object record %s:%d", path, lineno)
            continue
        records.append(obj)
    return records
