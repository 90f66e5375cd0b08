"""Durable append-only storage for the request and receipt logs."""

from legitify_mcp.store.base import LogStore, LogStoreError, LogStream, Record
from legitify_mcp.store.jsonl import JsonlLogStore
from legitify_mcp.store.memory import InMemoryLogStore

__all__ = [
    "InMemoryLogStore",
    "JsonlLogStore",
    "LogStore",
    "LogStoreError",
    "LogStream",
    "Record",
]
