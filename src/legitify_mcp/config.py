"""Configuration management for the Legitify MCP server."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from legitify_mcp.store.jsonl import RECEIPTS_FILENAME, REQUESTS_FILENAME

_config_logger = logging.getLogger(__name__)


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class StorageSettings(BaseModel):
    queue_dir: str = Field(default_factory=lambda: str(Path.home() / ".legitify"))
    requests_path: str | None = Field(
        default=None,
        description="Request log file. Defaults to <queue_dir>/attestation-requests.jsonl.",
    )
    receipts_path: str | None = Field(
        default=None,
        description="Receipt log file. Defaults to <queue_dir>/attestation-responses.jsonl.",
    )
    fsync: bool = Field(default=True)

    @property
    def resolved_requests_path(self) -> str:
        return self.requests_path or str(Path(self.queue_dir) / REQUESTS_FILENAME)

    @property
    def resolved_receipts_path(self) -> str:
        return self.receipts_path or str(Path(self.queue_dir) / RECEIPTS_FILENAME)


class PolicySettings(BaseModel):
    path: str | None = Field(
        default=None,
        description="Optional policy YAML file. Built-in defaults are used when unset.",
    )


class ReviewSettings(BaseModel):
    default_reviewer: str = Field(default="human_reviewer", min_length=1)
    default_scope: str = Field(default="human_attestation_v1", min_length=1)


class ServerSettings(BaseModel):
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1024, le=65535)
    instructions: str = Field(
        default=(
            "Use these tools to request human attestation before high-impact actions "
            "(deployments, spend, access grants, filings). Submit a request, then poll "
            "its status; do not proceed until the status is 'approved'."
        )
    )
    transport_mode: Literal["stdio", "http"] = Field(default="stdio")
    runtime: Literal["fastmcp", "simple"] = Field(default="fastmcp")
    http_allowed_origins: tuple[str, ...] = Field(default=())
    http_allow_missing_origin: bool = Field(default=True)

    @field_validator("transport_mode", "runtime", mode="before")
    @classmethod
    def _normalize_choice(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class Settings(BaseModel):
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    policy: PolicySettings = Field(default_factory=PolicySettings)
    review: ReviewSettings = Field(default_factory=ReviewSettings)


ENV_KEYS = {
    "queue_dir": "LEGITIFY_QUEUE_DIR",
    "requests_path": "LEGITIFY_QUEUE_PATH",
    "receipts_path": "LEGITIFY_RESPONSES_PATH",
    "fsync": "LEGITIFY_FSYNC",
    "default_reviewer": "LEGITIFY_DEFAULT_REVIEWER",
    "default_scope": "LEGITIFY_DEFAULT_SCOPE",
    "policy_path": "POLICY_PATH",
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
    "transport_mode": "TRANSPORT_MODE",
    "runtime": "MCP_RUNTIME",
    "host": "MCP_HOST",
    "port": "MCP_PORT",
    "instructions": "MCP_INSTRUCTIONS",
    "http_allowed_origins": "HTTP_ALLOWED_ORIGINS",
    "http_allow_missing_origin": "HTTP_ALLOW_MISSING_ORIGIN",
}

_TRUE_VALUES = frozenset({"1", "true", "yes"})


def _split_csv_preserve_case(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _expand_path(path: str) -> str:
    return str(Path(path).expanduser().resolve())


def _env_str(key: str) -> str | None:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        _config_logger.warning(
            "Invalid integer value for %s: %r, using default %d", key, value, default
        )
        return default


def load_settings() -> Settings:
    """Load configuration and cache the result."""

    return _load_settings_cached()


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    load_dotenv(dotenv_path=_project_root() / ".env")

    queue_dir = _env_str(ENV_KEYS["queue_dir"])
    requests_path = _env_str(ENV_KEYS["requests_path"])
    receipts_path = _env_str(ENV_KEYS["receipts_path"])
    policy_path = _env_str(ENV_KEYS["policy_path"])
    log_file = _env_str(ENV_KEYS["log_file"])

    storage: dict[str, object] = {
        "requests_path": _expand_path(requests_path) if requests_path else None,
        "receipts_path": _expand_path(receipts_path) if receipts_path else None,
        "fsync": _env_bool(ENV_KEYS["fsync"], StorageSettings().fsync),
    }
    if queue_dir:
        storage["queue_dir"] = _expand_path(queue_dir)

    settings_data: dict[str, object] = {
        "server": {
            "host": os.getenv(ENV_KEYS["host"], ServerSettings().host),
            "port": _env_int(ENV_KEYS["port"], ServerSettings().port),
            "instructions": os.getenv(ENV_KEYS["instructions"], ServerSettings().instructions),
            "transport_mode": os.getenv(
                ENV_KEYS["transport_mode"], ServerSettings().transport_mode
            ),
            "runtime": os.getenv(ENV_KEYS["runtime"], ServerSettings().runtime),
            "http_allowed_origins": tuple(
                _split_csv_preserve_case(os.getenv(ENV_KEYS["http_allowed_origins"]))
            ),
            "http_allow_missing_origin": _env_bool(
                ENV_KEYS["http_allow_missing_origin"],
                ServerSettings().http_allow_missing_origin,
            ),
        },
        "logging": {
            "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
            "file": _expand_path(log_file) if log_file else None,
        },
        "storage": storage,
        "policy": {
            "path": _expand_path(policy_path) if policy_path else None,
        },
        "review": {
            "default_reviewer": os.getenv(
                ENV_KEYS["default_reviewer"], ReviewSettings().default_reviewer
            ),
            "default_scope": os.getenv(ENV_KEYS["default_scope"], ReviewSettings().default_scope),
        },
    }

    try:
        settings = Settings.model_validate(settings_data)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc

    return settings
