"""
ACVM RPC configuration.

Centralizes tunables for the execution service and its client:
- listen host/port
- payload mode ("inline" bytes vs. "path" references into a working directory)
- default working directory for path mode
- solver worker pool size
- optional foreign-call resolver URL
- logging level/format and metrics toggle

Environment variables (examples):
  ACVM_RPC_HOST=127.0.0.1
  ACVM_RPC_PORT=9997
  ACVM_RPC_PAYLOAD_MODE=path
  ACVM_RPC_WORKING_DIR=~/circuits/fixtures
  ACVM_RPC_WORKERS=4
  ACVM_FOREIGN_CALL_RESOLVER=http://127.0.0.1:5555
  ACVM_LOG_LEVEL=DEBUG
  ACVM_LOG_FORMAT=json
  ACVM_METRICS_ENABLED=false
  ACVM_RPC_URL=http://127.0.0.1:9997     (client side)

Notes
- Paths beginning with ~ are expanded.
- No dotenv; inject env through your process manager.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Optional

log = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9997
DEFAULT_WORKERS = 4


class PayloadMode(str, Enum):
    INLINE = "inline"
    PATH = "path"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None else default


def _env_bool(name: str, default: bool) -> bool:
    v = _env(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    v = _env(name)
    if v is None:
        return default
    try:
        return int(v.strip())
    except ValueError:
        log.warning("ignoring non-integer %s=%r", name, v)
        return default


def _env_mode(name: str, default: PayloadMode) -> PayloadMode:
    v = _env(name)
    if v is None or not v.strip():
        return default
    try:
        return PayloadMode(v.strip().lower())
    except ValueError:
        log.warning("ignoring unknown %s=%r (expected inline|path)", name, v)
        return default


def _env_path(name: str, default: Path) -> Path:
    v = _env(name)
    if v is None or not v.strip():
        return default
    return Path(v.strip()).expanduser()


@dataclass(frozen=True)
class ServiceConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    payload_mode: PayloadMode = PayloadMode.INLINE
    working_dir: Path = field(default_factory=Path.cwd)
    workers: int = DEFAULT_WORKERS
    foreign_call_resolver: Optional[str] = None
    log_level: str = "INFO"
    log_json: Optional[bool] = None
    metrics_enabled: bool = True

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def with_overrides(self, **changes: Any) -> "ServiceConfig":
        """Return a copy with the non-None `changes` applied (CLI flags over env)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def load() -> ServiceConfig:
    """Build a ServiceConfig from environment variables with sensible defaults."""
    fmt = (_env("ACVM_LOG_FORMAT") or "").strip().lower()
    return ServiceConfig(
        host=_env("ACVM_RPC_HOST", DEFAULT_HOST) or DEFAULT_HOST,
        port=_env_int("ACVM_RPC_PORT", DEFAULT_PORT),
        payload_mode=_env_mode("ACVM_RPC_PAYLOAD_MODE", PayloadMode.INLINE),
        working_dir=_env_path("ACVM_RPC_WORKING_DIR", Path.cwd()),
        workers=max(1, _env_int("ACVM_RPC_WORKERS", DEFAULT_WORKERS)),
        foreign_call_resolver=(_env("ACVM_FOREIGN_CALL_RESOLVER") or None),
        log_level=(_env("ACVM_LOG_LEVEL", "INFO") or "INFO").upper(),
        log_json={"json": True, "text": False}.get(fmt),
        metrics_enabled=_env_bool("ACVM_METRICS_ENABLED", True),
    )


def client_url(default: Optional[str] = None) -> str:
    """Service URL for the client: ACVM_RPC_URL, else built from host/port env."""
    url = _env("ACVM_RPC_URL")
    if url:
        return url
    if default:
        return default
    cfg = load()
    return cfg.base_url


__all__ = ["PayloadMode", "ServiceConfig", "load", "client_url", "DEFAULT_HOST", "DEFAULT_PORT"]
