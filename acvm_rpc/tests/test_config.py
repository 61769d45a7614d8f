from __future__ import annotations

from pathlib import Path

from acvm_rpc import config as rpc_config
from acvm_rpc.config import PayloadMode


def test_defaults(monkeypatch):
    for name in ("ACVM_RPC_HOST", "ACVM_RPC_PORT", "ACVM_RPC_PAYLOAD_MODE", "ACVM_RPC_WORKERS", "ACVM_LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)
    cfg = rpc_config.load()
    assert cfg.base_url == "http://127.0.0.1:9997"
    assert cfg.payload_mode is PayloadMode.INLINE
    assert cfg.workers == 4
    assert cfg.log_json is None


def test_env_overrides(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("ACVM_RPC_PORT", "8123")
    monkeypatch.setenv("ACVM_RPC_PAYLOAD_MODE", "PATH")
    monkeypatch.setenv("ACVM_RPC_WORKING_DIR", str(tmp_path))
    monkeypatch.setenv("ACVM_RPC_WORKERS", "0")
    monkeypatch.setenv("ACVM_METRICS_ENABLED", "off")
    monkeypatch.setenv("ACVM_LOG_FORMAT", "json")
    cfg = rpc_config.load()
    assert cfg.port == 8123
    assert cfg.payload_mode is PayloadMode.PATH
    assert cfg.working_dir == tmp_path
    assert cfg.workers == 1
    assert cfg.metrics_enabled is False
    assert cfg.log_json is True


def test_bad_values_fall_back(monkeypatch, caplog):
    monkeypatch.setenv("ACVM_RPC_PORT", "http")
    monkeypatch.setenv("ACVM_RPC_PAYLOAD_MODE", "carrier-pigeon")
    cfg = rpc_config.load()
    assert cfg.port == 9997
    assert cfg.payload_mode is PayloadMode.INLINE
    assert "carrier-pigeon" in caplog.text


def test_with_overrides_skips_none():
    cfg = rpc_config.ServiceConfig(port=1)
    assert cfg.with_overrides(port=None, host="0.0.0.0").port == 1
    assert cfg.with_overrides(port=None, host="0.0.0.0").host == "0.0.0.0"


def test_client_url(monkeypatch):
    monkeypatch.setenv("ACVM_RPC_URL", "http://svc:1")
    assert rpc_config.client_url() == "http://svc:1"
    monkeypatch.delenv("ACVM_RPC_URL")
    assert rpc_config.client_url("http://given:2") == "http://given:2"
