"""
Test utilities for the ACVM execution service.

Usage in tests:
    from acvm_rpc.tests import new_test_client, rpc_call

    def test_health():
        client, cfg = new_test_client()
        assert client.get("/healthz").json()["ok"] is True

    def test_run(identity_bytecode):
        client, _ = new_test_client()
        res = rpc_call(client, "run", ["0x…", "0x" + identity_bytecode.hex()])
"""
from __future__ import annotations

import typing as t
from pathlib import Path

from fastapi.testclient import TestClient

from acvm_rpc import config as rpc_config
from acvm_rpc import server as rpc_server
from acvm_rpc.dispatcher import ExecutionDispatcher


def make_test_config(
    mode: rpc_config.PayloadMode = rpc_config.PayloadMode.INLINE,
    working_dir: Path | None = None,
    **overrides: t.Any,
) -> rpc_config.ServiceConfig:
    """Minimal config for tests: quiet logs, small pool, no resolver."""
    return rpc_config.ServiceConfig(
        host="127.0.0.1",
        port=0,  # unused by TestClient
        payload_mode=mode,
        working_dir=working_dir or Path.cwd(),
        workers=2,
        log_level="ERROR",
        **overrides,
    )


def new_test_client(
    mode: rpc_config.PayloadMode = rpc_config.PayloadMode.INLINE,
    working_dir: Path | None = None,
    *,
    dispatcher: ExecutionDispatcher | None = None,
    **overrides: t.Any,
) -> tuple[TestClient, rpc_config.ServiceConfig]:
    """Create a TestClient bound to a fresh app. Returns (client, cfg)."""
    cfg = make_test_config(mode, working_dir, **overrides)
    app = rpc_server.create_app(cfg, dispatcher=dispatcher)
    return TestClient(app), cfg


def rpc_call(
    client: TestClient,
    method: str,
    params: t.Any | None = None,
    *,
    id: t.Any = 1,
    path: str = "/",
    expect_error: bool = False,
) -> dict:
    """
    POST a JSON-RPC request and return the parsed response.
    Set expect_error=True to assert an 'error' object is present.
    """
    payload: dict = {"jsonrpc": "2.0", "method": method, "id": id}
    if params is not None:
        payload["params"] = params
    resp = client.post(path, json=payload)
    assert resp.status_code == 200, f"HTTP {resp.status_code}: {resp.text}"
    data = resp.json()
    if expect_error:
        assert "error" in data, f"expected JSON-RPC error, got {data}"
    else:
        assert "result" in data, f"expected JSON-RPC result, got {data}"
    return data


__all__ = ["make_test_config", "new_test_client", "rpc_call"]
