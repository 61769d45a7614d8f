from __future__ import annotations

from pathlib import Path

import httpx
import pytest
import respx

from acvm_core.codec import decode_witness_map
from acvm_rpc.client import TRANSPORT_ERROR, ClientError, ExecutionClient
from acvm_rpc.config import PayloadMode
from acvm_rpc.tests import new_test_client


def test_execute_from_dir_against_app(working_dir: Path):
    tc, _ = new_test_client()
    client = ExecutionClient("/", http=tc)
    out = client.execute_from_dir(working_dir)
    assert out == working_dir / "output_witness.bin"
    assert decode_witness_map(out.read_bytes()) == {0: 5, 1: 5}


def test_run_paths_against_app(working_dir: Path):
    tc, _ = new_test_client(PayloadMode.PATH, working_dir)
    client = ExecutionClient("/rpc", http=tc)
    path = client.run_paths("out", "Prover.toml", "bytecode")
    assert Path(path) == (working_dir / "out.bin").resolve()


def test_server_errors_become_client_errors(identity_bytecode):
    tc, _ = new_test_client()
    client = ExecutionClient("/", http=tc)
    with pytest.raises(ClientError) as ei:
        client.run_inline(b"\x00" * 35, identity_bytecode)
    assert ei.value.code == -32603
    assert ei.value.data["stage"] == "decode"
    assert "(stage: decode)" in str(ei.value)


@respx.mock
def test_transport_failure_is_not_retried():
    route = respx.post("http://acvm.test/").mock(side_effect=httpx.ConnectError("refused"))
    with ExecutionClient("http://acvm.test/") as client:
        with pytest.raises(ClientError) as ei:
            client.request("rpc.listMethods")
    assert ei.value.code == TRANSPORT_ERROR
    assert route.call_count == 1


@respx.mock
def test_non_json_reply():
    respx.post("http://acvm.test/").mock(return_value=httpx.Response(502, text="bad gateway"))
    with ExecutionClient("http://acvm.test/") as client:
        with pytest.raises(ClientError, match="Non-JSON"):
            client.request("run", [])


def test_mismatched_id_is_rejected():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"jsonrpc": "2.0", "id": 999, "result": "0x"})
    )
    with ExecutionClient("http://acvm.test/", transport=transport) as client:
        with pytest.raises(ClientError, match="Mismatched"):
            client.run_inline(b"", b"")
