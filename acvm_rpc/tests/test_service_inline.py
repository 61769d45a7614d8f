from __future__ import annotations

from acvm_core.codec import decode_witness_map, encode_witness_map
from acvm_core.witness import WitnessMap
from acvm_rpc.tests import new_test_client, rpc_call


def _hex(b: bytes) -> str:
    return "0x" + b.hex()


def test_identity_circuit_end_to_end(identity_bytecode):
    client, _ = new_test_client()
    witness = encode_witness_map(WitnessMap({0: 5}))

    res = rpc_call(client, "run", [_hex(witness), _hex(identity_bytecode)])
    out = bytes.fromhex(res["result"][2:])
    assert decode_witness_map(out) == {0: 5, 1: 5}

    # Same inputs, same bytes.
    again = rpc_call(client, "run", {"witness": _hex(witness), "bytecode": _hex(identity_bytecode)}, id=2)
    assert again["result"] == res["result"]


def test_byte_array_payloads_are_accepted(identity_bytecode):
    client, _ = new_test_client()
    witness = encode_witness_map(WitnessMap({0: 5}))
    res = rpc_call(client, "run", [list(witness), list(identity_bytecode)])
    assert decode_witness_map(bytes.fromhex(res["result"][2:])) == {0: 5, 1: 5}


def test_truncated_witness_is_an_internal_error(identity_bytecode):
    client, _ = new_test_client()
    witness = encode_witness_map(WitnessMap({0: 5}))[:-1]
    res = rpc_call(client, "run", [_hex(witness), _hex(identity_bytecode)], expect_error=True)
    err = res["error"]
    assert err["code"] == -32603
    assert err["data"]["stage"] == "decode"
    assert "Traceback" not in err["message"]


def test_malformed_circuit_is_reported_as_deserialization_failure():
    client, _ = new_test_client()
    witness = encode_witness_map(WitnessMap({0: 5}))
    res = rpc_call(client, "run", [_hex(witness), "0xdeadbeef"], expect_error=True)
    assert res["error"]["code"] == -32603
    assert res["error"]["data"] == {"stage": "circuit-deserialize", "error": "CircuitDeserializationError"}


def test_solver_failure_is_reported_as_execution_failure(identity_bytecode):
    client, _ = new_test_client()
    # Both witnesses given and disagreeing: the constraint cannot hold.
    witness = encode_witness_map(WitnessMap({0: 5, 1: 6}))
    res = rpc_call(client, "run", [_hex(witness), _hex(identity_bytecode)], expect_error=True)
    err = res["error"]
    assert err["data"]["stage"] == "execute"
    assert "cannot satisfy constraint" in err["message"]


def test_missing_input_witness_is_an_execution_failure(identity_bytecode):
    client, _ = new_test_client()
    res = rpc_call(client, "run", ["0x", _hex(identity_bytecode)], expect_error=True)
    assert res["error"]["data"]["stage"] == "execute"


def test_bad_payload_types_are_invalid_params(identity_bytecode):
    client, _ = new_test_client()
    for witness in (123, "0xzz", "0xabc", [1, 256], [True]):
        res = rpc_call(client, "run", [witness, _hex(identity_bytecode)], expect_error=True)
        assert res["error"]["code"] == -32602, witness


def test_wrong_arity_is_invalid_params():
    client, _ = new_test_client()
    res = rpc_call(client, "run", ["0x"], expect_error=True)
    assert res["error"]["code"] == -32602
