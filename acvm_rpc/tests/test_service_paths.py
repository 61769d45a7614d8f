from __future__ import annotations

from pathlib import Path

from acvm_core.codec import decode_witness_map
from acvm_rpc.config import PayloadMode
from acvm_rpc.tests import new_test_client, rpc_call


def test_toml_input_writes_binary_output(working_dir: Path):
    client, _ = new_test_client(PayloadMode.PATH, working_dir)
    res = rpc_call(client, "run", ["solved", "Prover.toml", "bytecode"])
    out = Path(res["result"])
    assert out.is_absolute()
    assert out == (working_dir / "solved.bin").resolve()
    assert decode_witness_map(out.read_bytes()) == {0: 5, 1: 5}


def test_binary_input_and_explicit_working_directory(working_dir: Path, tmp_path_factory):
    elsewhere = tmp_path_factory.mktemp("default-wd")
    client, _ = new_test_client(PayloadMode.PATH, elsewhere)
    res = rpc_call(
        client,
        "run",
        {
            "output_witness": "output_witness.bin",
            "input_witness": "witnessMap.bin",
            "bytecode": "bytecode",
            "working_directory": str(working_dir),
        },
    )
    assert Path(res["result"]) == (working_dir / "output_witness.bin").resolve()
    assert list(elsewhere.iterdir()) == []


def test_missing_toml_is_a_filesystem_failure(working_dir: Path):
    client, _ = new_test_client(PayloadMode.PATH, working_dir)
    res = rpc_call(client, "run", ["out", "Missing.toml", "bytecode"], expect_error=True)
    err = res["error"]
    assert err["code"] == -32603
    assert err["data"] == {"stage": "filesystem", "error": "MissingTomlFile"}
    assert "Missing.toml" in err["message"]
    assert not (working_dir / "out.bin").exists()


def test_missing_bytecode_is_a_filesystem_failure(working_dir: Path):
    client, _ = new_test_client(PayloadMode.PATH, working_dir)
    res = rpc_call(client, "run", ["out", "Prover.toml", "nope"], expect_error=True)
    assert res["error"]["data"]["error"] == "MissingBytecodeFile"


def test_bad_input_document_is_a_parse_failure(working_dir: Path):
    (working_dir / "Bad.toml").write_text('"abc" = "0x01"\n')
    client, _ = new_test_client(PayloadMode.PATH, working_dir)
    res = rpc_call(client, "run", ["out", "Bad.toml", "bytecode"], expect_error=True)
    assert res["error"]["data"] == {"stage": "parse", "error": "WitnessIndexError"}
    assert not (working_dir / "out.bin").exists()


def test_path_mode_rejects_non_string_names(working_dir: Path):
    client, _ = new_test_client(PayloadMode.PATH, working_dir)
    res = rpc_call(client, "run", ["out", 5, "bytecode"], expect_error=True)
    assert res["error"]["code"] == -32602


def test_unreadable_inputs_are_filesystem_failures(working_dir: Path):
    (working_dir / "bcdir").mkdir()
    (working_dir / "wdir").mkdir()
    client, _ = new_test_client(PayloadMode.PATH, working_dir)

    res = rpc_call(client, "run", ["out", "Prover.toml", "bcdir"], expect_error=True)
    err = res["error"]
    assert err["code"] == -32603
    assert err["data"] == {"stage": "filesystem", "error": "InvalidBytecodeFile"}
    assert "bcdir" in err["message"]

    res = rpc_call(client, "run", ["out", "wdir", "bytecode"], expect_error=True)
    assert res["error"]["data"] == {"stage": "filesystem", "error": "InvalidWitnessFile"}
    assert not (working_dir / "out.bin").exists()


def test_output_name_must_name_a_file(working_dir: Path):
    client, _ = new_test_client(PayloadMode.PATH, working_dir)
    before = sorted(working_dir.parent.iterdir())
    for name in ("..", ".", "sub/.."):
        res = rpc_call(client, "run", [name, "Prover.toml", "bytecode"], expect_error=True)
        assert res["error"]["code"] == -32602, name
    assert sorted(working_dir.parent.iterdir()) == before
    assert not (working_dir / "..bin").exists()


def test_repeated_run_is_idempotent_and_adds_one_file(working_dir: Path):
    client, _ = new_test_client(PayloadMode.PATH, working_dir)
    before = set(working_dir.iterdir())

    first = rpc_call(client, "run", ["solved", "Prover.toml", "bytecode"])
    out = Path(first["result"])
    content = out.read_bytes()
    assert set(working_dir.iterdir()) - before == {working_dir / "solved.bin"}

    second = rpc_call(client, "run", ["solved", "Prover.toml", "bytecode"], id=2)
    assert second["result"] == first["result"]
    assert out.read_bytes() == content
    assert set(working_dir.iterdir()) - before == {working_dir / "solved.bin"}
