"""
Shared fixtures for the acvm_core, acvm_solver and acvm_rpc test suites.

The identity circuit constrains `w1 - w0 = 0`: given {0: 5} it solves to
{0: 5, 1: 5}. It is the smallest end-to-end fixture that exercises decoding,
solving and re-encoding.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from acvm_core.codec import encode_witness_map
from acvm_core.witness import WitnessMap
from acvm_solver.circuit import AssertZero, Circuit, Expression


def identity_circuit() -> Circuit:
    return Circuit(
        current_witness_index=1,
        opcodes=(AssertZero(Expression.linear((1, 0), (-1, 1))),),
        private_parameters=frozenset({0}),
        return_values=frozenset({1}),
    )


@pytest.fixture
def identity_bytecode() -> bytes:
    return identity_circuit().serialize_circuit()


@pytest.fixture
def identity_witness() -> WitnessMap:
    return WitnessMap({0: 5})


@pytest.fixture
def working_dir(tmp_path: Path, identity_bytecode: bytes, identity_witness: WitnessMap) -> Path:
    """A directory laid out like a compiled program: inputs plus bytecode."""
    (tmp_path / "Prover.toml").write_text('0 = "0x05"\n')
    (tmp_path / "bytecode").write_bytes(identity_bytecode)
    (tmp_path / "witnessMap.bin").write_bytes(encode_witness_map(identity_witness))
    return tmp_path
