from __future__ import annotations

import hashlib
from typing import List, Sequence

import pytest

from acvm_core.field import FieldElement
from acvm_core.witness import WitnessMap
from acvm_solver import (AssertZero, BlackBoxFuncCall, Bn254BlackBoxSolver, Circuit,
                         DefaultForeignCallExecutor, Expression, ForeignCall,
                         FunctionInput, ReferenceSolver, circuit_from_opcodes,
                         execute_circuit)
from acvm_solver.errors import (BlackBoxFunctionFailed, MissingAssignment, OpcodeNotSolvable,
                                SolverError, UnresolvedForeignCall, UnsatisfiedConstraint)


class RecordingExecutor:
    def __init__(self, answers: dict) -> None:
        self.answers = answers
        self.calls: List[tuple] = []

    def execute(self, function: str, inputs: Sequence[FieldElement]) -> List[FieldElement]:
        self.calls.append((function, [v.to_int() for v in inputs]))
        return [FieldElement(v) for v in self.answers[function]]


def _run(circuit: Circuit, witness, executor=None) -> WitnessMap:
    return execute_circuit(
        circuit,
        WitnessMap(witness),
        Bn254BlackBoxSolver(),
        executor or DefaultForeignCallExecutor(show_output=False),
    )


def test_identity_circuit(identity_bytecode):
    circuit = Circuit.deserialize_circuit(identity_bytecode)
    initial = WitnessMap({0: 5})
    solved = _run(circuit, initial)
    assert solved == {0: 5, 1: 5}
    assert initial == {0: 5}


def test_solves_through_multiplication():
    # w0 * w1 - w2 = 0 ; w2 + 3 - w3 = 0
    c = circuit_from_opcodes(
        [
            AssertZero(Expression(((FieldElement(1), 0, 1),), ((FieldElement(-1), 2),))),
            AssertZero(Expression.linear((1, 2), (-1, 3), q_c=3)),
        ]
    )
    assert _run(c, {0: 6, 1: 7}) == {0: 6, 1: 7, 2: 42, 3: 45}


def test_unsatisfied_constraint_reports_opcode():
    c = circuit_from_opcodes([AssertZero(Expression.linear((1, 0), q_c=-4))])
    with pytest.raises(UnsatisfiedConstraint) as ei:
        _run(c, {0: 5})
    assert ei.value.opcode_index == 0


def test_two_unknowns_are_not_solvable():
    c = circuit_from_opcodes([AssertZero(Expression.linear((1, 0), (1, 1)))])
    with pytest.raises(OpcodeNotSolvable):
        _run(c, {})


def test_missing_return_value():
    c = Circuit(current_witness_index=3, opcodes=(), return_values=frozenset({3}))
    with pytest.raises(MissingAssignment):
        _run(c, {0: 1})


def test_range_check():
    c = circuit_from_opcodes([BlackBoxFuncCall("RANGE", (FunctionInput(0, 8),))])
    assert _run(c, {0: 255}) == {0: 255}
    with pytest.raises(BlackBoxFunctionFailed) as ei:
        _run(c, {0: 256})
    assert ei.value.opcode_index == 0
    assert "(opcode 0)" in str(ei.value)


def test_and_xor():
    c = circuit_from_opcodes(
        [
            BlackBoxFuncCall("AND", (FunctionInput(0, 8), FunctionInput(1, 8)), (2,)),
            BlackBoxFuncCall("XOR", (FunctionInput(0, 8), FunctionInput(1, 8)), (3,)),
        ]
    )
    solved = _run(c, {0: 0b1100, 1: 0b1010})
    assert solved[2] == FieldElement(0b1000)
    assert solved[3] == FieldElement(0b0110)


def test_sha256_outputs_digest_bytes():
    c = circuit_from_opcodes(
        [BlackBoxFuncCall("SHA256", (FunctionInput(0, 8), FunctionInput(1, 8)), tuple(range(2, 34)))]
    )
    solved = _run(c, {0: ord("h"), 1: ord("i")})
    digest = bytes(solved[w].to_int() for w in range(2, 34))
    assert digest == hashlib.sha256(b"hi").digest()


def test_unknown_black_box():
    c = circuit_from_opcodes([BlackBoxFuncCall("KECCAK1600", (FunctionInput(0, 8),))])
    with pytest.raises(BlackBoxFunctionFailed):
        _run(c, {0: 1})


def test_foreign_call_outputs_are_assigned():
    ex = RecordingExecutor({"double": [10]})
    c = circuit_from_opcodes([ForeignCall("double", (0,), (1,))])
    assert _run(c, {0: 5}, ex) == {0: 5, 1: 10}
    assert ex.calls == [("double", [5])]


def test_foreign_call_output_arity_is_checked():
    ex = RecordingExecutor({"pair": [1]})
    c = circuit_from_opcodes([ForeignCall("pair", (0,), (1, 2))])
    with pytest.raises(SolverError):
        _run(c, {0: 5}, ex)


def test_unresolved_foreign_call_without_resolver():
    c = circuit_from_opcodes([ForeignCall("get_secret", (0,), (1,))])
    with pytest.raises(UnresolvedForeignCall) as ei:
        _run(c, {0: 5})
    assert ei.value.opcode_index == 0


def test_print_is_handled_locally():
    lines: List[str] = []
    ex = DefaultForeignCallExecutor(show_output=True, output=lines.append)
    c = circuit_from_opcodes([ForeignCall("print", (0,))])
    _run(c, {0: 5}, ex)
    assert lines == [FieldElement(5).to_hex()]


def test_reference_solver_adapter(identity_bytecode):
    circuit = Circuit.deserialize_circuit(identity_bytecode)
    out = ReferenceSolver().solve(
        circuit, WitnessMap({0: 9}), Bn254BlackBoxSolver(), DefaultForeignCallExecutor(show_output=False)
    )
    assert out == {0: 9, 1: 9}
