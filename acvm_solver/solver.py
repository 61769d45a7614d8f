"""
Reference circuit solver.

`execute_circuit` walks the opcodes in order, extending the witness as it
goes:

- AssertZero: after substituting known witnesses, an expression with no
  unknowns must evaluate to zero; one unknown appearing linearly is solved
  for; anything else is not solvable at that point.
- BlackBoxFuncCall: all inputs must be assigned; outputs come from the
  black-box solver.
- ForeignCall: all inputs must be assigned; outputs come from the foreign
  call executor.

Outputs that are already assigned must agree with the computed value. The
caller's witness is never mutated; a new map is returned.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from acvm_core.field import FieldElement
from acvm_core.witness import WitnessMap

from .blackbox import BlackBoxSolver
from .circuit import AssertZero, BlackBoxFuncCall, Circuit, Expression, ForeignCall
from .errors import MissingAssignment, OpcodeNotSolvable, SolverError, UnsatisfiedConstraint
from .foreign_calls import ForeignCallExecutor


def _get(witness: WitnessMap, w: int, opcode_index: int) -> FieldElement:
    try:
        return witness[w]
    except KeyError:
        raise MissingAssignment(w, opcode_index) from None


def _assign(witness: WitnessMap, w: int, value: FieldElement, opcode_index: int) -> None:
    current = witness.get(w)
    if current is not None and current != value:
        raise UnsatisfiedConstraint(opcode_index)
    witness[w] = value


def solve_assert_zero(witness: WitnessMap, expr: Expression, opcode_index: int) -> None:
    total = expr.q_c
    unknown: Dict[int, FieldElement] = {}

    for q, a, b in expr.mul_terms:
        if q.is_zero():
            continue
        va, vb = witness.get(a), witness.get(b)
        if va is not None and vb is not None:
            total = total + q * va * vb
        elif va is not None:
            unknown[b] = unknown.get(b, FieldElement.zero()) + q * va
        elif vb is not None:
            unknown[a] = unknown.get(a, FieldElement.zero()) + q * vb
        else:
            raise OpcodeNotSolvable("expression has a product of two unknowns", opcode_index)

    for q, w in expr.linear_combinations:
        v = witness.get(w)
        if v is not None:
            total = total + q * v
        else:
            unknown[w] = unknown.get(w, FieldElement.zero()) + q

    unknown = {w: q for w, q in unknown.items() if not q.is_zero()}
    if not unknown:
        if not total.is_zero():
            raise UnsatisfiedConstraint(opcode_index)
        return
    if len(unknown) > 1:
        raise OpcodeNotSolvable(
            f"expression has {len(unknown)} unknowns: {sorted(unknown)}", opcode_index
        )
    (w, q), = unknown.items()
    witness[w] = -total / q


def _inputs(witness: WitnessMap, ws: Sequence[int], opcode_index: int) -> List[FieldElement]:
    return [_get(witness, w, opcode_index) for w in ws]


def execute_circuit(
    circuit: Circuit,
    initial_witness: WitnessMap,
    blackbox_solver: BlackBoxSolver,
    foreign_call_executor: ForeignCallExecutor,
) -> WitnessMap:
    """Solve `circuit` from `initial_witness`. Raises SolverError on any fault."""
    witness = initial_witness.copy()

    for i, op in enumerate(circuit.opcodes):
        if isinstance(op, AssertZero):
            solve_assert_zero(witness, op.expr, i)
        elif isinstance(op, BlackBoxFuncCall):
            args = [(_get(witness, fi.witness, i), fi.num_bits) for fi in op.inputs]
            outputs = _with_location(
                lambda: blackbox_solver.evaluate(op.name, args, len(op.outputs)), i
            )
            for w, v in zip(op.outputs, outputs):
                _assign(witness, w, v, i)
        elif isinstance(op, ForeignCall):
            args = _inputs(witness, op.inputs, i)
            values = _with_location(lambda: foreign_call_executor.execute(op.function, args), i)
            if len(values) != len(op.outputs):
                raise SolverError(
                    f"foreign call {op.function!r} returned {len(values)} values, "
                    f"expected {len(op.outputs)}",
                    i,
                )
            for w, v in zip(op.outputs, values):
                _assign(witness, w, v, i)
        else:
            raise SolverError(f"unknown opcode {type(op).__name__}", i)

    for w in sorted(circuit.return_values):
        if w not in witness:
            raise MissingAssignment(w)
    return witness


def _with_location(fn, opcode_index: int):  # type: ignore[no-untyped-def]
    try:
        return fn()
    except SolverError as e:
        if e.opcode_index is None:
            e.opcode_index = opcode_index
            e.args = (f"{e.args[0]} (opcode {opcode_index})",) + e.args[1:]
        raise


class ReferenceSolver:
    """Adapter exposing `execute_circuit` through the solver interface."""

    def solve(
        self,
        circuit: Circuit,
        witness: WitnessMap,
        blackbox_solver: BlackBoxSolver,
        foreign_call_executor: ForeignCallExecutor,
    ) -> WitnessMap:
        return execute_circuit(circuit, witness, blackbox_solver, foreign_call_executor)


__all__ = ["execute_circuit", "solve_assert_zero", "ReferenceSolver"]
