"""Errors raised by the circuit format and the solver."""

from __future__ import annotations

from typing import Optional


class CircuitFormatError(ValueError):
    """Bytecode could not be decoded into a Circuit."""


class SolverError(Exception):
    """Root of every execution fault. `opcode_index` points at the failing opcode, if known."""

    def __init__(self, message: str, opcode_index: Optional[int] = None) -> None:
        self.opcode_index = opcode_index
        if opcode_index is not None:
            message = f"{message} (opcode {opcode_index})"
        super().__init__(message)


class OpcodeNotSolvable(SolverError):
    pass


class UnsatisfiedConstraint(SolverError):
    def __init__(self, opcode_index: int) -> None:
        super().__init__("cannot satisfy constraint", opcode_index)


class MissingAssignment(SolverError):
    def __init__(self, witness: int, opcode_index: Optional[int] = None) -> None:
        self.witness = witness
        super().__init__(f"missing assignment for witness {witness}", opcode_index)


class BlackBoxFunctionFailed(SolverError):
    def __init__(self, name: str, reason: str, opcode_index: Optional[int] = None) -> None:
        self.name = name
        super().__init__(f"black box function {name} failed: {reason}", opcode_index)


class UnresolvedForeignCall(SolverError):
    def __init__(self, function: str, opcode_index: Optional[int] = None) -> None:
        self.function = function
        super().__init__(f"no resolver for foreign call {function!r}", opcode_index)


class ForeignCallError(SolverError):
    """The resolver was reached but the call failed or answered nonsense."""

    def __init__(self, function: str, reason: str, opcode_index: Optional[int] = None) -> None:
        self.function = function
        super().__init__(f"foreign call {function!r} failed: {reason}", opcode_index)


__all__ = [
    "CircuitFormatError",
    "SolverError",
    "OpcodeNotSolvable",
    "UnsatisfiedConstraint",
    "MissingAssignment",
    "BlackBoxFunctionFailed",
    "UnresolvedForeignCall",
    "ForeignCallError",
]
