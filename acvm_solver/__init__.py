"""
acvm_solver: circuit bytecode format and the constraint-solving engine.

The execution service only talks to this package through two entry points:
`Circuit.deserialize_circuit(bytes)` and
`execute_circuit(circuit, witness, blackbox_solver, foreign_call_executor)`.
"""

from .blackbox import BlackBoxSolver, Bn254BlackBoxSolver
from .circuit import (AssertZero, BlackBoxFuncCall, Circuit, Expression,
                      ForeignCall, FunctionInput, circuit_from_opcodes)
from .errors import CircuitFormatError, SolverError
from .foreign_calls import DefaultForeignCallExecutor, ForeignCallExecutor
from .solver import ReferenceSolver, execute_circuit

__all__ = [
    "AssertZero",
    "BlackBoxFuncCall",
    "BlackBoxSolver",
    "Bn254BlackBoxSolver",
    "Circuit",
    "CircuitFormatError",
    "DefaultForeignCallExecutor",
    "Expression",
    "ForeignCall",
    "ForeignCallExecutor",
    "FunctionInput",
    "ReferenceSolver",
    "SolverError",
    "circuit_from_opcodes",
    "execute_circuit",
]
