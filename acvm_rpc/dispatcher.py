"""
Execution dispatcher: circuit bytes + initial witness → solved witness.

`execute_program_from_witness` is the synchronous core shared by the service
and the local CLI. `ExecutionDispatcher` runs it on a bounded thread pool so a
long solve never blocks the event loop serving other requests.
"""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Protocol

from acvm_core.errors import CircuitDeserializationError, CircuitExecutionError
from acvm_core.witness import WitnessMap
from acvm_solver import (BlackBoxSolver, Bn254BlackBoxSolver, Circuit,
                         CircuitFormatError, DefaultForeignCallExecutor,
                         ForeignCallExecutor, SolverError, execute_circuit)

log = logging.getLogger(__name__)


class CircuitSolver(Protocol):
    def solve(
        self,
        circuit: Circuit,
        witness: WitnessMap,
        blackbox_solver: BlackBoxSolver,
        foreign_call_executor: ForeignCallExecutor,
    ) -> WitnessMap:
        ...


class DefaultCircuitSolver:
    def solve(
        self,
        circuit: Circuit,
        witness: WitnessMap,
        blackbox_solver: BlackBoxSolver,
        foreign_call_executor: ForeignCallExecutor,
    ) -> WitnessMap:
        return execute_circuit(circuit, witness, blackbox_solver, foreign_call_executor)


def execute_program_from_witness(
    inputs_map: WitnessMap,
    bytecode: bytes,
    foreign_call_resolver_url: Optional[str] = None,
    *,
    solver: Optional[CircuitSolver] = None,
) -> WitnessMap:
    """
    Deserialize `bytecode` and solve it from `inputs_map`.

    Raises CircuitDeserializationError before the solver is touched when the
    bytecode is malformed, and CircuitExecutionError for any solver fault.
    The caller's map is never mutated.
    """
    try:
        circuit = Circuit.deserialize_circuit(bytecode)
    except CircuitFormatError as e:
        raise CircuitDeserializationError(cause=e) from e

    solver = solver or DefaultCircuitSolver()
    try:
        return solver.solve(
            circuit,
            inputs_map.copy(),
            Bn254BlackBoxSolver(),
            DefaultForeignCallExecutor(show_output=True, resolver_url=foreign_call_resolver_url),
        )
    except SolverError as e:
        raise CircuitExecutionError(e) from e


class ExecutionDispatcher:
    """Thread-pool front for `execute_program_from_witness`."""

    def __init__(
        self,
        workers: int = 4,
        foreign_call_resolver_url: Optional[str] = None,
        *,
        solver: Optional[CircuitSolver] = None,
    ) -> None:
        self.workers = max(1, int(workers))
        self.foreign_call_resolver_url = foreign_call_resolver_url
        self._solver = solver
        self._pool = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="acvm-solver")

    def execute_sync(self, inputs_map: WitnessMap, bytecode: bytes) -> WitnessMap:
        t0 = time.perf_counter()
        try:
            return execute_program_from_witness(
                inputs_map,
                bytecode,
                self.foreign_call_resolver_url,
                solver=self._solver,
            )
        finally:
            log.debug("circuit execution took %.2f ms", (time.perf_counter() - t0) * 1000)

    async def execute(self, inputs_map: WitnessMap, bytecode: bytes) -> WitnessMap:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._pool, self.execute_sync, inputs_map, bytecode)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)


__all__ = [
    "CircuitSolver",
    "DefaultCircuitSolver",
    "ExecutionDispatcher",
    "execute_program_from_witness",
]
