from __future__ import annotations

import asyncio

import pytest

from acvm_core.errors import CircuitDeserializationError, CircuitExecutionError
from acvm_core.witness import WitnessMap
from acvm_rpc.dispatcher import ExecutionDispatcher, execute_program_from_witness
from acvm_solver.errors import OpcodeNotSolvable


class FakeSolver:
    def __init__(self, result=None, error=None):
        self.calls = 0
        self.result = result
        self.error = error
        self.seen = None

    def solve(self, circuit, witness, blackbox_solver, foreign_call_executor):
        self.calls += 1
        self.seen = witness
        if self.error is not None:
            raise self.error
        return self.result


def test_malformed_circuit_never_reaches_the_solver():
    solver = FakeSolver(result=WitnessMap())
    with pytest.raises(CircuitDeserializationError):
        execute_program_from_witness(WitnessMap({0: 1}), b"\x1f\x8b garbage", solver=solver)
    assert solver.calls == 0


def test_solver_errors_are_wrapped(identity_bytecode):
    solver = FakeSolver(error=OpcodeNotSolvable("stuck", 3))
    with pytest.raises(CircuitExecutionError) as ei:
        execute_program_from_witness(WitnessMap(), identity_bytecode, solver=solver)
    assert "stuck (opcode 3)" in ei.value.message
    assert isinstance(ei.value.__cause__, OpcodeNotSolvable)


def test_solver_gets_a_copy_of_the_inputs(identity_bytecode):
    solver = FakeSolver(result=WitnessMap({0: 1, 1: 1}))
    inputs = WitnessMap({0: 1})
    assert execute_program_from_witness(inputs, identity_bytecode, solver=solver) == {0: 1, 1: 1}
    assert solver.seen == inputs
    assert solver.seen is not inputs


def test_default_solver_is_deterministic(identity_bytecode):
    a = execute_program_from_witness(WitnessMap({0: 5}), identity_bytecode)
    b = execute_program_from_witness(WitnessMap({0: 5}), identity_bytecode)
    assert a == b == {0: 5, 1: 5}


def test_pool_runs_concurrent_requests(identity_bytecode):
    dispatcher = ExecutionDispatcher(workers=2)

    async def many():
        return await asyncio.gather(
            *(dispatcher.execute(WitnessMap({0: i}), identity_bytecode) for i in range(8))
        )

    try:
        results = asyncio.run(many())
    finally:
        dispatcher.shutdown()
    assert [r[1].to_int() for r in results] == list(range(8))


def test_unexpected_solver_crash_is_internal_over_rpc(identity_bytecode):
    from acvm_core.codec import encode_witness_map
    from acvm_rpc.tests import new_test_client, rpc_call

    dispatcher = ExecutionDispatcher(workers=1, solver=FakeSolver(error=RuntimeError("segfault-ish")))
    client, _ = new_test_client(dispatcher=dispatcher)
    witness = "0x" + encode_witness_map(WitnessMap({0: 5})).hex()
    res = rpc_call(client, "run", [witness, "0x" + identity_bytecode.hex()], expect_error=True)
    assert res["error"]["message"] == "Internal error"
    assert res["error"]["data"] == {"stage": "internal", "error": "RuntimeError"}
    dispatcher.shutdown()
