"""
The `run` JSON-RPC method in both payload modes.

inline
    run(witness, bytecode) -> "0x…"
    `witness` is the binary witness encoding and `bytecode` the serialized
    circuit, each as a 0x-hex string or a JSON array of byte integers. The
    result is the binary encoding of the solved witness as 0x-hex.

path
    run(output_witness, input_witness, bytecode, working_directory=None) -> str
    Names are resolved against `working_directory` (default: the configured
    working dir). `*.toml` input witnesses go through the text parser, all
    others through the binary codec. Exactly one output file is written and
    its absolute path returned.

Failures surface as AcvmError subclasses; the dispatcher maps them to -32603.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, List, Optional

from acvm_core.codec import decode_witness_map, encode_witness_map
from acvm_core.errors import AcvmError
from acvm_core.inputs import read_bytecode_from_file, read_witness_from_file, save_witness_to_dir

from .config import PayloadMode, ServiceConfig
from .dispatcher import ExecutionDispatcher
from .errors import InvalidParams
from .jsonrpc import MethodRegistry
from .metrics import rpc_metrics

log = logging.getLogger(__name__)


# ---- Payload helpers --------------------------------------------------------


def bytes_from_param(value: Any, name: str) -> bytes:
    """Accept '0x…' hex or a list of byte ints; anything else is -32602."""
    if isinstance(value, str):
        s = value[2:] if value[:2] in ("0x", "0X") else value
        if len(s) % 2:
            raise InvalidParams(f"{name} must be an even-length hex string", param=name)
        try:
            return bytes.fromhex(s)
        except ValueError:
            raise InvalidParams(f"{name} must be hex-encoded bytes", param=name) from None
    if isinstance(value, list):
        if all(isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 0xFF for b in value):
            return bytes(value)
        raise InvalidParams(f"{name} must be an array of byte values (0..255)", param=name)
    raise InvalidParams(f"{name} must be a hex string or byte array", param=name)


def bytes_to_param(data: bytes) -> str:
    return "0x" + data.hex()


def _name_param(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidParams(f"{name} must be a non-empty string", param=name)
    if Path(value).name in ("", ".", ".."):
        raise InvalidParams(f"{name} must name a file", param=name)
    return value


# ---- Service ----------------------------------------------------------------


class ExecutionService:
    """Stateless request handler; one instance per app."""

    def __init__(self, cfg: ServiceConfig, dispatcher: ExecutionDispatcher) -> None:
        self.cfg = cfg
        self.dispatcher = dispatcher

    @property
    def mode(self) -> PayloadMode:
        return self.cfg.payload_mode

    def register(self, registry: MethodRegistry) -> None:
        if self.mode is PayloadMode.PATH:
            registry.register("run", self.run_paths)
        else:
            registry.register("run", self.run_inline)

        def list_methods() -> List[str]:
            return registry.names

        registry.register("rpc.listMethods", list_methods)

    async def run_inline(self, witness: Any, bytecode: Any) -> str:
        witness_bytes = bytes_from_param(witness, "witness")
        circuit_bytes = bytes_from_param(bytecode, "bytecode")
        log.info(
            "run (inline) witness=%dB bytecode=%dB",
            len(witness_bytes),
            len(circuit_bytes),
        )

        async with self._observe():
            initial = decode_witness_map(witness_bytes)
            solved = await self.dispatcher.execute(initial, circuit_bytes)
            out = encode_witness_map(solved)

        log.info("run (inline) ok: %d witnesses, %dB", len(solved), len(out))
        return bytes_to_param(out)

    async def run_paths(
        self,
        output_witness: Any,
        input_witness: Any,
        bytecode: Any,
        working_directory: Optional[str] = None,
    ) -> str:
        output_name = _name_param(output_witness, "output_witness")
        input_name = _name_param(input_witness, "input_witness")
        bytecode_name = _name_param(bytecode, "bytecode")
        if working_directory is not None and not isinstance(working_directory, str):
            raise InvalidParams("working_directory must be a string", param="working_directory")
        wd = Path(working_directory).expanduser() if working_directory else self.cfg.working_dir
        log.info("run (path) wd=%s input=%s bytecode=%s output=%s", wd, input_name, bytecode_name, output_name)

        async with self._observe():
            initial = read_witness_from_file(wd, input_name)
            circuit_bytes = read_bytecode_from_file(wd, bytecode_name)
            solved = await self.dispatcher.execute(initial, circuit_bytes)
            path = save_witness_to_dir(solved, output_name, wd)

        resolved = str(path.resolve())
        log.info("run (path) ok: wrote %s", resolved)
        return resolved

    def _observe(self) -> "_ExecutionObservation":
        return _ExecutionObservation(self.mode)


class _ExecutionObservation:
    """Times a run and counts failures by stage."""

    def __init__(self, mode: PayloadMode) -> None:
        self.mode = mode
        self._t0 = 0.0

    async def __aenter__(self) -> "_ExecutionObservation":
        self._t0 = time.perf_counter()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:  # type: ignore[no-untyped-def]
        rpc_metrics.execution_time(self.mode.value, time.perf_counter() - self._t0)
        if isinstance(exc, AcvmError):
            rpc_metrics.execution_failed(exc.stage.value)
        elif exc is not None and not isinstance(exc, InvalidParams):
            rpc_metrics.execution_failed("internal")
        return False


__all__ = ["ExecutionService", "bytes_from_param", "bytes_to_param"]
