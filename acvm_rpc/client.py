from __future__ import annotations

"""
HTTP JSON-RPC client for the execution service (sync, httpx).

- Inline mode: ship witness and bytecode bytes, get the solved witness bytes back.
- Path mode: ship file names, get the absolute output path back.
- `execute_from_dir` mirrors the classic client tool: read `witnessMap.bin`
  and `bytecode` from a directory, call `run`, write `output_witness.bin`.

No retries: a failed call raises ClientError and the caller decides.

Example:
    from acvm_rpc.client import ExecutionClient
    with ExecutionClient("http://127.0.0.1:9997") as c:
        out = c.execute_from_dir("fixtures/identity")
"""

import json
from dataclasses import dataclass, field
from itertools import count
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

import httpx

from acvm_core.version import __version__

JSON = Union[dict, list, str, int, float, bool, None]

DEFAULT_WITNESS_FILE = "witnessMap.bin"
DEFAULT_BYTECODE_FILE = "bytecode"
DEFAULT_OUTPUT_FILE = "output_witness.bin"

# Transport-level failures get a code outside the JSON-RPC reserved range.
TRANSPORT_ERROR = -32098


@dataclass(eq=False)
class ClientError(Exception):
    code: int
    message: str
    data: Any = None

    def __str__(self) -> str:
        s = f"[{self.code}] {self.message}"
        if isinstance(self.data, Mapping) and self.data.get("stage"):
            s += f" (stage: {self.data['stage']})"
        return s


@dataclass
class ExecutionClient:
    """Synchronous JSON-RPC 2.0 client for the `run` method."""

    url: str
    timeout: Optional[float] = None
    headers: Optional[Mapping[str, str]] = None
    transport: Optional[httpx.BaseTransport] = None
    http: Optional[httpx.Client] = None
    _ids: Iterator[int] = field(default_factory=lambda: count(1))
    _owns_http: bool = field(init=False, default=False)

    def __post_init__(self) -> None:
        if self.http is None:
            merged: Dict[str, str] = {
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": f"acvm-rpc-client/{__version__}",
            }
            if self.headers:
                merged.update(dict(self.headers))
            # timeout=None: circuit execution has no upper bound.
            self.http = httpx.Client(timeout=self.timeout, headers=merged, transport=self.transport)
            self._owns_http = True

    # --- context manager -------------------------------------------------

    def __enter__(self) -> "ExecutionClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        if self._owns_http and self.http is not None:
            self.http.close()

    # --- public API ------------------------------------------------------

    def request(self, method: str, params: Union[List[Any], Dict[str, Any], None] = None) -> JSON:
        """Perform one JSON-RPC call and return `result` or raise ClientError."""
        rid = next(self._ids)
        payload = {"jsonrpc": "2.0", "id": rid, "method": method, "params": params if params is not None else []}
        body = json.dumps(payload, separators=(",", ":"))
        assert self.http is not None
        try:
            r = self.http.post(self.url, content=body, headers={"Content-Type": "application/json"})
        except httpx.HTTPError as e:
            raise ClientError(TRANSPORT_ERROR, "Network error", str(e)) from e

        try:
            resp = r.json()
        except ValueError as e:
            raise ClientError(
                TRANSPORT_ERROR, "Non-JSON response from RPC", f"HTTP {r.status_code}: {r.text[:256]}"
            ) from e

        if not isinstance(resp, dict):
            raise ClientError(-32603, "Invalid response (not an object)", resp)
        if "error" in resp and resp["error"] is not None:
            err = resp["error"]
            if not isinstance(err, dict):
                raise ClientError(-32603, "Malformed error object", err)
            raise ClientError(int(err.get("code", -32603)), str(err.get("message", "Unknown error")), err.get("data"))
        if resp.get("id") != rid:
            raise ClientError(-32603, "Mismatched response id", {"expected": rid, "got": resp.get("id")})
        if "result" not in resp:
            raise ClientError(-32603, "Missing result", resp)
        return resp["result"]

    def run_inline(self, witness: bytes, bytecode: bytes) -> bytes:
        result = self.request("run", ["0x" + bytes(witness).hex(), "0x" + bytes(bytecode).hex()])
        if not isinstance(result, str):
            raise ClientError(-32603, "Expected a hex string result", result)
        s = result[2:] if result[:2] in ("0x", "0X") else result
        try:
            return bytes.fromhex(s)
        except ValueError as e:
            raise ClientError(-32603, "Result is not valid hex", result) from e

    def run_paths(
        self,
        output_witness: str,
        input_witness: str,
        bytecode: str,
        working_directory: Optional[Union[str, Path]] = None,
    ) -> str:
        params: List[Any] = [output_witness, input_witness, bytecode]
        if working_directory is not None:
            params.append(str(working_directory))
        result = self.request("run", params)
        if not isinstance(result, str):
            raise ClientError(-32603, "Expected a path string result", result)
        return result

    def execute_from_dir(
        self,
        working_directory: Union[str, Path],
        witness_file: str = DEFAULT_WITNESS_FILE,
        bytecode_file: str = DEFAULT_BYTECODE_FILE,
        output_file: str = DEFAULT_OUTPUT_FILE,
    ) -> Path:
        """Read inputs from `working_directory`, call `run` inline, write the result there."""
        wd = Path(working_directory)
        witness = (wd / witness_file).read_bytes()
        bytecode = (wd / bytecode_file).read_bytes()
        out = self.run_inline(witness, bytecode)
        target = wd / output_file
        target.write_bytes(out)
        return target


__all__ = ["ClientError", "ExecutionClient", "TRANSPORT_ERROR"]
