"""
Foreign call resolution.

Foreign calls ask for values computed outside the circuit. The default
executor handles `print` locally and forwards every other call to an optional
external resolver speaking JSON-RPC 2.0 over HTTP:

    --> {"jsonrpc": "2.0", "id": 7, "method": "resolve_foreign_call",
         "params": [{"function": "get_secret", "inputs": ["0x…"]}]}
    <-- {"jsonrpc": "2.0", "id": 7, "result": {"values": ["0x…"]}}

Without a resolver, unknown calls fail with `UnresolvedForeignCall`.
Resolver calls are not retried.
"""

from __future__ import annotations

import logging
from itertools import count
from typing import Any, Callable, List, Optional, Protocol, Sequence

import httpx

from acvm_core.field import FieldElement

from .errors import ForeignCallError, UnresolvedForeignCall

log = logging.getLogger(__name__)

RESOLVE_METHOD = "resolve_foreign_call"
PRINT_FUNCTION = "print"


class ForeignCallExecutor(Protocol):
    def execute(self, function: str, inputs: Sequence[FieldElement]) -> List[FieldElement]:
        ...


class DefaultForeignCallExecutor:
    def __init__(
        self,
        show_output: bool = True,
        resolver_url: Optional[str] = None,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
        output: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.show_output = show_output
        self.resolver_url = resolver_url
        self._timeout = timeout
        self._transport = transport
        self._output = output
        self._ids = count(1)

    def execute(self, function: str, inputs: Sequence[FieldElement]) -> List[FieldElement]:
        if function == PRINT_FUNCTION:
            self._print(inputs)
            return []
        if not self.resolver_url:
            raise UnresolvedForeignCall(function)
        return self._resolve(function, inputs)

    def _print(self, inputs: Sequence[FieldElement]) -> None:
        if not self.show_output:
            return
        line = " ".join(v.to_hex() for v in inputs)
        if self._output is not None:
            self._output(line)
        else:
            log.info("circuit output: %s", line)

    def _resolve(self, function: str, inputs: Sequence[FieldElement]) -> List[FieldElement]:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": RESOLVE_METHOD,
            "params": [{"function": function, "inputs": [v.to_hex() for v in inputs]}],
        }
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                r = client.post(self.resolver_url, json=payload)  # type: ignore[arg-type]
            body = r.json()
        except httpx.HTTPError as e:
            raise ForeignCallError(function, f"resolver unreachable: {e}") from e
        except ValueError as e:
            raise ForeignCallError(function, "resolver returned non-JSON response") from e

        if not isinstance(body, dict):
            raise ForeignCallError(function, "malformed resolver response")
        if body.get("error") is not None:
            err = body["error"]
            msg = err.get("message", "unknown error") if isinstance(err, dict) else str(err)
            raise ForeignCallError(function, f"resolver error: {msg}")
        return _values_from_result(function, body.get("result"))


def _values_from_result(function: str, result: Any) -> List[FieldElement]:
    values = result.get("values") if isinstance(result, dict) else None
    if not isinstance(values, list):
        raise ForeignCallError(function, "resolver result has no 'values' array")
    try:
        return [FieldElement.from_hex(v) for v in values]
    except ValueError as e:
        raise ForeignCallError(function, f"bad value in resolver result: {e}") from e


__all__ = ["ForeignCallExecutor", "DefaultForeignCallExecutor", "RESOLVE_METHOD", "PRINT_FUNCTION"]
