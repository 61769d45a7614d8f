"""
JSON-RPC errors for the execution service.

This module provides:
- Canonical JSON-RPC 2.0 error codes.
- Exception classes carrying (code, message, data).
- `to_error`, which maps every pipeline failure onto the wire.

Wire policy
-----------
The wire protocol exposes a coarse code channel only. Every `AcvmError`
(filesystem, decode, parse, execution, serialization) is reported as
-32603 Internal error with a human-readable message and a small `data`
object naming the failed stage:

    {"code": -32603, "message": "malformed witness bytes: …",
     "data": {"stage": "decode", "error": "MalformedWitness"}}

Unexpected exceptions are reported the same way with stage "internal" and a
generic message; tracebacks never leave the process.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Mapping, Optional, Union

from acvm_core.errors import AcvmError, Stage


class JsonRpcCode(IntEnum):
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


@dataclass(eq=False)
class RpcError(Exception):
    code: int
    message: str
    data: Optional[Mapping[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        err: Dict[str, Any] = {"code": int(self.code), "message": str(self.message)}
        if self.data:
            err["data"] = dict(self.data)
        return err

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ParseError(RpcError):
    def __init__(self, detail: str = "Parse error", **data: Any) -> None:
        super().__init__(JsonRpcCode.PARSE_ERROR, detail, data or None)


class InvalidRequest(RpcError):
    def __init__(self, detail: str = "Invalid Request", **data: Any) -> None:
        super().__init__(JsonRpcCode.INVALID_REQUEST, detail, data or None)


class MethodNotFound(RpcError):
    def __init__(self, method: str) -> None:
        super().__init__(JsonRpcCode.METHOD_NOT_FOUND, "Method not found", {"method": method})


class InvalidParams(RpcError):
    def __init__(self, detail: str = "Invalid params", **data: Any) -> None:
        super().__init__(JsonRpcCode.INVALID_PARAMS, detail, data or None)


class InternalError(RpcError):
    def __init__(self, detail: str = "Internal error", **data: Any) -> None:
        super().__init__(JsonRpcCode.INTERNAL_ERROR, detail, data or None)


def error_response(req_id: Optional[Union[str, int]], err: RpcError) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": req_id, "error": err.to_dict()}


def from_acvm_error(exc: AcvmError) -> InternalError:
    return InternalError(exc.message, stage=exc.stage.value, error=type(exc).__name__)


def to_error(exc: BaseException) -> RpcError:
    """
    Convert any exception into an RpcError.
    - RpcError passes through.
    - AcvmError → InternalError carrying its message and stage.
    - Anything else → generic InternalError (stage "internal").
    """
    if isinstance(exc, RpcError):
        return exc
    if isinstance(exc, AcvmError):
        return from_acvm_error(exc)
    return InternalError("Internal error", stage=Stage.INTERNAL.value, error=type(exc).__name__)


__all__ = [
    "JsonRpcCode",
    "RpcError",
    "ParseError",
    "InvalidRequest",
    "MethodNotFound",
    "InvalidParams",
    "InternalError",
    "error_response",
    "from_acvm_error",
    "to_error",
]
