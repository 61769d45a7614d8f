"""
ACVM RPC: JSON-RPC 2.0 Dispatcher
==================================

Features
--------
• JSON-RPC 2.0: single & batch, named & positional params, notifications.
• Structured error mapping via acvm_rpc.errors (pipeline errors → -32603 + stage).
• Async-aware execution; sync handlers run inline, async handlers are awaited.
• Safe arg binding with optional context injection ("ctx"/"context").
• Deterministic responses: {"jsonrpc":"2.0", "id":..., "result":...} or {"error":...}.

Framework-light: the FastAPI endpoint lives in acvm_rpc/server.py and hands
parsed payloads to `dispatch(payload, registry, ctx)`.
"""

from __future__ import annotations

import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from acvm_core import logging as alog

from .errors import InvalidParams, InvalidRequest, JsonRpcCode, MethodNotFound, RpcError, to_error
from .metrics import rpc_metrics

log = logging.getLogger(__name__)

Json = Dict[str, Any]
Params = Union[List[Any], Dict[str, Any]]
CallableLike = Union[Callable[..., Any], Callable[..., Awaitable[Any]]]


# --------------------------------------------------------------------------------------
# Context
# --------------------------------------------------------------------------------------


@dataclass
class Context:
    """Per-request context passed to methods that declare a 'ctx' or 'context' argument."""

    received_at_ms: int
    client: Optional[Tuple[str, int]] = None
    headers: Dict[str, str] = field(default_factory=dict)
    trace_id: Optional[str] = None


def _now_ms() -> int:
    return int(time.time() * 1000)


def default_ctx() -> Context:
    return Context(received_at_ms=_now_ms())


# --------------------------------------------------------------------------------------
# Method registry
# --------------------------------------------------------------------------------------


class MethodRegistry:
    """
    Name → callable registry with decorator sugar.

    One registry per app: the same process may host differently configured
    services (e.g. inline and path mode) side by side in tests.
    """

    def __init__(self) -> None:
        self._methods: Dict[str, CallableLike] = {}

    def method(self, name: str) -> Callable[[CallableLike], CallableLike]:
        def deco(fn: CallableLike) -> CallableLike:
            if not isinstance(name, str) or not name:
                raise ValueError("Method name must be non-empty string")
            if name in self._methods:
                raise ValueError(f"Method already registered: {name}")
            self._methods[name] = fn
            log.debug("JSON-RPC register %s → %s", name, getattr(fn, "__qualname__", fn))
            return fn

        return deco

    def register(self, name: str, fn: CallableLike) -> None:
        self.method(name)(fn)

    def get(self, name: str) -> CallableLike:
        fn = self._methods.get(name)
        if fn is None:
            raise MethodNotFound(name)
        return fn

    @property
    def names(self) -> List[str]:
        return sorted(self._methods.keys())


# --------------------------------------------------------------------------------------
# Arg binding & execution
# --------------------------------------------------------------------------------------


def _bind_call_args(fn: CallableLike, params: Optional[Params], ctx: Context) -> Tuple[List[Any], Dict[str, Any]]:
    """
    Bind positional/named params to `fn` using its signature. Injects context into
    parameters named 'ctx'/'context' if not provided by the caller.
    """
    sig = inspect.signature(fn)
    args_obj: Params = [] if params is None else params

    try:
        if isinstance(args_obj, list):
            bound = sig.bind_partial(*args_obj)
        elif isinstance(args_obj, dict):
            bound = sig.bind_partial(**args_obj)
        else:
            raise InvalidParams("params must be array or object")
    except TypeError as e:
        raise InvalidParams(str(e))

    for want in ("ctx", "context"):
        if want in sig.parameters and want not in bound.arguments:
            bound.arguments[want] = ctx

    # Required parameters the caller left out are an arity error, not a crash.
    missing = [
        name
        for name, p in sig.parameters.items()
        if p.default is inspect.Parameter.empty
        and p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY)
        and name not in bound.arguments
    ]
    if missing:
        raise InvalidParams(f"missing required params: {', '.join(missing)}")

    return list(bound.args), dict(bound.kwargs)


async def _maybe_await(x: Any) -> Any:
    if inspect.isawaitable(x):
        return await x
    return x


# --------------------------------------------------------------------------------------
# Core dispatch
# --------------------------------------------------------------------------------------

_NO_ID = object()  # sentinel for notification


def _validate_request_obj(obj: Json) -> Tuple[str, Optional[Params], Any]:
    """Return (method, params, id) or raise InvalidRequest/InvalidParams."""
    if not isinstance(obj, dict):
        raise InvalidRequest("Request must be an object")
    if obj.get("jsonrpc") != "2.0":
        raise InvalidRequest("jsonrpc must be '2.0'")

    method = obj.get("method")
    if not isinstance(method, str) or not method:
        raise InvalidRequest("method must be a non-empty string")

    params: Optional[Params] = obj.get("params")
    if params is not None and not isinstance(params, (list, dict)):
        raise InvalidParams("params, if present, must be array or object")

    if "id" not in obj:
        return method, params, _NO_ID
    req_id = obj["id"]
    if not (req_id is None or isinstance(req_id, (str, int, float))) or isinstance(req_id, bool):
        raise InvalidRequest("id must be string, number, or null")
    return method, params, req_id


def _error_obj(exc: BaseException) -> Json:
    return to_error(exc).to_dict()


async def dispatch_one(obj: Json, registry: MethodRegistry, ctx: Context) -> Optional[Json]:
    """Dispatch a single request object. Returns a response object or None (notification)."""
    method_name = obj.get("method") if isinstance(obj.get("method"), str) else "<invalid>"
    with alog.trace_scope(ctx.trace_id), rpc_metrics.observe_jsonrpc(method_name) as obs:
        alog.bind(method=method_name)
        try:
            method_name, params, req_id = _validate_request_obj(obj)
            fn = registry.get(method_name)
            args, kwargs = _bind_call_args(fn, params, ctx)
            result = await _maybe_await(fn(*args, **kwargs))
            obs.ok()
            if req_id is _NO_ID:
                return None
            return {"jsonrpc": "2.0", "id": req_id, "result": result}
        except Exception as exc:
            err = _error_obj(exc)
            obs.error(str(err["code"]))
            if not isinstance(exc, RpcError) and err["code"] == JsonRpcCode.INTERNAL_ERROR:
                if err.get("data", {}).get("stage") == "internal":
                    log.exception("unhandled error in %s", method_name)
                else:
                    log.warning("%s failed: %s", method_name, err["message"])
            req_id = obj.get("id", _NO_ID)
            if req_id is _NO_ID:
                log.debug("Error in notification %s: %s", method_name, exc)
                return None
            return {"jsonrpc": "2.0", "id": req_id, "error": err}


async def dispatch(
    payload: Union[Json, List[Any]], registry: MethodRegistry, ctx: Optional[Context] = None
) -> Union[Json, List[Json], None]:
    """Dispatch a parsed JSON payload (single object or batch)."""
    if ctx is None:
        ctx = default_ctx()

    if isinstance(payload, list):
        if len(payload) == 0:
            return {"jsonrpc": "2.0", "id": None, "error": _error_obj(InvalidRequest("empty batch"))}
        results: List[Json] = []
        for obj in payload:
            if isinstance(obj, dict):
                r = await dispatch_one(obj, registry, ctx)
            else:
                r = {"jsonrpc": "2.0", "id": None, "error": _error_obj(InvalidRequest("Request must be an object"))}
            if r is not None:
                results.append(r)
        return results or None

    if isinstance(payload, dict):
        return await dispatch_one(payload, registry, ctx)

    return {
        "jsonrpc": "2.0",
        "id": None,
        "error": _error_obj(InvalidRequest("payload must be object or array")),
    }


__all__ = ["Context", "MethodRegistry", "default_ctx", "dispatch", "dispatch_one"]
