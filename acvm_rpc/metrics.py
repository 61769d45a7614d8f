from __future__ import annotations

"""
Prometheus metrics for the execution service.

- Exposes a /metrics endpoint (text/plain; version=0.0.4).
- HTTP request counters & latency histograms (middleware).
- JSON-RPC method counters and latency (explicit hooks in the dispatcher).
- Circuit execution latency and failures by stage (explicit hooks in the service).

Usage
-----
from acvm_rpc.metrics import mount_metrics, http_metrics_middleware, rpc_metrics

app = FastAPI()
mount_metrics(app)
app.add_middleware(http_metrics_middleware)

with rpc_metrics.observe_jsonrpc("run") as obs:
    result = handler(...)
    obs.ok()
"""

import time
import typing as t
from contextlib import contextmanager

from fastapi import FastAPI, Request
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

REG = REGISTRY


# ---- Metric definitions ----------------------------------------------------

HTTP_REQUESTS = Counter(
    "acvm_http_requests_total",
    "Total HTTP requests by method and path and status.",
    ["method", "path", "status"],
    registry=REG,
)

HTTP_LATENCY = Histogram(
    "acvm_http_request_duration_seconds",
    "HTTP request duration in seconds by method and path.",
    ["method", "path"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
    registry=REG,
)

JSONRPC_CALLS = Counter(
    "acvm_jsonrpc_requests_total",
    "Total JSON-RPC method calls by method, status and error code.",
    ["method", "status", "code"],
    registry=REG,
)

JSONRPC_LATENCY = Histogram(
    "acvm_jsonrpc_request_duration_seconds",
    "JSON-RPC method latency in seconds by method.",
    ["method"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, 2, 5, 10, 30, 60),
    registry=REG,
)

EXECUTION_LATENCY = Histogram(
    "acvm_circuit_execution_seconds",
    "Wall time of circuit executions on the solver pool, by payload mode.",
    ["mode"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, 5, 10, 30, 60, 300),
    registry=REG,
)

EXECUTION_FAILURES = Counter(
    "acvm_execution_failures_total",
    "Failed run requests by stage (decode, circuit-deserialize, execute, filesystem, parse, serialize, internal).",
    ["stage"],
    registry=REG,
)


# ---- HTTP Middleware -------------------------------------------------------


def _short_path(path: str) -> str:
    # Keep label cardinality bounded.
    if path in ("/", "/rpc", "/metrics", "/healthz", "/version"):
        return path
    return "/other"


class _HttpMetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        method = request.method.upper()
        path = _short_path(request.url.path)
        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            HTTP_REQUESTS.labels(method=method, path=path, status="500").inc()
            HTTP_LATENCY.labels(method=method, path=path).observe(time.perf_counter() - start)
            raise
        HTTP_REQUESTS.labels(method=method, path=path, status=str(response.status_code)).inc()
        HTTP_LATENCY.labels(method=method, path=path).observe(time.perf_counter() - start)
        return response


http_metrics_middleware = _HttpMetricsMiddleware


# ---- JSON-RPC / execution hooks -------------------------------------------


class _RpcObservation:
    __slots__ = ("_method", "_start", "_ended")

    def __init__(self, method: str) -> None:
        self._method = method
        self._start = time.perf_counter()
        self._ended = False

    def _finish(self, status: str, code: str = "0") -> None:
        if self._ended:
            return
        self._ended = True
        JSONRPC_CALLS.labels(method=self._method, status=status, code=code).inc()
        JSONRPC_LATENCY.labels(method=self._method).observe(time.perf_counter() - self._start)

    def ok(self) -> None:
        self._finish("ok")

    def error(self, code: str = "internal") -> None:
        self._finish("error", code)


class _RpcMetrics:
    @contextmanager
    def observe_jsonrpc(self, method: str) -> t.Iterator[_RpcObservation]:
        obs = _RpcObservation(method)
        try:
            yield obs
        except BaseException:
            obs.error()
            raise
        finally:
            # Unmarked observations count as successes.
            obs.ok()

    def execution_time(self, mode: str, seconds: float) -> None:
        EXECUTION_LATENCY.labels(mode=mode).observe(seconds)

    def execution_failed(self, stage: str) -> None:
        EXECUTION_FAILURES.labels(stage=stage).inc()


rpc_metrics = _RpcMetrics()


# ---- Endpoint --------------------------------------------------------------


def mount_metrics(app: FastAPI) -> None:
    @app.get("/metrics")
    def metrics() -> Response:
        return Response(generate_latest(REG), media_type=CONTENT_TYPE_LATEST)


__all__ = ["mount_metrics", "http_metrics_middleware", "rpc_metrics"]
