"""
Middleware wiring for the execution service.

`apply_middleware(app, cfg)` installs, outermost first:
1) request logging (request id, timing, JSON-RPC method)
2) HTTP metrics (only when metrics are enabled)
"""

from __future__ import annotations

from fastapi import FastAPI

from ..config import ServiceConfig
from .logging import LoggingMiddleware


def apply_middleware(app: FastAPI, cfg: ServiceConfig) -> None:
    # Starlette runs the last-added middleware first.
    if cfg.metrics_enabled:
        from ..metrics import http_metrics_middleware

        app.add_middleware(http_metrics_middleware)
    app.add_middleware(LoggingMiddleware)


__all__ = ["apply_middleware", "LoggingMiddleware"]
