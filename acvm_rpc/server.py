from __future__ import annotations

import json
import logging
import typing as t

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.responses import JSONResponse

from acvm_core import logging as alog
from acvm_core.version import __version__, version_with_git

from . import config as rpc_config
from .dispatcher import ExecutionDispatcher
from .errors import ParseError, error_response
from .jsonrpc import Context, MethodRegistry, _now_ms, dispatch
from .metrics import mount_metrics
from .middleware import apply_middleware
from .service import ExecutionService

log = logging.getLogger("acvm.rpc.server")

RPC_PATHS = ("/", "/rpc")


def _context_for(request: Request) -> Context:
    client = request.client
    return Context(
        received_at_ms=_now_ms(),
        client=(client.host, client.port) if client else None,
        headers={k.lower(): v for k, v in request.headers.items()},
        trace_id=getattr(request.state, "request_id", None),
    )


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------
def create_app(
    cfg: rpc_config.ServiceConfig | None = None,
    *,
    dispatcher: ExecutionDispatcher | None = None,
) -> FastAPI:
    """
    Build the FastAPI app with:
      - POST / and /rpc   (JSON-RPC: `run`, `rpc.listMethods`)
      - GET  /healthz, /version
      - GET  /metrics     (when metrics are enabled)
    """
    cfg = cfg or rpc_config.load()
    dispatcher = dispatcher or ExecutionDispatcher(cfg.workers, cfg.foreign_call_resolver)

    registry = MethodRegistry()
    service = ExecutionService(cfg, dispatcher)
    service.register(registry)

    app = FastAPI(
        title="ACVM execution service",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = cfg
    app.state.registry = registry
    app.state.dispatcher = dispatcher

    apply_middleware(app, cfg)

    # --- Lifecycle ---
    @app.on_event("startup")
    async def _on_startup() -> None:
        log.info(
            "ACVM RPC server starting",
            extra={
                "host": cfg.host,
                "port": cfg.port,
                "mode": cfg.payload_mode.value,
                "workers": dispatcher.workers,
            },
        )

    @app.on_event("shutdown")
    async def _on_shutdown() -> None:
        log.info("ACVM RPC server stopping")
        dispatcher.shutdown(wait=False)

    # --- Health endpoints ---
    @app.get("/healthz")
    async def healthz() -> JSONResponse:
        return JSONResponse({"ok": True, "mode": cfg.payload_mode.value})

    @app.get("/version")
    async def version() -> JSONResponse:
        return JSONResponse({"version": __version__, "build": version_with_git()})

    # --- JSON-RPC ---
    rpc_router = APIRouter()

    async def rpc_endpoint(request: Request) -> Response:
        try:
            payload = json.loads(await request.body())
        except (UnicodeDecodeError, ValueError) as e:
            err = ParseError(f"Invalid JSON body: {e}")
            return JSONResponse(error_response(None, err))

        result = await dispatch(payload, registry, _context_for(request))
        if result is None:
            return Response(status_code=204)
        return JSONResponse(result)

    for path in RPC_PATHS:
        rpc_router.add_api_route(path, rpc_endpoint, methods=["POST"])
    app.include_router(rpc_router)

    if cfg.metrics_enabled:
        mount_metrics(app)

    return app


# -----------------------------------------------------------------------------
# Entrypoint (uvicorn)
# -----------------------------------------------------------------------------
def main(cfg: t.Optional[rpc_config.ServiceConfig] = None) -> None:
    cfg = cfg or rpc_config.load()
    alog.configure(json=cfg.log_json, level=cfg.log_level)
    app = create_app(cfg)
    import uvicorn

    uvicorn.run(
        app,
        host=cfg.host,
        port=cfg.port,
        log_level=cfg.log_level.lower(),
        workers=1,
    )


if __name__ == "__main__":
    main()
