from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from acvm_core import logging as alog

_LOG = logging.getLogger("acvm.rpc.access")


def _client_ip(request: Request) -> str:
    # X-Forwarded-For is informational only.
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    client = request.client
    return client.host if client else "-"


def _detect_jsonrpc_method(b: bytes) -> Optional[str]:
    if not b:
        return None
    try:
        obj = json.loads(b.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None

    if isinstance(obj, dict):
        m = obj.get("method")
        return m if isinstance(m, str) else None
    if isinstance(obj, list) and obj and isinstance(obj[0], dict):
        m = obj[0].get("method")
        return m if isinstance(m, str) else None
    return None


def _ensure_request_id(request: Request) -> str:
    return request.headers.get("x-request-id") or request.headers.get("x-trace-id") or uuid.uuid4().hex[:12]


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Structured access logging with request ids.

    One line per HTTP request:
      {"event":"http_request","req_id":"…","method":"POST","path":"/",
       "status":200,"duration_ms":12.34,"client_ip":"127.0.0.1",
       "jsonrpc_method":"run","bytes_in":4711}

    The request id comes from `X-Request-ID` (or `X-Trace-ID`) when present,
    is echoed back in the response and becomes the `trace_id` of every log
    record emitted while the request is handled. Request bodies are never
    logged; witnesses may be private.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        req_id = _ensure_request_id(request)
        start = time.perf_counter()
        method = request.method
        path = request.url.path

        # Starlette caches the body, so downstream handlers can read it again.
        body = await request.body() if method == "POST" else b""
        jsonrpc_method = _detect_jsonrpc_method(body)

        status = 500
        exc_info: Optional[BaseException] = None
        with alog.trace_scope(req_id):
            request.state.request_id = req_id
            try:
                response: Response = await call_next(request)
                status = response.status_code
                response.headers["X-Request-ID"] = req_id
                return response
            except Exception as e:
                exc_info = e
                raise
            finally:
                record: Dict[str, Any] = {
                    "event": "http_request",
                    "req_id": req_id,
                    "method": method,
                    "path": path,
                    "status": status,
                    "duration_ms": round((time.perf_counter() - start) * 1000.0, 3),
                    "client_ip": _client_ip(request),
                    "bytes_in": len(body),
                }
                if jsonrpc_method:
                    record["jsonrpc_method"] = jsonrpc_method

                line = json.dumps(record, separators=(",", ":"))
                if exc_info is None and status < 400:
                    _LOG.info(line)
                elif exc_info is None:
                    _LOG.warning(line)
                else:
                    _LOG.error(line, exc_info=exc_info)


__all__ = ["LoggingMiddleware"]
