"""
Request-id correlation and request logging for the HTTP layer.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

from aiohttp import web

from .shared import get_logger, log_structured, request_id_var

logger = get_logger(__name__)

_APP_KEY_OBSERVABILITY_INSTALLED: web.AppKey[bool] = web.AppKey("_reel_observability_installed", bool)
_SLOW_REQUEST_MS = 1000.0
_MAX_REQUEST_ID_LEN = 64


def _new_request_id() -> str:
    return uuid.uuid4().hex


def _get_request_id(request: web.Request) -> str:
    incoming = (request.headers.get("X-Request-ID") or "").strip()
    if incoming and len(incoming) <= _MAX_REQUEST_ID_LEN and incoming.isprintable():
        return incoming
    return _new_request_id()


def _response_status_code(response: Any) -> int:
    try:
        return int(getattr(response, "status", 200) or 200)
    except (TypeError, ValueError):
        return 200


@web.middleware
async def request_context_middleware(request: web.Request, handler):
    """Add request-id correlation and log slow or failed requests."""
    rid = _get_request_id(request)
    request["reel_request_id"] = rid
    token = request_id_var.set(rid)
    start = time.perf_counter()
    status: int | None = None
    try:
        response = await handler(request)
        status = _response_status_code(response)
        response.headers["X-Request-ID"] = rid
        return response
    except web.HTTPException as exc:
        status = exc.status
        raise
    except Exception:
        status = 500
        raise
    finally:
        duration_ms = (time.perf_counter() - start) * 1000.0
        request_id_var.reset(token)
        _emit_request_log(request, status=status, duration_ms=duration_ms)


def _emit_request_log(request: web.Request, *, status: int | None, duration_ms: float) -> None:
    fields = {
        "method": request.method,
        "path": request.path,
        "status": status,
        "duration_ms": round(duration_ms, 1),
    }
    if status is not None and status >= 500:
        log_structured(logger, logging.ERROR, "Request failed", **fields)
    elif status is not None and status >= 400:
        log_structured(logger, logging.WARNING, "Request rejected", **fields)
    elif duration_ms >= _SLOW_REQUEST_MS:
        log_structured(logger, logging.INFO, "Slow request", **fields)
    else:
        logger.debug("%s %s -> %s (%.1fms)", request.method, request.path, status, duration_ms)


def ensure_observability(app: web.Application) -> None:
    """Install middleware once."""
    if app.get(_APP_KEY_OBSERVABILITY_INSTALLED):
        return
    app.middlewares.append(request_context_middleware)
    app[_APP_KEY_OBSERVABILITY_INSTALLED] = True
