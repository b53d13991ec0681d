"""
Route registration system.
Coordinates all route handlers and registers them with an aiohttp app.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from aiohttp import web

from reel_backend.observability import ensure_observability
from reel_backend.shared import get_logger

from .handlers import (
    register_catalog_routes,
    register_feed_routes,
    register_health_routes,
    register_progress_routes,
)

API_PREFIX = "/api/"
_APP_KEY_ROUTES_REGISTERED: web.AppKey[bool] = web.AppKey("_reel_routes_registered", bool)

logger = get_logger(__name__)


@web.middleware
async def security_headers_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    """Apply strict headers to API responses only."""
    response = await handler(request)
    if not request.path.startswith(API_PREFIX):
        return response

    response.headers.setdefault("Content-Security-Policy", "default-src 'none'")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Cache-Control", "no-store")
    return response


def build_routes() -> web.RouteTableDef:
    routes = web.RouteTableDef()
    register_health_routes(routes)
    register_catalog_routes(routes)
    register_progress_routes(routes)
    register_feed_routes(routes)
    return routes


def register_routes(app: web.Application) -> None:
    """Register every route and middleware on `app` (idempotent)."""
    if app.get(_APP_KEY_ROUTES_REGISTERED):
        logger.debug("Routes already registered")
        return
    ensure_observability(app)
    app.middlewares.append(security_headers_middleware)
    routes = build_routes()
    app.add_routes(routes)
    app[_APP_KEY_ROUTES_REGISTERED] = True
    logger.info("Registered %d routes", len(routes))
