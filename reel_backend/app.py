"""
aiohttp application factory and process entry point.
"""

from __future__ import annotations

from pathlib import Path

from aiohttp import web

from .config import DEBUG, HOST, PORT
from .deps import build_services
from .routes import register_routes
from .routes.core import install_services
from .shared import get_logger, log_success

logger = get_logger(__name__)


def create_app(services: dict | None = None, media_dir: str | Path | None = None) -> web.Application:
    """
    Build the HTTP application.

    Pass `services` to serve an existing container; otherwise one is built on
    startup from `media_dir` (default: REEL_MEDIA_DIR).
    """
    app = web.Application()
    register_routes(app)

    async def _startup(_app: web.Application) -> None:
        if services is not None:
            install_services(services)
            return
        result = await build_services(media_dir)
        if not result.ok:
            logger.error("Catalog unavailable: [%s] %s", result.code, result.error)
            return
        install_services(result.data)

    async def _cleanup(_app: web.Application) -> None:
        install_services(None)

    app.on_startup.append(_startup)
    app.on_cleanup.append(_cleanup)
    return app


def main() -> None:
    app = create_app()
    log_success(logger, f"Serving on http://{HOST}:{PORT}")
    web.run_app(app, host=HOST, port=PORT, print=None, access_log=logger if DEBUG else None)


if __name__ == "__main__":
    main()
