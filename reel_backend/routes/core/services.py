"""
Service management and initialization.
"""
import asyncio
import threading
from typing import Any

from reel_backend.deps import build_services
from reel_backend.shared import ErrorCode, Result, get_logger

logger = get_logger(__name__)

_services = None
_services_error = None
_services_lock: asyncio.Lock | None = None
_services_lock_guard = threading.Lock()


def _get_services_lock() -> asyncio.Lock:
    global _services_lock
    if _services_lock is not None:
        return _services_lock
    with _services_lock_guard:
        if _services_lock is None:
            _services_lock = asyncio.Lock()
        return _services_lock


async def _build_services(force: bool = False):
    global _services, _services_error
    async with _get_services_lock():
        if _services and not force:
            return _services

        try:
            services_result = await build_services()
        except Exception as exc:
            _services_error = str(exc)
            logger.error("Failed to initialize services: %s", exc, exc_info=True)
            _services = None
            return None

        if not services_result or not getattr(services_result, "ok", False):
            _services_error = getattr(services_result, "error", None) or "Initialization failed"
            logger.error("Failed to initialize services: %s", _services_error)
            _services = None
            return None

        _services = services_result.data
        _services_error = None
        return _services


def install_services(services: dict | None) -> None:
    """Use an already-built service container (app startup, tests)."""
    global _services, _services_error
    _services = services
    _services_error = None


async def _require_services() -> tuple[dict[str, Any] | None, Result[Any] | None]:
    services = await _build_services()
    if services:
        return services, None
    return None, Result.Err(
        ErrorCode.SERVICE_UNAVAILABLE,
        "Services are unavailable",
        detail=_services_error or "Initialization failed",
    )


def get_services_error():
    """Get the current services error if any."""
    return _services_error
