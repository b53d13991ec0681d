"""
Configuration for Reel Catalog.
"""
import logging
import os
from pathlib import Path

from .utils import env_bool

logger = logging.getLogger(__name__)


def _env_raw(*names: str, default: str | None = None) -> str | None:
    for name in names:
        if not name:
            continue
        val = os.getenv(name)
        if val is not None and str(val).strip() != "":
            return str(val).strip()
    return default


def _env_int(default: int, *names: str, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_float(default: float, *names: str, min_value: float | None = None, max_value: float | None = None) -> float:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid float for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_bool(default: bool, *names: str) -> bool:
    for name in names:
        if name and name in os.environ:
            return env_bool(name, default)
    return default


def get_media_root() -> Path | None:
    """
    Resolve the media root at call time so tests and long-running
    processes pick up a changed REEL_MEDIA_DIR.
    """
    raw = _env_raw("REEL_MEDIA_DIR", "MEDIA_DIR")
    if not raw:
        return None
    try:
        return Path(raw).expanduser().resolve()
    except (OSError, RuntimeError):
        logger.warning("Failed to resolve REEL_MEDIA_DIR: %s", raw)
        return None


# Filesystem fan-out: maximum simultaneous directory reads per lister
FS_MAX_CONCURRENCY = _env_int(16, "REEL_FS_MAX_CONCURRENCY", min_value=1, max_value=256)

# External tools
FFPROBE_BIN = _env_raw("REEL_FFPROBE_PATH", "REEL_FFPROBE_BIN", default="ffprobe")
FFPROBE_TIMEOUT = _env_float(10.0, "REEL_FFPROBE_TIMEOUT", min_value=1.0, max_value=120.0)
FFPROBE_MAX_WORKERS = _env_int(4, "REEL_FFPROBE_MAX_WORKERS", min_value=1, max_value=32)

# Probe results kept in memory (oldest evicted first)
PROBE_CACHE_SIZE = _env_int(100, "REEL_PROBE_CACHE_SIZE", min_value=1, max_value=100_000)

# Thumbnail references handed to the external thumbnail service
THUMB_PREFIX = str(_env_raw("REEL_THUMB_PREFIX", default="/thumb/") or "/thumb/")
THUMB_WIDTH = _env_int(300, "REEL_THUMB_WIDTH", min_value=16, max_value=4096)
COVER_WIDTH = _env_int(500, "REEL_COVER_WIDTH", min_value=16, max_value=4096)

# Feed generation
FEED_LIMIT = _env_int(10, "REEL_FEED_LIMIT", min_value=1, max_value=500)
FEED_MEMORY_DAYS = _env_int(2, "REEL_FEED_MEMORY_DAYS", min_value=0, max_value=31)

# HTTP server
MAX_JSON_BYTES = _env_int(64 * 1024, "REEL_MAX_JSON_SIZE", min_value=1024, max_value=10 * 1024 * 1024)
HOST = str(_env_raw("REEL_HOST", default="127.0.0.1") or "127.0.0.1")
PORT = _env_int(3000, "REEL_PORT", min_value=1, max_value=65535)
DEBUG = _env_bool(False, "REEL_DEBUG")
