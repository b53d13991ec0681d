"""
Dependency injection - builds services.
Simple, debug-friendly DI without framework magic.
"""

from pathlib import Path

from .adapters.tools import FFProbe
from .config import FFPROBE_BIN, FFPROBE_TIMEOUT, PROBE_CACHE_SIZE, get_media_root
from .features.catalog import (
    CatalogService,
    FeedBuilder,
    InMemorySurpriseService,
    InMemoryWatchProgressService,
    NullMetadataService,
    NullProbeService,
)
from .features.probe import ProbeService
from .shared import ErrorCode, Result, get_logger, log_success

logger = get_logger(__name__)


def _resolve_media_dir(media_dir: str | Path | None) -> Result[Path]:
    raw = media_dir if media_dir is not None else get_media_root()
    if raw is None:
        return Result.Err(ErrorCode.INVALID_INPUT, "No media directory configured (set REEL_MEDIA_DIR)")
    try:
        path = Path(raw).expanduser().resolve()
    except (OSError, RuntimeError) as exc:
        return Result.Err(ErrorCode.INVALID_INPUT, f"Invalid media directory: {exc}")
    if not path.is_dir():
        return Result.Err(ErrorCode.INVALID_INPUT, "Media directory does not exist or is not a directory")
    return Result.Ok(path)


def _init_tools() -> FFProbe:
    return FFProbe(bin_name=FFPROBE_BIN or "ffprobe", timeout=FFPROBE_TIMEOUT)


def _log_tool_availability(ffprobe: FFProbe) -> None:
    if ffprobe.is_available():
        log_success(logger, "ffprobe is available")
    else:
        logger.warning("ffprobe not found - durations, tracks and chapters will be missing")


def _build_probe(ffprobe: FFProbe):
    if ffprobe.is_available():
        return ProbeService(ffprobe, cache_size=PROBE_CACHE_SIZE)
    return NullProbeService()


def _build_services_dict(
    ffprobe: FFProbe,
    probe,
    metadata: NullMetadataService,
    progress: InMemoryWatchProgressService,
    surprise: InMemorySurpriseService,
    catalog: CatalogService,
) -> dict:
    return {
        "ffprobe": ffprobe,
        "probe": probe,
        "metadata": metadata,
        "progress": progress,
        "surprise": surprise,
        "catalog": catalog,
        "feeds": FeedBuilder(catalog, progress),
    }


async def build_services(media_dir: str | Path | None = None) -> Result[dict]:
    """
    Build all services (DI container).

    Args:
        media_dir: Media root (default: REEL_MEDIA_DIR)

    Returns:
        Result[dict] of service instances
    """
    logger.info("Building services...")
    root_res = _resolve_media_dir(media_dir)
    if not root_res.ok:
        logger.error("Failed to resolve media directory: %s", root_res.error)
        return Result.Err(root_res.code, root_res.error or "Invalid media directory")
    media_root = root_res.data
    logger.info("Media root: %s", media_root)

    ffprobe = _init_tools()
    _log_tool_availability(ffprobe)
    probe = _build_probe(ffprobe)

    metadata = NullMetadataService()
    progress = InMemoryWatchProgressService()
    surprise = InMemorySurpriseService()
    catalog = CatalogService(
        media_root,
        probe=probe,
        metadata=metadata,
        progress=progress,
        surprise=surprise,
    )

    services = _build_services_dict(ffprobe, probe, metadata, progress, surprise, catalog)
    log_success(logger, "All services initialized")
    return Result.Ok(services)
