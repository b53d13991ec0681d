"""
Catalog browsing endpoints.
"""
import asyncio

from aiohttp import web

from reel_backend.shared import ErrorCode, Result, get_logger

from ..core import _json_response, _read_json, _require_services
from ._common import _body_path, _query_path, _resolve

logger = get_logger(__name__)


async def _probe_glossary(svc: dict, path):
    """Selectable subtitle/audio streams for a playable file, when ffprobe is around."""
    probe = svc.get("probe")
    get_probe_data = getattr(probe, "get_probe_data", None)
    if get_probe_data is None:
        return None
    if not await asyncio.to_thread(path.absolute_path.is_file):
        return None
    data = await get_probe_data(path)
    return data.glossary if data is not None else None


def register_catalog_routes(routes: web.RouteTableDef) -> None:
    """Register directory, library and playable routes."""

    @routes.get("/api/dir")
    async def directory(request):
        """Classified item for a folder plus its files and child folders."""
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)

        path, error_result = _query_path(svc, request, "dir", required=False)
        if error_result:
            return _json_response(error_result)
        return _json_response(await svc["catalog"].directory_view(path))

    @routes.get("/api/theaterData")
    async def theater_data(request):
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)

        path, error_result = _query_path(svc, request, "relativePath")
        if error_result:
            return _json_response(error_result)

        lookup = await svc["catalog"].resolve_playable(path)
        if not lookup.ok:
            return _json_response(lookup)
        glossary = await _probe_glossary(svc, path)
        return _json_response(
            Result.Ok(
                {
                    "playable": lookup.data.playable,
                    "parentLibrary": lookup.data.parent_library,
                    "probe": glossary,
                }
            )
        )

    @routes.get("/api/nextEpisode")
    async def next_episode(request):
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)

        path, error_result = _query_path(svc, request, "relativePath")
        if error_result:
            return _json_response(error_result)
        return _json_response(await svc["catalog"].next_episode(path))

    @routes.get("/api/rootLibraries")
    async def root_libraries(request):
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)
        return _json_response(await svc["catalog"].root_libraries())

    @routes.get("/api/rootLibrary/{name}/flat")
    async def root_library_flat(request):
        """Every catalog item and file under one root library."""
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)

        name = request.match_info.get("name", "")
        if "/" in name or name in ("", ".", ".."):
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "Invalid library name"))
        path, error_result = _resolve(svc, name)
        if error_result:
            return _json_response(error_result)
        return _json_response(await svc["catalog"].flatten(path))

    @routes.post("/api/reload")
    async def reload(request):
        """Recompute one path's cached record."""
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)

        body_res = await _read_json(request)
        if not body_res.ok:
            return _json_response(body_res)
        path, error_result = _body_path(svc, body_res.data)
        if error_result:
            return _json_response(error_result)

        logger.info("Reload requested for %s", path.relative_path)
        return _json_response(await svc["catalog"].reload(path))
