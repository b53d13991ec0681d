"""
Watch progress, bookmark and surprise endpoints.
"""
from aiohttp import web

from reel_backend.shared import ErrorCode, Result, get_logger
from reel_backend.utils import safe_float, safe_int

from ..core import _json_response, _read_json, _require_services
from ._common import _body_path, _query_path

logger = get_logger(__name__)


def _progress_fields(raw) -> Result[dict]:
    if not isinstance(raw, dict):
        return Result.Err(ErrorCode.INVALID_INPUT, "Must provide a progress object")
    time_s = safe_float(raw.get("time"))
    duration = safe_float(raw.get("duration"))
    percentage = safe_float(raw.get("percentage"))
    if time_s is None or duration is None or percentage is None:
        return Result.Err(ErrorCode.INVALID_INPUT, "progress requires numeric time, duration and percentage")
    return Result.Ok(
        {
            "time_s": time_s,
            "duration": duration,
            "percentage": percentage,
            "watched_at": safe_int(raw.get("watchedAt")),
        }
    )


def register_progress_routes(routes: web.RouteTableDef) -> None:
    """Register watch progress and surprise routes."""

    @routes.get("/api/watchProgress")
    async def get_watch_progress(request):
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)

        path, error_result = _query_path(svc, request, "relativePath")
        if error_result:
            return _json_response(error_result)
        return _json_response(Result.Ok(await svc["progress"].get_watch_progress(path.relative_path)))

    @routes.post("/api/watchProgress")
    async def update_watch_progress(request):
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)

        body_res = await _read_json(request)
        if not body_res.ok:
            return _json_response(body_res)
        body = body_res.data
        path, error_result = _body_path(svc, body)
        if error_result:
            return _json_response(error_result)
        fields = _progress_fields(body.get("progress"))
        if not fields.ok:
            return _json_response(fields)

        bookmark = body.get("bookmarkId")
        progress = svc["progress"].update_watch_progress(
            path.relative_path,
            bookmark=str(bookmark) if bookmark else None,
            **fields.data,
        )
        return _json_response(Result.Ok(progress))

    @routes.delete("/api/watchProgress/bookmark")
    async def delete_bookmark(request):
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)

        body_res = await _read_json(request)
        if not body_res.ok:
            return _json_response(body_res)
        body = body_res.data
        path, error_result = _body_path(svc, body)
        if error_result:
            return _json_response(error_result)
        bookmark = body.get("bookmarkId")
        if not bookmark:
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "Must provide a bookmarkId"))

        svc["progress"].delete_bookmark(path.relative_path, str(bookmark))
        return _json_response(Result.Ok(True))

    @routes.post("/api/surprise")
    async def surprise(request):
        """Pin a surprise record to a path, or clear it when no record is sent."""
        svc, error_result = await _require_services()
        if error_result:
            return _json_response(error_result)

        body_res = await _read_json(request)
        if not body_res.ok:
            return _json_response(body_res)
        body = body_res.data
        path, error_result = _body_path(svc, body)
        if error_result:
            return _json_response(error_result)

        record = body.get("record")
        if not record:
            svc["surprise"].delete_surprise(path.relative_path)
            return _json_response(Result.Ok(None))
        if not isinstance(record, dict) or not record.get("pin") or not record.get("until"):
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "record requires pin and until"))
        saved = svc["surprise"].update_surprise(
            path.relative_path, pin=str(record["pin"]), until=str(record["until"])
        )
        logger.info("Surprise pinned on %s", path.relative_path)
        return _json_response(Result.Ok(saved))
