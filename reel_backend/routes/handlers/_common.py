"""
Request helpers shared by catalog handlers.
"""
from __future__ import annotations

from aiohttp import web

from reel_backend.features.catalog import ConfirmedPath
from reel_backend.path_utils import decode_media_path
from reel_backend.shared import ErrorCode, Result


def _query_path(
    svc: dict, request: web.Request, param: str, *, required: bool = True
) -> tuple[ConfirmedPath | None, Result | None]:
    """Resolve a media path carried in a query parameter."""
    raw = request.query.get(param)
    if raw is None or str(raw).strip() == "":
        if required:
            return None, Result.Err(ErrorCode.INVALID_INPUT, f"Requires {param} query param")
        raw = ""
    return _resolve(svc, decode_media_path(raw))


def _body_path(svc: dict, body: dict, key: str = "relativePath") -> tuple[ConfirmedPath | None, Result | None]:
    raw = body.get(key)
    if not isinstance(raw, str) or not raw.strip():
        return None, Result.Err(ErrorCode.INVALID_INPUT, f"Must provide a valid {key}")
    return _resolve(svc, raw)


def _resolve(svc: dict, relative: str) -> tuple[ConfirmedPath | None, Result | None]:
    path_res = svc["catalog"].resolve_path(relative)
    if not path_res.ok:
        return None, path_res
    return path_res.data, None
