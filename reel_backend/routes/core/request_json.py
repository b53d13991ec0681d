"""
Safe JSON request parsing with size limits.

Never raises to handlers; always returns a Result.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from aiohttp import web

from reel_backend.config import MAX_JSON_BYTES
from reel_backend.shared import ErrorCode, Result

MIN_JSON_BYTES = 1024
REQUEST_STREAM_CHUNK_BYTES = 16 * 1024


async def _read_json(request: web.Request, *, max_bytes: Optional[int] = None) -> Result[dict]:
    """
    Read and decode a JSON object body with a strict max size.

    Returns:
        Result.Ok(dict) or Result.Err(code, error, ...)
    """
    limit = max(MIN_JSON_BYTES, int(max_bytes) if max_bytes is not None else MAX_JSON_BYTES)

    declared = request.content_length
    if declared is not None and declared > limit:
        return Result.Err(ErrorCode.INVALID_INPUT, f"JSON body too large ({declared} > {limit})", limit=limit)

    buf = bytearray()
    try:
        async for chunk in request.content.iter_chunked(REQUEST_STREAM_CHUNK_BYTES):
            buf.extend(chunk)
            if len(buf) > limit:
                return Result.Err(ErrorCode.INVALID_INPUT, f"JSON body too large (> {limit})", limit=limit)
    except Exception as exc:
        return Result.Err(ErrorCode.INVALID_JSON, f"Failed to read request body: {exc}")
    return _decode_json_object(bytes(buf))


def _decode_json_object(body: bytes) -> Result[dict]:
    try:
        text = body.decode("utf-8", errors="strict")
    except UnicodeDecodeError as exc:
        return Result.Err(ErrorCode.INVALID_JSON, f"Invalid UTF-8 JSON body: {exc}")
    try:
        parsed: Any = json.loads(text) if text else {}
    except json.JSONDecodeError as exc:
        return Result.Err(ErrorCode.INVALID_JSON, f"Invalid JSON body: {exc}")
    if not isinstance(parsed, dict):
        return Result.Err(ErrorCode.INVALID_JSON, "JSON body must be an object")
    return Result.Ok(parsed)
