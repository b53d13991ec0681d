"""
Shared path normalization and safety helpers.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from urllib.parse import unquote

AMP_PLACEHOLDER = "<amp>"


def decode_media_path(value: str) -> str:
    """Decode a client path: URL-unquote first so literal '<' survives, then restore '&'."""
    return unquote(str(value or "")).replace(AMP_PLACEHOLDER, "&")


def safe_rel_path(value: str | None) -> PurePosixPath | None:
    """
    Validate a root-relative path.

    Returns None for absolute paths, drive letters, NUL bytes and '..' segments.
    """
    if value is None:
        return PurePosixPath("")
    raw = str(value).strip().replace("\\", "/")
    if raw == "":
        return PurePosixPath("")
    if "\x00" in raw:
        return None
    if len(raw) >= 2 and raw[1] == ":":
        return None
    rel = PurePosixPath(raw)
    if rel.is_absolute():
        return None
    if any(part == ".." for part in rel.parts):
        return None
    return rel


def is_within_root(candidate: Path, root: Path) -> bool:
    try:
        root_resolved = root.resolve(strict=True)
        cand_resolved = candidate.resolve(strict=True)
    except (OSError, RuntimeError, ValueError):
        return False
    try:
        return cand_resolved == root_resolved or cand_resolved.is_relative_to(root_resolved)
    except AttributeError:
        try:
            common = os.path.commonpath([str(cand_resolved), str(root_resolved)])
            return os.path.normcase(common) == os.path.normcase(str(root_resolved))
        except ValueError:
            return False


def join_relative(parent: str, segment: str) -> str:
    """Join relative path pieces with '/', never producing a leading slash."""
    parent = str(parent or "").strip("/")
    segment = str(segment or "").strip("/")
    if not parent:
        return segment
    if not segment:
        return parent
    return f"{parent}/{segment}"
