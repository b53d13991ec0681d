"""
Extras: bonus videos beside a movie, series, season or collection.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ...config import THUMB_PREFIX, THUMB_WIDTH
from ...shared import is_video_file
from .models import Extra
from .naming import extra_name_and_type
from .paths import ConfirmedPath


def thumb_reference(relative_path: str, width: int, prefix: Optional[str] = None) -> str:
    """Reference handed to the external thumbnail service."""
    base = prefix if prefix is not None else THUMB_PREFIX
    if not base.endswith("/"):
        base += "/"
    return f"{base}{relative_path}?width={int(width)}"


def prepare_extras(file_names: Iterable[str], parent: ConfirmedPath) -> list[Extra]:
    """Turn the `.mp4` names among `file_names` into extras of `parent`."""
    extras: list[Extra] = []
    for file_name in file_names:
        if not is_video_file(file_name):
            continue
        name, extra_type = extra_name_and_type(file_name)
        relative_path = parent.append(file_name).relative_path
        extras.append(
            Extra(
                name=name,
                extra_type=extra_type,
                file_name=file_name,
                relative_path=relative_path,
                still_thumb=thumb_reference(relative_path, THUMB_WIDTH),
            )
        )
    return extras
