"""
Leaf file classification (photo / video / audio) with a taken-at timestamp.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from PIL import Image, ExifTags

from ...shared import classify_file, file_extension, get_logger
from .models import LibraryFile
from .naming import base_name, parse_taken_at
from .paths import ConfirmedPath

logger = get_logger(__name__)

_EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"
_EXIF_DATE_TAGS = ("DateTimeOriginal", "DateTimeDigitized", "DateTime")


def _safe_image_exif_dict(img: Any) -> Dict[str, Any]:
    try:
        exif = img.getexif()
    except Exception:
        return {}
    if not exif:
        return {}
    out: Dict[str, Any] = {}
    for tag_id, value in dict(exif).items():
        out[ExifTags.TAGS.get(tag_id, str(tag_id))] = value
    # DateTimeOriginal lives in the Exif sub-IFD
    try:
        for tag_id, value in exif.get_ifd(ExifTags.IFD.Exif).items():
            out[ExifTags.TAGS.get(tag_id, str(tag_id))] = value
    except (AttributeError, KeyError, ValueError):
        pass
    return out


def _parse_exif_date(value: Any) -> Optional[datetime]:
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    text = str(value or "").strip().rstrip("\x00")
    if not text:
        return None
    try:
        return datetime.strptime(text[:19], _EXIF_DATE_FORMAT)
    except ValueError:
        return None


def read_exif_taken_at(path: Path) -> Optional[datetime]:
    """Capture time from a photo's EXIF block, or None."""
    try:
        with Image.open(path) as img:
            exif_map = _safe_image_exif_dict(img)
    except Exception as exc:
        logger.debug("EXIF read failed for %s: %s", path, exc)
        return None
    for tag_name in _EXIF_DATE_TAGS:
        taken_at = _parse_exif_date(exif_map.get(tag_name))
        if taken_at is not None:
            return taken_at
    return None


class FileClassifier:
    """Builds LibraryFile records; None for unrecognized extensions."""

    def __init__(self, read_exif: bool = True):
        self.read_exif = read_exif

    async def classify(self, path: ConfirmedPath) -> Optional[LibraryFile]:
        file_name = base_name(path.relative_path)
        kind = classify_file(file_name)
        if kind == "unknown":
            return None

        taken_at = parse_taken_at(file_name)
        if taken_at is None and kind == "photo" and self.read_exif:
            taken_at = await asyncio.to_thread(read_exif_taken_at, path.absolute_path)

        return LibraryFile(
            type=kind,
            file_type=file_extension(file_name).lstrip("."),
            file_name=file_name,
            relative_path=path.relative_path,
            list_name=file_name,
            sort_key=(taken_at.isoformat() if taken_at else "") + file_name,
            taken_at=taken_at,
        )
