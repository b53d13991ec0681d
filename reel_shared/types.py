"""
Shared types, enums, and constants.
"""
import os
from enum import Enum
from typing import Final, Literal, Optional

# Leaf file classifications
FileKind = Literal["photo", "video", "audio", "unknown"]


class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_JSON = "INVALID_JSON"
    NOT_FOUND = "NOT_FOUND"

    # Feature / service availability
    DEGRADED = "DEGRADED"
    TOOL_MISSING = "TOOL_MISSING"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"

    # Catalog operations
    CLASSIFY_FAILED = "CLASSIFY_FAILED"
    WALK_FAILED = "WALK_FAILED"
    RELOAD_FAILED = "RELOAD_FAILED"
    PLAYABLE_FAILED = "PLAYABLE_FAILED"
    FEED_FAILED = "FEED_FAILED"

    # Tool / parsing
    FFPROBE_ERROR = "FFPROBE_ERROR"
    PARSE_ERROR = "PARSE_ERROR"


# File extensions by type (lowercase, with dot)
EXTENSIONS: Final[dict[FileKind, set[str]]] = {
    "photo": {".jpg", ".jpeg", ".png", ".gif"},
    "video": {".mp4", ".3gp", ".3g2"},
    "audio": {".mp3", ".m4a", ".m4b", ".aac"},
    "unknown": set(),
}

VIDEO_EXTENSION: Final[str] = ".mp4"
CHAPTERED_AUDIO_EXTENSION: Final[str] = ".m4b"


def file_extension(filename: str) -> str:
    """Lowercased extension of `filename` including the dot, or ''."""
    return os.path.splitext(filename)[1].lower()


def classify_file(filename: str) -> FileKind:
    """
    Classify file by extension.

    Args:
        filename: File name or path

    Returns:
        File kind (photo, video, audio, unknown)
    """
    ext = file_extension(filename)

    for kind, exts in EXTENSIONS.items():
        if ext in exts:
            return kind

    return "unknown"


def is_audio_file(filename: str) -> bool:
    return file_extension(filename) in EXTENSIONS["audio"]


def is_video_file(filename: Optional[str]) -> bool:
    return bool(filename) and str(filename).lower().endswith(VIDEO_EXTENSION)
