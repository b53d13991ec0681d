"""Shared utilities for Reel Catalog."""
from .errors import sanitize_error_message
from .log import get_logger, log_structured, log_success, request_id_var
from .result import Result
from .time import ms, timer
from .types import (
    EXTENSIONS,
    ErrorCode,
    FileKind,
    classify_file,
    file_extension,
    is_audio_file,
    is_video_file,
)

__all__ = [
    "Result",
    "get_logger",
    "log_success",
    "log_structured",
    "request_id_var",
    "ms",
    "timer",
    "FileKind",
    "ErrorCode",
    "EXTENSIONS",
    "classify_file",
    "file_extension",
    "is_audio_file",
    "is_video_file",
    "sanitize_error_message",
]
