"""Backend-facing alias for shared utilities.

Backend modules import from here so the shared package can move without
touching every feature module.
"""

from __future__ import annotations

import reel_shared as _root_shared
from reel_shared.types import CHAPTERED_AUDIO_EXTENSION, EXTENSIONS, VIDEO_EXTENSION

Result = _root_shared.Result
ErrorCode = _root_shared.ErrorCode
get_logger = _root_shared.get_logger
log_success = _root_shared.log_success
log_structured = _root_shared.log_structured
ms = _root_shared.ms
request_id_var = _root_shared.request_id_var
classify_file = _root_shared.classify_file
file_extension = _root_shared.file_extension
is_audio_file = _root_shared.is_audio_file
is_video_file = _root_shared.is_video_file
sanitize_error_message = _root_shared.sanitize_error_message
timer = _root_shared.timer
FileKind = _root_shared.FileKind

__all__ = [
    "Result",
    "ErrorCode",
    "get_logger",
    "log_success",
    "log_structured",
    "request_id_var",
    "classify_file",
    "file_extension",
    "is_audio_file",
    "is_video_file",
    "FileKind",
    "EXTENSIONS",
    "CHAPTERED_AUDIO_EXTENSION",
    "VIDEO_EXTENSION",
    "sanitize_error_message",
    "timer",
    "ms",
]
