import json
import logging

import pytest

from reel_backend.path_utils import decode_media_path, join_relative, safe_rel_path
from reel_backend.utils import parse_bool, safe_float, safe_int
from reel_shared import ErrorCode, Result, classify_file, is_video_file, sanitize_error_message
from reel_shared.log import EmojiFormatter, get_logger, log_structured, request_id_var


def test_result_ok_err_and_map():
    ok = Result.Ok(2, source="test")
    assert ok.map(lambda v: v * 3).data == 6
    assert ok.map(lambda v: v * 3).meta == {"source": "test"}

    err = Result.Err(ErrorCode.NOT_FOUND, "missing")
    assert err.code == "NOT_FOUND"
    assert err.map(lambda v: v * 3) is err
    assert err.unwrap_or("fallback") == "fallback"
    with pytest.raises(ValueError, match="NOT_FOUND"):
        err.unwrap()


def test_sanitize_error_message_masks_paths():
    message = sanitize_error_message(OSError("cannot open /srv/media/Movies/secret.mp4"), "Walk failed")
    assert message.startswith("Walk failed: ")
    assert "/srv/media" not in message
    assert "[path]" in message
    assert sanitize_error_message(None, "Nope") == "Nope"
    assert sanitize_error_message("", "") == "An error occurred"


@pytest.mark.parametrize(
    "value, expected",
    [("yes", True), ("Off", False), ("2", True), ("0.0", False), (1, True), ("maybe", False)],
)
def test_parse_bool(value, expected):
    assert parse_bool(value) is expected


def test_safe_int_reads_leading_digits():
    assert safe_int("12abc") == 12
    assert safe_int("-3") == -3
    assert safe_int("abc") is None
    assert safe_int(None) is None
    assert safe_float("1.5") == 1.5
    assert safe_float([]) is None


def test_decode_media_path_restores_ampersands():
    assert decode_media_path("Tom%20<amp>%20Jerry") == "Tom & Jerry"
    assert decode_media_path("Tom <amp> Jerry") == "Tom & Jerry"
    assert decode_media_path(None) == ""


@pytest.mark.parametrize("value", ["../x", "/etc", "C:/media", "a/\x00b", "a/../b"])
def test_safe_rel_path_rejects_escapes(value):
    assert safe_rel_path(value) is None


def test_safe_rel_path_and_join():
    assert str(safe_rel_path("Movies\\Heat (1995)")) == "Movies/Heat (1995)"
    assert str(safe_rel_path("")) == "."
    assert join_relative("", "Movies") == "Movies"
    assert join_relative("Movies/", "/Heat (1995)") == "Movies/Heat (1995)"


def test_classify_file_by_extension():
    assert classify_file("a.JPG") == "photo"
    assert classify_file("a.m4b") == "audio"
    assert classify_file("a.mkv") == "unknown"
    assert is_video_file("clip.MP4")
    assert not is_video_file(None)


def test_structured_log_carries_request_id():
    records: list[logging.LogRecord] = []

    class _Collect(logging.Handler):
        def emit(self, record):
            records.append(record)

    logger = get_logger("reel_backend.tests.structured")
    handler = _Collect()
    logger.addHandler(handler)
    token = request_id_var.set("rid-7")
    try:
        log_structured(logger, logging.WARNING, "Request rejected", path="/api/dir", status=404)
    finally:
        request_id_var.reset(token)
        logger.removeHandler(handler)

    payload = json.loads(records[0].getMessage())
    assert payload["message"] == "Request rejected"
    assert payload["context"] == {"path": "/api/dir", "status": 404}
    assert "[rid-7]" in EmojiFormatter().format(records[0])
