"""
Probe service: ffprobe results shaped for the catalog and the player.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Optional

from ...adapters.tools.ffprobe import FFProbe
from ...config import PROBE_CACHE_SIZE
from ...shared import get_logger
from ...utils import safe_float, safe_int
from ..catalog.models import ProbeChapter, TrackData
from ..catalog.paths import ConfirmedPath

logger = get_logger(__name__)

SUBTITLE_HANDLER = "SubtitleHandler"


@dataclass(kw_only=True)
class SubtitleTrack:
    index: int
    format: Optional[str] = None
    name: Optional[str] = None


@dataclass(kw_only=True)
class AudioTrack:
    index: int
    format: Optional[str] = None
    language: Optional[str] = None
    name: Optional[str] = None


@dataclass(kw_only=True)
class ProbeGlossary:
    subtitles: list[SubtitleTrack] = field(default_factory=list)
    audio: list[AudioTrack] = field(default_factory=list)


@dataclass(kw_only=True)
class ProbeData:
    glossary: ProbeGlossary
    full: dict[str, Any]


def build_glossary(streams: list) -> ProbeGlossary:
    """Selectable subtitle and audio streams, in stream order."""
    glossary = ProbeGlossary()
    for stream in streams or []:
        if not isinstance(stream, dict):
            continue
        tags = stream.get("tags") or {}
        handler_name = tags.get("handler_name")
        index = safe_int(stream.get("index"))
        if index is None:
            continue
        if (
            stream.get("codec_type") == "subtitle"
            or stream.get("codec_name") == "mov_text"
            or handler_name == SUBTITLE_HANDLER
        ):
            name = f"{tags.get('language')} ({stream.get('codec_long_name')})"
            if handler_name and handler_name != SUBTITLE_HANDLER:
                name = handler_name
            glossary.subtitles.append(SubtitleTrack(index=index, format=stream.get("codec_name"), name=name))
        elif stream.get("codec_type") == "audio":
            glossary.audio.append(
                AudioTrack(
                    index=index,
                    format=stream.get("codec_name"),
                    language=tags.get("language"),
                    name=handler_name,
                )
            )
    return glossary


def _parse_chapters(raw_chapters: list) -> list[ProbeChapter]:
    chapters: list[ProbeChapter] = []
    for raw in raw_chapters or []:
        if not isinstance(raw, dict):
            continue
        tags = raw.get("tags") or {}
        chapters.append(
            ProbeChapter(
                title=tags.get("title") or tags.get("TITLE"),
                start_time=safe_float(raw.get("start_time")) or 0.0,
                end_time=safe_float(raw.get("end_time")),
            )
        )
    return chapters


def track_data_from_probe(full: dict[str, Any]) -> TrackData:
    """Container tags (case-insensitive) plus duration and chapters."""
    fmt = full.get("format") or {}
    tags = {str(k).lower(): v for k, v in (fmt.get("tags") or {}).items()}
    track_number, _, track_total = str(tags.get("track") or "").partition("/")
    return TrackData(
        title=tags.get("title"),
        artist=tags.get("artist"),
        album=tags.get("album"),
        album_artist=tags.get("album_artist"),
        genre=tags.get("genre"),
        year=safe_int(tags.get("date")),
        track_number=safe_int(track_number) if track_number else None,
        track_total=safe_int(track_total) if track_total else None,
        duration=safe_float(fmt.get("duration")),
        chapters=_parse_chapters(full.get("chapters") or []),
    )


class ProbeService:
    """
    ffprobe-backed probe collaborator.

    Results are kept per relative path in a bounded in-memory cache; the
    least recently used entry is evicted first. Failed probes are not cached.
    """

    def __init__(self, ffprobe: FFProbe, cache_size: int = PROBE_CACHE_SIZE):
        self._ffprobe = ffprobe
        self._cache_size = max(1, int(cache_size))
        self._cache: OrderedDict[str, ProbeData] = OrderedDict()

    def is_available(self) -> bool:
        return self._ffprobe.is_available()

    async def get_probe_data(self, path: ConfirmedPath) -> Optional[ProbeData]:
        key = path.relative_path
        cached = self._cache.get(key)
        if cached is not None:
            self._cache.move_to_end(key)
            return cached

        result = await self._ffprobe.aread(str(path.absolute_path))
        if not result.ok or not isinstance(result.data, dict):
            logger.debug("Probe failed for %s: [%s] %s", key, result.code, result.error)
            return None

        data = ProbeData(glossary=build_glossary(result.data.get("streams") or []), full=result.data)
        self._cache[key] = data
        while len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)
        return data

    async def get_track_data(self, path: ConfirmedPath) -> Optional[TrackData]:
        probe = await self.get_probe_data(path)
        if probe is None:
            return None
        return track_data_from_probe(probe.full)

    async def get_duration(self, path: ConfirmedPath) -> Optional[float]:
        probe = await self.get_probe_data(path)
        if probe is None:
            return None
        return safe_float((probe.full.get("format") or {}).get("duration"))

    def clear(self) -> None:
        self._cache.clear()
