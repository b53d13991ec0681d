"""
Collaborator interfaces consumed by the catalog, plus in-process defaults.

The catalog only depends on the Protocols; deps.build_services() wires the
defaults below unless callers supply their own.
"""

from __future__ import annotations

from typing import Any, Awaitable, Optional, Protocol, TypeVar, runtime_checkable

from ...shared import get_logger, ms
from .models import Bookmark, SurpriseRecord, TrackData, WatchProgress
from .naming import media_type_from_path
from .paths import ConfirmedPath

logger = get_logger(__name__)

# Percentage at which an item counts as finished
FINISHED_PERCENTAGE = 90.0
RECENT_LIMIT = 50

T = TypeVar("T")


async def call_quietly(awaitable: Awaitable[T], label: str) -> Optional[T]:
    """Await a collaborator call; failures become None."""
    try:
        return await awaitable
    except Exception as exc:
        logger.debug("%s failed: %s", label, exc)
        return None


@runtime_checkable
class ProbeCollaborator(Protocol):
    async def get_track_data(self, path: ConfirmedPath) -> Optional[TrackData]:
        ...

    async def get_duration(self, path: ConfirmedPath) -> Optional[float]:
        ...


@runtime_checkable
class MetadataService(Protocol):
    async def get_metadata(self, media_type: str, path: ConfirmedPath, detailed: bool = False) -> Any:
        ...


@runtime_checkable
class WatchProgressService(Protocol):
    async def get_watch_progress(self, relative_path: str) -> Optional[WatchProgress]:
        ...


@runtime_checkable
class SurpriseService(Protocol):
    async def get_surprise(self, relative_path: str) -> Optional[SurpriseRecord]:
        ...


class NullProbeService:
    """Probe stand-in when ffprobe is unavailable: every lookup misses."""

    async def get_track_data(self, path: ConfirmedPath) -> Optional[TrackData]:
        return None

    async def get_duration(self, path: ConfirmedPath) -> Optional[float]:
        return None


class NullMetadataService:
    """No remote metadata provider configured."""

    async def get_metadata(self, media_type: str, path: ConfirmedPath, detailed: bool = False) -> Any:
        return None


def _is_episode_path(relative_path: str) -> bool:
    return media_type_from_path(relative_path) == "series"


class InMemoryWatchProgressService:
    """Watch progress and bookmarks keyed by relative path, kept in memory."""

    def __init__(self):
        self._watching: dict[str, WatchProgress] = {}
        self._bookmarks: dict[str, dict[str, Bookmark]] = {}

    def update_watch_progress(
        self,
        relative_path: str,
        *,
        time_s: float,
        duration: float,
        percentage: float,
        watched_at: Optional[int] = None,
        bookmark: Optional[str] = None,
    ) -> WatchProgress:
        stamp = int(watched_at) if watched_at is not None else ms()
        progress = WatchProgress(
            time=float(time_s),
            duration=float(duration),
            percentage=float(percentage),
            watched_at=stamp,
            relative_path=relative_path,
        )
        self._watching[relative_path] = progress
        if bookmark:
            self._bookmarks.setdefault(relative_path, {})[bookmark] = Bookmark(
                name=bookmark,
                time=progress.time,
                duration=progress.duration,
                percentage=progress.percentage,
                watched_at=stamp,
                relative_path=relative_path,
            )
        return progress

    def delete_bookmark(self, relative_path: str, bookmark: str) -> None:
        self._bookmarks.get(relative_path, {}).pop(bookmark, None)

    async def get_watch_progress(self, relative_path: str) -> Optional[WatchProgress]:
        progress = self._watching.get(relative_path)
        if progress is None:
            return None
        return WatchProgress(
            time=progress.time,
            duration=progress.duration,
            percentage=progress.percentage,
            watched_at=progress.watched_at,
            relative_path=progress.relative_path,
            bookmarks=list(self._bookmarks.get(relative_path, {}).values()),
        )

    def recently_watched(self, limit: int = RECENT_LIMIT) -> list[WatchProgress]:
        ordered = sorted(self._watching.values(), key=lambda p: p.watched_at, reverse=True)
        return ordered[:limit]

    def _latest_per_series(self) -> list[WatchProgress]:
        seen_series: set[str] = set()
        out: list[WatchProgress] = []
        for progress in self.recently_watched():
            if _is_episode_path(progress.relative_path):
                series = "/".join(progress.relative_path.split("/")[:-2])
                if series in seen_series:
                    continue
                seen_series.add(series)
            out.append(progress)
        return out

    def continue_watching(self) -> list[WatchProgress]:
        """Unfinished items, newest first, one episode per series."""
        return [p for p in self._latest_per_series() if p.percentage < FINISHED_PERCENTAGE]

    def last_finished_episode(self) -> Optional[WatchProgress]:
        """Most recent finished episode that is also its series' latest."""
        for progress in self._latest_per_series():
            if _is_episode_path(progress.relative_path) and progress.percentage >= FINISHED_PERCENTAGE:
                return progress
        return None


class InMemorySurpriseService:
    """Surprise covers keyed by relative path."""

    def __init__(self):
        self._surprises: dict[str, SurpriseRecord] = {}

    def update_surprise(self, relative_path: str, *, pin: str, until: str) -> SurpriseRecord:
        record = SurpriseRecord(relative_path=relative_path, pin=pin, until=until)
        self._surprises[relative_path] = record
        return record

    def delete_surprise(self, relative_path: str) -> None:
        self._surprises.pop(relative_path, None)

    async def get_surprise(self, relative_path: str) -> Optional[SurpriseRecord]:
        return self._surprises.get(relative_path)
