"""
Home feed lists derived from root libraries and flat trees.
"""

from __future__ import annotations

import asyncio
import math
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from ...config import FEED_LIMIT, FEED_MEMORY_DAYS
from ...shared import ErrorCode, Result, get_logger, sanitize_error_message
from .collaborators import InMemoryWatchProgressService
from .models import AnyCatalogItem, LibraryFile, LibraryItem, WatchProgress
from .naming import parse_name_pieces
from .paths import ConfirmedPath
from .service import CatalogService

logger = get_logger(__name__)

CINEMA_ITEM_TYPES = frozenset({"movie", "series"})


@dataclass(kw_only=True)
class FeedEntry:
    title: str
    relative_path: str
    metadata: Any = None
    library_item: Any = None
    watch_progress: Optional[WatchProgress] = None
    is_up_next: bool = False
    created_at: Optional[datetime] = None


@dataclass(kw_only=True)
class FeedSection:
    title: str
    type: str
    items: list[Any] = field(default_factory=list)


def _created_at(path: ConfirmedPath) -> Optional[datetime]:
    try:
        st = os.stat(path.absolute_path)
    except OSError:
        return None
    stamp = getattr(st, "st_birthtime", None) or st.st_ctime
    return datetime.fromtimestamp(stamp)


def _newest_first(value: Optional[datetime]) -> tuple[int, float]:
    # undated entries sort last
    return (1, 0.0) if value is None else (0, -value.timestamp())


def is_memory(taken_at: Optional[datetime], today: date, day_range: int) -> bool:
    """Taken in an earlier year within `day_range` days of today's month/day."""
    if taken_at is None or taken_at.year >= today.year:
        return False
    today_dt = datetime(today.year, today.month, today.day)
    for year in (today.year - 1, today.year, today.year + 1):
        try:
            shifted = taken_at.replace(year=year)
        except ValueError:
            # Feb 29 in a non-leap year
            shifted = taken_at.replace(year=year, day=28)
        diff_days = math.ceil(abs((shifted - today_dt).total_seconds()) / 86400)
        if diff_days <= day_range:
            return True
    return False


class FeedBuilder:
    def __init__(self, catalog: CatalogService, progress: Optional[InMemoryWatchProgressService] = None):
        self._catalog = catalog
        self._progress = progress

    async def _root_libraries(self) -> list[LibraryItem]:
        result = await self._catalog.root_libraries()
        if not result.ok:
            logger.warning("Root libraries unavailable: %s", result.error)
            return []
        return list(result.data or [])

    async def _flat_trees(self, library_type: str, libraries: Optional[list[LibraryItem]] = None):
        if libraries is None:
            libraries = await self._root_libraries()
        trees = []
        for library in (lib for lib in libraries if lib.library_type == library_type):
            path_res = self._catalog.resolve_path(library.relative_path)
            if not path_res.ok:
                continue
            tree_res = await self._catalog.flatten(path_res.data)
            if tree_res.ok and tree_res.data is not None:
                trees.append(tree_res.data)
        return trees

    async def new_cinema_items(
        self, limit: int = FEED_LIMIT, libraries: Optional[list[LibraryItem]] = None
    ) -> list[FeedEntry]:
        """Movies and series from cinema libraries, newest on disk first."""
        items: list[AnyCatalogItem] = [
            item
            for tree in await self._flat_trees("cinema", libraries)
            for item in tree.items
            if getattr(item, "cinema_type", None) in CINEMA_ITEM_TYPES
        ]

        async def _entry(item: AnyCatalogItem) -> FeedEntry:
            created = None
            path_res = self._catalog.resolve_path(item.relative_path)
            if path_res.ok:
                created = await asyncio.to_thread(_created_at, path_res.data)
            return FeedEntry(
                title=item.name,
                relative_path=item.relative_path,
                metadata=item.metadata,
                library_item=item,
                created_at=created,
            )

        entries = await asyncio.gather(*(_entry(item) for item in items))
        return sorted(entries, key=lambda e: _newest_first(e.created_at))[:limit]

    async def _all_photos(self, libraries: Optional[list[LibraryItem]] = None) -> list[LibraryFile]:
        photos = [
            record
            for tree in await self._flat_trees("photos", libraries)
            for record in tree.files
            if record.type == "photo"
        ]
        return sorted(photos, key=lambda p: _newest_first(p.taken_at))

    async def recent_photos(self, limit: int = FEED_LIMIT, photos: Optional[list[LibraryFile]] = None) -> list[LibraryFile]:
        if photos is None:
            photos = await self._all_photos()
        return photos[:limit]

    async def memories(
        self,
        today: Optional[date] = None,
        day_range: int = FEED_MEMORY_DAYS,
        photos: Optional[list[LibraryFile]] = None,
    ) -> list[LibraryFile]:
        today = today or date.today()
        if photos is None:
            photos = await self._all_photos()
        return [p for p in photos if is_memory(p.taken_at, today, day_range)]

    async def continue_watching(self) -> list[FeedEntry]:
        """Unfinished items, with the episode after the last finished one up front."""
        if self._progress is None:
            return []
        entries: list[FeedEntry] = []

        last_finished = self._progress.last_finished_episode()
        if last_finished is not None:
            path_res = self._catalog.resolve_path(last_finished.relative_path)
            if path_res.ok:
                next_res = await self._catalog.next_episode(path_res.data)
                if next_res.ok and next_res.data is not None:
                    episode = next_res.data
                    entries.append(
                        FeedEntry(
                            title=episode.series_name,
                            relative_path=episode.relative_path,
                            library_item=episode,
                            is_up_next=True,
                        )
                    )

        for progress in self._progress.continue_watching():
            path_res = self._catalog.resolve_path(progress.relative_path)
            # progress may outlive the file it points to
            if not path_res.ok:
                continue
            lookup = await self._catalog.resolve_playable(path_res.data)
            entries.append(
                FeedEntry(
                    title=parse_name_pieces(progress.relative_path).name,
                    relative_path=progress.relative_path,
                    watch_progress=progress,
                    library_item=lookup.data if lookup.ok else None,
                )
            )
        return entries

    async def build_feed(self, today: Optional[date] = None) -> Result[list[FeedSection]]:
        try:
            libraries = await self._root_libraries()
            photos = await self._all_photos(libraries)
            cinema = await self.new_cinema_items(libraries=libraries)
            sections = [
                FeedSection(title="Continue Watching", type="continue-watching", items=await self.continue_watching()),
                FeedSection(title="New Movies and Shows", type="cinema-items", items=cinema),
                FeedSection(title="Recent Photos", type="photos", items=await self.recent_photos(photos=photos)),
                FeedSection(title="Memories", type="photos", items=await self.memories(today, photos=photos)),
            ]
        except Exception as exc:
            logger.error("Feed build failed: %s", exc, exc_info=True)
            return Result.Err(ErrorCode.FEED_FAILED, sanitize_error_message(exc, "Feed build failed"))
        return Result.Ok([section for section in sections if section.items])
