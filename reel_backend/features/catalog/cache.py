"""
Catalog cache tiers.

Three independent maps keyed by relative path:

- items:   base classification; library/folder/collection are never stored
- details: seasons, tracks, chapters and extras
- files:   leaf file records, including None for unrecognized files

Invalidation is single-path: replacing an entry never touches its children
or ancestors, so an ancestor's view can stay stale until it is reloaded too.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from ...shared import get_logger
from .models import UNCACHED_ITEM_TYPES, AnyCatalogItem, ItemDetails, LibraryFile

logger = get_logger(__name__)

T = TypeVar("T")


class SingleFlight:
    """Coalesces concurrent computations of the same key into one task."""

    def __init__(self):
        self._inflight: dict[str, asyncio.Task] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(fn())
            self._inflight[key] = task
            task.add_done_callback(lambda done, k=key: self._forget(k, done))
        # A cancelled caller must not cancel the shared computation
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]


def is_cacheable_item(item: AnyCatalogItem) -> bool:
    return item.type not in UNCACHED_ITEM_TYPES


class CatalogCache:
    def __init__(self):
        self.items: dict[str, AnyCatalogItem] = {}
        self.details: dict[str, ItemDetails] = {}
        self.files: dict[str, Optional[LibraryFile]] = {}
        self._item_flight = SingleFlight()
        self._detail_flight = SingleFlight()
        self._file_flight = SingleFlight()

    async def get_item(self, key: str, compute: Callable[[], Awaitable[AnyCatalogItem]]) -> AnyCatalogItem:
        cached = self.items.get(key)
        if cached is not None:
            return cached

        async def _compute() -> AnyCatalogItem:
            item = await compute()
            if is_cacheable_item(item):
                self.items[key] = item
            return item

        return await self._item_flight.do(key, _compute)

    async def get_details(self, key: str, compute: Callable[[], Awaitable[ItemDetails]]) -> ItemDetails:
        cached = self.details.get(key)
        if cached is not None:
            return cached

        async def _compute() -> ItemDetails:
            details = await compute()
            self.details[key] = details
            return details

        return await self._detail_flight.do(key, _compute)

    async def get_file(
        self, key: str, compute: Callable[[], Awaitable[Optional[LibraryFile]]]
    ) -> Optional[LibraryFile]:
        if key in self.files:
            return self.files[key]

        async def _compute() -> Optional[LibraryFile]:
            record = await compute()
            self.files[key] = record
            return record

        return await self._file_flight.do(key, _compute)

    def replace_item(self, key: str, item: AnyCatalogItem, details: Optional[ItemDetails] = None) -> None:
        """Swap one item entry and its details; nothing else is touched."""
        self.items.pop(key, None)
        if is_cacheable_item(item):
            self.items[key] = item
        self.details.pop(key, None)
        if details is not None:
            self.details[key] = details

    def clear(self) -> None:
        self.items.clear()
        self.details.clear()
        self.files.clear()
        logger.debug("Catalog caches cleared")

    def stats(self) -> dict[str, int]:
        return {
            "items": len(self.items),
            "details": len(self.details),
            "files": len(self.files),
        }
