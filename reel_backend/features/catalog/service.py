"""
Catalog service: the single entry point over the media root.

Owns the cache tiers and composes path resolution, classification, the
flat-tree walker and the playable resolver. Every public operation returns
a Result; collaborator failures degrade to missing decorations.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from pathlib import Path
from typing import Any, Optional

from ...shared import ErrorCode, Result, get_logger, log_structured, sanitize_error_message
from .cache import CatalogCache
from .collaborators import (
    InMemorySurpriseService,
    InMemoryWatchProgressService,
    MetadataService,
    NullMetadataService,
    NullProbeService,
    ProbeCollaborator,
    SurpriseService,
    WatchProgressService,
    call_quietly,
)
from .files import FileClassifier
from .models import (
    DETAILED_ITEM_TYPES,
    AnyCatalogItem,
    DirectoryFolder,
    DirectoryView,
    Episode,
    FlatTree,
    LibraryFile,
    LibraryItem,
    PlayableLookup,
)
from .paths import ConfirmedPath, DirectoryLister, PathResolver
from .playable import PlayableResolver
from .resolver import CatalogResolver
from .walker import FlatTreeWalker

logger = get_logger(__name__)

# Nested records that may carry a watch_progress join
_PROGRESS_ATTRIBUTES = ("movie", "extras", "seasons", "episode_files", "episodes", "tracks", "chapters")


class CatalogService:
    def __init__(
        self,
        media_root: Path,
        *,
        probe: Optional[ProbeCollaborator] = None,
        metadata: Optional[MetadataService] = None,
        progress: Optional[WatchProgressService] = None,
        surprise: Optional[SurpriseService] = None,
        lister: Optional[DirectoryLister] = None,
        read_exif: bool = True,
    ):
        self.media_root = Path(media_root)
        self.paths = PathResolver(self.media_root)
        self.lister = lister or DirectoryLister()
        self.probe = probe or NullProbeService()
        self.metadata = metadata or NullMetadataService()
        self.progress = progress or InMemoryWatchProgressService()
        self.surprise = surprise or InMemorySurpriseService()
        self.cache = CatalogCache()
        self.resolver = CatalogResolver(self.lister, self.probe)
        self.file_classifier = FileClassifier(read_exif=read_exif)
        self.walker = FlatTreeWalker(self.lister, self._classify_for_walk, self._file_record)
        self.playables = PlayableResolver(self._classify_for_playback)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def resolve_path(self, relative: Optional[str]) -> Result[ConfirmedPath]:
        return self.paths.resolve(relative)

    async def classify(
        self, path: ConfirmedPath, detailed: bool = False, with_metadata: bool = True
    ) -> Result[AnyCatalogItem]:
        try:
            return Result.Ok(await self._classify(path, detailed=detailed, with_metadata=with_metadata))
        except Exception as exc:
            logger.error("Classification failed for %s: %s", path.relative_path, exc, exc_info=True)
            return Result.Err(ErrorCode.CLASSIFY_FAILED, sanitize_error_message(exc, "Classification failed"))

    async def flatten(self, path: ConfirmedPath) -> Result[FlatTree]:
        try:
            tree = await self.walker.walk(path)
        except Exception as exc:
            logger.error("Flatten failed for %s: %s", path.relative_path, exc, exc_info=True)
            return Result.Err(ErrorCode.WALK_FAILED, sanitize_error_message(exc, "Flatten failed"))
        return Result.Ok(tree, items=len(tree.items), files=len(tree.files))

    async def resolve_playable(self, path: ConfirmedPath) -> Result[PlayableLookup]:
        try:
            return Result.Ok(await self.playables.resolve(path))
        except Exception as exc:
            logger.error("Playable lookup failed for %s: %s", path.relative_path, exc, exc_info=True)
            return Result.Err(ErrorCode.PLAYABLE_FAILED, sanitize_error_message(exc, "Playable lookup failed"))

    async def next_episode(self, path: ConfirmedPath) -> Result[Optional[Episode]]:
        try:
            return Result.Ok(await self.playables.next_episode(path))
        except Exception as exc:
            logger.error("Next episode lookup failed for %s: %s", path.relative_path, exc, exc_info=True)
            return Result.Err(ErrorCode.PLAYABLE_FAILED, sanitize_error_message(exc, "Next episode lookup failed"))

    async def reload(self, path: ConfirmedPath) -> Result[AnyCatalogItem]:
        """
        Recompute one path and swap its cache entries.

        The new record is computed before anything is dropped, so a failure
        leaves the previous entries in place. Children and ancestors keep
        whatever they had cached.
        """
        key = path.relative_path
        try:
            fresh = await self.resolver.compute_item(path)
            details = None
            if fresh.type in DETAILED_ITEM_TYPES:
                details = await self.resolver.compute_details(path, fresh)
        except Exception as exc:
            logger.error("Reload failed for %s: %s", key, exc, exc_info=True)
            return Result.Err(ErrorCode.RELOAD_FAILED, sanitize_error_message(exc, "Reload failed"))

        self.cache.replace_item(key, fresh, details)
        log_structured(logger, logging.INFO, "Catalog entry reloaded", relative_path=key, type=fresh.type)
        return await self.classify(path, detailed=True)

    async def root_libraries(self) -> Result[list[LibraryItem]]:
        try:
            listing = await self.lister.list_directory(self.paths.root)
            items = await asyncio.gather(*(self._classify(f.path, detailed=True) for f in listing.folders))
        except Exception as exc:
            logger.error("Root library scan failed: %s", exc, exc_info=True)
            return Result.Err(ErrorCode.CLASSIFY_FAILED, sanitize_error_message(exc, "Root library scan failed"))
        return Result.Ok([item for item in items if isinstance(item, LibraryItem)])

    async def directory_view(self, path: ConfirmedPath) -> Result[DirectoryView]:
        try:
            listing = await self.lister.list_directory(path)
            item = await self._classify(path, detailed=True)
            children = await asyncio.gather(*(self._classify(f.path, detailed=True) for f in listing.folders))
        except Exception as exc:
            logger.error("Directory view failed for %s: %s", path.relative_path, exc, exc_info=True)
            return Result.Err(ErrorCode.CLASSIFY_FAILED, sanitize_error_message(exc, "Directory view failed"))

        folders = [
            DirectoryFolder(folder_name=entry.name, library_item=child)
            for entry, child in zip(listing.folders, children)
        ]
        folders.sort(key=lambda folder: folder.library_item.sort_key)
        return Result.Ok(DirectoryView(library_item=item, files=[f.name for f in listing.files], folders=folders))

    def empty_caches(self) -> Result[dict[str, int]]:
        before = self.cache.stats()
        self.cache.clear()
        return Result.Ok(before)

    # ------------------------------------------------------------------
    # Classification and decoration
    # ------------------------------------------------------------------

    async def _classify(self, path: ConfirmedPath, detailed: bool = False, with_metadata: bool = True) -> AnyCatalogItem:
        key = path.relative_path
        base = await self.cache.get_item(key, lambda: self.resolver.compute_item(path))

        # Cached records are shared; decoration works on a copy
        item = copy.deepcopy(base)
        if detailed and base.type in DETAILED_ITEM_TYPES:
            details = await self.cache.get_details(key, lambda: self.resolver.compute_details(path, base))
            item = copy.deepcopy(details).apply_to(item)

        listing = await self.lister.list_directory(path)
        item.children = [folder.path.relative_path for folder in listing.folders]
        item.surprise = await call_quietly(self.surprise.get_surprise(key), f"surprise {key}")
        if with_metadata and item.type == "cinema":
            item.metadata = await call_quietly(
                self.metadata.get_metadata(item.cinema_type, path, detailed), f"metadata {key}"
            )
        await self._join_progress(item)
        return item

    async def _classify_for_walk(self, path: ConfirmedPath) -> AnyCatalogItem:
        return await self._classify(path, detailed=False, with_metadata=False)

    async def _classify_for_playback(self, path: ConfirmedPath) -> AnyCatalogItem:
        return await self._classify(path, detailed=True, with_metadata=True)

    async def _file_record(self, path: ConfirmedPath) -> Optional[LibraryFile]:
        return await self.cache.get_file(path.relative_path, lambda: self.file_classifier.classify(path))

    async def _join_progress(self, record: Any) -> None:
        """Attach watch progress to `record` and every nested playable."""
        pending = []
        if hasattr(record, "watch_progress"):
            pending.append(self._set_progress(record))
        for attr in _PROGRESS_ATTRIBUTES:
            value = getattr(record, attr, None)
            if value is None:
                continue
            children = value if isinstance(value, list) else [value]
            pending.extend(self._join_progress(child) for child in children)
        if pending:
            await asyncio.gather(*pending)

    async def _set_progress(self, record: Any) -> None:
        key = record.relative_path
        record.watch_progress = await call_quietly(self.progress.get_watch_progress(key), f"watch progress {key}")
