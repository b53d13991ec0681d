"""
Flatten a library subtree into catalog items and leaf files.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from ...shared import get_logger, timer
from .models import AnyCatalogItem, FlatTree, LibraryFile
from .paths import ConfirmedPath, DirectoryLister

logger = get_logger(__name__)

ItemClassifier = Callable[[ConfirmedPath], Awaitable[AnyCatalogItem]]
FileRecordClassifier = Callable[[ConfirmedPath], Awaitable[Optional[LibraryFile]]]


class FlatTreeWalker:
    """
    Visits every folder below a root, classifying folders (non-detailed) and
    leaf files. Sibling subtrees run concurrently; every directory read goes
    through the lister's semaphore, which bounds filesystem fan-out.
    """

    def __init__(self, lister: DirectoryLister, classify_item: ItemClassifier, classify_file: FileRecordClassifier):
        self._lister = lister
        self._classify_item = classify_item
        self._classify_file = classify_file

    async def walk(self, root: ConfirmedPath) -> FlatTree:
        items: list[AnyCatalogItem] = []
        files: list[LibraryFile] = []

        async def visit(path: ConfirmedPath) -> None:
            listing = await self._lister.list_directory(path)
            items.append(await self._classify_item(path))
            records = await asyncio.gather(*(self._classify_file(f.path) for f in listing.files))
            files.extend(record for record in records if record is not None)
            await asyncio.gather(*(visit(folder.path) for folder in listing.folders))

        with timer(f"flatten {root.relative_path or '<root>'}", logger):
            await visit(root)

        items.sort(key=lambda item: item.relative_path)
        files.sort(key=lambda record: record.relative_path)
        logger.debug("Flattened %s: %d items, %d files", root.relative_path or "<root>", len(items), len(files))
        return FlatTree(items=items, files=files)
