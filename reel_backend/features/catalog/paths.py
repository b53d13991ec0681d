"""
Confirmed paths and directory enumeration under the media root.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ...config import FS_MAX_CONCURRENCY
from ...path_utils import is_within_root, join_relative, safe_rel_path
from ...shared import ErrorCode, Result, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConfirmedPath:
    """
    An (absolute, root-relative) pair verified to exist when first resolved.

    Children derived with `append` are not re-checked; the pair may go stale
    if the filesystem changes afterwards.
    """
    absolute_path: Path
    relative_path: str

    @property
    def name(self) -> str:
        if not self.relative_path:
            return ""
        return self.relative_path.rsplit("/", 1)[-1]

    @property
    def depth(self) -> int:
        """Number of segments below the media root; the root itself is 0."""
        return len([p for p in self.relative_path.split("/") if p])

    def append(self, segment: str) -> "ConfirmedPath":
        return ConfirmedPath(
            absolute_path=self.absolute_path / segment,
            relative_path=join_relative(self.relative_path, segment),
        )

    def ancestors(self) -> list["ConfirmedPath"]:
        """Ancestors from the immediate parent upward, excluding the media root."""
        parts = [p for p in self.relative_path.split("/") if p]
        out: list[ConfirmedPath] = []
        for i in range(len(parts) - 1, 0, -1):
            out.append(
                ConfirmedPath(
                    absolute_path=self.absolute_path.parents[len(parts) - i - 1],
                    relative_path="/".join(parts[:i]),
                )
            )
        return out


class PathResolver:
    """Maps client-relative paths onto existing locations under the media root."""

    def __init__(self, media_root: Path):
        self._root_path = Path(media_root)
        self.root = ConfirmedPath(absolute_path=self._root_path, relative_path="")

    def resolve(self, relative: Optional[str]) -> Result[ConfirmedPath]:
        raw = str(relative or "").strip().lstrip("/")
        rel = safe_rel_path(raw)
        if rel is None:
            return Result.Err(ErrorCode.INVALID_INPUT, f"Invalid path: {relative}")
        rel_str = "/".join(rel.parts)
        if not rel_str:
            return Result.Ok(self.root)

        candidate = self._root_path / rel_str
        try:
            exists = candidate.exists()
        except OSError:
            exists = False
        if not exists or not is_within_root(candidate, self._root_path):
            return Result.Err(ErrorCode.NOT_FOUND, f"Path not found: {rel_str}")
        return Result.Ok(ConfirmedPath(absolute_path=candidate, relative_path=rel_str))


@dataclass(frozen=True)
class DirEntry:
    name: str
    path: ConfirmedPath


@dataclass(frozen=True)
class DirectoryListing:
    folders: tuple[DirEntry, ...] = ()
    files: tuple[DirEntry, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.folders and not self.files


class DirectoryLister:
    """
    Lists immediate children of a confirmed path.

    Reads run in worker threads, at most `max_concurrency` at a time. A
    failed read is logged and reported as an empty listing.
    """

    def __init__(self, max_concurrency: Optional[int] = None):
        self.max_concurrency = max(1, int(max_concurrency or FS_MAX_CONCURRENCY))
        self._semaphore = asyncio.Semaphore(self.max_concurrency)

    async def list_directory(self, path: ConfirmedPath) -> DirectoryListing:
        async with self._semaphore:
            try:
                return await asyncio.to_thread(self._scan, path)
            except OSError as exc:
                logger.warning("Error reading directory %s: %s", path.relative_path or "<root>", exc)
                return DirectoryListing()

    @staticmethod
    def _scan(path: ConfirmedPath) -> DirectoryListing:
        folders: list[DirEntry] = []
        files: list[DirEntry] = []
        with os.scandir(path.absolute_path) as it:
            for entry in it:
                if entry.name.startswith("."):
                    continue
                target = DirEntry(name=entry.name, path=path.append(entry.name))
                try:
                    if entry.is_dir(follow_symlinks=False):
                        folders.append(target)
                    else:
                        files.append(target)
                except OSError:
                    continue
        folders.sort(key=lambda e: e.name)
        files.sort(key=lambda e: e.name)
        return DirectoryListing(folders=tuple(folders), files=tuple(files))
