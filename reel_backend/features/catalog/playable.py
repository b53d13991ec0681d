"""
Find the catalog entry that owns a media file, and the playable inside it.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from ...shared import get_logger
from .models import (
    PLAYABLE_ITEM_TYPES,
    AnyCatalogItem,
    AnyPlayable,
    Episode,
    EpisodeFile,
    MovieItem,
    PlayableLookup,
    SeriesItem,
)
from .paths import ConfirmedPath

logger = get_logger(__name__)

DetailedClassifier = Callable[[ConfirmedPath], Awaitable[AnyCatalogItem]]


def find_playable(parent: AnyCatalogItem, relative_path: str) -> Optional[AnyPlayable]:
    """Search extras, then the movie, then the series' episode files."""
    for extra in getattr(parent, "extras", None) or []:
        if extra.relative_path == relative_path:
            return extra

    if isinstance(parent, MovieItem) and parent.movie.relative_path == relative_path:
        return parent.movie

    if isinstance(parent, SeriesItem):
        for season in parent.seasons or []:
            for episode_file in season.episode_files:
                if episode_file.relative_path == relative_path:
                    return episode_file
        for season in parent.seasons or []:
            for extra in season.extras:
                if extra.relative_path == relative_path:
                    return extra

    for leaf in (getattr(parent, "tracks", None) or []) + (getattr(parent, "chapters", None) or []):
        if leaf.relative_path == relative_path:
            return leaf
    return None


def flatten_episodes(series: SeriesItem) -> list[Episode]:
    """All episodes in storage order: seasons, then files, then episodes."""
    return [
        episode
        for season in series.seasons or []
        for episode_file in season.episode_files
        for episode in episode_file.episodes
    ]


class PlayableResolver:
    def __init__(self, classify_detailed: DetailedClassifier):
        self._classify = classify_detailed

    async def resolve(self, path: ConfirmedPath) -> PlayableLookup:
        parent: Optional[AnyCatalogItem] = None
        for ancestor in path.ancestors():
            item = await self._classify(ancestor)
            if item.type != "folder":
                parent = item
                break

        playable = find_playable(parent, path.relative_path) if parent is not None else None

        # The target may itself be the playable, e.g. an album folder
        if playable is None and await asyncio.to_thread(path.absolute_path.is_dir):
            target = await self._classify(path)
            if target.type in PLAYABLE_ITEM_TYPES:
                playable = target

        if playable is None:
            logger.warning("No playable found for %s", path.relative_path)
        return PlayableLookup(parent_library=parent, playable=playable)

    async def next_episode(self, path: ConfirmedPath) -> Optional[Episode]:
        """
        The episode after the first one stored at `path`, in season order.

        Linear in the number of episodes of the series.
        """
        lookup = await self.resolve(path)
        if not isinstance(lookup.playable, EpisodeFile) or not isinstance(lookup.parent_library, SeriesItem):
            return None
        episodes = flatten_episodes(lookup.parent_library)
        for index, episode in enumerate(episodes):
            if episode.relative_path == path.relative_path:
                return episodes[index + 1] if index + 1 < len(episodes) else None
        return None
