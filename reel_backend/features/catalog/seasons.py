"""
Season and episode reconstruction for series folders.

Season folders are read concurrently. Video files tagged `sXXeYY` become
episode files; anything else becomes an extra of the folder's own season.
An episode file is grouped under the season named by its own tag, so a
misfiled episode still lands in the right season while the folder's season
record keeps its extras.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence

from ...shared import get_logger, is_video_file
from .collaborators import ProbeCollaborator, call_quietly
from .extras import prepare_extras
from .models import Episode, EpisodeFile, Extra, Season
from .naming import EpisodeTokens, parse_episode_tokens, parse_name_pieces, parse_season_number
from .paths import ConfirmedPath, DirEntry, DirectoryLister

logger = get_logger(__name__)


def episode_boundaries(tokens: EpisodeTokens) -> list[tuple[int, Optional[int]]]:
    """
    (episode number, start ms) for every episode a file covers.

    The implicit boundary {first, 0} wins over a repeated offset token for
    the same episode; episodes inside a `-eZZ` range without an offset token
    get a None start.
    """
    starts: dict[int, Optional[int]] = {tokens.first_episode: 0}
    for number, start in tokens.offsets:
        starts.setdefault(number, start)
    if tokens.last_episode is not None:
        for number in range(tokens.first_episode, tokens.last_episode + 1):
            starts.setdefault(number, None)
    return sorted(starts.items(), key=lambda pair: pair[0])


class SeasonEpisodeExtractor:
    def __init__(self, lister: DirectoryLister, probe: Optional[ProbeCollaborator] = None):
        self._lister = lister
        self._probe = probe

    async def extract(self, season_folders: Sequence[ConfirmedPath], series_name: str, year: str) -> list[Season]:
        folder_results = await asyncio.gather(
            *(self._read_season_folder(folder, series_name, year) for folder in season_folders)
        )

        seasons: dict[int, Season] = {}
        for folder_number, _, extras in folder_results:
            record = seasons.setdefault(folder_number, Season(season_number=folder_number))
            record.extras.extend(extras)
        for _, episode_files, _ in folder_results:
            for episode_file in episode_files:
                record = seasons.setdefault(
                    episode_file.season_number, Season(season_number=episode_file.season_number)
                )
                record.episode_files.append(episode_file)

        for record in seasons.values():
            record.episode_files.sort(key=lambda f: (f.first_episode_number, f.file_name))
        return [seasons[number] for number in sorted(seasons)]

    async def _read_season_folder(
        self, folder: ConfirmedPath, series_name: str, year: str
    ) -> tuple[int, list[EpisodeFile], list[Extra]]:
        listing = await self._lister.list_directory(folder)
        folder_number = parse_season_number(folder.name)

        extra_names: list[str] = []
        pending = []
        for entry in listing.files:
            if not is_video_file(entry.name):
                continue
            tokens = parse_episode_tokens(entry.name)
            if tokens is None:
                extra_names.append(entry.name)
            else:
                pending.append(self._build_episode_file(entry, tokens, series_name, year))

        episode_files = list(await asyncio.gather(*pending))
        return folder_number, episode_files, prepare_extras(extra_names, folder)

    async def _build_episode_file(
        self, entry: DirEntry, tokens: EpisodeTokens, series_name: str, year: str
    ) -> EpisodeFile:
        duration = None
        if self._probe is not None:
            duration = await call_quietly(self._probe.get_duration(entry.path), f"probe {entry.path.relative_path}")

        season = tokens.season_number
        version = parse_name_pieces(entry.name).version
        episodes = [
            Episode(
                name=f"S{season}:E{number}",
                series_name=series_name,
                year=year,
                version=version,
                file_name=entry.name,
                relative_path=entry.path.relative_path,
                season_number=season,
                episode_number=number,
                start_time=start,
            )
            for number, start in episode_boundaries(tokens)
        ]
        if tokens.has_multiple_episodes:
            name = f"Episodes {tokens.first_episode} - {tokens.last_episode}"
        else:
            name = f"S{season}:E{tokens.first_episode}"
        return EpisodeFile(
            name=name,
            series_name=series_name,
            year=year,
            version=version,
            file_name=entry.name,
            relative_path=entry.path.relative_path,
            duration=duration,
            season_number=season,
            first_episode_number=tokens.first_episode,
            has_multiple_episodes=tokens.has_multiple_episodes,
            episodes=episodes,
        )
