"""
Folder classification.

Rules are ordered, first match wins:

1. year + a child folder containing "season"        -> series
2. year + an .mp4 whose own name/year match          -> movie
3. only audio files                                  -> audiobook / album
4. depth-1 folder with a representative leaf below   -> library
5. every child folder carries a year                 -> collection
6. anything else                                     -> folder

Base records are cheap; details (seasons, tracks, chapters, extras) are
computed separately by `compute_details`.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from ...config import COVER_WIDTH, THUMB_WIDTH
from ...shared import (
    CHAPTERED_AUDIO_EXTENSION,
    classify_file,
    file_extension,
    get_logger,
    is_audio_file,
    is_video_file,
)
from .collaborators import ProbeCollaborator, call_quietly
from .extras import prepare_extras, thumb_reference
from .models import (
    AlbumItem,
    AnyCatalogItem,
    AudiobookItem,
    Chapter,
    CollectionItem,
    FolderItem,
    ItemDetails,
    LibraryItem,
    LibraryType,
    MovieItem,
    MoviePlayable,
    SeriesItem,
    Track,
    TrackData,
)
from .naming import NamePieces, create_sort_key, parse_name_pieces, strip_extensions
from .paths import ConfirmedPath, DirEntry, DirectoryListing, DirectoryLister
from .seasons import SeasonEpisodeExtractor

logger = get_logger(__name__)

AUDIOBOOK_GENRE = "Audiobook"


def season_folders(listing: DirectoryListing) -> list[DirEntry]:
    return [folder for folder in listing.folders if "season" in folder.name.lower()]


def _matches_movie(entry: DirEntry, pieces: NamePieces) -> bool:
    if not is_video_file(entry.name):
        return False
    file_pieces = parse_name_pieces(entry.name)
    return file_pieces.name == pieces.name and file_pieces.year == pieces.year


class CatalogResolver:
    def __init__(
        self,
        lister: DirectoryLister,
        probe: Optional[ProbeCollaborator] = None,
        seasons: Optional[SeasonEpisodeExtractor] = None,
    ):
        self._lister = lister
        self._probe = probe
        self._seasons = seasons or SeasonEpisodeExtractor(lister, probe)

    async def compute_item(self, path: ConfirmedPath) -> AnyCatalogItem:
        folder_name = path.name
        pieces = parse_name_pieces(folder_name)
        listing = await self._lister.list_directory(path)
        common = {
            "name": pieces.name,
            "folder_name": folder_name,
            "relative_path": path.relative_path,
            "list_name": pieces.name,
            "sort_key": create_sort_key(folder_name),
        }

        if pieces.year:
            seasons = season_folders(listing)
            if seasons:
                return SeriesItem(
                    **common,
                    imdb_id=pieces.imdb_id,
                    year=pieces.year,
                    num_seasons=len(seasons),
                )
            movie_file = next((f for f in listing.files if _matches_movie(f, pieces)), None)
            if movie_file is not None:
                movie = MoviePlayable(
                    name=pieces.name,
                    year=pieces.year,
                    version=parse_name_pieces(movie_file.name).version,
                    file_name=movie_file.name,
                    relative_path=movie_file.path.relative_path,
                )
                return MovieItem(**common, imdb_id=pieces.imdb_id, year=pieces.year, movie=movie)

        if listing.files and all(is_audio_file(f.name) for f in listing.files):
            return await self._audio_item(path, listing, pieces)

        if path.depth == 1:
            library_type = await self.library_type(path)
            if library_type:
                return LibraryItem(**common, library_type=library_type)

        if listing.folders and all(parse_name_pieces(f.name).year for f in listing.folders):
            return CollectionItem(**common, feed_order=pieces.feed_order)

        return FolderItem(**common, feed_order=pieces.feed_order)

    async def _audio_item(self, path: ConfirmedPath, listing: DirectoryListing, pieces: NamePieces) -> AnyCatalogItem:
        first = listing.files[0]
        probe = await self._track_data(first.path)
        folder_name = path.name
        title = (probe.album if probe else None) or pieces.name
        artist = (probe.album_artist or probe.artist) if probe else None
        year = probe.year if probe and probe.year else _int_year(pieces.year)
        cover_path = first.path.relative_path
        common = {
            "name": title,
            "list_name": title,
            "title": title,
            "year": year,
            "folder_name": folder_name,
            "file_name": folder_name,
            "relative_path": path.relative_path,
            "cover_thumb": thumb_reference(cover_path, THUMB_WIDTH),
            "cover": thumb_reference(cover_path, COVER_WIDTH),
        }

        is_chaptered = file_extension(first.name) == CHAPTERED_AUDIO_EXTENSION
        if is_chaptered or (probe is not None and probe.genre == AUDIOBOOK_GENRE):
            return AudiobookItem(
                **common,
                author=artist,
                sort_key=create_sort_key(folder_name, probe.year if probe else None),
                chapter_strategy="chapters" if is_chaptered else "tracks",
            )
        return AlbumItem(
            **common,
            artist=artist,
            genre=probe.genre if probe else None,
            sort_key=create_sort_key(folder_name),
        )

    async def library_type(self, path: ConfirmedPath) -> Optional[LibraryType]:
        """Depth-first search for the first leaf that reveals the library's media."""
        listing = await self._lister.list_directory(path)
        if listing.is_empty:
            return None
        for entry in listing.files:
            kind = classify_file(entry.name)
            if kind == "photo":
                return "photos"
            if kind == "audio":
                return "audio"
        if any(parse_name_pieces(f.name).year for f in listing.folders):
            return "cinema"
        for folder in listing.folders:
            found = await self.library_type(folder.path)
            if found:
                return found
        return None

    async def compute_details(self, path: ConfirmedPath, item: AnyCatalogItem) -> ItemDetails:
        listing = await self._lister.list_directory(path)
        file_names = [f.name for f in listing.files]

        if isinstance(item, SeriesItem):
            seasons = await self._seasons.extract(
                [f.path for f in season_folders(listing)], item.name, item.year
            )
            return ItemDetails(extras=prepare_extras(file_names, path), seasons=seasons)

        if isinstance(item, MovieItem):
            others = [f.name for f in listing.files if f.path.relative_path != item.movie.relative_path]
            return ItemDetails(extras=prepare_extras(others, path))

        if isinstance(item, (AlbumItem, AudiobookItem)):
            tracks, probes = await self._build_tracks(listing)
            if isinstance(item, AlbumItem):
                return ItemDetails(tracks=tracks)
            return ItemDetails(chapters=build_chapters(item, tracks, probes))

        if isinstance(item, CollectionItem):
            return ItemDetails(extras=prepare_extras(file_names, path))

        return ItemDetails()

    async def _track_data(self, path: ConfirmedPath) -> Optional[TrackData]:
        if self._probe is None:
            return None
        return await call_quietly(self._probe.get_track_data(path), f"probe {path.relative_path}")

    async def _build_tracks(self, listing: DirectoryListing) -> tuple[list[Track], list[Optional[TrackData]]]:
        probes = list(await asyncio.gather(*(self._track_data(f.path) for f in listing.files)))
        tracks: list[Track] = []
        offset = 0.0
        for entry, data in zip(listing.files, probes):
            title = (data.title if data else None) or strip_extensions(entry.name)
            track_number = data.track_number if data else None
            duration = data.duration if data else None
            tracks.append(
                Track(
                    name=title,
                    title=title,
                    artist=data.artist if data else None,
                    album=data.album if data else None,
                    year=data.year if data else None,
                    track_number=track_number,
                    track_total=data.track_total if data else None,
                    duration=duration,
                    file_name=entry.name,
                    relative_path=entry.path.relative_path,
                    list_name=title,
                    sort_key=(f"{track_number}_" if track_number else "") + entry.name,
                    start_offset=offset,
                )
            )
            offset += duration or 0.0
        return tracks, probes


def build_chapters(item: AudiobookItem, tracks: list[Track], probes: list[Optional[TrackData]]) -> list[Chapter]:
    """
    One chapter per track, or one per embedded chapter when the book uses
    the `chapters` strategy and the track carries any.
    """
    chapters: list[Chapter] = []
    for track, data in zip(tracks, probes):
        embedded = data.chapters if data else []
        if item.chapter_strategy == "tracks" or not embedded:
            chapters.append(
                Chapter(
                    name=track.title,
                    title=track.title,
                    file_name=track.file_name,
                    relative_path=track.relative_path,
                    duration=track.duration,
                    track_duration=track.duration,
                    chapter_duration=track.duration,
                    book_start_offset=track.start_offset,
                    track_start_offset=0.0,
                )
            )
            continue
        for embedded_chapter in embedded:
            title = embedded_chapter.title or track.title
            chapters.append(
                Chapter(
                    name=title,
                    title=title,
                    file_name=track.file_name,
                    relative_path=track.relative_path,
                    duration=track.duration,
                    track_duration=track.duration,
                    chapter_duration=embedded_chapter.duration,
                    book_start_offset=track.start_offset + embedded_chapter.start_time,
                    track_start_offset=embedded_chapter.start_time,
                )
            )
    return chapters


def _int_year(year: Optional[str]) -> Optional[int]:
    return int(year) if year else None
