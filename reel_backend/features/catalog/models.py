"""
Catalog records.

Every record is a keyword-only dataclass carrying a fixed `type`
discriminator, so the catalog item and playable families form closed unions
(`AnyCatalogItem`, `AnyPlayable`) instead of free-form dicts.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import PurePath
from typing import Any, Literal, Optional, Union

RelativePath = str

ExtraType = Literal["behindthescenes", "deleted", "featurette", "trailer"]
EXTRA_TYPES: tuple[ExtraType, ...] = ("behindthescenes", "deleted", "featurette", "trailer")

LibraryType = Literal["cinema", "photos", "audio"]
ChapterStrategy = Literal["tracks", "chapters"]
LibraryFileType = Literal["photo", "video", "audio"]


# ---------------------------------------------------------------------------
# Collaborator records
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class Bookmark:
    name: str
    time: float
    duration: float
    percentage: float
    watched_at: int
    relative_path: RelativePath


@dataclass(kw_only=True)
class WatchProgress:
    time: float
    duration: float
    percentage: float
    watched_at: int
    relative_path: RelativePath
    bookmarks: list[Bookmark] = field(default_factory=list)


@dataclass(kw_only=True)
class SurpriseRecord:
    relative_path: RelativePath
    pin: str
    until: str


@dataclass(frozen=True, kw_only=True)
class ProbeChapter:
    """One embedded chapter, times in seconds."""
    title: Optional[str]
    start_time: float
    end_time: Optional[float] = None

    @property
    def duration(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return max(0.0, self.end_time - self.start_time)


@dataclass(kw_only=True)
class TrackData:
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    album_artist: Optional[str] = None
    genre: Optional[str] = None
    year: Optional[int] = None
    track_number: Optional[int] = None
    track_total: Optional[int] = None
    duration: Optional[float] = None
    chapters: list[ProbeChapter] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Playables
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class Playable:
    type: str
    name: str
    file_name: str
    relative_path: RelativePath
    duration: Optional[float] = None
    watch_progress: Optional[WatchProgress] = None


@dataclass(kw_only=True)
class MoviePlayable(Playable):
    type: Literal["movie"] = "movie"
    year: str
    version: Optional[str] = None


@dataclass(kw_only=True)
class Episode(Playable):
    """A logical episode; several may share one file at different offsets."""
    type: Literal["episode"] = "episode"
    series_name: str
    year: str
    season_number: int
    episode_number: int
    # milliseconds into the file; None when the boundary is not encoded in the name
    start_time: Optional[int] = None
    version: Optional[str] = None


@dataclass(kw_only=True)
class EpisodeFile(Playable):
    type: Literal["episodeFile"] = "episodeFile"
    series_name: str
    year: str
    season_number: int
    first_episode_number: int
    has_multiple_episodes: bool = False
    episodes: list[Episode] = field(default_factory=list)
    version: Optional[str] = None


@dataclass(kw_only=True)
class Extra(Playable):
    type: Literal["extra"] = "extra"
    extra_type: Optional[ExtraType] = None
    still_thumb: str = ""


@dataclass(kw_only=True)
class Track(Playable):
    type: Literal["album-track"] = "album-track"
    title: str
    artist: Optional[str] = None
    album: Optional[str] = None
    year: Optional[int] = None
    track_number: Optional[int] = None
    track_total: Optional[int] = None
    list_name: str = ""
    sort_key: str = ""
    start_offset: float = 0.0


@dataclass(kw_only=True)
class Chapter(Playable):
    """An audiobook chapter; with `.m4b` books many chapters share one file."""
    type: Literal["audiobook-chapter"] = "audiobook-chapter"
    title: str
    track_duration: Optional[float] = None
    chapter_duration: Optional[float] = None
    book_start_offset: float = 0.0
    track_start_offset: float = 0.0


@dataclass(kw_only=True)
class Season:
    season_number: int
    episode_files: list[EpisodeFile] = field(default_factory=list)
    extras: list[Extra] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Catalog items
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class CatalogItem:
    type: str
    name: str
    folder_name: str
    relative_path: RelativePath
    list_name: str
    sort_key: str
    imdb_id: Optional[str] = None
    # Decorations, filled per request and never cached
    metadata: Any = None
    surprise: Optional[SurpriseRecord] = None
    children: list[RelativePath] = field(default_factory=list)


@dataclass(kw_only=True)
class LibraryItem(CatalogItem):
    """A root-level folder holding one kind of media."""
    type: Literal["library"] = "library"
    library_type: LibraryType


@dataclass(kw_only=True)
class FolderItem(CatalogItem):
    """Generic folder; may contain anything."""
    type: Literal["folder"] = "folder"
    feed_order: Optional[int] = None


@dataclass(kw_only=True)
class CollectionItem(CatalogItem):
    """A group of year-tagged media folders, e.g. a film series."""
    type: Literal["collection"] = "collection"
    feed_order: Optional[int] = None
    extras: Optional[list[Extra]] = None


@dataclass(kw_only=True)
class CinemaItem(CatalogItem):
    type: Literal["cinema"] = "cinema"
    cinema_type: str
    year: str
    extras: Optional[list[Extra]] = None


@dataclass(kw_only=True)
class MovieItem(CinemaItem):
    cinema_type: Literal["movie"] = "movie"
    movie: MoviePlayable


@dataclass(kw_only=True)
class SeriesItem(CinemaItem):
    cinema_type: Literal["series"] = "series"
    num_seasons: int = 0
    seasons: Optional[list[Season]] = None


@dataclass(kw_only=True)
class AlbumItem(CatalogItem):
    type: Literal["album"] = "album"
    file_name: str
    title: Optional[str] = None
    artist: Optional[str] = None
    genre: Optional[str] = None
    year: Optional[int] = None
    cover_thumb: str = ""
    cover: str = ""
    duration: Optional[float] = None
    watch_progress: Optional[WatchProgress] = None
    tracks: Optional[list[Track]] = None


@dataclass(kw_only=True)
class AudiobookItem(CatalogItem):
    type: Literal["audiobook"] = "audiobook"
    file_name: str
    chapter_strategy: ChapterStrategy = "tracks"
    title: Optional[str] = None
    author: Optional[str] = None
    year: Optional[int] = None
    cover_thumb: str = ""
    cover: str = ""
    duration: Optional[float] = None
    watch_progress: Optional[WatchProgress] = None
    chapters: Optional[list[Chapter]] = None


AnyCatalogItem = Union[
    LibraryItem, FolderItem, CollectionItem, MovieItem, SeriesItem, AlbumItem, AudiobookItem
]
AnyPlayable = Union[MoviePlayable, Episode, EpisodeFile, Extra, Track, Chapter, AlbumItem, AudiobookItem]

# Catalog items that are themselves playable leaves
PLAYABLE_ITEM_TYPES = frozenset({"album", "audiobook"})
# Catalog items never kept in the item cache (cheap and volatile)
UNCACHED_ITEM_TYPES = frozenset({"library", "folder", "collection"})
# Catalog items with an expensive detail expansion
DETAILED_ITEM_TYPES = frozenset({"cinema", "album", "audiobook", "collection"})


@dataclass(kw_only=True)
class ItemDetails:
    """The expensive expansion of an item, cached apart from the base record."""
    extras: Optional[list[Extra]] = None
    seasons: Optional[list[Season]] = None
    tracks: Optional[list[Track]] = None
    chapters: Optional[list[Chapter]] = None

    def apply_to(self, item: AnyCatalogItem) -> AnyCatalogItem:
        names = {f.name for f in dataclasses.fields(item)}
        changes = {
            key: value
            for key, value in (
                ("extras", self.extras),
                ("seasons", self.seasons),
                ("tracks", self.tracks),
                ("chapters", self.chapters),
            )
            if value is not None and key in names
        }
        return dataclasses.replace(item, **changes) if changes else item


# ---------------------------------------------------------------------------
# Leaf files and composite results
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class LibraryFile:
    type: LibraryFileType
    file_type: str
    file_name: str
    relative_path: RelativePath
    list_name: str
    sort_key: str
    taken_at: Optional[datetime] = None


@dataclass(kw_only=True)
class FlatTree:
    items: list[AnyCatalogItem] = field(default_factory=list)
    files: list[LibraryFile] = field(default_factory=list)


@dataclass(kw_only=True)
class DirectoryFolder:
    folder_name: str
    library_item: AnyCatalogItem


@dataclass(kw_only=True)
class DirectoryView:
    """A folder's own item plus its files and classified child folders."""
    library_item: AnyCatalogItem
    files: list[str] = field(default_factory=list)
    folders: list[DirectoryFolder] = field(default_factory=list)


@dataclass(kw_only=True)
class PlayableLookup:
    parent_library: Optional[AnyCatalogItem] = None
    playable: Optional[AnyPlayable] = None


def serialize(value: Any) -> Any:
    """Convert records (recursively) into JSON-ready structures."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: serialize(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [serialize(v) for v in value]
    return value
