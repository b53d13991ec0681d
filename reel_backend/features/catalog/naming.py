"""
Name parsing for media folders and files.

Everything here is a pure function of a name string. The classifier only
consumes the parsed pieces, so patterns can change without touching the
classification order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ...utils import safe_int
from .models import EXTRA_TYPES, ExtraType

# A '.' directly followed by a non-space starts the extension(s)
_EXTENSION_RE = re.compile(r"\.\S{1,50}")
_YEAR_RE = re.compile(r"\((?P<year>\d{4})\)")
_VERSION_RE = re.compile(r"\.version(?P<version>[^.]{1,50})\.")
_IMDB_RE = re.compile(r"\.imdb-(?P<imdb_id>tt\d{7,8})")
_FEED_ORDER_RE = re.compile(r"\.feedorder-(?P<feed_order>\d{1,2})")
_ARTICLE_RE = re.compile(r"^(the|a|an)\s+", re.IGNORECASE)
_COLLECTION_RE = re.compile(
    r"^(?P<collection>[^\d:]{1,100})(?:(?P<number>\d{1,3})+|:|and the):*(?P<feature>.{1,100})?"
)
_MEDIA_YEAR_RE = re.compile(r" \(\d{4}\)")

_EPISODE_RE = re.compile(r"s(?P<season>\d{1,3})e(?P<episode>\d{1,3})", re.IGNORECASE)
_LAST_EPISODE_RE = re.compile(r"-e(?P<episode>\d{1,3})", re.IGNORECASE)
_EPISODE_OFFSET_RE = re.compile(r"\.e(?P<episode>\d{1,3})-(?P<start>\d{1,50})", re.IGNORECASE)
_SEASON_PREFIX_RE = re.compile(r"season", re.IGNORECASE)

# YYYYMMDD_HHMMSS, YYYYMMDD-HHMMSS, YYYY-MM-DD_HH-MM-SS(_mmm)
_TAKEN_AT_RE = re.compile(
    r"(\d{4})[_-]*(\d{2})[_-]*(\d{2})[_-]*(\d{2})[_-]*(\d{2})[_-]*(\d{2})(?:[_-]*(\d{3}))?"
)

DEFAULT_SORT_YEAR = "0000"


@dataclass(frozen=True)
class NamePieces:
    name: str
    year: Optional[str] = None
    version: Optional[str] = None
    imdb_id: Optional[str] = None
    feed_order: Optional[int] = None


@dataclass(frozen=True)
class EpisodeTokens:
    """Episode numbering encoded in a video file name."""
    season_number: int
    first_episode: int
    last_episode: Optional[int] = None
    # (episode number, start offset in ms), in file-name order
    offsets: list[tuple[int, int]] = field(default_factory=list)

    @property
    def has_multiple_episodes(self) -> bool:
        return self.last_episode is not None


def base_name(name_or_path: str) -> str:
    """Last '/'-separated segment of a name or relative path."""
    value = str(name_or_path or "")
    return value.rstrip("/").split("/")[-1] or value


def strip_extensions(file_name: str) -> str:
    return _EXTENSION_RE.split(file_name)[0] or file_name


def parse_name_pieces(name_or_path: str) -> NamePieces:
    """Split a folder or file name into title, year and dot-tags."""
    full_name = base_name(name_or_path)
    working = strip_extensions(full_name)

    year_match = _YEAR_RE.search(working)
    if year_match:
        name = working[: year_match.start()].strip()
        year = year_match.group("year")
    else:
        name = working.strip()
        year = None

    version_match = _VERSION_RE.search(full_name)
    version = version_match.group("version").replace("_", " ").strip() if version_match else None

    imdb_match = _IMDB_RE.search(full_name)
    feed_match = _FEED_ORDER_RE.search(full_name)

    return NamePieces(
        name=name,
        year=year,
        version=version or None,
        imdb_id=imdb_match.group("imdb_id") if imdb_match else None,
        feed_order=int(feed_match.group("feed_order")) if feed_match else None,
    )


def remove_articles(name: str) -> str:
    return _ARTICLE_RE.sub("", name, count=1)


def create_sort_key(folder_name: str, provided_year: Optional[object] = None) -> str:
    """
    Display ordering key: `[collection_]feature_year`, lowercased.

    Leading articles are dropped, and "Collection 2", "Collection: Subtitle"
    or "Collection and the Subtitle" titles split into collection/feature.
    """
    pieces = parse_name_pieces(folder_name)
    title = remove_articles(pieces.name)
    collection = ""
    feature = title

    match = _COLLECTION_RE.match(title)
    if match:
        collection = (match.group("collection") or "").strip()
        feature = (match.group("feature") or "").strip() or title

    year = str(provided_year) if provided_year else (pieces.year or DEFAULT_SORT_YEAR)
    parts = [feature, year]
    if collection:
        parts.insert(0, collection)
    return "_".join(parts).lower()


def extra_name_and_type(file_name: str) -> tuple[str, Optional[ExtraType]]:
    """Display name and `-<type>` suffix of an extra video."""
    stripped = strip_extensions(file_name)
    lowered = stripped.lower()
    for extra_type in EXTRA_TYPES:
        suffix = "-" + extra_type
        if lowered.endswith(suffix):
            return stripped[: -len(suffix)].strip(), extra_type
    return stripped, None


def media_type_from_path(relative_path: str) -> str:
    """Guess `series`, `movie` or `folder` from a relative path alone."""
    if "/season " in relative_path.lower():
        return "series"
    if _MEDIA_YEAR_RE.search(relative_path):
        return "movie"
    return "folder"


def parse_season_number(folder_name: str) -> int:
    """'Season 2' -> 2; folders without a number map to season 0."""
    remainder = _SEASON_PREFIX_RE.sub("", base_name(folder_name)).strip()
    number = safe_int(remainder)
    return number if number is not None and number >= 0 else 0


def parse_episode_tokens(file_name: str) -> Optional[EpisodeTokens]:
    """
    Read `sXXeYY`, an optional `-eZZ` last episode and `.eN-<ms>` offsets.

    Returns None when the name carries no `sXXeYY` tag.
    """
    match = _EPISODE_RE.search(file_name)
    if not match:
        return None
    last = _LAST_EPISODE_RE.search(file_name)
    offsets = [
        (int(m.group("episode")), int(m.group("start")))
        for m in _EPISODE_OFFSET_RE.finditer(file_name)
    ]
    return EpisodeTokens(
        season_number=int(match.group("season")),
        first_episode=int(match.group("episode")),
        last_episode=int(last.group("episode")) if last else None,
        offsets=offsets,
    )


def parse_taken_at(file_name: str) -> Optional[datetime]:
    """Timestamp embedded in a camera-style file name, or None."""
    match = _TAKEN_AT_RE.search(base_name(file_name))
    if not match:
        return None
    year, month, day, hour, minute, second, millis = match.groups()
    try:
        return datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second),
            int(millis) * 1000 if millis else 0,
        )
    except ValueError:
        return None
