"""
Media catalog: classification of the media tree into typed items.
"""
from .cache import CatalogCache, SingleFlight
from .collaborators import (
    InMemorySurpriseService,
    InMemoryWatchProgressService,
    NullMetadataService,
    NullProbeService,
)
from .feeds import FeedBuilder, FeedEntry, FeedSection
from .files import FileClassifier
from .models import serialize
from .paths import ConfirmedPath, DirectoryLister, PathResolver
from .playable import PlayableResolver
from .resolver import CatalogResolver
from .seasons import SeasonEpisodeExtractor
from .service import CatalogService
from .walker import FlatTreeWalker

__all__ = [
    "CatalogCache",
    "CatalogResolver",
    "CatalogService",
    "ConfirmedPath",
    "DirectoryLister",
    "FeedBuilder",
    "FeedEntry",
    "FeedSection",
    "FileClassifier",
    "FlatTreeWalker",
    "InMemorySurpriseService",
    "InMemoryWatchProgressService",
    "NullMetadataService",
    "NullProbeService",
    "PathResolver",
    "PlayableResolver",
    "SeasonEpisodeExtractor",
    "SingleFlight",
    "serialize",
]
