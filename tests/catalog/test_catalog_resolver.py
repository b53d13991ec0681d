import pytest

from reel_backend.features.catalog.models import (
    AlbumItem,
    AudiobookItem,
    CollectionItem,
    FolderItem,
    LibraryItem,
    MovieItem,
    SeriesItem,
    serialize,
)
from reel_backend.features.catalog.paths import DirectoryLister, PathResolver
from reel_backend.features.catalog.resolver import CatalogResolver

from media_fixtures import (
    ALBUM,
    ALBUM_TRACK_1,
    ALBUM_TRACK_2,
    BOOK,
    BOOK_FILE,
    COLLECTION,
    MOVIE,
    MOVIE_EXTRA,
    MOVIE_FILE,
    SERIES,
    SERIES_EXTRA,
    FailingProbe,
)


@pytest.fixture
def resolve(media_root):
    paths = PathResolver(media_root)
    return lambda rel: paths.resolve(rel).unwrap()


@pytest.fixture
def resolver(fake_probe):
    return CatalogResolver(DirectoryLister(), fake_probe)


@pytest.mark.asyncio
async def test_series_needs_year_and_season_folder(resolver, resolve):
    item = await resolver.compute_item(resolve(SERIES))
    assert isinstance(item, SeriesItem)
    assert item.cinema_type == "series"
    assert item.name == "Show"
    assert item.year == "2010"
    assert item.num_seasons == 2
    assert item.sort_key == "show_2010"


@pytest.mark.asyncio
async def test_movie_needs_matching_video(resolver, resolve):
    item = await resolver.compute_item(resolve(MOVIE))
    assert isinstance(item, MovieItem)
    assert item.movie.relative_path == MOVIE_FILE
    assert item.movie.year == "1999"
    assert item.list_name == "The Matrix"


@pytest.mark.asyncio
async def test_year_folder_without_matching_video_is_a_folder(tmp_path):
    (tmp_path / "Movies" / "Heat (1995)").mkdir(parents=True)
    (tmp_path / "Movies" / "Heat (1995)" / "Heat Trailer.mp4").write_bytes(b"")
    path = PathResolver(tmp_path).resolve("Movies/Heat (1995)").unwrap()

    item = await CatalogResolver(DirectoryLister()).compute_item(path)
    assert isinstance(item, FolderItem)


@pytest.mark.asyncio
async def test_movie_version_comes_from_the_file(tmp_path):
    folder = tmp_path / "Movies" / "Alien (1979)"
    folder.mkdir(parents=True)
    (folder / "Alien (1979).versionDirectors_Cut.mp4").write_bytes(b"")
    path = PathResolver(tmp_path).resolve("Movies/Alien (1979)").unwrap()

    item = await CatalogResolver(DirectoryLister()).compute_item(path)
    assert isinstance(item, MovieItem)
    assert item.movie.version == "Directors Cut"


@pytest.mark.asyncio
async def test_audio_folder_becomes_album(resolver, resolve):
    item = await resolver.compute_item(resolve(ALBUM))
    assert isinstance(item, AlbumItem)
    assert item.title == "Greatest Hits Vol 1"
    assert item.artist == "Band"
    assert item.genre == "Rock"
    assert item.year == 2001
    assert item.file_name == "Greatest Hits"
    assert item.cover_thumb.startswith("/thumb/" + ALBUM_TRACK_1)
    assert item.sort_key == "greatest hits_0000"


@pytest.mark.asyncio
async def test_album_without_probe_falls_back_to_names(resolve):
    item = await CatalogResolver(DirectoryLister(), FailingProbe()).compute_item(resolve(ALBUM))
    assert isinstance(item, AlbumItem)
    assert item.title == "Greatest Hits"
    assert item.artist is None


@pytest.mark.asyncio
async def test_chaptered_audio_becomes_audiobook(resolver, resolve):
    item = await resolver.compute_item(resolve(BOOK))
    assert isinstance(item, AudiobookItem)
    assert item.chapter_strategy == "chapters"
    assert item.author == "Frank Herbert"
    assert item.sort_key == "dune_1965"


@pytest.mark.asyncio
async def test_audiobook_genre_uses_track_strategy(tmp_path, fake_probe):
    from reel_backend.features.catalog.models import TrackData

    folder = tmp_path / "Books" / "Foundation"
    folder.mkdir(parents=True)
    for name in ("Part 1.mp3", "Part 2.mp3"):
        (folder / name).write_bytes(b"")
        fake_probe.tracks[name] = TrackData(title=name[:-4], album="Foundation", genre="Audiobook", duration=30.0)
    path = PathResolver(tmp_path).resolve("Books/Foundation").unwrap()
    resolver = CatalogResolver(DirectoryLister(), fake_probe)

    item = await resolver.compute_item(path)
    assert isinstance(item, AudiobookItem)
    assert item.chapter_strategy == "tracks"

    details = await resolver.compute_details(path, item)
    assert [(c.title, c.book_start_offset, c.track_start_offset) for c in details.chapters] == [
        ("Part 1", 0.0, 0.0),
        ("Part 2", 30.0, 0.0),
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "rel, library_type",
    [("Movies", "cinema"), ("Shows", "cinema"), ("Music", "audio"), ("Books", "audio"), ("Photos", "photos")],
)
async def test_root_folders_become_libraries(resolver, resolve, rel, library_type):
    item = await resolver.compute_item(resolve(rel))
    assert isinstance(item, LibraryItem)
    assert item.library_type == library_type


@pytest.mark.asyncio
async def test_empty_root_folder_is_a_plain_folder(resolver, resolve):
    item = await resolver.compute_item(resolve("Empty"))
    assert isinstance(item, FolderItem)


@pytest.mark.asyncio
async def test_year_tagged_children_make_a_collection(resolver, resolve):
    item = await resolver.compute_item(resolve(COLLECTION))
    assert isinstance(item, CollectionItem)
    assert item.sort_key == "harry potter_0000"


@pytest.mark.asyncio
async def test_nested_folder_without_rule_is_folder(resolver, resolve):
    item = await resolver.compute_item(resolve("Music/Artist"))
    assert isinstance(item, FolderItem)


@pytest.mark.asyncio
async def test_movie_details_list_other_videos_as_extras(resolver, resolve):
    path = resolve(MOVIE)
    item = await resolver.compute_item(path)
    details = await resolver.compute_details(path, item)
    assert [e.relative_path for e in details.extras] == [MOVIE_EXTRA]
    assert details.extras[0].still_thumb == f"/thumb/{MOVIE_EXTRA}?width=300"


@pytest.mark.asyncio
async def test_series_details(resolver, resolve):
    path = resolve(SERIES)
    item = await resolver.compute_item(path)
    details = await resolver.compute_details(path, item)
    assert [e.relative_path for e in details.extras] == [SERIES_EXTRA]
    assert [s.season_number for s in details.seasons] == [1, 2]


@pytest.mark.asyncio
async def test_album_tracks_accumulate_offsets(resolver, resolve):
    path = resolve(ALBUM)
    item = await resolver.compute_item(path)
    details = await resolver.compute_details(path, item)
    assert [(t.relative_path, t.start_offset) for t in details.tracks] == [
        (ALBUM_TRACK_1, 0.0),
        (ALBUM_TRACK_2, 100.0),
    ]
    assert details.tracks[0].title == "Intro"
    assert details.tracks[1].sort_key == "2_02 Song.mp3"


@pytest.mark.asyncio
async def test_chaptered_book_splits_on_embedded_chapters(resolver, resolve):
    path = resolve(BOOK)
    item = await resolver.compute_item(path)
    details = await resolver.compute_details(path, item)
    chapters = details.chapters
    assert [c.title for c in chapters] == ["Book One", "Book Two"]
    assert all(c.relative_path == BOOK_FILE for c in chapters)
    assert [c.chapter_duration for c in chapters] == [60.0, 90.0]
    assert [c.book_start_offset for c in chapters] == [0.0, 60.0]
    assert chapters[1].track_duration == 150.0


@pytest.mark.asyncio
async def test_classification_is_deterministic(resolver, resolve):
    first = await resolver.compute_item(resolve(SERIES))
    second = await resolver.compute_item(resolve(SERIES))
    assert serialize(first) == serialize(second)
