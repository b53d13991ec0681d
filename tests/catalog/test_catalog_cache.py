import asyncio

import pytest

from reel_backend.features.catalog.cache import CatalogCache, SingleFlight
from reel_backend.features.catalog.models import FolderItem, SeriesItem

from media_fixtures import MOVIE, SEASON_2, SERIES


@pytest.mark.asyncio
async def test_single_flight_coalesces_concurrent_calls():
    flight = SingleFlight()
    calls = {"n": 0}
    gate = asyncio.Event()

    async def _compute():
        calls["n"] += 1
        await gate.wait()
        return "value"

    tasks = [asyncio.create_task(flight.do("k", _compute)) for _ in range(5)]
    await asyncio.sleep(0)
    assert flight.in_flight("k")
    gate.set()
    assert await asyncio.gather(*tasks) == ["value"] * 5
    assert calls["n"] == 1
    await asyncio.sleep(0)
    assert not flight.in_flight("k")


@pytest.mark.asyncio
async def test_single_flight_failure_is_not_remembered():
    flight = SingleFlight()
    attempts = {"n": 0}

    async def _compute():
        attempts["n"] += 1
        if attempts["n"] == 1:
            raise RuntimeError("first try fails")
        return 42

    with pytest.raises(RuntimeError):
        await flight.do("k", _compute)
    await asyncio.sleep(0)
    assert await flight.do("k", _compute) == 42


@pytest.mark.asyncio
async def test_folder_items_are_not_cached():
    cache = CatalogCache()
    calls = {"n": 0}

    async def _compute():
        calls["n"] += 1
        return FolderItem(name="x", folder_name="x", relative_path="x", list_name="x", sort_key="x_0000")

    await cache.get_item("x", _compute)
    await cache.get_item("x", _compute)
    assert calls["n"] == 2
    assert cache.items == {}


@pytest.mark.asyncio
async def test_unrecognized_files_are_negatively_cached():
    cache = CatalogCache()
    calls = {"n": 0}

    async def _compute():
        calls["n"] += 1
        return None

    assert await cache.get_file("notes.txt", _compute) is None
    assert await cache.get_file("notes.txt", _compute) is None
    assert calls["n"] == 1
    assert cache.stats()["files"] == 1


@pytest.mark.asyncio
async def test_cinema_items_are_cached_once(catalog):
    path = catalog.resolve_path(MOVIE).unwrap()
    first = await catalog.classify(path)
    second = await catalog.classify(path)
    assert first.ok and second.ok
    assert MOVIE in catalog.cache.items
    # callers get copies, never the cached record
    assert first.data is not catalog.cache.items[MOVIE]
    first.data.name = "changed"
    assert catalog.cache.items[MOVIE].name == "The Matrix"


@pytest.mark.asyncio
async def test_reload_picks_up_new_files(catalog, media_root):
    path = catalog.resolve_path(SERIES).unwrap()
    before = (await catalog.classify(path, detailed=True)).unwrap()
    assert len(before.seasons[1].episode_files) == 2

    (media_root / SEASON_2 / "Show.s02e03.mp4").write_bytes(b"")
    stale = (await catalog.classify(path, detailed=True)).unwrap()
    assert len(stale.seasons[1].episode_files) == 2

    reloaded = await catalog.reload(path)
    assert reloaded.ok
    assert isinstance(reloaded.data, SeriesItem)
    assert len(reloaded.data.seasons[1].episode_files) == 3


@pytest.mark.asyncio
async def test_reload_does_not_cascade(catalog):
    movie_path = catalog.resolve_path(MOVIE).unwrap()
    series_path = catalog.resolve_path(SERIES).unwrap()
    await catalog.classify(movie_path, detailed=True)
    await catalog.classify(series_path, detailed=True)
    cached_movie = catalog.cache.items[MOVIE]
    cached_details = catalog.cache.details[MOVIE]

    result = await catalog.reload(catalog.resolve_path("Movies").unwrap())
    assert result.ok

    assert catalog.cache.items[MOVIE] is cached_movie
    assert catalog.cache.details[MOVIE] is cached_details
    assert SERIES in catalog.cache.items


@pytest.mark.asyncio
async def test_failed_reload_keeps_previous_entry(catalog, monkeypatch):
    path = catalog.resolve_path(MOVIE).unwrap()
    await catalog.classify(path, detailed=True)
    cached = catalog.cache.items[MOVIE]

    async def _explode(_path):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(catalog.resolver, "compute_item", _explode)
    result = await catalog.reload(path)

    assert result.ok is False
    assert result.code == "RELOAD_FAILED"
    assert catalog.cache.items[MOVIE] is cached
    assert MOVIE in catalog.cache.details


@pytest.mark.asyncio
async def test_empty_caches_reports_and_clears(catalog):
    await catalog.classify(catalog.resolve_path(MOVIE).unwrap(), detailed=True)
    result = catalog.empty_caches()
    assert result.ok
    assert result.data["items"] == 1
    assert result.data["details"] == 1
    assert catalog.cache.stats() == {"items": 0, "details": 0, "files": 0}
