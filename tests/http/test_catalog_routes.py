import json

import pytest
from aiohttp import web
from aiohttp.test_utils import make_mocked_request

from reel_backend.features.probe import ProbeData, ProbeGlossary
from reel_backend.routes.handlers import catalog as catalog_mod
from reel_backend.routes.handlers import feed as feed_mod
from reel_backend.shared import Result

from media_fixtures import ALBUM, EP_1, EP_2_3, MOVIE, MOVIE_FILE


def _build_app(*registrars) -> web.Application:
    app = web.Application()
    routes = web.RouteTableDef()
    for register in registrars:
        register(routes)
    app.add_routes(routes)
    return app


async def _call(app, method, url):
    req = make_mocked_request(method, url, app=app)
    match = await app.router.resolve(req)
    req = make_mocked_request(method, url, app=app, match_info=match)
    resp = await match.handler(req)
    return resp.status, json.loads(resp.text)


@pytest.fixture
def wired(monkeypatch, services):
    async def _require_services():
        return services, None

    monkeypatch.setattr(catalog_mod, "_require_services", _require_services)
    monkeypatch.setattr(feed_mod, "_require_services", _require_services)
    return services


@pytest.mark.asyncio
async def test_routes_report_unavailable_services(monkeypatch):
    async def _require_services():
        return None, Result.Err("SERVICE_UNAVAILABLE", "down")

    monkeypatch.setattr(catalog_mod, "_require_services", _require_services)
    app = _build_app(catalog_mod.register_catalog_routes)
    status, body = await _call(app, "GET", "/api/rootLibraries")
    assert status == 200
    assert body["ok"] is False
    assert body["code"] == "SERVICE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_dir_defaults_to_media_root(wired):
    app = _build_app(catalog_mod.register_catalog_routes)
    _, body = await _call(app, "GET", "/api/dir")
    assert body["ok"] is True
    names = [f["folder_name"] for f in body["data"]["folders"]]
    assert set(names) == {"Books", "Empty", "Movies", "Music", "Photos", "Shows"}


@pytest.mark.asyncio
async def test_dir_decodes_amp_placeholder(wired, media_root):
    (media_root / "Movies" / "Tom & Jerry").mkdir()
    app = _build_app(catalog_mod.register_catalog_routes)
    _, body = await _call(app, "GET", "/api/dir?dir=Movies/Tom%20%3Camp%3E%20Jerry")
    assert body["ok"] is True
    assert body["data"]["library_item"]["relative_path"] == "Movies/Tom & Jerry"


@pytest.mark.asyncio
async def test_dir_unknown_path(wired):
    app = _build_app(catalog_mod.register_catalog_routes)
    _, body = await _call(app, "GET", "/api/dir?dir=Nowhere")
    assert body["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_theater_data_requires_path(wired):
    app = _build_app(catalog_mod.register_catalog_routes)
    _, body = await _call(app, "GET", "/api/theaterData")
    assert body["code"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_theater_data_returns_playable_and_parent(wired):
    app = _build_app(catalog_mod.register_catalog_routes)
    _, body = await _call(app, "GET", f"/api/theaterData?relativePath={MOVIE_FILE}")
    assert body["ok"] is True
    data = body["data"]
    assert data["playable"]["type"] == "movie"
    assert data["parentLibrary"]["relative_path"] == MOVIE
    # the scripted probe has no stream data
    assert data["probe"] is None


@pytest.mark.asyncio
async def test_next_episode_route(wired):
    app = _build_app(catalog_mod.register_catalog_routes)
    _, body = await _call(app, "GET", f"/api/nextEpisode?relativePath={EP_1}")
    assert body["data"]["relative_path"] == EP_2_3
    assert body["data"]["episode_number"] == 2


@pytest.mark.asyncio
async def test_root_libraries_and_flat(wired):
    app = _build_app(catalog_mod.register_catalog_routes)
    _, libraries = await _call(app, "GET", "/api/rootLibraries")
    assert [lib["library_type"] for lib in libraries["data"]] == ["audio", "cinema", "audio", "photos", "cinema"]

    _, flat = await _call(app, "GET", "/api/rootLibrary/Photos/flat")
    assert flat["meta"] == {"items": 2, "files": 1}
    assert flat["data"]["files"][0]["taken_at"] == "2020-03-15T14:25:30"


@pytest.mark.asyncio
async def test_flat_unknown_library(wired):
    app = _build_app(catalog_mod.register_catalog_routes)
    _, body = await _call(app, "GET", "/api/rootLibrary/Nope/flat")
    assert body["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_reload_route(wired, monkeypatch):
    async def _read_json(_request):
        return Result.Ok({"relativePath": MOVIE})

    monkeypatch.setattr(catalog_mod, "_read_json", _read_json)
    app = _build_app(catalog_mod.register_catalog_routes)
    _, body = await _call(app, "POST", "/api/reload")
    assert body["ok"] is True
    assert body["data"]["cinema_type"] == "movie"
    assert MOVIE in wired["catalog"].cache.items


@pytest.mark.asyncio
async def test_reload_route_requires_relative_path(wired, monkeypatch):
    async def _read_json(_request):
        return Result.Ok({})

    monkeypatch.setattr(catalog_mod, "_read_json", _read_json)
    app = _build_app(catalog_mod.register_catalog_routes)
    _, body = await _call(app, "POST", "/api/reload")
    assert body["code"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_feed_route(wired):
    app = _build_app(feed_mod.register_feed_routes)
    _, body = await _call(app, "GET", "/api/feed")
    assert body["ok"] is True
    assert "New Movies and Shows" in [section["title"] for section in body["data"]]


@pytest.mark.asyncio
async def test_theater_data_glossary_checks_file_off_loop(wired, fake_probe, monkeypatch):
    probed = []

    async def _get_probe_data(path):
        probed.append(path.relative_path)
        return ProbeData(glossary=ProbeGlossary(), full={})

    monkeypatch.setattr(fake_probe, "get_probe_data", _get_probe_data, raising=False)

    offloaded = []
    to_thread = catalog_mod.asyncio.to_thread

    async def _recording_to_thread(func, *args, **kwargs):
        offloaded.append(getattr(func, "__name__", ""))
        return await to_thread(func, *args, **kwargs)

    monkeypatch.setattr(catalog_mod.asyncio, "to_thread", _recording_to_thread)
    app = _build_app(catalog_mod.register_catalog_routes)

    _, body = await _call(app, "GET", f"/api/theaterData?relativePath={MOVIE_FILE}")
    assert body["data"]["probe"] == {"subtitles": [], "audio": []}
    assert probed == [MOVIE_FILE]
    assert "is_file" in offloaded

    _, body = await _call(app, "GET", f"/api/theaterData?relativePath={ALBUM}")
    assert body["data"]["probe"] is None
    assert probed == [MOVIE_FILE]
