import json

import pytest
from aiohttp import web
from aiohttp.test_utils import make_mocked_request

from reel_backend.routes.handlers import progress as progress_mod
from reel_backend.shared import Result

from media_fixtures import MOVIE, MOVIE_FILE


def _app() -> web.Application:
    app = web.Application()
    routes = web.RouteTableDef()
    progress_mod.register_progress_routes(routes)
    app.add_routes(routes)
    return app


async def _call(app, method, url):
    req = make_mocked_request(method, url, app=app)
    match = await app.router.resolve(req)
    resp = await match.handler(req)
    return json.loads(resp.text)


@pytest.fixture
def wired(monkeypatch, services):
    async def _require_services():
        return services, None

    monkeypatch.setattr(progress_mod, "_require_services", _require_services)
    return services


def _body(monkeypatch, payload):
    async def _read_json(_request):
        return Result.Ok(payload)

    monkeypatch.setattr(progress_mod, "_read_json", _read_json)


@pytest.mark.asyncio
async def test_progress_round_trip_with_bookmark(wired, monkeypatch):
    app = _app()
    _body(
        monkeypatch,
        {
            "relativePath": MOVIE_FILE,
            "progress": {"time": 90, "duration": 600, "percentage": 15, "watchedAt": 1700000000000},
            "bookmarkId": "credits",
        },
    )
    saved = await _call(app, "POST", "/api/watchProgress")
    assert saved["ok"] is True
    assert saved["data"]["watched_at"] == 1700000000000

    fetched = await _call(app, "GET", f"/api/watchProgress?relativePath={MOVIE_FILE}")
    assert fetched["data"]["time"] == 90
    assert [b["name"] for b in fetched["data"]["bookmarks"]] == ["credits"]

    _body(monkeypatch, {"relativePath": MOVIE_FILE, "bookmarkId": "credits"})
    deleted = await _call(app, "DELETE", "/api/watchProgress/bookmark")
    assert deleted["data"] is True
    fetched = await _call(app, "GET", f"/api/watchProgress?relativePath={MOVIE_FILE}")
    assert fetched["data"]["bookmarks"] == []


@pytest.mark.asyncio
async def test_progress_without_record_is_null(wired):
    body = await _call(_app(), "GET", f"/api/watchProgress?relativePath={MOVIE_FILE}")
    assert body["ok"] is True
    assert body["data"] is None


@pytest.mark.asyncio
async def test_progress_rejects_non_numeric_fields(wired, monkeypatch):
    _body(monkeypatch, {"relativePath": MOVIE_FILE, "progress": {"time": "soon", "duration": 1, "percentage": 1}})
    body = await _call(_app(), "POST", "/api/watchProgress")
    assert body["code"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_progress_rejects_escaping_path(wired, monkeypatch):
    _body(monkeypatch, {"relativePath": "../secret.mp4", "progress": {"time": 1, "duration": 1, "percentage": 1}})
    body = await _call(_app(), "POST", "/api/watchProgress")
    assert body["code"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_bookmark_delete_requires_id(wired, monkeypatch):
    _body(monkeypatch, {"relativePath": MOVIE_FILE})
    body = await _call(_app(), "DELETE", "/api/watchProgress/bookmark")
    assert body["code"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_surprise_pin_and_clear(wired, monkeypatch):
    app = _app()
    _body(monkeypatch, {"relativePath": MOVIE, "record": {"pin": "4321", "until": "2031-12-24"}})
    pinned = await _call(app, "POST", "/api/surprise")
    assert pinned["data"]["pin"] == "4321"

    item = (await wired["catalog"].classify(wired["catalog"].resolve_path(MOVIE).unwrap())).unwrap()
    assert item.surprise.until == "2031-12-24"

    _body(monkeypatch, {"relativePath": MOVIE})
    cleared = await _call(app, "POST", "/api/surprise")
    assert cleared["ok"] is True
    item = (await wired["catalog"].classify(wired["catalog"].resolve_path(MOVIE).unwrap())).unwrap()
    assert item.surprise is None


@pytest.mark.asyncio
async def test_surprise_requires_pin_and_until(wired, monkeypatch):
    _body(monkeypatch, {"relativePath": MOVIE, "record": {"pin": "1"}})
    body = await _call(_app(), "POST", "/api/surprise")
    assert body["code"] == "INVALID_INPUT"
