import sys

import pytest
import pytest_asyncio

from repo_root import REPO_ROOT

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from media_fixtures import FakeProbe, build_media_tree  # noqa: E402


@pytest.fixture
def media_root(tmp_path):
    root = tmp_path / "media"
    build_media_tree(root)
    return root


@pytest.fixture
def fake_probe():
    return FakeProbe()


@pytest_asyncio.fixture
async def catalog(media_root, fake_probe):
    from reel_backend.features.catalog import CatalogService

    yield CatalogService(media_root, probe=fake_probe, read_exif=False)


@pytest_asyncio.fixture
async def services(media_root, fake_probe, monkeypatch):
    from reel_backend import deps as deps_mod

    monkeypatch.setattr(deps_mod, "_build_probe", lambda _ffprobe: fake_probe)
    svc_res = await deps_mod.build_services(media_root)
    assert svc_res.ok, svc_res.error
    yield svc_res.data
