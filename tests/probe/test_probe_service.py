import pytest

from reel_backend.features.catalog.paths import ConfirmedPath
from reel_backend.features.probe.service import ProbeService, build_glossary, track_data_from_probe
from reel_backend.shared import ErrorCode, Result

STREAMS = [
    {"index": 0, "codec_type": "video", "codec_name": "h264"},
    {"index": 1, "codec_type": "audio", "codec_name": "aac", "tags": {"language": "eng", "handler_name": "Stereo"}},
    {"index": 2, "codec_type": "subtitle", "codec_name": "subrip", "codec_long_name": "SubRip", "tags": {"language": "spa"}},
    {"index": 3, "codec_type": "data", "codec_name": "mov_text", "tags": {"handler_name": "Director Commentary"}},
]


class _FakeFFProbe:
    def __init__(self, payload=None):
        self.payload = payload or {"format": {"duration": "12.5"}, "streams": STREAMS, "chapters": []}
        self.calls = []
        self.fail = False

    def is_available(self):
        return True

    async def aread(self, path):
        self.calls.append(path)
        if self.fail:
            return Result.Err(ErrorCode.FFPROBE_ERROR, "bad file")
        return Result.Ok(self.payload)


def _path(tmp_path, name):
    return ConfirmedPath(absolute_path=tmp_path / name, relative_path=name)


def test_build_glossary_picks_subtitles_and_audio():
    glossary = build_glossary(STREAMS)
    assert [(s.index, s.name) for s in glossary.subtitles] == [(2, "spa (SubRip)"), (3, "Director Commentary")]
    assert [(a.index, a.language, a.name) for a in glossary.audio] == [(1, "eng", "Stereo")]


def test_track_data_from_probe_reads_tags_case_insensitively():
    full = {
        "format": {
            "duration": "200.5",
            "tags": {"TITLE": "Song", "Artist": "Band", "album": "Hits", "date": "2001-05-01", "track": "3/12", "GENRE": "Rock"},
        },
        "chapters": [
            {"start_time": "0.000000", "end_time": "60.0", "tags": {"title": "One"}},
            {"start_time": "60.0", "end_time": "90.0", "tags": {}},
        ],
    }
    data = track_data_from_probe(full)
    assert (data.title, data.artist, data.album, data.genre) == ("Song", "Band", "Hits", "Rock")
    assert data.year == 2001
    assert (data.track_number, data.track_total) == (3, 12)
    assert data.duration == 200.5
    assert [(c.title, c.start_time, c.duration) for c in data.chapters] == [("One", 0.0, 60.0), (None, 60.0, 30.0)]


def test_track_data_without_tags():
    data = track_data_from_probe({"format": {}})
    assert data.title is None
    assert data.track_number is None
    assert data.chapters == []


@pytest.mark.asyncio
async def test_probe_results_are_cached(tmp_path):
    ffprobe = _FakeFFProbe()
    service = ProbeService(ffprobe, cache_size=4)
    path = _path(tmp_path, "a.mp4")

    assert await service.get_duration(path) == 12.5
    await service.get_track_data(path)
    assert len(ffprobe.calls) == 1


@pytest.mark.asyncio
async def test_probe_cache_evicts_least_recently_used(tmp_path):
    ffprobe = _FakeFFProbe()
    service = ProbeService(ffprobe, cache_size=2)
    a, b, c = (_path(tmp_path, n) for n in ("a.mp4", "b.mp4", "c.mp4"))

    await service.get_probe_data(a)
    await service.get_probe_data(b)
    await service.get_probe_data(a)
    await service.get_probe_data(c)
    ffprobe.calls.clear()

    await service.get_probe_data(a)
    assert ffprobe.calls == []
    await service.get_probe_data(b)
    assert ffprobe.calls == [str(b.absolute_path)]


@pytest.mark.asyncio
async def test_probe_failures_are_not_cached(tmp_path):
    ffprobe = _FakeFFProbe()
    ffprobe.fail = True
    service = ProbeService(ffprobe)
    path = _path(tmp_path, "a.mp4")

    assert await service.get_probe_data(path) is None
    assert await service.get_track_data(path) is None
    ffprobe.fail = False
    assert (await service.get_probe_data(path)).glossary.audio[0].index == 1
    assert len(ffprobe.calls) == 3


@pytest.mark.asyncio
async def test_clear_drops_cached_results(tmp_path):
    ffprobe = _FakeFFProbe()
    service = ProbeService(ffprobe)
    path = _path(tmp_path, "a.mp4")
    await service.get_probe_data(path)
    service.clear()
    await service.get_probe_data(path)
    assert len(ffprobe.calls) == 2
