import math
import threading
from types import SimpleNamespace

import pytest

from clip_arranger.arrangement.facade import Arrangement
from clip_arranger.arrangement.models import ResizeRequest
from clip_arranger.arrangement.service import ArrangementService
from clip_arranger.config import ArrangementSettings
from clip_arranger.host.memory import InMemoryHost


def _setup() -> tuple[InMemoryHost, str, str]:
    host = InMemoryHost()
    track = host.add_track()
    clip = host.place_clip(track.track_id, 0.0, 8.0)
    return host, track.track_id, clip.clip_id


def test_shorten_records_history() -> None:
    host, track_id, clip_id = _setup()
    service = ArrangementService(host, settings=ArrangementSettings())

    outcome = service.resize(ResizeRequest(track_id, clip_id, 3.0))

    assert outcome.clip_ids == [clip_id]
    assert outcome.achieved_length == 3.0
    history = service.get_history(track_id=track_id)
    assert len(history) == 1
    assert history[0].requested_length == 3.0
    assert service.get_history(track_id="track-other") == []


def test_same_length_is_noop() -> None:
    host, track_id, clip_id = _setup()
    service = ArrangementService(host, settings=ArrangementSettings())

    outcome = service.resize(ResizeRequest(track_id, clip_id, 8.0))

    assert outcome.achieved_length == 8.0
    assert host.calls == []


def test_invalid_requests_fail_before_host_calls() -> None:
    host, track_id, clip_id = _setup()
    other = host.add_track()
    service = ArrangementService(host, settings=ArrangementSettings())

    with pytest.raises(KeyError):
        service.resize(ResizeRequest("track-missing", clip_id, 4.0))
    with pytest.raises(KeyError):
        service.resize(ResizeRequest(other.track_id, clip_id, 4.0))
    with pytest.raises(ValueError):
        service.resize(ResizeRequest(track_id, clip_id, 0.0))
    with pytest.raises(ValueError):
        service.resize(ResizeRequest(track_id, clip_id, -2.0))
    assert host.calls == []


def test_lengthen_leaves_holding_area_empty() -> None:
    host, track_id, clip_id = _setup()
    other = host.add_track()
    host.place_clip(other.track_id, 0.0, 20.0)
    service = ArrangementService(host, settings=ArrangementSettings())

    service.resize(ResizeRequest(track_id, clip_id, 13.0))

    assert max(item.end_time for item in host.clips_on_track(track_id)) == 13.0
    assert len(host.clips_on_track(other.track_id)) == 1


def test_batch_continues_after_failure() -> None:
    host, track_id, clip_id = _setup()
    second = host.place_clip(track_id, 10.0, 4.0)
    service = ArrangementService(host, settings=ArrangementSettings())

    results = service.resize_batch(
        [
            ResizeRequest(track_id, clip_id, 4.0),
            ResizeRequest(track_id, "clip-missing", 4.0),
            ResizeRequest(track_id, second.clip_id, 2.0),
        ]
    )

    assert [item.status for item in results] == ["ok", "failed", "ok"]
    assert results[1].error == f"Clip 'clip-missing' not found on track '{track_id}'"
    assert results[1].outcome is None
    assert second.end_time == 12.0


def test_batch_skips_items_after_deadline(monkeypatch: pytest.MonkeyPatch) -> None:
    host, track_id, clip_id = _setup()
    ticks = iter([0.0, 0.0, 5.0, 5.0])
    monkeypatch.setattr(
        "clip_arranger.arrangement.service.time",
        SimpleNamespace(monotonic=lambda: next(ticks)),
    )
    service = ArrangementService(host, settings=ArrangementSettings())

    results = service.resize_batch(
        [
            ResizeRequest(track_id, clip_id, 6.0),
            ResizeRequest(track_id, clip_id, 4.0),
            ResizeRequest(track_id, clip_id, 2.0),
        ],
        deadline_sec=1.0,
    )

    assert [item.status for item in results] == ["ok", "skipped", "skipped"]
    assert host.clips[clip_id].end_time == 6.0


def test_batch_uses_configured_deadline(monkeypatch: pytest.MonkeyPatch) -> None:
    host, track_id, clip_id = _setup()
    ticks = iter([0.0, 2.0])
    monkeypatch.setattr(
        "clip_arranger.arrangement.service.time",
        SimpleNamespace(monotonic=lambda: next(ticks)),
    )
    service = ArrangementService(host, settings=ArrangementSettings(batch_deadline_sec=1.0))

    results = service.resize_batch([ResizeRequest(track_id, clip_id, 6.0)])

    assert results[0].status == "skipped"
    assert host.calls == []


def test_concurrent_resizes_are_serialized() -> None:
    host = InMemoryHost()
    tracks = [host.add_track() for _ in range(4)]
    clips = [host.place_clip(track.track_id, 0.0, 4.0) for track in tracks]
    service = ArrangementService(host, settings=ArrangementSettings())
    errors: list[Exception] = []

    def _worker(track_id: str, clip_id: str) -> None:
        try:
            service.resize(ResizeRequest(track_id, clip_id, 10.0))
        except Exception as exc:
            errors.append(exc)

    threads = [
        threading.Thread(target=_worker, args=(track.track_id, clip.clip_id)) for track, clip in zip(tracks, clips)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert not host.corrupted
    for track in tracks:
        assert [(item.start_time, item.end_time) for item in host.clips_on_track(track.track_id)] == [
            (0.0, 4.0),
            (4.0, 8.0),
            (8.0, 10.0),
        ]


def test_list_clips_reports_content_window() -> None:
    host, track_id, clip_id = _setup()
    service = ArrangementService(host, settings=ArrangementSettings())

    clips = service.list_clips(track_id)

    assert [item.clip_id for item in clips] == [clip_id]
    assert (clips[0].content_start, clips[0].content_end) == (0.0, 8.0)
    with pytest.raises(KeyError):
        service.list_clips("track-missing")


def test_facade_delegates_to_service() -> None:
    host, track_id, clip_id = _setup()
    arrangement = Arrangement(ArrangementService(host, settings=ArrangementSettings()))

    outcome = arrangement.resize(track_id, clip_id, 12.0)
    results = arrangement.resize_many([(track_id, clip_id, 5.0), (track_id, clip_id, 0.0)])

    assert outcome.achieved_length == 12.0
    assert [item.status for item in results] == ["ok", "failed"]
    assert len(arrangement.get_history()) == 2
    assert arrangement.list_clips(track_id)[0].end_time == 5.0


def test_non_finite_lengths_fail_without_stopping_batch() -> None:
    host, track_id, clip_id = _setup()
    second = host.place_clip(track_id, 10.0, 4.0)
    service = ArrangementService(host, settings=ArrangementSettings())

    results = service.resize_batch(
        [
            ResizeRequest(track_id, clip_id, math.inf),
            ResizeRequest(track_id, clip_id, math.nan),
            ResizeRequest(track_id, second.clip_id, 2.0),
        ]
    )

    assert [item.status for item in results] == ["failed", "failed", "ok"]
    assert "finite" in results[0].error
    assert host.clips[clip_id].end_time == 8.0
    assert second.end_time == 12.0
