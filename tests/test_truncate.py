import pytest

from clip_arranger.arrangement.truncate import force_truncate_via_overlay
from clip_arranger.host.adapter import ClipProperty
from clip_arranger.host.memory import InMemoryHost


def test_truncate_uses_one_temporary_filler() -> None:
    host = InMemoryHost()
    track = host.add_track()
    clip = host.place_clip(track.track_id, 0.0, 8.0)

    force_truncate_via_overlay(host, track.track_id, clip.clip_id, 3.0)

    assert clip.end_time == 3.0
    assert [call.op for call in host.calls] == ["create_filler", "delete"]
    filler = host.calls[0]
    assert filler.position == 3.0
    assert filler.length == 5.0
    assert host.calls[1].clip_id == filler.clip_id
    assert [item.clip_id for item in host.clips_on_track(track.track_id)] == [clip.clip_id]


def test_truncate_to_current_end_is_noop() -> None:
    host = InMemoryHost()
    track = host.add_track()
    clip = host.place_clip(track.track_id, 0.0, 8.0)

    force_truncate_via_overlay(host, track.track_id, clip.clip_id, 3.0)
    force_truncate_via_overlay(host, track.track_id, clip.clip_id, 3.0)

    assert len(host.calls) == 2
    assert host.get_property(clip.clip_id, ClipProperty.END_TIME) == 3.0


def test_truncate_one_shot_moves_end_marker() -> None:
    host = InMemoryHost()
    track = host.add_track()
    clip = host.place_clip(track.track_id, 2.0, 6.0, looping=False, content_start=1.0)

    force_truncate_via_overlay(host, track.track_id, clip.clip_id, 5.0)

    assert clip.start_marker == pytest.approx(1.0)
    assert clip.end_marker == pytest.approx(4.0)


def test_truncate_rejects_later_end() -> None:
    host = InMemoryHost()
    track = host.add_track()
    clip = host.place_clip(track.track_id, 0.0, 4.0)

    with pytest.raises(ValueError):
        force_truncate_via_overlay(host, track.track_id, clip.clip_id, 6.0)
    assert host.calls == []


def test_truncate_rejects_end_at_start() -> None:
    host = InMemoryHost()
    track = host.add_track()
    clip = host.place_clip(track.track_id, 4.0, 4.0)

    with pytest.raises(ValueError):
        force_truncate_via_overlay(host, track.track_id, clip.clip_id, 4.0)
