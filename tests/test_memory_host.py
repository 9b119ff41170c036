import pytest

from clip_arranger.host.adapter import ClipProperty, HostCorruptionError, HostError
from clip_arranger.host.memory import InMemoryHost


def test_create_over_clip_trims_its_tail() -> None:
    host = InMemoryHost()
    track = host.add_track()
    clip = host.place_clip(track.track_id, 0.0, 8.0)

    host.create_empty_filler(track.track_id, 3.0, 5.0)

    assert clip.end_time == 3.0
    assert [item.start_time for item in host.clips_on_track(track.track_id)] == [0.0, 3.0]


def test_create_inside_clip_splits_it() -> None:
    host = InMemoryHost()
    track = host.add_track()
    host.place_clip(track.track_id, 0.0, 8.0, looping=False)

    host.create_empty_filler(track.track_id, 2.0, 2.0)

    spans = [(item.start_time, item.end_time) for item in host.clips_on_track(track.track_id)]
    assert spans == [(0.0, 2.0), (2.0, 4.0), (4.0, 8.0)]
    tail = host.clips_on_track(track.track_id)[-1]
    assert tail.start_marker == pytest.approx(4.0)


def test_one_shot_end_marker_moves_placement() -> None:
    host = InMemoryHost()
    track = host.add_track()
    clip = host.place_clip(track.track_id, 0.0, 4.0, looping=False)

    host.set_property(clip.clip_id, ClipProperty.END_MARKER, 6.0)

    assert clip.end_time == 6.0


def test_looping_end_marker_keeps_placement() -> None:
    host = InMemoryHost()
    track = host.add_track()
    clip = host.place_clip(track.track_id, 0.0, 4.0)

    host.set_property(clip.clip_id, ClipProperty.END_MARKER, 2.0)

    assert clip.end_time == 4.0
    assert clip.end_marker == 2.0


def test_loop_region_requires_looping() -> None:
    host = InMemoryHost()
    track = host.add_track()
    clip = host.place_clip(track.track_id, 0.0, 4.0, looping=False)

    with pytest.raises(HostError):
        host.set_property(clip.clip_id, ClipProperty.LOOP_END, 2.0)


def test_read_only_property_rejected() -> None:
    host = InMemoryHost()
    track = host.add_track()
    clip = host.place_clip(track.track_id, 0.0, 4.0)

    with pytest.raises(HostError):
        host.set_property(clip.clip_id, ClipProperty.START_TIME, 1.0)


def test_duplicate_onto_occupied_range_corrupts_host() -> None:
    host = InMemoryHost()
    track = host.add_track()
    source = host.place_clip(track.track_id, 0.0, 4.0)
    host.place_clip(track.track_id, 4.0, 4.0)

    with pytest.raises(HostCorruptionError):
        host.duplicate_clip_to_position(track.track_id, source.clip_id, 2.0)
    assert host.corrupted

    with pytest.raises(HostCorruptionError):
        host.create_clip(track.track_id, 20.0, 1.0)


def test_duplicate_without_defect_makes_room() -> None:
    host = InMemoryHost(overlap_defect=False)
    track = host.add_track()
    source = host.place_clip(track.track_id, 0.0, 4.0)
    host.place_clip(track.track_id, 4.0, 4.0)

    copy_id = host.duplicate_clip_to_position(track.track_id, source.clip_id, 4.0)

    assert not host.corrupted
    assert host.get_overlapping_clip_ids(track.track_id, 4.0, 8.0) == [copy_id]


def test_audio_end_marker_clamped_to_file() -> None:
    host = InMemoryHost(tempo_bpm=120.0)
    track = host.add_track("audio")
    host.register_audio_file("kick.wav", 3.0)
    clip = host.place_clip(track.track_id, 0.0, 4.0, looping=False, file_path="kick.wav")

    host.set_property(clip.clip_id, ClipProperty.END_MARKER, 20.0)

    assert clip.end_marker == pytest.approx(6.0)
    assert clip.end_time == pytest.approx(6.0)


def test_call_log_records_primitives() -> None:
    host = InMemoryHost()
    track = host.add_track()
    source = host.place_clip(track.track_id, 0.0, 4.0)

    copy_id = host.duplicate_clip_to_position(track.track_id, source.clip_id, 8.0)
    host.delete_clip(track.track_id, copy_id)

    assert [call.op for call in host.calls] == ["duplicate", "delete"]
    assert host.calls_of("duplicate")[0].position == 8.0


def test_split_tail_inside_pre_roll_keeps_marker() -> None:
    host = InMemoryHost()
    track = host.add_track()
    host.place_clip(track.track_id, 0.0, 10.0, content_start=2.0, content_end=6.0, start_marker=0.0)

    host.create_empty_filler(track.track_id, 0.5, 0.5)

    tail = host.clips_on_track(track.track_id)[-1]
    assert tail.start_time == 1.0
    assert tail.start_marker == pytest.approx(1.0)
