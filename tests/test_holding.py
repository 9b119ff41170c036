import pytest

from clip_arranger.arrangement.clearance import SplittingClearance
from clip_arranger.arrangement.holding import create_partial_tile, holding_area_start, relocate, stage_shortened
from clip_arranger.host.adapter import HostError
from clip_arranger.host.memory import InMemoryHost


class _HostRefusingEarlyDuplicates(InMemoryHost):
    def __init__(self, fail_below: float) -> None:
        super().__init__()
        self.fail_below = fail_below

    def duplicate_clip_to_position(self, track_id: str, clip_id: str, position: float) -> str:
        if position < self.fail_below:
            raise HostError("duplicate refused")
        return super().duplicate_clip_to_position(track_id, clip_id, position)


def test_holding_area_starts_ten_bars_past_last_clip() -> None:
    host = InMemoryHost(beats_per_bar=4.0)
    first = host.add_track()
    second = host.add_track()
    host.place_clip(first.track_id, 0.0, 4.0)
    host.place_clip(second.track_id, 3.0, 6.0)

    assert holding_area_start(host) == 52.0


def test_holding_area_on_empty_arrangement() -> None:
    host = InMemoryHost(beats_per_bar=3.0)
    host.add_track()

    assert holding_area_start(host) == 30.0


def test_holding_area_respects_pending_end() -> None:
    host = InMemoryHost(beats_per_bar=4.0)
    track = host.add_track()
    host.place_clip(track.track_id, 0.0, 4.0)

    assert holding_area_start(host, gap_bars=2, minimum_end=100.0) == 108.0


def test_stage_and_relocate_leave_holding_empty() -> None:
    host = InMemoryHost()
    track = host.add_track()
    source = host.place_clip(track.track_id, 0.0, 8.0)
    clearance = SplittingClearance()

    holding_id = stage_shortened(host, track.track_id, source.clip_id, 3.0, 60.0, clearance)
    staged = host.clips[holding_id]
    assert (staged.start_time, staged.end_time) == (60.0, 63.0)

    final_id = relocate(host, track.track_id, holding_id, 8.0, clearance)

    assert holding_id not in host.clips
    assert (host.clips[final_id].start_time, host.clips[final_id].end_time) == (8.0, 11.0)
    assert host.get_overlapping_clip_ids(track.track_id, 60.0, 1000.0) == []


def test_stage_rejects_longer_target() -> None:
    host = InMemoryHost()
    track = host.add_track()
    source = host.place_clip(track.track_id, 0.0, 4.0)

    with pytest.raises(ValueError):
        stage_shortened(host, track.track_id, source.clip_id, 6.0, 60.0, SplittingClearance())


def test_failed_relocation_clears_holding_area() -> None:
    host = _HostRefusingEarlyDuplicates(fail_below=100.0)
    track = host.add_track()
    source = host.place_clip(track.track_id, 0.0, 4.0)

    with pytest.raises(HostError):
        create_partial_tile(host, track.track_id, source.clip_id, 4.0, 3.0, 100.0, SplittingClearance())

    assert host.get_overlapping_clip_ids(track.track_id, 100.0, 1000.0) == []
    assert [item.clip_id for item in host.clips_on_track(track.track_id)] == [source.clip_id]
