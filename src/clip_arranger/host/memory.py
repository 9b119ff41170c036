"""In-memory host engine with arrangement-style clip semantics.

Clips placed through this host behave like arrangement clips in a DAW:

* creating a clip over occupied time trims, splits or deletes whatever it
  covers, so an overlay is the only way to shorten a placed clip;
* a one-shot clip's placed end follows writes to ``end_marker`` (audio is
  clamped to its file boundary), while looping clips keep their placement;
* the loop region can only be written while looping is on;
* duplicating onto an occupied range corrupts the host unless
  ``overlap_defect`` is disabled.

Unwarped audio markers are in seconds; everything else is in beats.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Literal

from clip_arranger.audio.probe import AudioFileInfo, probe_wav
from clip_arranger.host.adapter import (
    WRITABLE_PROPERTIES,
    ClipProperty,
    HostCorruptionError,
    HostError,
)

TrackKind = Literal["note", "audio"]

_TOLERANCE = 1e-9


@dataclass(slots=True)
class NoteEvent:
    start_time: float
    duration: float
    pitch: int = 60
    velocity: int = 100

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration


@dataclass(slots=True)
class HostTrack:
    track_id: str
    name: str
    kind: TrackKind


@dataclass(slots=True)
class HostClip:
    clip_id: str
    track_id: str
    kind: TrackKind
    start_time: float
    end_time: float
    looping: bool
    loop_start: float
    loop_end: float
    start_marker: float
    end_marker: float
    warping: bool = True
    file_path: str | None = None
    notes: list[NoteEvent] = field(default_factory=list)

    @property
    def length(self) -> float:
        return self.end_time - self.start_time


@dataclass(slots=True)
class HostCall:
    op: Literal["create", "create_filler", "duplicate", "delete"]
    track_id: str
    clip_id: str
    position: float | None = None
    length: float | None = None


class InMemoryHost:
    def __init__(self, tempo_bpm: float = 120.0, beats_per_bar: float = 4.0, overlap_defect: bool = True) -> None:
        if tempo_bpm <= 0:
            raise ValueError("tempo_bpm must be positive")
        if beats_per_bar <= 0:
            raise ValueError("beats_per_bar must be positive")
        self.tempo_bpm = tempo_bpm
        self.beats_per_bar = beats_per_bar
        self.overlap_defect = overlap_defect
        self.corrupted = False
        self.tracks: dict[str, HostTrack] = {}
        self.clips: dict[str, HostClip] = {}
        self.calls: list[HostCall] = []
        self._audio_files: dict[str, float] = {}
        self._next_clip = 1

    def add_track(self, kind: TrackKind = "note", name: str | None = None) -> HostTrack:
        if kind not in {"note", "audio"}:
            raise ValueError(f"unsupported track kind '{kind}'")
        index = len(self.tracks) + 1
        track_id = f"track-{index}"
        track = HostTrack(track_id=track_id, name=name or f"Track {index}", kind=kind)
        self.tracks[track_id] = track
        return track

    def register_audio_file(self, path: str, duration_sec: float) -> None:
        if duration_sec < 0:
            raise ValueError("duration_sec must be >= 0")
        self._audio_files[str(path)] = duration_sec

    def register_wav(self, path: str) -> AudioFileInfo:
        info = probe_wav(path)
        self._audio_files[str(path)] = info.duration_sec
        return info

    def place_clip(
        self,
        track_id: str,
        start_time: float,
        length: float,
        *,
        looping: bool = True,
        content_start: float = 0.0,
        content_end: float | None = None,
        start_marker: float | None = None,
        notes: list[NoteEvent] | None = None,
        file_path: str | None = None,
        warping: bool = True,
    ) -> HostClip:
        """Seed a clip directly, bypassing the primitive call log."""
        track = self._track(track_id)
        if length <= 0:
            raise ValueError("length must be positive")
        if track.kind == "audio":
            if file_path is None or str(file_path) not in self._audio_files:
                raise HostError(f"audio file '{file_path}' is not registered")
        elif file_path is not None:
            raise HostError("note tracks cannot hold audio clips")

        units_per_beat = 1.0 if track.kind == "note" or warping else 60.0 / self.tempo_bpm
        end = content_end if content_end is not None else content_start + length * units_per_beat
        marker = start_marker if start_marker is not None else content_start
        if end <= content_start:
            raise ValueError("content_end must be after content_start")
        if self._overlapping(track_id, start_time, start_time + length):
            raise HostError(f"clip at {start_time} overlaps an existing clip on '{track_id}'")

        clip = HostClip(
            clip_id=self._new_clip_id(),
            track_id=track_id,
            kind=track.kind,
            start_time=start_time,
            end_time=start_time + length,
            looping=looping,
            loop_start=content_start,
            loop_end=end,
            start_marker=marker,
            end_marker=end,
            warping=warping if track.kind == "audio" else True,
            file_path=str(file_path) if file_path is not None else None,
            notes=list(notes or []),
        )
        self.clips[clip.clip_id] = clip
        return clip

    def clips_on_track(self, track_id: str) -> list[HostClip]:
        self._track(track_id)
        items = [clip for clip in self.clips.values() if clip.track_id == track_id]
        return sorted(items, key=lambda clip: (clip.start_time, clip.clip_id))

    def calls_of(self, op: str) -> list[HostCall]:
        return [call for call in self.calls if call.op == op]

    def get_track_ids(self) -> list[str]:
        return list(self.tracks)

    def get_clip_ids(self, track_id: str) -> list[str]:
        return [clip.clip_id for clip in self.clips_on_track(track_id)]

    def get_beats_per_bar(self) -> float:
        return self.beats_per_bar

    def get_tempo_bpm(self) -> float:
        return self.tempo_bpm

    def create_clip(self, track_id: str, position: float, length: float, file_path: str | None = None) -> str:
        self._require_usable()
        track = self._track(track_id)
        _require_positive(length)
        if file_path is None:
            if track.kind == "audio":
                raise HostError("audio clips must reference a file")
            clip = self._blank_clip(track, position, length)
        else:
            if track.kind != "audio":
                raise HostError("note tracks cannot hold audio clips")
            duration_sec = self._audio_files.get(str(file_path))
            if duration_sec is None:
                raise HostError(f"audio file '{file_path}' not found")
            clip = self._blank_clip(track, position, length)
            clip.file_path = str(file_path)
            clip.end_marker = duration_sec * self.tempo_bpm / 60.0

        self._make_room(track_id, position, position + length)
        self.clips[clip.clip_id] = clip
        self.calls.append(HostCall("create", track_id, clip.clip_id, position, length))
        return clip.clip_id

    def create_empty_filler(self, track_id: str, position: float, length: float) -> str:
        self._require_usable()
        track = self._track(track_id)
        _require_positive(length)
        clip = self._blank_clip(track, position, length)
        self._make_room(track_id, position, position + length)
        self.clips[clip.clip_id] = clip
        self.calls.append(HostCall("create_filler", track_id, clip.clip_id, position, length))
        return clip.clip_id

    def duplicate_clip_to_position(self, track_id: str, clip_id: str, position: float) -> str:
        self._require_usable()
        source = self._clip_on_track(track_id, clip_id)
        end = position + source.length
        occupied = self._overlapping(track_id, position, end)
        if occupied:
            if self.overlap_defect:
                self.corrupted = True
                ids = ", ".join(clip.clip_id for clip in occupied)
                raise HostCorruptionError(f"duplicate of '{clip_id}' to {position} overlapped {ids}")
            self._make_room(track_id, position, end)

        copy = replace(
            source,
            clip_id=self._new_clip_id(),
            start_time=position,
            end_time=end,
            notes=list(source.notes),
        )
        self.clips[copy.clip_id] = copy
        self.calls.append(HostCall("duplicate", track_id, copy.clip_id, position, copy.length))
        return copy.clip_id

    def delete_clip(self, track_id: str, clip_id: str) -> None:
        self._require_usable()
        clip = self._clip_on_track(track_id, clip_id)
        del self.clips[clip_id]
        self.calls.append(HostCall("delete", track_id, clip_id, clip.start_time, clip.length))

    def get_property(self, clip_id: str, name: ClipProperty) -> Any:
        clip = self._clip(clip_id)
        prop = ClipProperty(name)
        if prop is ClipProperty.IS_AUDIO_CLIP:
            return clip.kind == "audio"
        if prop is ClipProperty.WARPING:
            return clip.warping if clip.kind == "audio" else False
        return getattr(clip, prop.value)

    def set_property(self, clip_id: str, name: ClipProperty, value: Any) -> None:
        self._require_usable()
        clip = self._clip(clip_id)
        prop = ClipProperty(name)
        if prop not in WRITABLE_PROPERTIES:
            raise HostError(f"property '{prop.value}' is read-only")

        if prop is ClipProperty.LOOPING:
            clip.looping = bool(value)
            return

        number = float(value)
        if prop in {ClipProperty.LOOP_START, ClipProperty.LOOP_END}:
            if not clip.looping:
                raise HostError("loop region can only be changed while looping is on")
            start = number if prop is ClipProperty.LOOP_START else clip.loop_start
            end = number if prop is ClipProperty.LOOP_END else clip.loop_end
            if end - start <= _TOLERANCE:
                raise HostError(f"invalid loop region [{start}, {end})")
            clip.loop_start, clip.loop_end = start, end
            return

        if prop is ClipProperty.START_MARKER:
            if number >= clip.end_marker - _TOLERANCE:
                raise HostError(f"start_marker {number} must be before end_marker {clip.end_marker}")
            clip.start_marker = number
            return

        if number <= clip.start_marker + _TOLERANCE:
            raise HostError(f"end_marker {number} must be after start_marker {clip.start_marker}")
        boundary = self._file_boundary(clip)
        if boundary is not None:
            number = min(number, boundary)
        if clip.looping:
            clip.end_marker = number
            return

        new_end = clip.start_time + (number - clip.start_marker) * self._beats_per_unit(clip)
        if new_end > clip.end_time + _TOLERANCE:
            blocking = [other for other in self._overlapping(clip.track_id, clip.end_time, new_end) if other is not clip]
            if blocking:
                raise HostError(f"clip '{clip_id}' cannot grow over '{blocking[0].clip_id}'")
        clip.end_marker = number
        clip.end_time = new_end

    def get_overlapping_clip_ids(self, track_id: str, range_start: float, range_end: float) -> list[str]:
        self._track(track_id)
        return [clip.clip_id for clip in self._overlapping(track_id, range_start, range_end)]

    def get_content_extent(self, clip_id: str) -> float:
        clip = self._clip(clip_id)
        if clip.kind == "note":
            if not clip.notes:
                return 0.0
            return max(note.end_time for note in clip.notes)
        boundary = self._file_boundary(clip)
        if boundary is None:
            raise HostError(f"clip '{clip_id}' does not reference an audio file")
        return boundary

    def _blank_clip(self, track: HostTrack, position: float, length: float) -> HostClip:
        return HostClip(
            clip_id=self._new_clip_id(),
            track_id=track.track_id,
            kind=track.kind,
            start_time=position,
            end_time=position + length,
            looping=True,
            loop_start=0.0,
            loop_end=length,
            start_marker=0.0,
            end_marker=length,
        )

    def _make_room(self, track_id: str, start: float, end: float) -> None:
        for clip in self._overlapping(track_id, start, end):
            covers_start = clip.start_time >= start - _TOLERANCE
            covers_end = clip.end_time <= end + _TOLERANCE
            if covers_start and covers_end:
                del self.clips[clip.clip_id]
            elif not covers_start and not covers_end:
                tail = replace(clip, clip_id=self._new_clip_id(), notes=list(clip.notes))
                self._trim_start(tail, end)
                self.clips[tail.clip_id] = tail
                self._trim_end(clip, start)
            elif not covers_start:
                self._trim_end(clip, start)
            else:
                self._trim_start(clip, end)

    def _trim_end(self, clip: HostClip, new_end: float) -> None:
        clip.end_time = new_end
        if not clip.looping:
            clip.end_marker = clip.start_marker + (new_end - clip.start_time) / self._beats_per_unit(clip)

    def _trim_start(self, clip: HostClip, new_start: float) -> None:
        delta = (new_start - clip.start_time) / self._beats_per_unit(clip)
        clip.start_time = new_start
        marker = clip.start_marker + delta
        loop_length = clip.loop_end - clip.loop_start
        # Pre-roll before the loop start plays once; only positions past it wrap.
        if clip.looping and marker >= clip.loop_start and loop_length > 0:
            marker = clip.loop_start + (marker - clip.loop_start) % loop_length
        clip.start_marker = marker

    def _beats_per_unit(self, clip: HostClip) -> float:
        if clip.kind == "audio" and clip.file_path is not None and not clip.warping:
            return self.tempo_bpm / 60.0
        return 1.0

    def _file_boundary(self, clip: HostClip) -> float | None:
        if clip.kind != "audio" or clip.file_path is None:
            return None
        duration_sec = self._audio_files.get(clip.file_path)
        if duration_sec is None:
            return None
        if clip.warping:
            return duration_sec * self.tempo_bpm / 60.0
        return duration_sec

    def _overlapping(self, track_id: str, start: float, end: float) -> list[HostClip]:
        items = [
            clip
            for clip in self.clips.values()
            if clip.track_id == track_id
            and clip.start_time < end - _TOLERANCE
            and clip.end_time > start + _TOLERANCE
        ]
        return sorted(items, key=lambda clip: clip.start_time)

    def _new_clip_id(self) -> str:
        clip_id = f"clip-{self._next_clip}"
        self._next_clip += 1
        return clip_id

    def _track(self, track_id: str) -> HostTrack:
        track = self.tracks.get(track_id)
        if track is None:
            raise KeyError(f"track '{track_id}' not found")
        return track

    def _clip(self, clip_id: str) -> HostClip:
        clip = self.clips.get(clip_id)
        if clip is None:
            raise KeyError(f"clip '{clip_id}' not found")
        return clip

    def _clip_on_track(self, track_id: str, clip_id: str) -> HostClip:
        self._track(track_id)
        clip = self._clip(clip_id)
        if clip.track_id != track_id:
            raise HostError(f"clip '{clip_id}' is not on track '{track_id}'")
        return clip

    def _require_usable(self) -> None:
        if self.corrupted:
            raise HostCorruptionError("host state is corrupted")


def _require_positive(length: float) -> None:
    if length <= 0:
        raise HostError(f"clip length must be positive, got {length}")
