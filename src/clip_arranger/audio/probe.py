"""WAV metadata probing for audio clip content boundaries."""

from __future__ import annotations

import wave
from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True)
class AudioFileInfo:
    path: Path
    sample_rate: int
    channels: int
    frame_count: int

    @property
    def duration_sec(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.frame_count / self.sample_rate

    def duration_beats(self, tempo_bpm: float) -> float:
        return self.duration_sec * tempo_bpm / 60.0


def probe_wav(path: str | Path) -> AudioFileInfo:
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(str(file_path))

    with wave.open(str(file_path), "rb") as wav:
        channels = wav.getnchannels()
        sample_rate = wav.getframerate()
        frame_count = wav.getnframes()

    if channels <= 0:
        raise ValueError("invalid channel count in wav file")
    if sample_rate <= 0:
        raise ValueError(f"invalid sample rate: {sample_rate}")

    return AudioFileInfo(
        path=file_path,
        sample_rate=sample_rate,
        channels=channels,
        frame_count=frame_count,
    )
