"""Audio file metadata helpers."""

from clip_arranger.audio.probe import AudioFileInfo, probe_wav

__all__ = [
    "AudioFileInfo",
    "probe_wav",
]
