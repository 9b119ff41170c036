"""Host engine contract and the in-memory reference host."""

from clip_arranger.host.adapter import (
    WRITABLE_PROPERTIES,
    ClipProperty,
    HostCorruptionError,
    HostError,
    PrimitiveAdapter,
)
from clip_arranger.host.memory import HostCall, HostClip, HostTrack, InMemoryHost, NoteEvent

__all__ = [
    "ClipProperty",
    "HostCall",
    "HostClip",
    "HostCorruptionError",
    "HostError",
    "HostTrack",
    "InMemoryHost",
    "NoteEvent",
    "PrimitiveAdapter",
    "WRITABLE_PROPERTIES",
]
