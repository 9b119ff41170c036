"""Arrangement public facade."""

from __future__ import annotations

from collections.abc import Iterable

from clip_arranger.arrangement.models import BatchItemResult, PlacedClip, ResizeCommand, ResizeOutcome, ResizeRequest
from clip_arranger.arrangement.service import ArrangementService


class Arrangement:
    def __init__(self, service: ArrangementService) -> None:
        self._service = service

    def list_clips(self, track_id: str) -> list[PlacedClip]:
        return self._service.list_clips(track_id=track_id)

    def resize(self, track_id: str, clip_id: str, length_beats: float) -> ResizeOutcome:
        return self._service.resize(ResizeRequest(track_id=track_id, clip_id=clip_id, target_length=length_beats))

    def resize_many(
        self,
        items: Iterable[tuple[str, str, float]],
        deadline_sec: float | None = None,
    ) -> list[BatchItemResult]:
        requests = [ResizeRequest(track_id=track, clip_id=clip, target_length=length) for track, clip, length in items]
        return self._service.resize_batch(requests, deadline_sec=deadline_sec)

    def get_history(self, track_id: str | None = None) -> list[ResizeCommand]:
        return self._service.get_history(track_id=track_id)
