"""Arrangement service: resize placed clips and keep a history of resizes."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable

from clip_arranger.arrangement.clearance import ClearanceStrategy, clearance_for_mode
from clip_arranger.arrangement.holding import holding_area_start
from clip_arranger.arrangement.lengthen import EditResult, classify_clip, lengthen, shorten
from clip_arranger.arrangement.markers import read_content_window
from clip_arranger.arrangement.models import (
    EPSILON,
    ArrangementError,
    BatchItemResult,
    InvariantViolation,
    PlacedClip,
    ResizeCommand,
    ResizeOutcome,
    ResizeRequest,
)
from clip_arranger.config import ArrangementSettings
from clip_arranger.host.adapter import ClipProperty, HostError, PrimitiveAdapter

log = logging.getLogger(__name__)

_HOLDING_SCAN_END = 1e9


class ArrangementService:
    def __init__(
        self,
        adapter: PrimitiveAdapter,
        settings: ArrangementSettings | None = None,
        clearance: ClearanceStrategy | None = None,
    ) -> None:
        self._adapter = adapter
        self._settings = settings or ArrangementSettings.from_env()
        self._clearance = clearance or clearance_for_mode(
            self._settings.clearance_mode, self._settings.clear_margin_beats
        )
        self._lock = threading.Lock()
        self._commands: dict[str, ResizeCommand] = {}
        self._command_order: list[str] = []

    @property
    def adapter(self) -> PrimitiveAdapter:
        return self._adapter

    def list_clips(self, track_id: str) -> list[PlacedClip]:
        self._require_track(track_id)
        clips: list[PlacedClip] = []
        for clip_id in self._adapter.get_clip_ids(track_id):
            window = read_content_window(self._adapter, clip_id)
            clips.append(
                PlacedClip(
                    clip_id=clip_id,
                    start_time=float(self._adapter.get_property(clip_id, ClipProperty.START_TIME)),
                    end_time=float(self._adapter.get_property(clip_id, ClipProperty.END_TIME)),
                    looping=bool(self._adapter.get_property(clip_id, ClipProperty.LOOPING)),
                    content_start=window.start,
                    content_end=window.end,
                    is_audio=bool(self._adapter.get_property(clip_id, ClipProperty.IS_AUDIO_CLIP)),
                )
            )
        return sorted(clips, key=lambda item: item.start_time)

    def resize(self, request: ResizeRequest) -> ResizeOutcome:
        request.validate()
        with self._lock:
            return self._resize_locked(request)

    def resize_batch(
        self,
        requests: Iterable[ResizeRequest],
        deadline_sec: float | None = None,
    ) -> list[BatchItemResult]:
        """Resize clips in order; one failing item does not stop the rest.

        Once ``deadline_sec`` has elapsed no further items are started; they
        are reported as skipped. A resize already running is never cut short.
        """
        limit = deadline_sec if deadline_sec is not None else self._settings.batch_deadline_sec
        started = time.monotonic()
        results: list[BatchItemResult] = []
        for request in requests:
            if limit is not None and time.monotonic() - started >= limit:
                log.warning("batch deadline reached, skipping %s on %s", request.clip_id, request.track_id)
                results.append(BatchItemResult(request, "skipped", error="batch deadline reached"))
                continue
            try:
                outcome = self.resize(request)
            except (ArrangementError, HostError, KeyError, ValueError) as exc:
                log.warning("resize of %s on %s failed: %s", request.clip_id, request.track_id, exc)
                results.append(BatchItemResult(request, "failed", error=_format_error(exc)))
                continue
            results.append(BatchItemResult(request, "ok", outcome=outcome))
        return results

    def get_history(self, track_id: str | None = None) -> list[ResizeCommand]:
        items: list[ResizeCommand] = []
        for command_id in reversed(self._command_order):
            command = self._commands[command_id]
            if track_id is not None and command.track_id != track_id:
                continue
            items.append(command)
        return items

    def _resize_locked(self, request: ResizeRequest) -> ResizeOutcome:
        self._require_clip(request.track_id, request.clip_id)
        clip = classify_clip(self._adapter, request.track_id, request.clip_id)
        target = request.target_length

        if abs(target - clip.length) <= EPSILON:
            result = EditResult(clip_ids=[clip.clip_id], achieved_length=clip.length)
        elif target < clip.length:
            result = shorten(self._adapter, clip, target)
        else:
            holding_start = holding_area_start(
                self._adapter,
                gap_bars=self._settings.holding_gap_bars,
                minimum_end=clip.start_time + target,
            )
            result = lengthen(self._adapter, clip, target, holding_start, self._clearance)
            self._require_holding_empty(request.track_id, holding_start)

        outcome = ResizeOutcome(
            clip_ids=result.clip_ids,
            requested_length=target,
            achieved_length=result.achieved_length,
            warnings=list(result.warnings),
        )
        command = ResizeCommand.new(request, outcome)
        self._commands[command.command_id] = command
        self._command_order.append(command.command_id)
        log.info(
            "resized %s on %s to %.3f beats (%d clips)",
            request.clip_id,
            request.track_id,
            outcome.achieved_length,
            len(outcome.clip_ids),
        )
        return outcome

    def _require_track(self, track_id: str) -> None:
        if track_id not in self._adapter.get_track_ids():
            raise KeyError(f"Track '{track_id}' not found")

    def _require_clip(self, track_id: str, clip_id: str) -> None:
        self._require_track(track_id)
        if clip_id not in self._adapter.get_clip_ids(track_id):
            raise KeyError(f"Clip '{clip_id}' not found on track '{track_id}'")

    def _require_holding_empty(self, track_id: str, holding_start: float) -> None:
        leftovers = self._adapter.get_overlapping_clip_ids(track_id, holding_start, _HOLDING_SCAN_END)
        if leftovers:
            raise InvariantViolation(f"holding area on '{track_id}' still holds {leftovers}")


def _format_error(exc: Exception) -> str:
    if isinstance(exc, KeyError) and exc.args:
        return str(exc.args[0])
    text = str(exc).strip().replace("\n", " ")
    return text or type(exc).__name__
