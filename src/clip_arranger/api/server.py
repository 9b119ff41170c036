"""HTTP endpoints for listing and resizing arrangement clips.

The module-level ``app`` serves an empty in-memory host with no tracks, so it
only answers the root endpoint usefully. Hosts embedding the API build their
own with ``create_app(ArrangementService(adapter))``.
"""

from __future__ import annotations

from fastapi import FastAPI, HTTPException

from clip_arranger.api.schemas import (
    ClipSummary,
    ResizeBatchItem,
    ResizeBatchRequest,
    ResizeBatchResponse,
    ResizeClipRequest,
    ResizeClipResponse,
    TrackClipsResponse,
)
from clip_arranger.arrangement.models import ArrangementError, ResizeOutcome, ResizeRequest
from clip_arranger.arrangement.service import ArrangementService
from clip_arranger.host.adapter import HostError
from clip_arranger.host.memory import InMemoryHost


def create_app(arrangement_service: ArrangementService | None = None) -> FastAPI:
    app = FastAPI(title="clip-arranger API", version="0.1.0")
    service = arrangement_service or ArrangementService(InMemoryHost())

    @app.get("/")
    def root() -> dict[str, str]:
        return {
            "service": "clip-arranger API",
            "status": "ok",
            "docs": "/docs",
        }

    @app.get("/v1/tracks/{track_id}/clips", response_model=TrackClipsResponse)
    def list_clips(track_id: str) -> TrackClipsResponse:
        try:
            clips = service.list_clips(track_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=_detail(exc)) from exc
        return TrackClipsResponse(
            track_id=track_id,
            clips=[
                ClipSummary(
                    clip_id=item.clip_id,
                    start_time=item.start_time,
                    end_time=item.end_time,
                    looping=item.looping,
                    content_start=item.content_start,
                    content_end=item.content_end,
                    is_audio=item.is_audio,
                )
                for item in clips
            ],
        )

    @app.post("/v1/arrangement/resize", response_model=ResizeClipResponse)
    def resize_clip(payload: ResizeClipRequest) -> ResizeClipResponse:
        request = ResizeRequest(track_id=payload.track_id, clip_id=payload.clip_id, target_length=payload.length_beats)
        try:
            outcome = service.resize(request)
        except (KeyError, ValueError) as exc:
            raise HTTPException(status_code=400, detail=_detail(exc)) from exc
        except (ArrangementError, HostError) as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _to_response(outcome)

    @app.post("/v1/arrangement/resize-batch", response_model=ResizeBatchResponse)
    def resize_batch(payload: ResizeBatchRequest) -> ResizeBatchResponse:
        requests = [
            ResizeRequest(track_id=item.track_id, clip_id=item.clip_id, target_length=item.length_beats)
            for item in payload.items
        ]
        results = service.resize_batch(requests, deadline_sec=payload.deadline_sec)
        return ResizeBatchResponse(
            items=[
                ResizeBatchItem(
                    track_id=item.request.track_id,
                    clip_id=item.request.clip_id,
                    status=item.status,
                    result=_to_response(item.outcome) if item.outcome is not None else None,
                    error=item.error,
                )
                for item in results
            ]
        )

    return app


def _to_response(outcome: ResizeOutcome) -> ResizeClipResponse:
    return ResizeClipResponse(
        clip_ids=outcome.clip_ids,
        requested_length=outcome.requested_length,
        achieved_length=outcome.achieved_length,
        warnings=outcome.warnings,
    )


def _detail(exc: Exception) -> str:
    if isinstance(exc, KeyError) and exc.args:
        return str(exc.args[0])
    return str(exc)


app = create_app()
