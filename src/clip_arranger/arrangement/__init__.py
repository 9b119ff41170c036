"""Arrangement domain exports."""

from clip_arranger.arrangement.clearance import (
    ClearanceStrategy,
    DisabledClearance,
    SplittingClearance,
    clear_range,
    clearance_for_mode,
)
from clip_arranger.arrangement.facade import Arrangement
from clip_arranger.arrangement.holding import create_partial_tile, holding_area_start, relocate, stage_shortened
from clip_arranger.arrangement.lengthen import EditResult, classify_clip, lengthen, shorten
from clip_arranger.arrangement.models import (
    EPSILON,
    ArrangementError,
    BatchItemResult,
    ClipVariant,
    ContentWindow,
    InvariantViolation,
    LoopingClip,
    OneShotAudioUnwarpedClip,
    OneShotAudioWarpedClip,
    OneShotNoteClip,
    PlacedClip,
    ResizeCommand,
    ResizeOutcome,
    ResizeRequest,
    Tile,
)
from clip_arranger.arrangement.service import ArrangementService
from clip_arranger.arrangement.tiling import strip_pre_roll, tile_clip_to_range
from clip_arranger.arrangement.truncate import force_truncate_via_overlay

__all__ = [
    "EPSILON",
    "Arrangement",
    "ArrangementError",
    "ArrangementService",
    "BatchItemResult",
    "ClearanceStrategy",
    "ClipVariant",
    "ContentWindow",
    "DisabledClearance",
    "EditResult",
    "InvariantViolation",
    "LoopingClip",
    "OneShotAudioUnwarpedClip",
    "OneShotAudioWarpedClip",
    "OneShotNoteClip",
    "PlacedClip",
    "ResizeCommand",
    "ResizeOutcome",
    "ResizeRequest",
    "SplittingClearance",
    "Tile",
    "classify_clip",
    "clear_range",
    "clearance_for_mode",
    "create_partial_tile",
    "force_truncate_via_overlay",
    "holding_area_start",
    "lengthen",
    "relocate",
    "shorten",
    "stage_shortened",
    "strip_pre_roll",
    "tile_clip_to_range",
]
