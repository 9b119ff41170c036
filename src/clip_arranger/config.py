"""Runtime settings loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

ClearanceMode = Literal["splitting", "disabled"]


def normalize_clearance_mode(mode: str | None) -> ClearanceMode:
    if mode is None:
        return "splitting"
    normalized = mode.strip().lower()
    if normalized in {"splitting", "split", "on", "enabled", "true", "1"}:
        return "splitting"
    if normalized in {"disabled", "off", "none", "false", "0"}:
        return "disabled"
    raise ValueError(f"Unsupported clearance mode '{mode}'")


@dataclass(slots=True)
class ArrangementSettings:
    holding_gap_bars: int = 10
    clear_margin_beats: float = 100.0
    clearance_mode: ClearanceMode = "splitting"
    batch_deadline_sec: float | None = None

    @staticmethod
    def from_env() -> ArrangementSettings:
        gap_raw = os.getenv("CLIP_ARRANGER_HOLDING_GAP_BARS", "10").strip()
        margin_raw = os.getenv("CLIP_ARRANGER_CLEAR_MARGIN_BEATS", "100").strip()
        mode_raw = os.getenv("CLIP_ARRANGER_CLEARANCE")
        deadline_raw = os.getenv("CLIP_ARRANGER_BATCH_DEADLINE_SEC", "").strip()

        try:
            gap_bars = int(gap_raw)
        except ValueError:
            gap_bars = 10
        try:
            margin = float(margin_raw)
        except ValueError:
            margin = 100.0
        try:
            mode = normalize_clearance_mode(mode_raw)
        except ValueError:
            mode = "splitting"
        deadline: float | None
        try:
            deadline = float(deadline_raw) if deadline_raw else None
        except ValueError:
            deadline = None

        return ArrangementSettings(
            holding_gap_bars=max(gap_bars, 1),
            clear_margin_beats=max(margin, 1.0),
            clearance_mode=mode,
            batch_deadline_sec=deadline if deadline is None or deadline > 0 else None,
        )
