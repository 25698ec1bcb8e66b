"""Map content frame rates onto integer display refresh rates."""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from .logging_utils import LOGGER_NAME

# Checked in this order; the mode setter only accepts integer rates, so
# fractional NTSC cadences map to their truncated value.
EXACT_CADENCES: Tuple[Tuple[float, int], ...] = (
    (23.976, 23),
    (24.000, 24),
    (25.000, 25),
    (29.970, 29),
    (30.000, 30),
    (50.000, 50),
    (59.940, 59),
    (60.000, 60),
)
EXACT_TOLERANCE = 0.01

# Half-open [low, high) buckets.
RANGE_BUCKETS: Tuple[Tuple[float, float, int], ...] = (
    (23.0, 25.0, 24),
    (25.0, 27.0, 50),
    (29.0, 31.0, 60),
    (48.0, 52.0, 50),
    (59.0, 61.0, 60),
)

CANDIDATE_RATES: Tuple[int, ...] = (24, 30, 50, 60, 75, 120, 144)
MULTIPLE_TOLERANCE = 0.1
MAX_MULTIPLE = 5

_LOGGER = logging.getLogger(LOGGER_NAME)


def map_fps_to_hz(fps: Optional[float]) -> Optional[int]:
    """Return the refresh rate to use for ``fps`` or ``None`` when nothing fits."""
    if fps is None or isinstance(fps, bool):
        return None
    try:
        value = float(fps)
    except (TypeError, ValueError):
        return None
    if value <= 0:
        return None

    rounded = round(value, 3)

    for cadence, target_hz in EXACT_CADENCES:
        if abs(rounded - cadence) < EXACT_TOLERANCE:
            return target_hz

    for low, high, target_hz in RANGE_BUCKETS:
        if low <= rounded < high:
            return target_hz

    for target_hz in CANDIDATE_RATES:
        ratio = target_hz / rounded
        if 1 <= ratio <= MAX_MULTIPLE and abs(ratio - round(ratio)) < MULTIPLE_TOLERANCE:
            return target_hz

    _LOGGER.warning("No suitable refresh rate mapping found for %.3f FPS", value)
    return None
