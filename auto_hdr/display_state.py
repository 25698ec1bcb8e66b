"""Captured desktop mode plus the engine's record of what it has changed."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from .logging_utils import LOGGER_NAME

if TYPE_CHECKING:
    from .preferences import Preferences


@dataclass(frozen=True)
class DisplayMode:
    width: int
    height: int
    color_depth: int
    refresh_rate: int

    def describe(self) -> str:
        return f"{self.width}x{self.height}, {self.color_depth}-bit, {self.refresh_rate}Hz"


@dataclass
class EngineState:
    """``applied_refresh_hz`` is None while the display runs at the original rate."""

    hdr_engaged_by_us: bool = False
    applied_refresh_hz: Optional[int] = None


DisplayProbe = Callable[[], Optional[DisplayMode]]


class DisplayStateStore:
    """Holds the original display mode (captured once per process) and the engine state."""

    def __init__(self, fallback_mode: DisplayMode, logger: Optional[logging.Logger] = None) -> None:
        self._fallback_mode = fallback_mode
        self._logger = logger or logging.getLogger(LOGGER_NAME)
        self._original_mode: Optional[DisplayMode] = None
        self._captured = False
        self.state = EngineState()

    @property
    def original_mode(self) -> Optional[DisplayMode]:
        return self._original_mode

    @property
    def captured(self) -> bool:
        return self._captured

    @property
    def fallback_mode(self) -> DisplayMode:
        return self._fallback_mode

    def capture_once(self, probe: DisplayProbe) -> bool:
        if self._captured:
            return True
        self._logger.info("Attempting to capture original display mode...")
        try:
            mode = probe()
        except Exception as exc:
            self._logger.debug("Display probe raised: %s", exc, exc_info=exc)
            mode = None
        self._captured = True
        if mode is None:
            self._original_mode = self._fallback_mode
            self._logger.warning(
                "Failed to capture original display mode, using fallback %s",
                self._fallback_mode.describe(),
            )
            return False
        self._original_mode = mode
        self._logger.info("Captured original display mode: %s", mode.describe())
        return True

    def base_mode(self) -> DisplayMode:
        """Mode used for dimensions and the restore target."""
        return self._original_mode or self._fallback_mode

    def original_refresh_hz(self) -> int:
        return self.base_mode().refresh_rate

    def current_effective_hz(self) -> int:
        if self.state.applied_refresh_hz is not None:
            return self.state.applied_refresh_hz
        if self._original_mode is not None:
            return self._original_mode.refresh_rate
        return self._fallback_mode.refresh_rate


def configured_display_probe(preferences: "Preferences") -> DisplayProbe:
    """The mode-setter tool cannot query the OS, so the desktop mode comes from preferences."""

    def _probe() -> Optional[DisplayMode]:
        values = (
            preferences.desktop_width,
            preferences.desktop_height,
            preferences.desktop_color_depth,
            preferences.default_desktop_refresh_rate,
        )
        if any(int(value) <= 0 for value in values):
            return None
        return DisplayMode(*(int(value) for value in values))

    return _probe
