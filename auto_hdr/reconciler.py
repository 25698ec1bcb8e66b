"""Reconciles the display with the classified stream and restores it afterwards.

The engine is the only writer of :class:`~auto_hdr.display_state.EngineState`.
Every external command either succeeds and advances the state, or fails and
leaves the state exactly as it was, so any later ``apply``/``revert`` call
retries naturally. ``revert`` is guarded purely by that state, which makes it
safe to call from several event paths in any order.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from .classifier import ClassificationResult
from .command_executor import HdrToggler, ModeSetter
from .display_state import DisplayStateStore, EngineState
from .logging_utils import LOGGER_NAME


class Reconciler:
    def __init__(
        self,
        store: DisplayStateStore,
        hdr_tool: HdrToggler,
        mode_tool: ModeSetter,
        logger: Optional[logging.Logger] = None,
        *,
        hdr_enabled: bool = True,
        refresh_enabled: bool = True,
    ) -> None:
        self.store = store
        self._hdr_tool = hdr_tool
        self._mode_tool = mode_tool
        self._logger = logger or logging.getLogger(LOGGER_NAME)
        self._hdr_enabled = hdr_enabled
        self._refresh_enabled = refresh_enabled

    @property
    def state(self) -> EngineState:
        return self.store.state

    @property
    def hdr_enabled(self) -> bool:
        return self._hdr_enabled

    @property
    def refresh_enabled(self) -> bool:
        return self._refresh_enabled

    @property
    def hdr_tool(self) -> HdrToggler:
        return self._hdr_tool

    @property
    def mode_tool(self) -> ModeSetter:
        return self._mode_tool

    def disable_hdr(self) -> None:
        self._hdr_enabled = False

    def disable_refresh(self) -> None:
        self._refresh_enabled = False

    # Apply ----------------------------------------------------------------

    def apply(self, classification: Optional[ClassificationResult], target_hz: Optional[int]) -> bool:
        """Return True when a display-affecting command actually executed."""
        changed = False
        if self._hdr_enabled and classification is not None:
            changed = self._apply_hdr(classification.is_hdr) or changed
        if self._refresh_enabled and target_hz is not None:
            changed = self._apply_refresh(int(target_hz)) or changed
        return changed

    def _apply_hdr(self, want_hdr: bool) -> bool:
        engaged = self.state.hdr_engaged_by_us
        if want_hdr == engaged:
            return False
        action = "on" if want_hdr else "off"
        self._logger.info("Executing HDR command: %s", action)
        if not self._hdr_tool.set_enabled(want_hdr):
            self._logger.error("HDR command failed: %s", action)
            return False
        self.state.hdr_engaged_by_us = want_hdr
        self._logger.info("HDR command executed successfully: %s", action)
        return True

    def _apply_refresh(self, target_hz: int) -> bool:
        current_hz = self.store.current_effective_hz()
        if current_hz == target_hz:
            self._logger.debug("Refresh rate %dHz already matches target %dHz", current_hz, target_hz)
            return False
        mode = replace(self.store.base_mode(), refresh_rate=target_hz)
        self._logger.info(
            "Changing refresh rate from %dHz to %dHz (Resolution: %dx%d, ColorDepth: %d-bit)",
            current_hz,
            target_hz,
            mode.width,
            mode.height,
            mode.color_depth,
        )
        if not self._mode_tool.set_mode(mode):
            self._logger.error("Failed to change refresh rate to %dHz", target_hz)
            return False
        if target_hz == self.store.original_refresh_hz():
            self.state.applied_refresh_hz = None
        else:
            self.state.applied_refresh_hz = target_hz
        self._logger.info("Successfully changed refresh rate to %dHz", target_hz)
        return True

    # Revert ---------------------------------------------------------------

    def revert(self) -> bool:
        """Undo whatever this engine changed; True when nothing is left outstanding."""
        refresh_ok = self._revert_refresh()
        hdr_ok = self._revert_hdr()
        return refresh_ok and hdr_ok

    def _revert_refresh(self) -> bool:
        applied = self.state.applied_refresh_hz
        original_hz = self.store.original_refresh_hz()
        if applied is None:
            self._logger.debug("Refresh rate already at original %dHz; no revert needed", original_hz)
            return True
        if applied == original_hz:
            self._logger.info("Current rate (%dHz) is the original rate; finalizing revert state", original_hz)
            self.state.applied_refresh_hz = None
            return True
        self._logger.info("Reverting refresh rate from %dHz to %dHz", applied, original_hz)
        if not self._mode_tool.set_mode(self.store.base_mode()):
            self._logger.error("Failed to revert refresh rate to %dHz", original_hz)
            return False
        self.state.applied_refresh_hz = None
        self._logger.info("Successfully reverted refresh rate to %dHz", original_hz)
        return True

    def _revert_hdr(self) -> bool:
        if not self.state.hdr_engaged_by_us:
            return True
        self._logger.info("Executing HDR command: off")
        if not self._hdr_tool.set_enabled(False):
            self._logger.error("Failed to turn HDR off; will retry on next revert")
            return False
        self.state.hdr_engaged_by_us = False
        self._logger.info("HDR command executed successfully: off")
        return True
