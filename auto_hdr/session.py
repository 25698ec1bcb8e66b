from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from .classifier import ClassificationResult, StreamMetadata, bit_depth, classify
from .display_state import DisplayProbe, configured_display_probe
from .logging_utils import LOGGER_NAME
from .mpv_host import HostLike, TimerHandle
from .reconciler import Reconciler
from .refresh_rate import map_fps_to_hz

if TYPE_CHECKING:
    from .preferences import Preferences

# Becomes non-empty once the decoder has produced video parameters.
METADATA_PROPERTY = "video-params/primaries"


class SessionPhase(Enum):
    IDLE = "idle"
    AWAITING_METADATA = "awaiting-metadata"
    ACTIVE = "active"


def read_stream_metadata(host: HostLike) -> StreamMetadata:
    transfer = host.get_property("video-params/transfer") or host.get_property("video-params/gamma")
    return StreamMetadata(
        primaries=host.get_property("video-params/primaries"),
        transfer=transfer,
        colorspace=host.get_property("video-params/colorspace"),
        pixel_format=host.get_property("video-params/pixelformat"),
        dolby_vision=host.get_property("video-params/dolby-vision"),
        file_format=host.get_property("file-format"),
        container_fps=_as_float(host.get_property_native("container-fps")),
        estimated_fps=_as_float(host.get_property_native("estimated-vf-fps")),
    )


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class SessionController:
    """Sequences reconciliation against the player's file lifecycle.

    Each ``file-loaded`` starts a new session generation. The metadata observer
    and the post-change resume timer are bound to the generation that created
    them, so a callback from a superseded session is dropped even if the
    player delivers it late.
    """

    def __init__(
        self,
        host: HostLike,
        reconciler: Reconciler,
        preferences: "Preferences",
        logger: Optional[logging.Logger] = None,
        probe: Optional[DisplayProbe] = None,
    ) -> None:
        self._host = host
        self._reconciler = reconciler
        self._logger = logger or logging.getLogger(LOGGER_NAME)
        self._probe = probe or configured_display_probe(preferences)
        self._settings = preferences.detection_settings()
        self._pause_seconds = preferences.playback_delay_seconds()
        self._lock = threading.RLock()
        self._phase = SessionPhase.IDLE
        self._generation = 0
        self._subscription: Optional[Any] = None
        self._resume_timer: Optional[TimerHandle] = None
        self.last_classification: Optional[ClassificationResult] = None

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def subscription_pending(self) -> bool:
        return self._subscription is not None

    @property
    def resume_pending(self) -> bool:
        return self._resume_timer is not None

    # Lifecycle events -----------------------------------------------------

    def on_file_loaded(self) -> None:
        with self._lock:
            self._logger.info("File loaded, preparing for content analysis...")
            self._reconciler.store.capture_once(self._probe)
            self._cancel_subscription()
            self._cancel_resume(unpause=True)
            self._generation += 1
            generation = self._generation
            self._phase = SessionPhase.AWAITING_METADATA

            def _on_property(name: str, value: Any) -> None:
                self._on_metadata(generation, name, value)

            self._logger.debug("Setting up video data observer for '%s'", METADATA_PROPERTY)
            self._subscription = self._host.subscribe(METADATA_PROPERTY, _on_property)

    def on_end_file(self) -> bool:
        return self._finish("Playback finished, reverting changes...", "End-file cleanup completed", unpause=True)

    def on_shutdown(self) -> bool:
        return self._finish("mpv shutting down, reverting changes...", "Cleanup completed")

    # Internals ------------------------------------------------------------

    def _on_metadata(self, generation: int, name: str, value: Any) -> None:
        with self._lock:
            if generation != self._generation or self._phase is not SessionPhase.AWAITING_METADATA:
                self._logger.debug("Ignoring stale '%s' notification from a previous session", name)
                return
            if value is None:
                self._logger.debug("Property '%s' observed, but value is empty. Waiting.", name)
                return
            self._logger.debug("Property '%s' available (%s); running HDR/refresh rate checks", name, value)
            self._cancel_subscription()
            self._phase = SessionPhase.ACTIVE
            changed = self._reconcile()
            if changed and self._pause_seconds > 0:
                self._pause_for_display_change(generation)

    def _reconcile(self) -> bool:
        try:
            metadata = read_stream_metadata(self._host)
            self._logger.debug(
                "Video analysis - Primaries: %s, Transfer: %s, Colorspace: %s, Format: %s, Bit depth: %d",
                metadata.primaries,
                metadata.transfer,
                metadata.colorspace,
                metadata.pixel_format,
                bit_depth(metadata.pixel_format),
            )
            classification: Optional[ClassificationResult] = None
            if self._reconciler.hdr_enabled:
                classification = classify(metadata, self._settings)
                self.last_classification = classification
                if classification.is_hdr:
                    self._logger.info("HDR content detected: %s", classification.describe())
                else:
                    self._logger.debug("Non-HDR content detected")
            target_hz: Optional[int] = None
            if self._reconciler.refresh_enabled:
                fps = metadata.video_fps()
                if fps is None:
                    self._logger.warning("Could not determine video frame rate for refresh rate management.")
                else:
                    target_hz = map_fps_to_hz(fps)
                    if target_hz is None:
                        self._logger.info("No suitable refresh rate mapping found for video FPS %.3f", fps)
                    else:
                        self._logger.debug("Video FPS %.3f maps to %dHz", fps, target_hz)
            return self._reconciler.apply(classification, target_hz)
        except Exception as exc:
            self._logger.exception("Display reconciliation failed: %s", exc)
            return False

    def _pause_for_display_change(self, generation: int) -> None:
        self._host.set_paused(True)
        self._logger.info(
            "Display settings changed, pausing for %.2f seconds before resuming playback.",
            self._pause_seconds,
        )

        def _resume() -> None:
            with self._lock:
                if generation != self._generation or self._resume_timer is None:
                    return
                self._resume_timer = None
                self._logger.info("Resuming playback after delay.")
                self._host.set_paused(False)

        self._resume_timer = self._host.schedule_delayed(self._pause_seconds, _resume)

    def _finish(self, reason: str, done: str, unpause: bool = False) -> bool:
        with self._lock:
            self._logger.info(reason)
            self._cancel_subscription()
            self._cancel_resume(unpause=unpause)
            self._generation += 1
            self._phase = SessionPhase.IDLE
            try:
                reverted = self._reconciler.revert()
            except Exception as exc:
                self._logger.exception("Display revert failed: %s", exc)
                reverted = False
            if reverted:
                self._logger.info(done)
            else:
                self._logger.warning("%s with outstanding display changes; will retry on next revert", done)
            return reverted

    def _cancel_subscription(self) -> None:
        subscription = self._subscription
        self._subscription = None
        if subscription is None:
            return
        try:
            self._host.unsubscribe(subscription)
        except Exception as exc:
            self._logger.debug("Failed to remove video data observer: %s", exc)
        else:
            self._logger.debug("Video data observer unregistered")

    def _cancel_resume(self, unpause: bool = False) -> None:
        """Drop a pending resume; ``unpause`` releases the pause it was guarding.

        mpv keeps ``pause`` across playlist entries, so anything but shutdown
        must hand playback back before the next file starts.
        """
        timer = self._resume_timer
        self._resume_timer = None
        if timer is None:
            return
        timer.cancel()
        if unpause:
            self._logger.debug("Pending resume cancelled; resuming playback now")
            self._host.set_paused(False)
