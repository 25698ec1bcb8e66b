"""Capability surface the session controller needs from the media player."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Set

from .logging_utils import LOGGER_NAME

PropertyCallback = Callable[[str, Any], None]
EventCallback = Callable[[Any], None]

EVENT_FILE_LOADED = "file-loaded"
EVENT_END_FILE = "end-file"
EVENT_SHUTDOWN = "shutdown"


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class HostLike(Protocol):
    def get_property(self, name: str) -> Optional[str]: ...
    def get_property_native(self, name: str) -> Any: ...
    def subscribe(self, name: str, callback: PropertyCallback) -> Any: ...
    def unsubscribe(self, handle: Any) -> None: ...
    def register_lifecycle_handler(self, event_name: str, callback: Callable[[], None]) -> Any: ...
    def set_paused(self, paused: bool) -> None: ...
    def schedule_delayed(self, seconds: float, callback: Callable[[], None]) -> TimerHandle: ...


@dataclass(frozen=True)
class Subscription:
    name: str
    callback: PropertyCallback


class MpvHost:
    """Adapts a python-mpv ``MPV`` instance to :class:`HostLike`."""

    def __init__(self, player: Any, logger: Optional[logging.Logger] = None) -> None:
        self._player = player
        self._logger = logger or logging.getLogger(LOGGER_NAME)
        self._event_handlers: List[Any] = []
        self._timers: Set[threading.Timer] = set()
        self._timer_lock = threading.Lock()

    @property
    def player(self) -> Any:
        return self._player

    # Properties -----------------------------------------------------------

    def get_property_native(self, name: str) -> Any:
        # python-mpv maps attribute names back to properties by swapping "_" for "-".
        try:
            return getattr(self._player, name.replace("-", "_"))
        except Exception as exc:
            self._logger.debug("Property %s unavailable: %s", name, exc)
            return None

    def get_property(self, name: str) -> Optional[str]:
        value = self.get_property_native(name)
        if value is None:
            return None
        if isinstance(value, bool):
            return "yes" if value else "no"
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return str(value)

    def subscribe(self, name: str, callback: PropertyCallback) -> Subscription:
        self._player.observe_property(name, callback)
        return Subscription(name, callback)

    def unsubscribe(self, handle: Subscription) -> None:
        try:
            self._player.unobserve_property(handle.name, handle.callback)
        except (KeyError, ValueError):
            self._logger.debug("Observer for %s already removed", handle.name)

    # Events ---------------------------------------------------------------

    def register_lifecycle_handler(self, event_name: str, callback: Callable[[], None]) -> Any:
        def _dispatch(_event: Any) -> None:
            callback()

        wrapper = self._player.event_callback(event_name)(_dispatch)
        self._event_handlers.append(wrapper)
        return wrapper

    # Playback -------------------------------------------------------------

    def set_paused(self, paused: bool) -> None:
        try:
            self._player.pause = bool(paused)
        except Exception as exc:
            self._logger.warning("Failed to %s playback: %s", "pause" if paused else "resume", exc)

    def schedule_delayed(self, seconds: float, callback: Callable[[], None]) -> threading.Timer:
        timer_ref: Optional[threading.Timer] = None

        def _callback() -> None:
            try:
                callback()
            finally:
                with self._timer_lock:
                    self._timers.discard(timer_ref)

        timer_ref = threading.Timer(max(0.0, float(seconds)), _callback)
        timer_ref.daemon = True
        with self._timer_lock:
            self._timers.add(timer_ref)
        timer_ref.start()
        return timer_ref

    def close(self) -> None:
        with self._timer_lock:
            timers = list(self._timers)
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        handlers = list(self._event_handlers)
        self._event_handlers.clear()
        for wrapper in handlers:
            unregister = getattr(wrapper, "unregister_mpv_events", None)
            if callable(unregister):
                try:
                    unregister()
                except Exception as exc:
                    self._logger.debug("Failed to unregister mpv event handler: %s", exc)
