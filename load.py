"""Primary entry point for the mpv Auto HDR/Refresh manager."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Optional

from version import __version__ as AUTO_HDR_VERSION
from auto_hdr.command_executor import CommandExecutor, HdrToggler, ModeSetter
from auto_hdr.display_state import DisplayStateStore
from auto_hdr.logging_utils import LOGGER_NAME, configure_logger
from auto_hdr.mpv_host import MpvHost
from auto_hdr.preferences import Preferences
from auto_hdr.reconciler import Reconciler
from auto_hdr.runtime_services import start_runtime_services, stop_runtime_services
from auto_hdr.session import SessionController

PLUGIN_NAME = "mpv-auto-hdr"
PLUGIN_VERSION = AUTO_HDR_VERSION

LOGGER = logging.getLogger(LOGGER_NAME)


class _PluginRuntime:
    """Owns the single engine instance for the life of the process."""

    def __init__(self, player: Any, preferences: Preferences, host: Optional[Any] = None) -> None:
        self.preferences = preferences
        self.host = host if host is not None else MpvHost(player, LOGGER)
        executor = CommandExecutor(LOGGER)
        store = DisplayStateStore(preferences.fallback_display_mode(), LOGGER)
        self.reconciler = Reconciler(
            store,
            HdrToggler(preferences.hdr_cmd_path, executor),
            ModeSetter(preferences.mode_cmd_path, executor, preferences.mode_set_verb),
            LOGGER,
        )
        self.session = SessionController(self.host, self.reconciler, preferences, LOGGER)
        self._lock = threading.Lock()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> str:
        with self._lock:
            if self._running:
                return PLUGIN_NAME
            LOGGER.info("Auto HDR and Refresh Rate Manager v%s initialized", PLUGIN_VERSION)
            self._running = start_runtime_services(self, LOGGER)
        return PLUGIN_NAME

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
        LOGGER.info("Auto HDR/Refresh stopping")
        stop_runtime_services(self, LOGGER)


# Hook functions -----------------------------------------------------------

_plugin: Optional[_PluginRuntime] = None
_preferences: Optional[Preferences] = None


def script_start(player: Any, config_dir: str) -> str:
    """Attach the manager to ``player`` using preferences stored in ``config_dir``."""
    global _plugin, _preferences
    if _plugin is not None:
        return _plugin.start()
    _preferences = Preferences(Path(config_dir))
    configure_logger(
        verbose=_preferences.verbose_logging,
        log_dir=Path(config_dir) / "logs" if _preferences.log_to_file else None,
        retention=_preferences.log_retention,
    )
    LOGGER.info("Initialising Auto HDR/Refresh from %s", config_dir)
    _plugin = _PluginRuntime(player, _preferences)
    return _plugin.start()


def script_stop() -> None:
    global _plugin, _preferences
    if _plugin:
        try:
            _plugin.stop()
        except Exception as exc:
            LOGGER.exception("Failed to stop Auto HDR/Refresh cleanly: %s", exc)
        finally:
            _plugin = None
    _preferences = None


name = PLUGIN_NAME
version = PLUGIN_VERSION
