from __future__ import annotations

import logging
from typing import Protocol

from .mpv_host import EVENT_END_FILE, EVENT_FILE_LOADED, EVENT_SHUTDOWN, HostLike
from .preferences import Preferences
from .reconciler import Reconciler
from .session import SessionController


class _RuntimeLike(Protocol):
    host: HostLike
    reconciler: Reconciler
    session: SessionController
    preferences: Preferences


def _enabled(flag: bool) -> str:
    return "enabled" if flag else "disabled"


def start_runtime_services(runtime: _RuntimeLike, logger: logging.Logger) -> bool:
    """Verify the external tools, log the configuration and hook the player's lifecycle events."""
    prefs = runtime.preferences
    reconciler = runtime.reconciler

    if not prefs.enable_hdr_management:
        reconciler.disable_hdr()
    elif not reconciler.hdr_tool.available():
        logger.warning("HDR tool not found at: %s", reconciler.hdr_tool.path)
        logger.warning("HDR management will be disabled")
        reconciler.disable_hdr()
    else:
        logger.info("HDR tool found at: %s", reconciler.hdr_tool.path)

    if not prefs.enable_refresh_rate_management:
        reconciler.disable_refresh()
    elif not reconciler.mode_tool.available():
        logger.warning("Display mode tool not found at: %s", reconciler.mode_tool.path)
        logger.warning("Refresh rate management will be disabled")
        reconciler.disable_refresh()
    else:
        logger.info("Display mode tool found at: %s", reconciler.mode_tool.path)

    logger.info("HDR management: %s", _enabled(reconciler.hdr_enabled))
    logger.info("Refresh rate management: %s", _enabled(reconciler.refresh_enabled))
    logger.info("Playback start delay on display change: %d ms", prefs.playback_start_delay_ms)
    logger.debug(
        "HDR detection: HDR10=%s HLG=%s DolbyVision=%s WideGamut=%s BT2020-SDR=%s HighBitDepth=%s "
        "(threshold %d) SL-HDR=%s AdvancedHDR=%s",
        _enabled(prefs.detect_hdr10),
        _enabled(prefs.detect_hlg),
        _enabled(prefs.detect_dolby_vision),
        _enabled(prefs.detect_wide_gamut),
        _enabled(prefs.detect_bt2020_sdr),
        _enabled(prefs.detect_high_bitdepth),
        prefs.high_bitdepth_threshold,
        _enabled(prefs.detect_sl_hdr),
        _enabled(prefs.detect_advanced_hdr),
    )

    if not reconciler.hdr_enabled and not reconciler.refresh_enabled:
        logger.warning("Nothing to manage; Auto HDR/Refresh remains inactive.")
        return False

    host = runtime.host
    host.register_lifecycle_handler(EVENT_FILE_LOADED, runtime.session.on_file_loaded)
    host.register_lifecycle_handler(EVENT_END_FILE, runtime.session.on_end_file)
    host.register_lifecycle_handler(EVENT_SHUTDOWN, runtime.session.on_shutdown)
    logger.info("Event handlers registered successfully")
    return True


def stop_runtime_services(runtime: _RuntimeLike, logger: logging.Logger) -> None:
    """Revert outstanding display changes, then release host resources."""
    try:
        if runtime.session.on_shutdown():
            logger.debug("Display restored to its original state")
        else:
            logger.warning("Display restore reported outstanding changes at shutdown")
    finally:
        close = getattr(runtime.host, "close", None)
        if callable(close):
            close()
