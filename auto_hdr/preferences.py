"""Preferences management for the Auto HDR/Refresh manager."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from .classifier import DetectionSettings
from .display_state import DisplayMode


PREFERENCES_FILE = "auto_hdr_settings.json"
DEFAULT_HDR_CMD_PATH = "C:\\Tools\\HDRCmd.exe"
DEFAULT_MODE_CMD_PATH = "C:\\Tools\\nircmd.exe"
DEFAULT_MODE_SET_VERB = "setdisplay"
DEFAULT_REFRESH_RATE = 120
PLAYBACK_DELAY_MAX_MS = 60000


def _coerce_int(raw: Any, default: int) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


@dataclass
class Preferences:
    """Simple JSON-backed preferences store."""

    config_dir: Path
    hdr_cmd_path: str = DEFAULT_HDR_CMD_PATH
    mode_cmd_path: str = DEFAULT_MODE_CMD_PATH
    mode_set_verb: str = DEFAULT_MODE_SET_VERB
    default_desktop_refresh_rate: int = DEFAULT_REFRESH_RATE
    desktop_width: int = 3840
    desktop_height: int = 2160
    desktop_color_depth: int = 32
    playback_start_delay_ms: int = 2000
    enable_hdr_management: bool = True
    enable_refresh_rate_management: bool = True
    detect_hdr10: bool = True
    detect_hlg: bool = True
    detect_dolby_vision: bool = True
    detect_wide_gamut: bool = True
    detect_bt2020_sdr: bool = False
    detect_high_bitdepth: bool = False
    high_bitdepth_threshold: int = 10
    detect_sl_hdr: bool = True
    detect_advanced_hdr: bool = True
    verbose_logging: bool = True
    log_to_file: bool = False
    log_retention: int = 5

    def __post_init__(self) -> None:
        self.config_dir = Path(self.config_dir)
        self._path = self.config_dir / PREFERENCES_FILE
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    # Persistence ---------------------------------------------------------

    def _load(self) -> None:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except json.JSONDecodeError:
            return
        if not isinstance(data, dict):
            return
        for attr in ("hdr_cmd_path", "mode_cmd_path"):
            value = data.get(attr)
            if isinstance(value, str) and value.strip():
                setattr(self, attr, value.strip())
        verb = str(data.get("mode_set_verb", DEFAULT_MODE_SET_VERB) or DEFAULT_MODE_SET_VERB).strip()
        self.mode_set_verb = verb or DEFAULT_MODE_SET_VERB

        rate = _coerce_int(data.get("default_desktop_refresh_rate"), DEFAULT_REFRESH_RATE)
        self.default_desktop_refresh_rate = rate if rate > 0 else DEFAULT_REFRESH_RATE
        # Non-positive dimensions are kept so the display probe reports a failed capture.
        self.desktop_width = _coerce_int(data.get("desktop_width"), self.desktop_width)
        self.desktop_height = _coerce_int(data.get("desktop_height"), self.desktop_height)
        depth = _coerce_int(data.get("desktop_color_depth"), 32)
        self.desktop_color_depth = depth if depth > 0 else 32
        delay = _coerce_int(data.get("playback_start_delay_ms"), 2000)
        self.playback_start_delay_ms = max(0, min(delay, PLAYBACK_DELAY_MAX_MS))

        for attr in (
            "enable_hdr_management",
            "enable_refresh_rate_management",
            "detect_hdr10",
            "detect_hlg",
            "detect_dolby_vision",
            "detect_wide_gamut",
            "detect_bt2020_sdr",
            "detect_high_bitdepth",
            "detect_sl_hdr",
            "detect_advanced_hdr",
            "verbose_logging",
            "log_to_file",
        ):
            if attr in data:
                setattr(self, attr, bool(data[attr]))
        threshold = _coerce_int(data.get("high_bitdepth_threshold"), 10)
        self.high_bitdepth_threshold = max(1, min(threshold, 16))
        self.log_retention = max(1, _coerce_int(data.get("log_retention"), 5))

    def save(self) -> None:
        payload: Dict[str, Any] = {
            "hdr_cmd_path": str(self.hdr_cmd_path),
            "mode_cmd_path": str(self.mode_cmd_path),
            "mode_set_verb": str(self.mode_set_verb or DEFAULT_MODE_SET_VERB),
            "default_desktop_refresh_rate": int(self.default_desktop_refresh_rate),
            "desktop_width": int(self.desktop_width),
            "desktop_height": int(self.desktop_height),
            "desktop_color_depth": int(self.desktop_color_depth),
            "playback_start_delay_ms": int(self.playback_start_delay_ms),
            "enable_hdr_management": bool(self.enable_hdr_management),
            "enable_refresh_rate_management": bool(self.enable_refresh_rate_management),
            "detect_hdr10": bool(self.detect_hdr10),
            "detect_hlg": bool(self.detect_hlg),
            "detect_dolby_vision": bool(self.detect_dolby_vision),
            "detect_wide_gamut": bool(self.detect_wide_gamut),
            "detect_bt2020_sdr": bool(self.detect_bt2020_sdr),
            "detect_high_bitdepth": bool(self.detect_high_bitdepth),
            "high_bitdepth_threshold": int(self.high_bitdepth_threshold),
            "detect_sl_hdr": bool(self.detect_sl_hdr),
            "detect_advanced_hdr": bool(self.detect_advanced_hdr),
            "verbose_logging": bool(self.verbose_logging),
            "log_to_file": bool(self.log_to_file),
            "log_retention": int(self.log_retention),
        }
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    # Derived views -------------------------------------------------------

    def detection_settings(self) -> DetectionSettings:
        return DetectionSettings(
            detect_hdr10=self.detect_hdr10,
            detect_hlg=self.detect_hlg,
            detect_dolby_vision=self.detect_dolby_vision,
            detect_wide_gamut=self.detect_wide_gamut,
            detect_bt2020_sdr=self.detect_bt2020_sdr,
            detect_high_bitdepth=self.detect_high_bitdepth,
            high_bitdepth_threshold=self.high_bitdepth_threshold,
            detect_sl_hdr=self.detect_sl_hdr,
            detect_advanced_hdr=self.detect_advanced_hdr,
        )

    def fallback_display_mode(self) -> DisplayMode:
        """Mode substituted when the desktop mode cannot be captured."""
        width = self.desktop_width if self.desktop_width > 0 else 3840
        height = self.desktop_height if self.desktop_height > 0 else 2160
        return DisplayMode(width, height, self.desktop_color_depth, self.default_desktop_refresh_rate)

    def playback_delay_seconds(self) -> float:
        return max(0, int(self.playback_start_delay_ms)) / 1000.0
