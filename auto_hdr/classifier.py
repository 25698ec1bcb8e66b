"""Stream classification heuristics for HDR, wide gamut and bit depth."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

SDR_LABEL = "SDR"
DEFAULT_BIT_DEPTH = 8
FPS_CEILING = 1000.0

PQ_TRANSFERS: Tuple[str, ...] = (
    "st2084",
    "smpte-st-2084",
    "smpte2084",
    "pq",
    "rec2100-pq",
)
HLG_TRANSFERS: Tuple[str, ...] = (
    "arib-std-b67",
    "hlg",
    "rec2100-hlg",
)
HDR_TRANSFERS: Tuple[str, ...] = PQ_TRANSFERS + HLG_TRANSFERS

WIDE_GAMUT_PRIMARIES: Tuple[str, ...] = (
    "bt.2020",
    "dci-p3",
    "display-p3",
    "adobe-rgb",
    "adobe",
    "prophoto-rgb",
    "prophoto",
    "smpte431",
    "smpte432",
)

_BIT_DEPTHS = {
    "yuv420p": 8,
    "yuv422p": 8,
    "yuv444p": 8,
    "nv12": 8,
    "nv21": 8,
    "yuv420p10le": 10,
    "yuv422p10le": 10,
    "yuv444p10le": 10,
    "yuv420p10be": 10,
    "yuv422p10be": 10,
    "yuv444p10be": 10,
    "p010le": 10,
    "p010be": 10,
    "yuv420p12le": 12,
    "yuv422p12le": 12,
    "yuv444p12le": 12,
    "yuv420p12be": 12,
    "yuv422p12be": 12,
    "yuv444p12be": 12,
    "yuv420p16le": 16,
    "yuv422p16le": 16,
    "yuv444p16le": 16,
    "yuv420p16be": 16,
    "yuv422p16be": 16,
    "yuv444p16be": 16,
}
_DEPTH_TOKEN = re.compile(r"p(\d+)")


@dataclass
class StreamMetadata:
    """Snapshot of the video parameters reported by the player."""

    primaries: Optional[str] = None
    transfer: Optional[str] = None
    colorspace: Optional[str] = None
    pixel_format: Optional[str] = None
    dolby_vision: Optional[str] = None
    file_format: Optional[str] = None
    container_fps: Optional[float] = None
    estimated_fps: Optional[float] = None

    def video_fps(self) -> Optional[float]:
        """Prefer the container rate, falling back to the filter-chain estimate."""
        for candidate in (self.container_fps, self.estimated_fps):
            if isinstance(candidate, bool) or not isinstance(candidate, (int, float)):
                continue
            if 0 < candidate < FPS_CEILING:
                return float(candidate)
        return None


@dataclass
class DetectionSettings:
    detect_hdr10: bool = True
    detect_hlg: bool = True
    detect_dolby_vision: bool = True
    detect_wide_gamut: bool = True
    detect_bt2020_sdr: bool = False
    detect_high_bitdepth: bool = False
    high_bitdepth_threshold: int = 10
    detect_sl_hdr: bool = True
    detect_advanced_hdr: bool = True


@dataclass
class ClassificationResult:
    is_hdr: bool = False
    label: str = SDR_LABEL
    reasons: List[str] = field(default_factory=list)

    def describe(self) -> str:
        if not self.reasons:
            return self.label
        return f"{self.label} ({', '.join(self.reasons)})"


def _normalise(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip().lower()
    return text or None


def bit_depth(pixel_format: Optional[str]) -> int:
    """Derive bit depth from a pixel format name, defaulting to 8."""
    name = _normalise(pixel_format)
    if name is None:
        return DEFAULT_BIT_DEPTH
    depth = _BIT_DEPTHS.get(name)
    if depth is not None:
        return depth
    match = _DEPTH_TOKEN.search(name)
    if match:
        return int(match.group(1))
    return DEFAULT_BIT_DEPTH


def is_wide_color_gamut(primaries: Optional[str]) -> bool:
    return _normalise(primaries) in WIDE_GAMUT_PRIMARIES


def is_hdr_transfer(transfer: Optional[str]) -> bool:
    return _normalise(transfer) in HDR_TRANSFERS


def has_dolby_vision(metadata: StreamMetadata) -> bool:
    flag = metadata.dolby_vision
    if isinstance(flag, bool):
        if flag:
            return True
    else:
        side_data = _normalise(flag)
        if side_data and side_data not in {"no", "false", "0"}:
            return True
    format_name = _normalise(metadata.file_format)
    if format_name and ("dovi" in format_name or "dolby" in format_name):
        return True
    return False


def classify(metadata: StreamMetadata, settings: Optional[DetectionSettings] = None) -> ClassificationResult:
    """Classify a stream; rules are evaluated in priority order and the first match wins.

    Dolby Vision is the exception: it is checked after the transfer-function
    rules regardless of their outcome and overrides the label when present.
    """
    cfg = settings or DetectionSettings()
    result = ClassificationResult()
    transfer = _normalise(metadata.transfer)
    primaries = _normalise(metadata.primaries)
    depth = bit_depth(metadata.pixel_format)
    wide_gamut = is_wide_color_gamut(primaries)

    def _fire(label: str, reason: str) -> None:
        result.is_hdr = True
        result.label = label
        result.reasons.append(reason)

    if cfg.detect_hdr10 and transfer in PQ_TRANSFERS:
        _fire("HDR10/HDR10+", f"PQ ({transfer}) transfer function")
    elif cfg.detect_hlg and transfer in HLG_TRANSFERS:
        _fire("HLG", f"HLG ({transfer}) transfer function")

    if not result.is_hdr and transfer in HDR_TRANSFERS and (cfg.detect_hdr10 or cfg.detect_hlg):
        _fire(f"HDR ({transfer})", f"HDR transfer function: {transfer}")

    if cfg.detect_dolby_vision and has_dolby_vision(metadata):
        _fire("Dolby Vision", "Dolby Vision metadata detected")

    if not result.is_hdr and cfg.detect_wide_gamut and wide_gamut:
        _fire(f"Wide Color Gamut ({primaries})", f"Wide color gamut primaries: {primaries}")

    if not result.is_hdr and cfg.detect_bt2020_sdr and primaries == "bt.2020":
        _fire("BT.2020 SDR", "BT.2020 primaries (SDR)")

    if not result.is_hdr and cfg.detect_high_bitdepth and depth >= cfg.high_bitdepth_threshold:
        _fire(f"High Bit Depth ({depth}-bit)", f"{depth}-bit content")

    if not result.is_hdr and transfer:
        if cfg.detect_sl_hdr and ("sl-hdr" in transfer or "sony" in transfer):
            _fire("SL-HDR", "SL-HDR transfer function")
        if cfg.detect_advanced_hdr and "technicolor" in transfer:
            _fire("Technicolor Advanced HDR", "Technicolor Advanced HDR")

    if (
        not result.is_hdr
        and cfg.detect_wide_gamut
        and cfg.detect_high_bitdepth
        and wide_gamut
        and depth >= cfg.high_bitdepth_threshold
    ):
        _fire("Wide Gamut + High Bit Depth", f"Wide color gamut + {depth}-bit")

    return result
