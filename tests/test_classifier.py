from __future__ import annotations

import pytest

from auto_hdr.classifier import (
    DetectionSettings,
    StreamMetadata,
    bit_depth,
    classify,
    has_dolby_vision,
    is_wide_color_gamut,
)


def _all_disabled(**overrides) -> DetectionSettings:
    settings = DetectionSettings(
        detect_hdr10=False,
        detect_hlg=False,
        detect_dolby_vision=False,
        detect_wide_gamut=False,
        detect_bt2020_sdr=False,
        detect_high_bitdepth=False,
        detect_sl_hdr=False,
        detect_advanced_hdr=False,
    )
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


def test_pq_wins_over_wide_gamut():
    metadata = StreamMetadata(primaries="bt.2020", transfer="st2084", pixel_format="yuv420p10le")
    settings = DetectionSettings(detect_wide_gamut=True, detect_high_bitdepth=True)

    result = classify(metadata, settings)

    assert result.is_hdr is True
    assert result.label == "HDR10/HDR10+"
    assert result.reasons == ["PQ (st2084) transfer function"]


@pytest.mark.parametrize("transfer", ["st2084", "smpte2084", "PQ", "rec2100-pq"])
def test_pq_aliases(transfer):
    assert classify(StreamMetadata(transfer=transfer)).label == "HDR10/HDR10+"


@pytest.mark.parametrize("transfer", ["arib-std-b67", "hlg"])
def test_hlg_transfer(transfer):
    result = classify(StreamMetadata(transfer=transfer))
    assert result.is_hdr is True
    assert result.label == "HLG"


def test_generic_hdr_transfer_when_pq_detection_disabled():
    result = classify(StreamMetadata(transfer="st2084"), _all_disabled(detect_hlg=True))

    assert result.is_hdr is True
    assert result.label == "HDR (st2084)"


def test_dolby_vision_flag_with_everything_else_disabled():
    metadata = StreamMetadata(primaries="bt.709", transfer="bt.1886", dolby_vision="yes")

    result = classify(metadata, _all_disabled(detect_dolby_vision=True))

    assert result.is_hdr is True
    assert result.label == "Dolby Vision"


def test_dolby_vision_overrides_pq_label():
    metadata = StreamMetadata(transfer="st2084", dolby_vision="yes")

    result = classify(metadata)

    assert result.label == "Dolby Vision"
    assert result.reasons == ["PQ (st2084) transfer function", "Dolby Vision metadata detected"]


def test_dolby_vision_from_file_format_name():
    assert has_dolby_vision(StreamMetadata(file_format="mp4 dovi profile 8")) is True
    assert has_dolby_vision(StreamMetadata(dolby_vision="no", file_format="matroska,webm")) is False
    assert has_dolby_vision(StreamMetadata(dolby_vision=True)) is True


def test_wide_gamut_primaries():
    result = classify(StreamMetadata(primaries="display-p3", transfer="srgb"))

    assert result.is_hdr is True
    assert result.label == "Wide Color Gamut (display-p3)"


def test_bt2020_sdr_is_opt_in():
    metadata = StreamMetadata(primaries="bt.2020", transfer="bt.1886")

    assert classify(metadata, _all_disabled()).is_hdr is False
    result = classify(metadata, _all_disabled(detect_bt2020_sdr=True))
    assert result.label == "BT.2020 SDR"


def test_high_bit_depth_threshold():
    metadata = StreamMetadata(primaries="bt.709", pixel_format="yuv420p10le")

    assert classify(metadata).is_hdr is False
    result = classify(metadata, DetectionSettings(detect_high_bitdepth=True))
    assert result.label == "High Bit Depth (10-bit)"
    assert result.reasons == ["10-bit content"]
    strict = DetectionSettings(detect_high_bitdepth=True, high_bitdepth_threshold=12)
    assert classify(metadata, strict).is_hdr is False


def test_vendor_transfer_extensions():
    assert classify(StreamMetadata(transfer="sl-hdr2")).label == "SL-HDR"
    assert classify(StreamMetadata(transfer="technicolor-advanced")).label == "Technicolor Advanced HDR"
    assert classify(StreamMetadata(transfer="sl-hdr2"), _all_disabled()).is_hdr is False


def test_technicolor_label_wins_when_both_vendor_rules_match():
    result = classify(StreamMetadata(transfer="sony-technicolor"))

    assert result.label == "Technicolor Advanced HDR"
    assert result.reasons == ["SL-HDR transfer function", "Technicolor Advanced HDR"]


def test_sdr_and_missing_metadata():
    sdr = classify(StreamMetadata(primaries="bt.709", transfer="bt.1886", pixel_format="yuv420p"))
    empty = classify(StreamMetadata())

    for result in (sdr, empty):
        assert result.is_hdr is False
        assert result.label == "SDR"
        assert result.reasons == []


@pytest.mark.parametrize(
    "pixel_format, expected",
    [
        (None, 8),
        ("yuv420p", 8),
        ("yuv420p10le", 10),
        ("p010le", 10),
        ("yuv444p12be", 12),
        ("gbrp12le", 12),
        ("rgb24", 8),
    ],
)
def test_bit_depth(pixel_format, expected):
    assert bit_depth(pixel_format) == expected


def test_wide_gamut_matching_is_case_insensitive():
    assert is_wide_color_gamut("BT.2020") is True
    assert is_wide_color_gamut("bt.709") is False
    assert is_wide_color_gamut(None) is False


def test_video_fps_prefers_container_rate():
    assert StreamMetadata(container_fps=23.976, estimated_fps=24.0).video_fps() == 23.976
    assert StreamMetadata(container_fps=0.0, estimated_fps=25.0).video_fps() == 25.0
    assert StreamMetadata(container_fps=5000.0).video_fps() is None
    assert StreamMetadata().video_fps() is None
