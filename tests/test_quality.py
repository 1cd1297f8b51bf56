"""
Tests for quality option resolution.
"""

import pytest

from soundboard_io.errors import (
    InvalidArgumentError,
    InvalidQualityError,
    QualityNotSupportedError,
)
from soundboard_io.formats.soundfile_backend import FLAC_QUALITY_OPTIONS, OGG_QUALITY_OPTIONS
from soundboard_io.quality import normalize_quality, resolve_quality_index

BITRATES = ["128 kbps", "192 kbps", "320 kbps"]


class TestResolveQualityIndex:
    """Tests for resolve_quality_index."""

    def test_empty_selects_best(self):
        assert resolve_quality_index("", BITRATES) == 2

    def test_empty_without_options(self):
        assert resolve_quality_index("", []) == 0

    def test_exact_match_ignores_case(self):
        assert resolve_quality_index("192 KBPS", BITRATES) == 1

    def test_leading_number(self):
        assert resolve_quality_index("320", BITRATES) == 2
        assert resolve_quality_index("128kbps", BITRATES) == 0

    def test_number_prefix_of_longer_number_rejected(self):
        with pytest.raises(InvalidQualityError) as exc_info:
            resolve_quality_index("32", BITRATES)
        assert exc_info.value.options == BITRATES
        assert "128 kbps, 192 kbps, 320 kbps" in str(exc_info.value)

    def test_substring(self):
        assert resolve_quality_index("fastest", list(FLAC_QUALITY_OPTIONS)) == 0
        assert resolve_quality_index("highest", list(FLAC_QUALITY_OPTIONS)) == 8

    def test_number_never_falls_back_to_substring(self):
        options = ["low (32 kbps)", "high"]
        with pytest.raises(InvalidQualityError):
            resolve_quality_index("32", options)

    def test_flac_levels(self):
        options = list(FLAC_QUALITY_OPTIONS)
        assert resolve_quality_index("5", options) == 5
        assert resolve_quality_index("3", options) == 3
        assert resolve_quality_index("0", options) == 0

    def test_ogg_bitrates(self):
        options = list(OGG_QUALITY_OPTIONS)
        assert resolve_quality_index("", options) == len(options) - 1
        assert resolve_quality_index("96", options) == options.index("96 kbps")

    def test_whitespace_is_trimmed(self):
        assert resolve_quality_index("  192 kbps ", BITRATES) == 1

    def test_no_options(self):
        with pytest.raises(QualityNotSupportedError) as exc_info:
            resolve_quality_index("high", [], "WAV file")
        assert "WAV files do not accept quality settings" in str(exc_info.value)

    def test_no_match(self):
        with pytest.raises(InvalidQualityError):
            resolve_quality_index("ultra", BITRATES)


class TestNormalizeQuality:
    """Tests for normalize_quality."""

    def test_none(self):
        assert normalize_quality(None) == ""

    def test_string_trimmed(self):
        assert normalize_quality("  320 kbps  ") == "320 kbps"

    def test_integer_valued_numbers(self):
        assert normalize_quality(320) == "320"
        assert normalize_quality(320.0) == "320"

    def test_fractional_number(self):
        assert normalize_quality(0.5) == "0.5"

    @pytest.mark.parametrize("value", [True, [320], {"q": 1}])
    def test_rejects_other_types(self, value):
        with pytest.raises(InvalidArgumentError):
            normalize_quality(value)
