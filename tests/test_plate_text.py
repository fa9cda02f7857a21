"""
Tests for plate text handling

Tests normalization, the plate-shape heuristic and watchlist matching.
"""

import pytest

from platewatch.plates.matcher import PlateMatcher
from platewatch.plates.normalize import looks_like_plate, normalize_text
from platewatch.plates.watchlist_store import Watchlist


class TestNormalization:
    """Test text normalization"""

    def test_normalize_simple_plate(self):
        assert normalize_text("KR 1234A") == "KR1234A"
        assert normalize_text("kr1234a") == "KR1234A"

    def test_normalize_separators(self):
        """Hyphens, dots and whitespace are dropped"""
        assert normalize_text("AB-1234") == "AB1234"
        assert normalize_text(" W.0.123 ") == "W0123"
        assert normalize_text("PO\t5511\n") == "PO5511"

    def test_normalize_keeps_unicode_letters(self):
        assert normalize_text("łódź 77") == "ŁÓDŹ77"

    def test_normalize_empty_or_symbols(self):
        assert normalize_text("") == ""
        assert normalize_text("   ") == ""
        assert normalize_text("!!@#$") == ""

    @pytest.mark.parametrize("raw", ["KR 1234A", "ab-12 cd", "Ünïcode 9", "", "---"])
    def test_normalize_is_idempotent(self, raw):
        once = normalize_text(raw)
        assert normalize_text(once) == once


class TestPlateShape:
    """Test the plate-shape heuristic"""

    def test_plate_shaped(self):
        assert looks_like_plate("AB1234")
        assert looks_like_plate("KR1234A")
        assert looks_like_plate("1234")
        assert looks_like_plate("WX12345Z")

    def test_no_digit(self):
        assert not looks_like_plate("ABCDEF")

    def test_length_bounds(self):
        assert not looks_like_plate("AB1")
        assert not looks_like_plate("AB123456789")
        assert not looks_like_plate("")

    def test_separator_fails(self):
        """Un-normalized text with separators is not plate-shaped"""
        assert not looks_like_plate("AB-1234")
        assert not looks_like_plate("AB 1234")


class TestPlateMatcher:
    """Test watchlist matching decisions"""

    @pytest.fixture
    def matcher(self):
        watchlist = Watchlist(entries=["KR 1234A", "hello"], session=object())
        yield PlateMatcher(watchlist)
        watchlist.close()

    def test_match_after_normalization(self, matcher):
        decision = matcher.evaluate("kr-1234a")
        assert decision.text == "KR1234A"
        assert decision.plate_shaped
        assert decision.is_match

    def test_plate_shaped_but_not_listed(self, matcher):
        decision = matcher.evaluate("AB 1234")
        assert decision.text == "AB1234"
        assert decision.plate_shaped
        assert not decision.is_match

    def test_listed_but_not_plate_shaped(self, matcher):
        """Watchlist membership alone is not enough when the shape is required"""
        decision = matcher.evaluate("Hello")
        assert decision.text == "HELLO"
        assert not decision.is_match

        relaxed = matcher.evaluate("Hello", require_plate_shape=False)
        assert relaxed.is_match

    def test_empty_text(self, matcher):
        decision = matcher.evaluate(" - ")
        assert decision.text == ""
        assert not decision.plate_shaped
        assert not decision.is_match
