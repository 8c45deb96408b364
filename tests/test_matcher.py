"""
Tests for EditDistanceMatcher and keyboard layouts
==================================================
"""

import pytest

from keycorrect.spelling.keyboard import AZERTY, QWERTY, QWERTZ, get_layout, uniform_cost
from keycorrect.spelling.matcher import EditDistanceMatcher, weighted_distance


@pytest.fixture
def matcher(config) -> EditDistanceMatcher:
    return EditDistanceMatcher(config=config)


class TestKeyboardLayout:
    """Tests for key adjacency."""

    def test_same_row_neighbours(self):
        assert QWERTY.is_adjacent("q", "w")
        assert QWERTY.is_adjacent("e", "r")
        assert not QWERTY.is_adjacent("q", "p")

    def test_row_neighbours(self):
        """Test keys on the grid rows above and below."""
        assert QWERTY.is_adjacent("s", "x")
        assert QWERTY.is_adjacent("k", "i")
        assert not QWERTY.is_adjacent("q", "z")

    def test_key_not_adjacent_to_itself(self):
        assert not QWERTY.is_adjacent("a", "a")
        assert "a" not in QWERTY.neighbours("a")

    def test_case_insensitive(self):
        assert QWERTY.is_adjacent("Q", "w")

    def test_unknown_characters(self):
        assert not QWERTY.is_adjacent("'", "a")
        assert QWERTY.neighbours("1") == frozenset()

    def test_other_layouts(self):
        assert AZERTY.is_adjacent("a", "z")
        assert QWERTZ.is_adjacent("t", "z")
        assert not QWERTY.is_adjacent("t", "z")

    def test_get_layout(self):
        assert get_layout("azerty") is AZERTY
        assert get_layout("QWERTZ") is QWERTZ
        assert get_layout("dvorak") is QWERTY

    def test_substitution_cost(self):
        cost = QWERTY.substitution_cost(0.5)
        assert cost("a", "a") == 0.0
        assert cost("a", "s") == 0.5
        assert cost("a", "p") == 1.0


class TestWeightedDistance:
    """Tests for the bounded dynamic programme."""

    def test_identical(self):
        assert weighted_distance("hello", "hello", 2) == 0.0

    def test_insert_delete(self):
        assert weighted_distance("wrld", "world", 2) == 1.0
        assert weighted_distance("world", "wrld", 2) == 1.0

    def test_empty_strings(self):
        assert weighted_distance("", "ab", 2) == 2.0
        assert weighted_distance("ab", "", 2) == 2.0
        assert weighted_distance("", "abc", 2) is None

    def test_early_abort(self):
        """Test a hopeless pair stops before the last row."""
        assert weighted_distance("abcdef", "uvwxyz", 2) is None

    def test_custom_cost(self):
        cost = QWERTY.substitution_cost(0.5)
        assert weighted_distance("hrllo", "hello", 2, cost) == 0.5
        assert weighted_distance("hrllo", "hello", 2, uniform_cost) == 1.0


class TestEditDistanceMatcher:
    """Tests for EditDistanceMatcher."""

    def test_exact_match(self, matcher):
        result = matcher.match("world", "world")
        assert result.distance == 0
        assert result.similarity == 1.0

    def test_missing_letter(self, matcher):
        """Test similarity is normalized by the longer word."""
        result = matcher.match("wrld", "world")
        assert result.distance == 1
        assert result.weighted_distance == 1.0
        assert result.similarity == pytest.approx(0.8)

    def test_adjacent_substitution(self, matcher):
        result = matcher.match("hrllo", "hello")
        assert result.distance == 1
        assert result.weighted_distance == 0.5
        assert result.similarity == pytest.approx(0.9)

    def test_distant_substitution(self, matcher):
        result = matcher.match("hpllo", "hello")
        assert result.weighted_distance == 1.0

    def test_out_of_bound(self, matcher):
        assert matcher.match("abcdef", "uvwxyz") is None
        assert matcher.match("ab", "abcde") is None
        assert matcher.distance("ab", "abcde") == -1

    def test_raw_bound_uses_unit_cost(self, matcher):
        """Test cheap adjacent substitutions cannot sneak past the raw bound."""
        # Three neighbouring-key slips: weighted 1.5, raw 3
        assert weighted_distance("qaz", "wsx", 2, QWERTY.substitution_cost(0.5)) == 1.5
        assert matcher.match("qaz", "wsx") is None

    def test_custom_bound(self, config):
        strict = EditDistanceMatcher(max_distance=1, config=config)
        assert strict.match("wrld", "world") is not None
        assert strict.match("wld", "world") is None

    def test_pluggable_cost(self, config):
        plain = EditDistanceMatcher(substitution_cost=uniform_cost, config=config)
        assert plain.match("hrllo", "hello").similarity == pytest.approx(0.8)

    def test_layout_from_config(self, config, matcher):
        """Test the configured layout drives the substitution cost."""
        config.matching.layout = "azerty"
        azerty = EditDistanceMatcher(config=config)
        assert azerty.substitution_cost("m", "p") == 0.5
        assert matcher.substitution_cost("m", "p") == 1.0
