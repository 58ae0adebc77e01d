"""
Tests for the case-insensitive edit distance.
"""

import pytest

from filesearch.distance import distance, is_substring_match


class TestDistance:
    """Known values and algebraic properties of distance()."""

    @pytest.mark.parametrize("a, b, expected", [
        ("abc", "abc", 0),
        ("abc", "abd", 1),
        ("kitten", "sitting", 3),
        ("flaw", "lawn", 2),
        ("intention", "execution", 5),
        ("a", "b", 1),
        ("abc", "", 3),
        ("", "abc", 3),
        ("", "", 0),
    ])
    def test_known_values(self, a, b, expected):
        assert distance(a, b) == expected

    def test_case_insensitive(self):
        """Characters are folded before comparison."""
        assert distance("ABC", "abc") == 0
        assert distance("Kitten", "SITTING") == 3

    @pytest.mark.parametrize("s", ["", "a", "finance", "Mixed Case", "a/b/c.txt"])
    def test_reflexive(self, s):
        assert distance(s, s) == 0

    @pytest.mark.parametrize("a, b", [
        ("kitten", "sitting"),
        ("short", "a much longer string"),
        ("game", "games"),
        ("", "xyz"),
    ])
    def test_symmetric(self, a, b):
        assert distance(a, b) == distance(b, a)

    @pytest.mark.parametrize("s", ["x", "hello", "a longer string with spaces"])
    def test_empty_is_length(self, s):
        assert distance("", s) == len(s)
        assert distance(s, "") == len(s)

    def test_zero_only_for_equal_folded(self):
        assert distance("abc", "abcd") > 0
        assert distance("abc", "ABC") == 0

    def test_bounded_by_longer_length(self):
        assert distance("abc", "xyz") == 3
        assert distance("ab", "wxyz") == 4

    def test_insertion_in_middle(self):
        assert distance("finance", "finnance") == 1

    def test_transposition_costs_two(self):
        """No transposition operation: swapping neighbours is two edits."""
        assert distance("ab", "ba") == 2


class TestSubstringMatch:
    """is_substring_match() works in both directions, ignoring case."""

    def test_contains_either_way(self):
        assert is_substring_match("game", "games")
        assert is_substring_match("games", "game")

    def test_ignores_case(self):
        assert is_substring_match("Game", "VIDEOGAMES")

    def test_unrelated(self):
        assert not is_substring_match("finance", "music")

    def test_equal_strings(self):
        assert is_substring_match("tag", "TAG")
