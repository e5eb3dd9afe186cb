"""Tests for invoice code cleaning and similarity scoring."""

from __future__ import annotations

import pytest

from ledger_recon.normalization.codes import clean_code, similarity


class TestCleanCode:
    """Tests for clean_code."""

    def test_prefix_year_and_leading_zeros_removed(self) -> None:
        """INV prefix, the year and leading zeros all disappear."""
        assert clean_code("INV-2024-0057") == "57"

    def test_empty_falls_back_to_zero(self) -> None:
        """Empty or missing references never produce an empty key."""
        assert clean_code("") == "0"
        assert clean_code(None) == "0"
        assert clean_code("   ") == "0"

    def test_all_zeros_falls_back_to_zero(self) -> None:
        """A reference made only of zeros collapses to the fallback."""
        assert clean_code("000") == "0"

    def test_prefix_with_space_separator(self) -> None:
        """Separator runs after the prefix are stripped with it."""
        assert clean_code("  CN 000123 ") == "123"

    def test_only_one_prefix_stripped(self) -> None:
        """A second prefix-like token stays part of the code."""
        assert clean_code("INV-REF-9") == "ref9"

    def test_year_removed_anywhere(self) -> None:
        """20xx tokens are removed even in the middle of a code."""
        assert clean_code("Doc#45/2023") == "45"
        assert clean_code("X2021Y") == "xy"

    def test_greek_prefix(self) -> None:
        """Greek document abbreviations are recognised."""
        assert clean_code("ΤΙΜ-0012") == "12"

    def test_unknown_prefix_kept(self) -> None:
        """Prefixes outside the list are kept as part of the code."""
        assert clean_code("PO-77") == "po77"

    def test_custom_prefix_list(self) -> None:
        """Callers can supply their own prefix table."""
        assert clean_code("PO-77", prefixes=["po"]) == "77"
        assert clean_code("INV-77", prefixes=["po"]) == "inv77"


class TestSimilarity:
    """Tests for the normalized edit-distance score."""

    def test_one_substitution_in_six(self) -> None:
        """One edit over six characters scores 1 - 1/6."""
        assert similarity("inv123", "inv124") == pytest.approx(1 - 1 / 6)

    def test_both_empty_is_identical(self) -> None:
        assert similarity("", "") == 1.0

    def test_one_empty_scores_zero(self) -> None:
        assert similarity("abc", "") == 0.0

    def test_identical_strings(self) -> None:
        assert similarity("57", "57") == 1.0

    def test_classic_levenshtein_distance(self) -> None:
        """kitten -> sitting needs three edits over seven characters."""
        assert similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)

    def test_symmetric(self) -> None:
        assert similarity("12345", "1245") == similarity("1245", "12345")

    def test_ten_characters_one_edit_is_exactly_point_nine(self) -> None:
        """The Tier-2 boundary value is reachable exactly."""
        assert similarity("1234567890", "1234567891") >= 0.90
