"""Unit tests for the exact canonicalization rules."""

from __future__ import annotations

import pytest

from consensus_verifier.utils.text_normalizer import (
    clean_display_text,
    coerce_scalar,
    is_noise,
    normalize_text,
    normalize_year,
    year_from_date,
)


class TestNormalizeText:
    def test_lowercases_trims_and_collapses(self) -> None:
        assert normalize_text("  Tresor \t  Records\n") == "tresor records"

    def test_display_text_keeps_case(self) -> None:
        assert clean_display_text("  Tresor   Records ") == "Tresor Records"


class TestNormalizeYear:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1963", "1963"),
            (1963, "1963"),
            (1963.0, "1963"),
            ("c. 1963", "1963"),
            ("1963-06-18", "1963"),
        ],
    )
    def test_valid(self, raw: object, expected: str) -> None:
        assert normalize_year(raw) == expected

    @pytest.mark.parametrize("raw", ["63", "", None, True, 1963.5, "unknown", ["1963"]])
    def test_invalid(self, raw: object) -> None:
        assert normalize_year(raw) is None

    def test_distinct_years_never_collide(self) -> None:
        assert normalize_year("1963") != normalize_year("1964")


class TestYearFromDate:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("June 18, 1963", "1963"),
            ("1963-06-18", "1963"),
            ("born 2001", "2001"),
            (1963, "1963"),
        ],
    )
    def test_valid(self, raw: object, expected: str) -> None:
        assert year_from_date(raw) == expected

    @pytest.mark.parametrize("raw", ["June 18", "18/06/63", "19630618", None])
    def test_invalid(self, raw: object) -> None:
        assert year_from_date(raw) is None


class TestNoiseAndScalars:
    @pytest.mark.parametrize("value", ["", "   ", "x", " y "])
    def test_noise(self, value: str) -> None:
        assert is_noise(value) is True

    def test_two_characters_is_not_noise(self) -> None:
        assert is_noise("DJ") is False

    def test_coerce_number(self) -> None:
        assert coerce_scalar(808) == "808"

    @pytest.mark.parametrize("value", [None, True, {"a": 1}, ["Axis"], "x"])
    def test_coerce_rejects(self, value: object) -> None:
        assert coerce_scalar(value) is None
