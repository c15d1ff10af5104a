"""Unit tests for text formatting helpers."""
from __future__ import annotations

import pytest

from goldify.formatting import apr_label, format_percent, format_usd


class TestAprLabel:
    @pytest.mark.parametrize(
        ("apr", "label"),
        [
            (2.99, "Excellent"),
            (3.0, "Good"),
            (4.5, "Good"),
            (5.0, "Moderate"),
            (11.9, "High"),
            (12.0, "Very High"),
        ],
    )
    def test_bands(self, apr: float, label: str) -> None:
        assert apr_label(apr) == label


class TestFormatUsd:
    def test_thousands_separator(self) -> None:
        assert format_usd(2_000_000) == "$2,000,000.00"

    def test_cents(self) -> None:
        assert format_usd(1234.5) == "$1,234.50"


class TestFormatPercent:
    def test_default_one_digit(self) -> None:
        assert format_percent(0.05) == "5.0%"

    def test_zero_digits(self) -> None:
        assert format_percent(0.82, 0) == "82%"
