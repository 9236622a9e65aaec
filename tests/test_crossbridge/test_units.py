"""Tests for amount unit conversion."""

import pytest

from crossbridge.units import format_amount, parse_amount


class TestFormatAmount:
    """Tests for base units -> decimal strings."""

    def test_whole_units(self):
        assert format_amount(10**18) == "1"

    def test_fraction_trims_zeros(self):
        assert format_amount(1_500_000, decimals=6) == "1.5"

    def test_smallest_unit(self):
        assert format_amount(1) == "0.000000000000000001"

    def test_zero(self):
        assert format_amount(0, decimals=6) == "0"

    def test_large_amount_exact(self):
        assert format_amount(2**80, decimals=0) == str(2**80)


class TestParseAmount:
    """Tests for decimal strings -> base units."""

    def test_parse(self):
        assert parse_amount("1.5", decimals=6) == 1_500_000
        assert parse_amount(" 2 ") == 2 * 10**18

    def test_too_many_decimals(self):
        with pytest.raises(ValueError, match="decimal places"):
            parse_amount("0.0000001", decimals=6)

    def test_invalid(self):
        with pytest.raises(ValueError, match="Invalid amount"):
            parse_amount("one")

    def test_not_finite(self):
        with pytest.raises(ValueError):
            parse_amount("Infinity")

    def test_negative(self):
        with pytest.raises(ValueError, match="non-negative"):
            parse_amount("-1")

    def test_inverse_of_format(self):
        """Test that parsing a formatted amount is lossless."""
        amount = 123_456_789_012_345_678_901
        assert parse_amount(format_amount(amount)) == amount
