"""Unit tests for resource quantity parsing."""

import pytest

from src.simulation.units import (
    InvalidQuantityError,
    Quantity,
    parse_cpu,
    parse_memory,
    parse_quantity,
)


class TestParseQuantity:
    """Tests for the quantity grammar."""

    def test_value_and_suffix(self):
        """Test splitting into integer prefix and suffix."""
        assert parse_quantity("500m") == Quantity(value=500, suffix="m")
        assert parse_quantity("2Gi") == Quantity(value=2, suffix="Gi")

    def test_no_suffix(self):
        """Test bare integer."""
        assert parse_quantity("2") == Quantity(value=2, suffix="")

    def test_surrounding_whitespace(self):
        """Test whitespace is ignored."""
        assert parse_quantity(" 512Mi ") == Quantity(value=512, suffix="Mi")

    def test_fraction_is_truncated(self):
        """Test that only the integer prefix is read."""
        quantity = parse_quantity("1.5Gi")
        assert quantity.value == 1
        assert quantity.suffix == ".5Gi"

    @pytest.mark.parametrize("text", ["", "abc", "Gi", "m500"])
    def test_malformed_raises(self, text):
        """Test malformed strings raise InvalidQuantityError."""
        with pytest.raises(InvalidQuantityError):
            parse_quantity(text)

    def test_non_string_raises(self):
        """Test non-string input raises."""
        with pytest.raises(InvalidQuantityError):
            parse_quantity(None)

    def test_error_is_value_error(self):
        """Test the error can be caught as ValueError."""
        with pytest.raises(ValueError):
            parse_quantity("bogus")


class TestParseCpu:
    """Tests for CPU parsing."""

    def test_millicores(self):
        """Test 'm' suffix is already millicores."""
        assert parse_cpu("500m") == 500

    def test_cores(self):
        """Test bare value is whole cores."""
        assert parse_cpu("2") == 2000

    def test_malformed_is_zero(self):
        """Test malformed input yields 0."""
        assert parse_cpu("lots") == 0
        assert parse_cpu("") == 0


class TestParseMemory:
    """Tests for memory parsing."""

    def test_mebibytes(self):
        """Test 'Mi' suffix is already MiB."""
        assert parse_memory("512Mi") == 512

    def test_gibibytes(self):
        """Test 'Gi' suffix is multiplied by 1024."""
        assert parse_memory("1Gi") == 1024
        assert parse_memory("2Gi") == 2048

    def test_unknown_suffix_is_mebibytes(self):
        """Test missing or unknown suffix is treated as MiB."""
        assert parse_memory("256") == 256
        assert parse_memory("256M") == 256

    def test_malformed_is_zero(self):
        """Test malformed input yields 0."""
        assert parse_memory("Gi") == 0
