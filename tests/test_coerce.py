"""Tests for numeric coercion."""

import numpy as np
import pytest

from analyst_mcp.utils.coerce import to_int, to_number, to_optional_number


class TestToNumber:
    """Tests for to_number."""

    @pytest.mark.parametrize("value", [0, 42, -3.5, 227.5, 1e9])
    def test_numbers_pass_through(self, value: float) -> None:
        """Already-numeric values come back unchanged."""
        assert to_number(value) == value
        assert to_number(to_number(value)) == value

    def test_numpy_scalars(self) -> None:
        """numpy scalars are treated as numbers."""
        assert to_number(np.float64(12.5)) == 12.5
        assert to_number(np.int64(7)) == 7

    def test_currency_string(self) -> None:
        """Currency symbols and thousands separators are stripped."""
        assert to_number("$1,234.56") == 1234.56

    def test_percentage_string(self) -> None:
        """Alpha Vantage style percentages parse to the bare number."""
        assert to_number("12.5%") == 12.5
        assert to_number("-3.21%") == -3.21

    @pytest.mark.parametrize("value", [None, "", "N/A", "abc", [], {}, object()])
    def test_malformed_is_zero(self, value: object) -> None:
        """Null and unparseable values become 0."""
        assert to_number(value) == 0

    def test_non_finite_is_zero(self) -> None:
        """NaN and infinity never leak through."""
        assert to_number(float("nan")) == 0
        assert to_number(float("inf")) == 0
        assert to_number("inf") == 0

    def test_bool_is_zero(self) -> None:
        """Booleans are not numbers here."""
        assert to_number(True) == 0


class TestToInt:
    """Tests for to_int."""

    def test_volume_string(self) -> None:
        """Volumes arrive as strings."""
        assert to_int("18734521") == 18734521

    def test_truncates(self) -> None:
        """Fractional values truncate toward zero."""
        assert to_int(12.9) == 12

    def test_malformed(self) -> None:
        """Malformed volume becomes 0."""
        assert to_int(None) == 0


class TestToOptionalNumber:
    """Tests for to_optional_number."""

    def test_none_stays_none(self) -> None:
        assert to_optional_number(None) is None

    def test_zero_is_absent(self) -> None:
        """Providers use 0 for fields they do not have."""
        assert to_optional_number(0) is None

    def test_value(self) -> None:
        assert to_optional_number("228.90") == 228.9
