import pytest
from decimal import Decimal

from ingestion.rows import parse_amount


class TestParseAmount:
    """Tests for parse_amount function."""

    def test_thousands_separators(self):
        """Test that commas are stripped before parsing."""
        assert parse_amount("1,250,000.5", "valuation") == Decimal("1250000.5")

    def test_not_a_number(self):
        """Test that free text is rejected with the column label."""
        with pytest.raises(ValueError, match="Invalid deposit: abc"):
            parse_amount("abc", "deposit")

    @pytest.mark.parametrize("text", ["NaN", "nan", "Infinity", "-inf"])
    def test_non_finite_values(self, text):
        """Test that NaN and infinities are rejected."""
        with pytest.raises(ValueError, match="Invalid amount"):
            parse_amount(text, "amount")
