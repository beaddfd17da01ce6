import csv
import io
from datetime import date
from decimal import Decimal

from ingestion.detailed import CSV_HEADERS as DETAILED_HEADERS, ingest
from ingestion.export import (
    EXPORT_HEADERS,
    build_template,
    export_all,
    format_amount,
)
from ingestion.simple import CSV_HEADERS as SIMPLE_HEADERS
from models.transaction import VALUATION, WITHDRAW
from tests.helpers import make_category, make_transaction, make_valuation

D1 = date(2025, 1, 10)
D2 = date(2025, 1, 20)


def _rows(text):
    return list(csv.reader(io.StringIO(text)))


class TestFormatAmount:
    """Tests for format_amount function."""

    def test_whole_numbers_have_no_fraction(self):
        """Test that stored floats like 100000.0 print as integers."""
        assert format_amount(Decimal("100000.0")) == "100000"
        assert format_amount(Decimal("-50")) == "-50"

    def test_fractions_are_kept(self):
        """Test that real fractions are not rounded."""
        assert format_amount(Decimal("12.5")) == "12.5"

    def test_none(self):
        """Test that a missing amount is blank."""
        assert format_amount(None) == ""


class TestExportAll:
    """Tests for export_all function."""

    def test_rows_and_ordering(self):
        """Test signed amounts, labels and oldest-first order."""
        categories = [make_category(1, "S&P500"), make_category(2, "Bank")]
        transactions = [
            make_transaction(1, 100, D1, id=1, memo="Monthly"),
            make_transaction(1, 40, D2, type=WITHDRAW, id=2),
        ]
        valuations = [
            make_valuation(1, 1100, D1, id=1),
            make_valuation(2, 5000, D2, id=2, hour=9),
        ]

        rows = _rows(export_all(categories, transactions, valuations))

        assert rows[0] == EXPORT_HEADERS
        assert rows[1:] == [
            ["2025-01-10", "1", "S&P500", "Deposit", "100", "", "Monthly"],
            ["2025-01-10", "1", "S&P500", "Valuation", "0", "1100", ""],
            ["2025-01-20", "2", "Bank", "Valuation", "0", "5000", ""],
            ["2025-01-20", "1", "S&P500", "Withdraw", "-40", "", ""],
        ]

    def test_legacy_valuation_transaction(self):
        """Test the label of a legacy VALUATION-type transaction."""
        transactions = [make_transaction(1, 0, D1, type=VALUATION, id=1)]

        rows = _rows(export_all([make_category(1)], transactions, []))

        assert rows[1][3] == "Valuation adjustment"

    def test_empty(self):
        """Test that an empty portfolio exports only the header."""
        assert _rows(export_all([], [], [])) == [EXPORT_HEADERS]


class TestBuildTemplate:
    """Tests for build_template function."""

    def test_blank_template(self):
        """Test that no category gives the detailed header alone."""
        assert _rows(build_template(None)) == [DETAILED_HEADERS]

    def test_cash_template(self):
        """Test that a cash asset gets the simple format with bare IDs."""
        bank = make_category(2, "Bank", is_cash=True)
        valuations = [
            make_valuation(2, 5500, D2, id=8),
            make_valuation(2, 5000, D1, id=7),
        ]

        rows = _rows(build_template(bank, [], valuations))

        assert rows == [
            SIMPLE_HEADERS,
            ["I", "7", "2025-01-10", "5000", "(existing)"],
            ["I", "8", "2025-01-20", "5500", "(existing)"],
        ]

    def test_detailed_template(self):
        """Test prefixed IDs and the sale column of a withdrawal."""
        fund = make_category(1, "S&P500")
        transactions = [
            make_transaction(1, 100, D1, id=3, memo="First"),
            make_transaction(1, 40, D2, type=WITHDRAW, id=4, realized_gain=10),
        ]
        valuations = [make_valuation(1, 1100, D1, id=5)]

        rows = _rows(build_template(fund, transactions, valuations))

        assert rows == [
            DETAILED_HEADERS,
            ["I", "T-3", "2025-01-10", "100", "", "", "", "First"],
            ["I", "V-5", "2025-01-10", "", "", "", "1100", "(valuation)"],
            ["I", "T-4", "2025-01-20", "", "40", "50", "", ""],
        ]

    def test_template_reimports_as_no_op(self):
        """Test that an untouched template adds nothing when imported."""
        fund = make_category(1, "S&P500")
        text = build_template(
            fund, [make_transaction(1, 100, D1, id=3)], [make_valuation(1, 1100, D1, id=5)]
        )

        batch = ingest(io.StringIO(text), fund)

        assert batch.row_count == 0
        assert batch.errors == []
