"""Tests for the unified history list."""

from datetime import date
from decimal import Decimal

import pytest

from models.event import KIND_TRANSACTION, KIND_VALUATION
from models.history import HistoryPoint
from models.transaction import VALUATION, WITHDRAW
from tests.helpers import make_category, make_transaction, make_valuation
from tools.events import (
    annotate_profit,
    merge_events_by_day,
    parse_event_id,
    summarize_flows,
)

D1 = date(2025, 2, 1)
D2 = date(2025, 2, 2)
D3 = date(2025, 2, 3)


@pytest.fixture
def categories_by_id():
    return {
        1: make_category(1, "S&P500", color="#ff0000"),
        2: make_category(2, "Bonds"),
    }


class TestMergeEventsByDay:
    """Tests for merge_events_by_day function."""

    def test_same_day_pair_becomes_one_row(self, categories_by_id):
        """Test that a deposit and its valuation collapse into the deposit row."""
        transactions = [make_transaction(1, 100, D1, id=7)]
        valuations = [make_valuation(1, 1100, D1, id=3)]

        events = merge_events_by_day(transactions, valuations, categories_by_id)

        assert len(events) == 1
        event = events[0]
        assert event.id == "tx-7"
        assert event.kind == KIND_TRANSACTION
        assert event.point_in_time_valuation == Decimal("1100")
        assert event.category_name == "S&P500"
        assert event.category_color == "#ff0000"

    def test_extra_valuations_are_kept(self, categories_by_id):
        """Test that only the latest valuation of a day is attached."""
        transactions = [make_transaction(1, 100, D1, id=1, hour=10)]
        valuations = [
            make_valuation(1, 1000, D1, id=1, hour=9),
            make_valuation(1, 1100, D1, id=2, hour=18),
        ]

        events = merge_events_by_day(transactions, valuations, categories_by_id)

        assert [e.id for e in events] == ["tx-1", "as-1"]
        assert events[0].point_in_time_valuation == Decimal("1100")
        assert events[1].type == VALUATION

    def test_several_pairs_on_one_day(self, categories_by_id):
        """Test that only the latest transaction takes the latest valuation."""
        transactions = [
            make_transaction(1, 100, D1, id=1, hour=9),
            make_transaction(1, 200, D1, id=2, hour=11),
            make_transaction(1, 300, D1, id=3, hour=15),
        ]
        valuations = [
            make_valuation(1, 1100, D1, id=1, hour=10),
            make_valuation(1, 1200, D1, id=2, hour=12),
            make_valuation(1, 1300, D1, id=3, hour=18),
        ]

        events = merge_events_by_day(transactions, valuations, categories_by_id)

        assert [e.id for e in events] == ["tx-3", "as-2", "tx-2", "as-1", "tx-1"]
        assert len([e for e in events if e.kind == KIND_TRANSACTION]) == 3
        assert len([e for e in events if e.kind == KIND_VALUATION]) == 2
        by_id = {e.id: e for e in events}
        assert by_id["tx-3"].point_in_time_valuation == Decimal("1300")
        assert by_id["tx-2"].point_in_time_valuation is None
        assert by_id["tx-1"].point_in_time_valuation is None
        assert by_id["as-2"].point_in_time_valuation == Decimal("1200")

    def test_different_categories_not_merged(self, categories_by_id):
        """Test that records of different categories stay separate."""
        transactions = [make_transaction(1, 100, D1, id=1)]
        valuations = [make_valuation(2, 500, D1, id=1)]

        events = merge_events_by_day(transactions, valuations, categories_by_id)

        assert len(events) == 2
        assert events[0].point_in_time_valuation is None

    def test_newest_first(self, categories_by_id):
        """Test that rows are sorted by timestamp descending."""
        transactions = [
            make_transaction(1, 100, D1, id=1),
            make_transaction(1, 50, D3, type=WITHDRAW, id=2),
        ]
        valuations = [make_valuation(1, 120, D2, id=1)]

        events = merge_events_by_day(transactions, valuations, categories_by_id)

        assert [e.id for e in events] == ["tx-2", "as-1", "tx-1"]
        assert events[1].kind == KIND_VALUATION
        assert events[1].amount == Decimal("0")

    def test_unknown_category_gets_defaults(self):
        """Test that a record whose category is missing still formats."""
        events = merge_events_by_day([make_transaction(9, 1, D1, id=1)], [], {})

        assert events[0].category_name == ""


class TestAnnotateProfit:
    """Tests for annotate_profit function."""

    def test_profit_ratio_from_own_series(self, categories_by_id):
        """Test profit ratio computed from the row's category history."""
        events = merge_events_by_day(
            [make_transaction(1, 100, D1, id=1)],
            [make_valuation(1, 110, D1, id=1)],
            categories_by_id,
        )
        histories = {1: [HistoryPoint(D1, Decimal("110"), Decimal("100"))]}

        annotate_profit(events, histories)

        assert events[0].profit_ratio == Decimal("10")

    def test_zero_cost_has_no_ratio(self, categories_by_id):
        """Test that profit ratio is None when cost is not positive."""
        events = merge_events_by_day(
            [], [make_valuation(1, 110, D1, id=1)], categories_by_id
        )
        histories = {1: [HistoryPoint(D1, Decimal("110"), Decimal("0"))]}

        annotate_profit(events, histories)

        assert events[0].profit_ratio is None

    def test_missing_balance_is_backfilled(self, categories_by_id):
        """Test that a transaction without valuation takes the history value."""
        events = merge_events_by_day(
            [make_transaction(1, 100, D2, id=1)], [], categories_by_id
        )
        histories = {
            1: [
                HistoryPoint(D1, Decimal("500"), Decimal("400")),
                HistoryPoint(D2, Decimal("600"), Decimal("500")),
            ]
        }

        annotate_profit(events, histories)

        assert events[0].point_in_time_valuation == Decimal("600")
        assert events[0].profit_ratio == Decimal("20")

    def test_row_before_history(self, categories_by_id):
        """Test that a row older than its series gets no ratio."""
        events = merge_events_by_day(
            [make_transaction(1, 100, D1, id=1)], [], categories_by_id
        )
        histories = {1: [HistoryPoint(D3, Decimal("1"), Decimal("1"))]}

        annotate_profit(events, histories)

        assert events[0].profit_ratio is None
        assert events[0].point_in_time_valuation is None


class TestParseEventId:
    """Tests for parse_event_id function."""

    def test_valid_ids(self):
        """Test both kinds of row IDs."""
        assert parse_event_id("tx-12") == (KIND_TRANSACTION, 12)
        assert parse_event_id("as-5") == (KIND_VALUATION, 5)

    def test_unknown_kind(self):
        """Test that an unknown prefix is rejected."""
        with pytest.raises(ValueError, match="Unknown history item kind"):
            parse_event_id("xx-1")

    def test_non_numeric_id(self):
        """Test that a non-numeric record ID is rejected."""
        with pytest.raises(ValueError, match="Invalid history item ID"):
            parse_event_id("tx-abc")


class TestSummarizeFlows:
    """Tests for summarize_flows function."""

    def test_totals(self):
        """Test deposit, withdrawal and realized gain sums."""
        transactions = [
            make_transaction(1, 100, D1, id=1),
            make_transaction(1, 200, D2, id=2),
            make_transaction(1, 50, D3, type=WITHDRAW, id=3, realized_gain=15),
        ]

        totals = summarize_flows(transactions)

        assert totals.total_deposit == Decimal("300")
        assert totals.total_withdrawal == Decimal("50")
        assert totals.total_realized_gain == Decimal("15")

    def test_empty(self):
        """Test that no transactions gives zero totals."""
        totals = summarize_flows([])

        assert totals.total_deposit == Decimal("0")
        assert totals.total_realized_gain == Decimal("0")
