"""Tests for whole-portfolio history and tag resolution."""

from datetime import date
from decimal import Decimal

import pytest

from models.tag import CategoryTag
from tests.helpers import make_category, make_transaction, make_valuation
from tools.global_history import build_global_history, effective_tags

D1 = date(2025, 5, 1)
D2 = date(2025, 5, 2)
D3 = date(2025, 5, 3)

BANK, STOCKS, SP500, MORTGAGE = 1, 2, 3, 4


def tag(category_id, option_id, option_name, group_name="Class"):
    return CategoryTag(category_id, 1, option_id, group_name, option_name)


class TestEffectiveTags:
    """Tests for effective_tags function."""

    def test_child_inherits_parent_option(self):
        """Test that an untagged child takes its parent's option."""
        categories = [make_category(1), make_category(2, parent_id=1)]
        tags = {1: [tag(1, 1, "Equity")]}

        resolved = effective_tags(categories, tags)

        assert resolved[2] == {"Class": "Equity"}

    def test_own_option_overrides_ancestor(self):
        """Test that a child's own option wins over the inherited one."""
        categories = [
            make_category(1),
            make_category(2, parent_id=1),
            make_category(3, parent_id=2),
        ]
        tags = {1: [tag(1, 1, "Equity")], 2: [tag(2, 2, "Bonds")]}

        resolved = effective_tags(categories, tags)

        assert resolved[1] == {"Class": "Equity"}
        assert resolved[3] == {"Class": "Bonds"}

    def test_groups_are_resolved_independently(self):
        """Test inheritance per group."""
        categories = [make_category(1), make_category(2, parent_id=1)]
        tags = {
            1: [tag(1, 1, "Equity")],
            2: [tag(2, 5, "US", group_name="Region")],
        }

        resolved = effective_tags(categories, tags)

        assert resolved[2] == {"Class": "Equity", "Region": "US"}

    def test_cycle_terminates(self):
        """Test that a parent cycle does not recurse forever."""
        categories = [make_category(1, parent_id=2), make_category(2, parent_id=1)]
        tags = {1: [tag(1, 1, "Equity")]}

        resolved = effective_tags(categories, tags)

        assert set(resolved) == {1, 2}


class TestBuildGlobalHistory:
    """Tests for build_global_history function."""

    @pytest.fixture
    def portfolio(self):
        categories = [
            make_category(BANK, "Bank", order=0, is_cash=True),
            make_category(STOCKS, "Stocks", order=1),
            make_category(SP500, "S&P500", parent_id=STOCKS),
            make_category(MORTGAGE, "Mortgage", order=2, is_liability=True),
        ]
        valuations = {
            BANK: [
                make_valuation(BANK, 1000, D1, id=1),
                make_valuation(BANK, 1100, D3, id=2),
            ],
            SP500: [make_valuation(SP500, 500, D2, id=3)],
            MORTGAGE: [make_valuation(MORTGAGE, 2000, D1, id=4)],
        }
        transactions = {SP500: [make_transaction(SP500, 500, D2, id=1)]}
        tags = {
            BANK: [tag(BANK, 1, "Cash")],
            STOCKS: [tag(STOCKS, 2, "Equity")],
            MORTGAGE: [tag(MORTGAGE, 3, "Debt")],
        }
        return categories, valuations, transactions, tags

    def test_one_point_per_recorded_day(self, portfolio):
        """Test that every valuation or transaction day yields a point."""
        history = build_global_history(*portfolio)

        assert [p.date for p in history] == [D1, D2, D3]

    def test_liability_only_reduces_net_worth(self, portfolio):
        """Test day one totals with a liability root."""
        first = build_global_history(*portfolio)[0]

        assert first.total_assets == Decimal("1000")
        assert first.total_cost == Decimal("1000")
        assert first.total_liabilities == Decimal("2000")
        assert first.net_worth == Decimal("-1000")

    def test_values_carry_forward(self, portfolio):
        """Test the last day combines carried and new values."""
        last = build_global_history(*portfolio)[-1]

        assert last.total_assets == Decimal("1600")
        assert last.total_cost == Decimal("1600")
        assert last.net_worth == Decimal("-400")
        assert last.categories == {
            BANK: Decimal("1100"),
            STOCKS: Decimal("500"),
            MORTGAGE: Decimal("-2000"),
        }

    def test_tag_totals(self, portfolio):
        """Test tag totals use inherited options and negate liabilities."""
        last = build_global_history(*portfolio)[-1]

        assert last.tags == {
            "Class": {
                "Cash": Decimal("1100"),
                "Equity": Decimal("500"),
                "Debt": Decimal("-2000"),
            }
        }

    def test_no_records(self):
        """Test that a portfolio with no records has no history."""
        assert build_global_history([make_category(1)], {}, {}) == []
