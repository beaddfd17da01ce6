"""Tests for combining a category's history with its descendants'."""

from datetime import date
from decimal import Decimal

from models.history import HistoryPoint
from tests.helpers import make_category
from tools.aggregation import build_children_map
from tools.history import merge_histories

D1 = date(2025, 4, 1)
D2 = date(2025, 4, 2)
D3 = date(2025, 4, 3)


def point(day, value, cost):
    return HistoryPoint(day, Decimal(str(value)), Decimal(str(cost)))


def merge(category_id, categories, histories):
    return merge_histories(
        category_id,
        build_children_map(categories),
        {c.id: c for c in categories},
        histories,
    )


def values(series):
    return [p.value for p in series]


class TestMergeHistories:
    """Tests for merge_histories function."""

    def test_leaf_returns_own_series(self):
        """Test that a category without children keeps its own series."""
        categories = [make_category(1)]
        own = [point(D1, 100, 100), point(D3, 120, 100)]

        merged = merge(1, categories, {1: own})

        assert merged.points == own
        assert merged.breakdown == {}

    def test_children_carry_forward(self):
        """Test totals and breakdown over the union of the children's dates."""
        categories = [
            make_category(1),
            make_category(2, "A", parent_id=1, order=0),
            make_category(3, "B", parent_id=1, order=1),
        ]
        histories = {
            2: [point(D1, 100, 100), point(D3, 120, 100)],
            3: [point(D2, 50, 50)],
        }

        merged = merge(1, categories, histories)

        assert [(p.date, p.value, p.cost) for p in merged.points] == [
            (D1, Decimal("100"), Decimal("100")),
            (D2, Decimal("150"), Decimal("150")),
            (D3, Decimal("170"), Decimal("150")),
        ]
        assert values(merged.breakdown[2]) == [
            Decimal("100"),
            Decimal("100"),
            Decimal("120"),
        ]
        assert values(merged.breakdown[3]) == [Decimal("0"), Decimal("50"), Decimal("50")]

    def test_parent_own_series_is_included(self):
        """Test that a parent with records of its own adds them to the total."""
        categories = [make_category(1), make_category(2, parent_id=1)]
        histories = {
            1: [point(D1, 10, 10)],
            2: [point(D2, 100, 80)],
        }

        merged = merge(1, categories, histories)

        assert [(p.value, p.cost) for p in merged.points] == [
            (Decimal("10"), Decimal("10")),
            (Decimal("110"), Decimal("90")),
        ]
        assert list(merged.breakdown) == [2]

    def test_liability_child_excluded_from_total(self):
        """Test that a liability under an asset parent is charted but not summed."""
        categories = [
            make_category(1, "Home"),
            make_category(2, "House", parent_id=1),
            make_category(3, "Loan", parent_id=1, is_liability=True),
        ]
        histories = {
            2: [point(D1, 300, 300)],
            3: [point(D1, 200, 0)],
        }

        merged = merge(1, categories, histories)

        assert values(merged.points) == [Decimal("300")]
        assert values(merged.breakdown[3]) == [Decimal("200")]

    def test_grandchildren_roll_up(self):
        """Test that deeper descendants count toward both total and breakdown."""
        categories = [
            make_category(1),
            make_category(2, parent_id=1),
            make_category(3, parent_id=2),
        ]
        histories = {3: [point(D1, 40, 30), point(D2, 45, 30)]}

        merged = merge(1, categories, histories)

        assert values(merged.points) == [Decimal("40"), Decimal("45")]
        assert values(merged.breakdown[2]) == [Decimal("40"), Decimal("45")]

    def test_no_history_anywhere(self):
        """Test that a subtree with no records merges to an empty series."""
        categories = [make_category(1), make_category(2, parent_id=1)]

        merged = merge(1, categories, {})

        assert merged.points == []
        assert merged.breakdown == {2: []}
