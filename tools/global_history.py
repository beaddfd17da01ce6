"""Whole-portfolio daily series for the dashboard chart."""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from logger import get_logger
from models.category import Category
from models.history import GlobalHistoryPoint
from models.tag import CategoryTag
from models.transaction import Transaction
from models.valuation import Valuation
from tools.aggregation import OwnFigures, consolidate, flatten_tree

logger = get_logger("tools.global_history")

ZERO = Decimal("0")


def effective_tags(
    categories: Iterable[Category],
    tags_by_category: Dict[int, List[CategoryTag]],
) -> Dict[int, Dict[str, str]]:
    """Resolve each category's tag option per group.

    A category without an option in a group inherits the option of its
    nearest ancestor that has one.

    Args:
        categories: All categories.
        tags_by_category: Category ID mapped to its own tags.

    Returns:
        Category ID mapped to {group name: option name}.
    """
    by_id = {c.id: c for c in categories}
    # Local to this call so separate calls never share state
    resolved: Dict[int, Dict[str, str]] = {}

    def resolve(category_id: int, visiting: set) -> Dict[str, str]:
        if category_id in resolved:
            return resolved[category_id]
        category = by_id[category_id]
        inherited: Dict[str, str] = {}
        parent_id = category.parent_id
        if parent_id is not None and parent_id in by_id and parent_id not in visiting:
            inherited = resolve(parent_id, visiting | {category_id})
        own = {t.group_name: t.option_name for t in tags_by_category.get(category_id, [])}
        resolved[category_id] = {**inherited, **own}
        return resolved[category_id]

    for category_id in by_id:
        resolve(category_id, {category_id})
    return resolved


class _OwnSeries:
    """Carries a category's own value and cost forward through sorted dates."""

    def __init__(
        self,
        category: Category,
        valuations: List[Valuation],
        transactions: List[Transaction],
    ):
        self.category = category
        self.valuations = sorted(valuations, key=lambda v: (v.recorded_at, v.id))
        self.transactions = sorted(transactions, key=lambda t: (t.transacted_at, t.id))
        self.v_index = 0
        self.t_index = 0
        self.value = ZERO
        self.transaction_cost = ZERO

    def advance(self, day: date) -> OwnFigures:
        while (
            self.v_index < len(self.valuations)
            and self.valuations[self.v_index].day <= day
        ):
            self.value = self.valuations[self.v_index].current_value
            self.v_index += 1
        while (
            self.t_index < len(self.transactions)
            and self.transactions[self.t_index].day <= day
        ):
            self.transaction_cost += self.transactions[self.t_index].cost_delta
            self.t_index += 1
        cost = self.value if self.category.is_cash else self.transaction_cost
        return OwnFigures(value=self.value, cost_basis=cost)


def build_global_history(
    categories: Iterable[Category],
    valuations_by_category: Dict[int, List[Valuation]],
    transactions_by_category: Dict[int, List[Transaction]],
    tags_by_category: Optional[Dict[int, List[CategoryTag]]] = None,
) -> List[GlobalHistoryPoint]:
    """Compute portfolio totals for every day with a record.

    For each day, every category's own value is its latest valuation on or
    before that day and its own cost is the transaction sum up to that day
    (the value itself for cash). The same bottom-up consolidation as the
    category list then produces root totals. Liability roots are only
    subtracted in net_worth; they never enter total_assets or total_cost.

    Tag totals sum each category's own value (negated for liabilities)
    under its effective option, so a parent and its children are never
    counted twice.

    Returns:
        GlobalHistoryPoint list in ascending date order.
    """
    categories = list(categories)
    tags_by_category = tags_by_category or {}

    dates = sorted(
        {v.day for series in valuations_by_category.values() for v in series}
        | {t.day for series in transactions_by_category.values() for t in series}
    )
    if not dates:
        return []

    nodes = flatten_tree(categories)
    tags = effective_tags(categories, tags_by_category)
    series = {
        c.id: _OwnSeries(
            c,
            valuations_by_category.get(c.id, []),
            transactions_by_category.get(c.id, []),
        )
        for c in categories
    }

    result: List[GlobalHistoryPoint] = []
    for day in dates:
        figures = {category_id: s.advance(day) for category_id, s in series.items()}
        totals = consolidate(nodes, figures)

        total_assets = ZERO
        total_cost = ZERO
        total_liabilities = ZERO
        root_values: Dict[int, Decimal] = {}
        for node in nodes:
            if node.parent_id is not None:
                continue
            total = totals[node.category.id]
            if node.category.is_liability:
                total_liabilities += total.current_value + total.liability_value
                root_values[node.category.id] = -total.current_value
            else:
                total_assets += total.current_value
                total_cost += total.cost_basis
                total_liabilities += total.liability_value
                root_values[node.category.id] = total.current_value

        tag_totals: Dict[str, Dict[str, Decimal]] = {}
        for category in categories:
            sign = -1 if category.is_liability else 1
            value = figures[category.id].value * sign
            for group_name, option_name in tags.get(category.id, {}).items():
                group = tag_totals.setdefault(group_name, {})
                group[option_name] = group.get(option_name, ZERO) + value

        result.append(
            GlobalHistoryPoint(
                date=day,
                total_assets=total_assets,
                total_cost=total_cost,
                total_liabilities=total_liabilities,
                net_worth=total_assets - total_liabilities,
                categories=root_values,
                tags=tag_totals,
            )
        )

    logger.debug(f"Built global history with {len(result)} points")
    return result
