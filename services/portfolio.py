"""Portfolio read-model service.

Every public method does a fresh fetch of categories, valuations,
transactions and tags and then runs the pure computations in tools/ over
them. Nothing is cached between calls.
"""

import sqlite3
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from logger import get_logger
from models.category import Category
from models.event import HistoryEvent
from models.history import GlobalHistoryPoint, HistoryPoint
from models.portfolio import (
    AggregatedCategory,
    CategoryDetail,
    ChildSummary,
    PortfolioSummary,
)
from models.tag import CategoryTag
from models.transaction import Transaction
from models.valuation import Valuation
from services.categories import CategoryService
from services.tags import TagService
from services.transactions import TransactionService
from services.valuations import ValuationService
from tools.aggregation import (
    aggregate_categories,
    build_children_map,
    collect_descendants,
    summarize,
)
from tools.events import annotate_profit, merge_events_by_day, summarize_flows
from tools.global_history import build_global_history
from tools.history import merge_histories, reconstruct_history, window_history

logger = get_logger("services.portfolio")

ZERO = Decimal("0")


class PortfolioDataError(Exception):
    """Raised when portfolio data cannot be fetched from the database."""


@dataclass
class _Snapshot:
    categories: List[Category]
    valuations: Dict[int, List[Valuation]]
    transactions: Dict[int, List[Transaction]]
    tags: Dict[int, List[CategoryTag]]

    @property
    def categories_by_id(self) -> Dict[int, Category]:
        return {c.id: c for c in self.categories}


class PortfolioService:
    """Service computing aggregated views of the whole portfolio."""

    def __init__(self, db_manager):
        """Initialize the portfolio service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager
        self.categories = CategoryService(db_manager)
        self.valuations = ValuationService(db_manager)
        self.transactions = TransactionService(db_manager)
        self.tags = TagService(db_manager)

    def _fetch(self) -> _Snapshot:
        try:
            return _Snapshot(
                categories=self.categories.find_all(),
                valuations=self.valuations.find_all_by_category(),
                transactions=self.transactions.find_all_by_category(),
                tags=self.tags.find_category_tags(),
            )
        except sqlite3.Error as e:
            logger.error(f"Failed to fetch portfolio data: {e}")
            raise PortfolioDataError("Cannot fetch current portfolio data") from e

    def _aggregate(self, snapshot: _Snapshot) -> List[AggregatedCategory]:
        return aggregate_categories(
            snapshot.categories,
            snapshot.valuations,
            snapshot.transactions,
            snapshot.tags,
        )

    def get_aggregated_categories(self) -> List[AggregatedCategory]:
        """Get every category with own and consolidated figures, in pre-order.

        Raises:
            PortfolioDataError: If the data cannot be fetched.
        """
        return self._aggregate(self._fetch())

    def get_summary(self) -> PortfolioSummary:
        """Get dashboard totals across all root categories.

        Raises:
            PortfolioDataError: If the data cannot be fetched.
        """
        return summarize(self._aggregate(self._fetch()))

    def get_global_history_series(self) -> List[GlobalHistoryPoint]:
        """Get the whole-portfolio daily series with tag breakdowns.

        Raises:
            PortfolioDataError: If the data cannot be fetched.
        """
        snapshot = self._fetch()
        return build_global_history(
            snapshot.categories,
            snapshot.valuations,
            snapshot.transactions,
            snapshot.tags,
        )

    def _histories(
        self,
        members: List[Category],
        snapshot: _Snapshot,
        aggregated: Dict[int, AggregatedCategory],
        children_map: Dict[int, List[Category]],
        today: Optional[date],
    ) -> Dict[int, List[HistoryPoint]]:
        """Reconstruct the own series of each member that can contribute one.

        Members without records are left out so that they do not add a
        synthetic point to a merged series. A cash leaf with no records
        still gets its single point dated today.
        """
        histories: Dict[int, List[HistoryPoint]] = {}
        for member in members:
            valuations = snapshot.valuations.get(member.id, [])
            transactions = snapshot.transactions.get(member.id, [])
            is_empty_cash_leaf = member.is_cash and member.id not in children_map
            if not valuations and not transactions and not is_empty_cash_leaf:
                continue
            own = aggregated.get(member.id)
            histories[member.id] = reconstruct_history(
                member,
                transactions,
                valuations,
                today=today,
                current_value=own.own_value if own else ZERO,
            )
        return histories

    def _events(
        self,
        members: List[Category],
        snapshot: _Snapshot,
        histories: Dict[int, List[HistoryPoint]],
    ) -> List[HistoryEvent]:
        transactions = [t for m in members for t in snapshot.transactions.get(m.id, [])]
        valuations = [v for m in members for v in snapshot.valuations.get(m.id, [])]
        events = merge_events_by_day(transactions, valuations, snapshot.categories_by_id)
        return annotate_profit(events, histories)

    def get_history_events(
        self, category_id: Optional[int] = None, today: Optional[date] = None
    ) -> List[HistoryEvent]:
        """Get the merged transaction/valuation list, newest first.

        Args:
            category_id: Limit to this category and its descendants. None
                lists every category.
            today: Date used for empty cash series. Defaults to date.today().

        Returns:
            HistoryEvent list. Empty when the category does not exist.

        Raises:
            PortfolioDataError: If the data cannot be fetched.
        """
        snapshot = self._fetch()
        children_map = build_children_map(snapshot.categories)

        if category_id is None:
            members = list(snapshot.categories)
        else:
            category = snapshot.categories_by_id.get(category_id)
            if category is None:
                return []
            members = [category] + collect_descendants(category_id, children_map)

        aggregated = {row.id: row for row in self._aggregate(snapshot)}
        histories = self._histories(members, snapshot, aggregated, children_map, today)
        return self._events(members, snapshot, histories)

    def get_category_detail(
        self,
        category_id: int,
        range_key: str = "ALL",
        today: Optional[date] = None,
    ) -> Optional[CategoryDetail]:
        """Build the single-asset view for a category and its subtree.

        current_value is the tree aggregation's consolidated value. The
        history is the merge of the category's own series with every
        descendant's, and cost_basis is the cost of its last point. If that
        differs from the aggregated cost basis a warning is logged.

        Args:
            category_id: The category to describe.
            range_key: Chart window, one of "1M", "3M", "1Y" or "ALL".
            today: End of the chart window. Defaults to date.today().

        Returns:
            CategoryDetail, or None if the category does not exist.

        Raises:
            ValueError: If range_key is not a known range.
            PortfolioDataError: If the data cannot be fetched.
        """
        snapshot = self._fetch()
        categories_by_id = snapshot.categories_by_id
        category = categories_by_id.get(category_id)
        if category is None:
            return None

        children_map = build_children_map(snapshot.categories)
        members = [category] + collect_descendants(category_id, children_map)
        aggregated = {row.id: row for row in self._aggregate(snapshot)}
        row = aggregated[category_id]

        histories = self._histories(members, snapshot, aggregated, children_map, today)
        merged = merge_histories(category_id, children_map, categories_by_id, histories)

        cost_basis = merged.points[-1].cost if merged.points else ZERO
        if merged.points and cost_basis != row.cost_basis:
            logger.warning(
                f"Category {category_id} ({category.name}): history cost basis "
                f"{cost_basis} differs from aggregated cost basis {row.cost_basis}"
            )

        flows = summarize_flows(
            t for m in members for t in snapshot.transactions.get(m.id, [])
        )
        children = [
            ChildSummary(
                id=child.id,
                name=child.name,
                color=child.color,
                current_value=aggregated[child.id].current_value,
                is_liability=child.is_liability,
            )
            for child in children_map.get(category_id, [])
        ]
        parent = categories_by_id.get(category.parent_id) if category.parent_id else None

        return CategoryDetail(
            id=category.id,
            name=category.name,
            color=category.color,
            is_cash=category.is_cash,
            is_liability=category.is_liability,
            parent_id=parent.id if parent else None,
            parent_name=parent.name if parent else None,
            current_value=row.current_value,
            cost_basis=cost_basis,
            total_deposit=flows.total_deposit,
            total_withdrawal=flows.total_withdrawal,
            total_realized_gain=flows.total_realized_gain,
            children=children,
            history=window_history(merged.points, range_key, today),
            breakdown={
                child_id: window_history(series, range_key, today)
                for child_id, series in merged.breakdown.items()
            },
            transactions=self._events(members, snapshot, histories),
        )
