"""Unified transaction/valuation list for the asset history view."""

from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from logger import get_logger
from models.category import Category, DEFAULT_COLOR
from models.event import HistoryEvent, KIND_TRANSACTION, KIND_VALUATION
from models.history import HistoryPoint
from models.transaction import DEPOSIT, VALUATION, WITHDRAW, Transaction
from models.valuation import Valuation
from tools.history import point_as_of

logger = get_logger("tools.events")

ZERO = Decimal("0")


@dataclass
class FlowTotals:
    total_deposit: Decimal = ZERO
    total_withdrawal: Decimal = ZERO
    total_realized_gain: Decimal = ZERO


def _category_fields(category_id: int, categories_by_id: Dict[int, Category]):
    category = categories_by_id.get(category_id)
    if category is None:
        return "", DEFAULT_COLOR
    return category.name, category.color


def format_transaction(
    transaction: Transaction, categories_by_id: Dict[int, Category]
) -> HistoryEvent:
    name, color = _category_fields(transaction.category_id, categories_by_id)
    return HistoryEvent(
        id=f"{KIND_TRANSACTION}-{transaction.id}",
        kind=KIND_TRANSACTION,
        record_id=transaction.id,
        category_id=transaction.category_id,
        category_name=name,
        category_color=color,
        occurred_at=transaction.transacted_at,
        type=transaction.type,
        amount=transaction.amount,
        realized_gain=transaction.realized_gain,
        memo=transaction.memo,
    )


def format_valuation(
    valuation: Valuation, categories_by_id: Dict[int, Category]
) -> HistoryEvent:
    name, color = _category_fields(valuation.category_id, categories_by_id)
    return HistoryEvent(
        id=f"{KIND_VALUATION}-{valuation.id}",
        kind=KIND_VALUATION,
        record_id=valuation.id,
        category_id=valuation.category_id,
        category_name=name,
        category_color=color,
        occurred_at=valuation.recorded_at,
        type=VALUATION,
        amount=ZERO,
        point_in_time_valuation=valuation.current_value,
    )


def parse_event_id(event_id: str) -> Tuple[str, int]:
    """Split a history row ID such as "tx-12" into its kind and record ID.

    Raises:
        ValueError: If the kind is unknown or the record ID is not a number.
    """
    kind, _, record_id = event_id.partition("-")
    if kind not in (KIND_TRANSACTION, KIND_VALUATION):
        raise ValueError(f"Unknown history item kind: {event_id}")
    try:
        return kind, int(record_id)
    except ValueError:
        raise ValueError(f"Invalid history item ID: {event_id}")


def _newest_first(events: List[HistoryEvent]) -> List[HistoryEvent]:
    # Stable: equal timestamps keep their incoming order
    return sorted(events, key=lambda e: e.occurred_at, reverse=True)


def merge_events_by_day(
    transactions: Iterable[Transaction],
    valuations: Iterable[Valuation],
    categories_by_id: Dict[int, Category],
) -> List[HistoryEvent]:
    """Interleave transactions and valuations, merging same-day pairs.

    Rows are grouped by (category, calendar day). In a group holding both
    kinds, the latest valuation becomes the latest transaction's
    point_in_time_valuation and is not emitted on its own. Every
    transaction is kept, and so is every other valuation of the group.

    Args:
        transactions: Transactions of the category and its descendants.
        valuations: Valuations of the category and its descendants.
        categories_by_id: Used for the category name and color of each row.

    Returns:
        HistoryEvent list, newest first.
    """
    events = [format_transaction(t, categories_by_id) for t in transactions]
    events += [format_valuation(v, categories_by_id) for v in valuations]

    groups: "OrderedDict[tuple, List[HistoryEvent]]" = OrderedDict()
    for event in _newest_first(events):
        key = (event.category_id, event.occurred_at.date())
        groups.setdefault(key, []).append(event)

    merged: List[HistoryEvent] = []
    elided = 0
    for group in groups.values():
        group_transactions = [e for e in group if e.is_transaction]
        group_valuations = [e for e in group if not e.is_transaction]

        if group_transactions and group_valuations:
            latest_valuation = group_valuations[0]
            group_transactions[0].point_in_time_valuation = (
                latest_valuation.point_in_time_valuation
            )
            group_valuations = group_valuations[1:]
            elided += 1

        merged.extend(group_transactions)
        merged.extend(group_valuations)

    logger.debug(
        f"Merged {len(events)} records into {len(merged)} rows "
        f"({elided} valuations attached to transactions)"
    )
    return _newest_first(merged)


def annotate_profit(
    events: List[HistoryEvent], histories: Dict[int, List[HistoryPoint]]
) -> List[HistoryEvent]:
    """Fill in profit ratios and missing balances from reconstructed history.

    Each row is matched to the point of its own category's series on (or
    else last before) the row's day. profit_ratio is
    (value - cost) / cost * 100 when cost is positive and None otherwise.
    Rows without a point_in_time_valuation take the point's value.

    Returns:
        The same events, updated in place.
    """
    for event in events:
        point = point_as_of(histories.get(event.category_id, []), event.occurred_at.date())
        if point is None:
            event.profit_ratio = None
            continue
        if point.cost > 0:
            event.profit_ratio = (point.value - point.cost) / point.cost * 100
        else:
            event.profit_ratio = None
        if event.point_in_time_valuation is None:
            event.point_in_time_valuation = point.value
    return events


def summarize_flows(transactions: Iterable[Transaction]) -> FlowTotals:
    """Total deposits, withdrawals and realized gains."""
    totals = FlowTotals()
    for transaction in transactions:
        if transaction.type == DEPOSIT:
            totals.total_deposit += transaction.amount
        elif transaction.type == WITHDRAW:
            totals.total_withdrawal += transaction.amount
        if transaction.realized_gain is not None:
            totals.total_realized_gain += transaction.realized_gain
    return totals
