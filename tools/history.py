"""Daily value/cost series for charting a category over time.

Valuations are sparse ground truth; deposits and withdrawals happen between
them. reconstruct_history turns both into one step-shaped series: when a
value changes after a gap, an extra point is placed on the day before so the
chart holds flat and then jumps on the effective date instead of drawing a
ramp across the gap.
"""

from bisect import bisect_right
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from logger import get_logger
from models.category import Category
from models.history import HistoryPoint, MergedHistory
from models.transaction import Transaction
from models.valuation import Valuation

logger = get_logger("tools.history")

ZERO = Decimal("0")
ONE_DAY = timedelta(days=1)

RANGE_DELTAS = {
    "1M": relativedelta(months=1),
    "3M": relativedelta(months=3),
    "1Y": relativedelta(years=1),
    "ALL": None,
}


@dataclass
class _DayEntry:
    date: date
    value: Optional[Decimal]
    cost: Decimal
    net_flow: Decimal = ZERO


def cost_basis_as_of(transactions: Iterable[Transaction], as_of: date) -> Decimal:
    """Deposits minus withdrawals on or before a day."""
    return sum((t.cost_delta for t in transactions if t.day <= as_of), ZERO)


def _clamp(value: Decimal) -> Decimal:
    return value if value > 0 else ZERO


def reconstruct_history(
    category: Category,
    transactions: Iterable[Transaction],
    valuations: Iterable[Valuation],
    *,
    today: Optional[date] = None,
    current_value: Decimal = ZERO,
) -> List[HistoryPoint]:
    """Build a gap-filled daily {value, cost} series for one category.

    Transactions give each of their days a running cost basis and a net
    flow (deposits minus withdrawals). Several transactions on one day share
    an entry: the cost is overwritten with the latest running value while
    the net flow is summed. Valuations then set the value of their day,
    creating the entry (with cost as of that day) when no transaction
    landed there.

    Walking the days in order:
      - the first day's value is 0 when unknown;
      - after a gap of more than one day, a point is added on the previous
        day with the previous cost and a value of
        (today's valuation - today's net flow), or the previous value when
        the day has no valuation;
      - a day without a valuation is worth previous value + net flow.
    Values are clamped at 0. Cash categories report cost == value.

    Args:
        category: The category being charted.
        transactions: Its transactions.
        valuations: Its valuations.
        today: Date used for an empty cash category. Defaults to date.today().
        current_value: Value used for an empty cash category.

    Returns:
        HistoryPoint list, ascending by date.
    """
    transactions = sorted(transactions, key=lambda t: (t.transacted_at, t.id or 0))
    valuations = sorted(valuations, key=lambda v: (v.recorded_at, v.id or 0))

    entries: Dict[date, _DayEntry] = {}

    running_cost = ZERO
    for transaction in transactions:
        running_cost += transaction.cost_delta
        entry = entries.get(transaction.day)
        if entry is None:
            entry = _DayEntry(date=transaction.day, value=None, cost=running_cost)
            entries[transaction.day] = entry
        entry.cost = running_cost
        entry.net_flow += transaction.cost_delta

    for valuation in valuations:
        entry = entries.get(valuation.day)
        if entry is not None:
            entry.value = valuation.current_value
        else:
            entries[valuation.day] = _DayEntry(
                date=valuation.day,
                value=valuation.current_value,
                cost=cost_basis_as_of(transactions, valuation.day),
            )

    if not entries:
        if category.is_cash:
            day = today or date.today()
            return [HistoryPoint(date=day, value=current_value, cost=current_value)]
        return []

    points: List[HistoryPoint] = []
    for entry in sorted(entries.values(), key=lambda e: e.date):
        if not points:
            value = _clamp(entry.value if entry.value is not None else ZERO)
            points.append(HistoryPoint(date=entry.date, value=value, cost=entry.cost))
            continue

        previous = points[-1]
        if (entry.date - previous.date).days > 1:
            if entry.value is not None:
                filler_value = _clamp(entry.value - entry.net_flow)
            else:
                filler_value = previous.value
            previous = HistoryPoint(
                date=entry.date - ONE_DAY, value=filler_value, cost=previous.cost
            )
            points.append(previous)

        if entry.value is not None:
            value = _clamp(entry.value)
        else:
            value = _clamp(previous.value + entry.net_flow)
        points.append(HistoryPoint(date=entry.date, value=value, cost=entry.cost))

    if category.is_cash:
        for point in points:
            point.cost = point.value

    logger.debug(
        f"Reconstructed {len(points)} points for category {category.id} "
        f"from {len(entries)} recorded days"
    )
    return points


def point_as_of(history: List[HistoryPoint], day: date) -> Optional[HistoryPoint]:
    """Get the last point on or before a day, or None if the series starts later."""
    index = bisect_right([p.date for p in history], day)
    if index == 0:
        return None
    return history[index - 1]


def window_history(
    points: List[HistoryPoint], range_key: str, today: Optional[date] = None
) -> List[HistoryPoint]:
    """Trim a series to a chart range ending today.

    When data exists before the window, a point carrying the last earlier
    value and cost is placed on the window's first day so the line starts
    at the edge instead of at the first in-window record.

    Args:
        points: Series in ascending date order.
        range_key: One of "1M", "3M", "1Y" or "ALL".
        today: End of the window. Defaults to date.today().

    Raises:
        ValueError: If range_key is not a known range.
    """
    if range_key not in RANGE_DELTAS:
        raise ValueError(f"Unknown history range: {range_key}")

    delta = RANGE_DELTAS[range_key]
    if delta is None:
        return list(points)

    start = (today or date.today()) - delta
    inside = [p for p in points if p.date >= start]
    before = point_as_of(points, start - ONE_DAY)
    if before is not None and (not inside or inside[0].date > start):
        inside.insert(0, HistoryPoint(date=start, value=before.value, cost=before.cost))
    return inside


class _Carry:
    """Walks one series forward, remembering the last point at or before a date."""

    def __init__(self, series: List[HistoryPoint]):
        self.series = series
        self.index = 0
        self.value = ZERO
        self.cost = ZERO

    def advance(self, day: date) -> None:
        while self.index < len(self.series) and self.series[self.index].date <= day:
            self.value = self.series[self.index].value
            self.cost = self.series[self.index].cost
            self.index += 1


def merge_histories(
    category_id: int,
    children_map: Dict[int, List[Category]],
    categories_by_id: Dict[int, Category],
    histories: Dict[int, List[HistoryPoint]],
) -> MergedHistory:
    """Combine a category's history with all of its descendants'.

    The combined series has a point on every date that appears in any
    contributing series. At each date every contributor carries forward
    its last known value and cost (a contributor with no point yet counts
    as 0). The category's own series contributes only when it has records
    of its own. Totals follow the tree aggregation rule: a liability child
    of a non-liability category is kept out of the total, though it still
    gets a breakdown series.

    Args:
        category_id: The category to merge for.
        children_map: Parent ID mapped to sorted children.
        categories_by_id: All categories by ID.
        histories: Reconstructed series per category ID.

    Returns:
        MergedHistory with the combined points and one breakdown series per
        direct child. A category without descendants gets its own series
        back unchanged.
    """
    children = children_map.get(category_id, [])
    if not children:
        return MergedHistory(points=list(histories.get(category_id, [])))

    # Subtree members, visited-guarded against parent cycles
    members: List[int] = []
    seen = set()
    stack = [category_id]
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        members.append(current)
        stack.extend(c.id for c in children_map.get(current, []))

    carries = {member: _Carry(histories.get(member, [])) for member in members}
    dates = sorted({p.date for member in members for p in histories.get(member, [])})

    def subtree_total(node_id: int, visiting: frozenset):
        carry = carries[node_id]
        value, cost = carry.value, carry.cost
        node = categories_by_id[node_id]
        for child in children_map.get(node_id, []):
            if child.id in visiting:
                continue
            child_value, child_cost = subtree_total(child.id, visiting | {child.id})
            if child.is_liability and not node.is_liability:
                continue
            value += child_value
            cost += child_cost
        return value, cost

    points: List[HistoryPoint] = []
    breakdown: Dict[int, List[HistoryPoint]] = {child.id: [] for child in children}

    for day in dates:
        for carry in carries.values():
            carry.advance(day)
        total_value, total_cost = subtree_total(category_id, frozenset({category_id}))
        points.append(HistoryPoint(date=day, value=total_value, cost=total_cost))
        for child in children:
            child_value, child_cost = subtree_total(
                child.id, frozenset({category_id, child.id})
            )
            breakdown[child.id].append(
                HistoryPoint(date=day, value=child_value, cost=child_cost)
            )

    logger.debug(
        f"Merged {len(members)} series into {len(points)} points for category "
        f"{category_id}"
    )
    return MergedHistory(points=points, breakdown=breakdown)
