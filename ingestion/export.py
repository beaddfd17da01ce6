"""CSV export of the whole portfolio and per-asset import templates."""

import csv
import io
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from ingestion.detailed import CSV_HEADERS as DETAILED_HEADERS
from ingestion.rows import ACTION_IGNORE, TRANSACTION_PREFIX, VALUATION_PREFIX
from ingestion.simple import CSV_HEADERS as SIMPLE_HEADERS
from models.category import Category
from models.transaction import DEPOSIT, WITHDRAW, Transaction
from models.valuation import Valuation

logger = logging.getLogger(__name__)

EXPORT_HEADERS = ["Date", "CategoryID", "Category", "Type", "Amount", "Valuation", "Memo"]

_TYPE_LABELS = {
    DEPOSIT: "Deposit",
    WITHDRAW: "Withdraw",
}
_VALUATION_ADJUSTMENT_LABEL = "Valuation adjustment"
_VALUATION_LABEL = "Valuation"

EXISTING_MEMO = "(existing)"
VALUATION_MEMO = "(valuation)"


def format_amount(value: Optional[Decimal]) -> str:
    """Render an amount without a trailing ".0" for whole numbers."""
    if value is None:
        return ""
    integral = value.to_integral_value()
    if value == integral:
        return str(integral)
    return str(value)


def _write(rows: List[List[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


def export_all(
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
    valuations: Iterable[Valuation],
) -> str:
    """Export every transaction and valuation as one CSV, oldest first.

    Withdrawals are written with a negative amount. Valuation rows have an
    amount of 0 and the value in the Valuation column. Rows with the same
    timestamp keep transactions before valuations.

    Returns:
        CSV text including the header row.
    """
    names: Dict[int, str] = {c.id: c.name for c in categories}
    entries = []

    for t in transactions:
        label = _TYPE_LABELS.get(t.type, _VALUATION_ADJUSTMENT_LABEL)
        amount = -t.amount if t.type == WITHDRAW else t.amount
        entries.append(
            (
                t.transacted_at,
                [
                    t.transacted_at.date().isoformat(),
                    str(t.category_id),
                    names.get(t.category_id, ""),
                    label,
                    format_amount(amount),
                    "",
                    t.memo or "",
                ],
            )
        )

    for v in valuations:
        entries.append(
            (
                v.recorded_at,
                [
                    v.recorded_at.date().isoformat(),
                    str(v.category_id),
                    names.get(v.category_id, ""),
                    _VALUATION_LABEL,
                    "0",
                    format_amount(v.current_value),
                    "",
                ],
            )
        )

    # sort() is stable, so transactions stay ahead of valuations at equal times
    entries.sort(key=lambda entry: entry[0])
    logger.info(f"Exported {len(entries)} records")
    return _write([EXPORT_HEADERS] + [row for _, row in entries])


def build_template(
    category: Optional[Category],
    transactions: Iterable[Transaction] = (),
    valuations: Iterable[Valuation] = (),
) -> str:
    """Build an import template, prefilled with the asset's existing records.

    Cash and liability assets get the simple format; anything else, or no
    asset at all, gets the detailed format. Existing records are marked
    with action "I" so that re-importing the template changes nothing
    until the user edits it.

    Args:
        category: Asset the template is for, or None for a blank template.
        transactions: The asset's transactions.
        valuations: The asset's valuations.

    Returns:
        CSV text including the header row.
    """
    if category is not None and (category.is_cash or category.is_liability):
        rows = [SIMPLE_HEADERS]
        for v in sorted(valuations, key=lambda v: v.recorded_at):
            rows.append(
                [
                    ACTION_IGNORE,
                    str(v.id),
                    v.recorded_at.date().isoformat(),
                    format_amount(v.current_value),
                    EXISTING_MEMO,
                ]
            )
        return _write(rows)

    rows = [DETAILED_HEADERS]
    if category is None:
        return _write(rows)

    entries = []
    for t in transactions:
        sale = ""
        if t.type == WITHDRAW and t.realized_gain is not None:
            sale = format_amount(t.realized_gain + t.amount)
        entries.append(
            (
                t.transacted_at,
                [
                    ACTION_IGNORE,
                    f"{TRANSACTION_PREFIX}{t.id}",
                    t.transacted_at.date().isoformat(),
                    format_amount(t.amount) if t.type == DEPOSIT else "",
                    format_amount(t.amount) if t.type == WITHDRAW else "",
                    sale,
                    "",
                    t.memo or "",
                ],
            )
        )
    for v in valuations:
        entries.append(
            (
                v.recorded_at,
                [
                    ACTION_IGNORE,
                    f"{VALUATION_PREFIX}{v.id}",
                    v.recorded_at.date().isoformat(),
                    "",
                    "",
                    "",
                    format_amount(v.current_value),
                    VALUATION_MEMO,
                ],
            )
        )
    entries.sort(key=lambda entry: entry[0])
    return _write(rows + [row for _, row in entries])
