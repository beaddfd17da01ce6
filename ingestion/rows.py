"""Row rules shared by the import formats.

Both formats start with an action column and an ID column. Action "I"
ignores the row and action "D" deletes the record named in the ID column;
anything else adds records. Amount columns are turned into records
according to the target category: cash and liability categories only take
valuations, other categories take a valuation, a deposit or a withdraw
paired with its sale price.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, List, Optional, Tuple

from models.category import Category
from models.data_import import ImportBatch, RecordDeletion
from models.transaction import DEPOSIT, WITHDRAW, Transaction
from models.valuation import Valuation

logger = logging.getLogger(__name__)

ACTION_IGNORE = "I"
ACTION_DELETE = "D"

TRANSACTION_PREFIX = "T-"
VALUATION_PREFIX = "V-"

# Rows whose date cell starts with one of these are separators or repeated headers
_SKIPPED_DATE_PREFIXES = ("---", "Date", "#")


@dataclass
class RowFields:
    """Raw cell values of one data row, stripped, "" when absent."""

    date: str
    valuation: str
    deposit: str = ""
    withdraw: str = ""
    sale: str = ""
    memo: str = ""


def cell(row: List[str], index: int) -> str:
    return row[index].strip() if len(row) > index else ""


def parse_date(text: str) -> datetime:
    """Parse Y-M-D or Y/M/D with unpadded parts; the time is set to noon.

    Raises:
        ValueError: If the text is not a valid date.
    """
    parts = text.replace("/", "-").split("-")
    if len(parts) != 3:
        raise ValueError(f"Invalid date: {text}")
    try:
        year, month, day = (int(p) for p in parts)
        return datetime(year, month, day, 12, 0)
    except ValueError:
        raise ValueError(f"Invalid date: {text}")


def parse_amount(text: str, label: str) -> Decimal:
    """Parse an amount cell, allowing thousands separators.

    Raises:
        ValueError: If the text is not a finite number.
    """
    try:
        value = Decimal(text.replace(",", ""))
    except InvalidOperation:
        raise ValueError(f"Invalid {label}: {text}")
    if not value.is_finite():
        raise ValueError(f"Invalid {label}: {text}")
    return value


def parse_deletion(record_id: str) -> RecordDeletion:
    """Turn an ID cell ("T-12", "V-7" or "7") into a deletion request.

    Raises:
        ValueError: If the ID is not in one of those forms.
    """
    try:
        if record_id.startswith(TRANSACTION_PREFIX):
            return RecordDeletion("transaction", int(record_id[len(TRANSACTION_PREFIX):]))
        if record_id.startswith(VALUATION_PREFIX):
            return RecordDeletion("valuation", int(record_id[len(VALUATION_PREFIX):]))
        return RecordDeletion("valuation", int(record_id))
    except ValueError:
        raise ValueError(f"Unrecognised record ID: {record_id}")


def fields_to_records(
    fields: RowFields, category: Category
) -> Tuple[List[Valuation], List[Transaction]]:
    """Apply the amount rules to one row.

    Raises:
        ValueError: With a user-facing message when the row is rejected.
    """
    recorded_at = parse_date(fields.date)
    memo = fields.memo or None

    if category.is_cash or category.is_liability:
        if not fields.valuation:
            raise ValueError("Valuation is required")
        value = parse_amount(fields.valuation, "valuation")
        return [Valuation(None, category.id, value, recorded_at)], []

    if fields.deposit and fields.withdraw:
        raise ValueError("Deposit and withdraw cannot both be set")
    if bool(fields.withdraw) != bool(fields.sale):
        raise ValueError("Withdraw and sale must be given together")

    deposit = parse_amount(fields.deposit, "deposit") if fields.deposit else None
    withdraw = parse_amount(fields.withdraw, "withdraw") if fields.withdraw else None
    sale = parse_amount(fields.sale, "sale") if fields.sale else None
    valuation = parse_amount(fields.valuation, "valuation") if fields.valuation else None

    if deposit is None and withdraw is None and valuation is None:
        raise ValueError("No amount given")

    valuations = []
    if valuation is not None:
        valuations.append(Valuation(None, category.id, valuation, recorded_at))

    transactions = []
    if deposit is not None:
        transactions.append(
            Transaction(
                id=None,
                category_id=category.id,
                type=DEPOSIT,
                amount=abs(deposit),
                transacted_at=recorded_at,
                memo=memo,
            )
        )
    if withdraw is not None:
        transactions.append(
            Transaction(
                id=None,
                category_id=category.id,
                type=WITHDRAW,
                amount=abs(withdraw),
                transacted_at=recorded_at,
                realized_gain=sale - abs(withdraw),
                memo=memo,
            )
        )
    return valuations, transactions


def read_rows(
    reader: Iterable[List[str]],
    category: Category,
    row_to_fields: Callable[[List[str]], RowFields],
    min_columns: int,
) -> ImportBatch:
    """Turn the data rows after a validated header into an ImportBatch.

    A rejected row adds a message to batch.errors and never stops the
    import.
    """
    batch = ImportBatch()
    line_num = 1
    for row in reader:
        line_num += 1

        if not row or not "".join(row).strip():
            continue
        action = row[0].strip().upper()
        if action.startswith("#") or action == ACTION_IGNORE:
            continue

        record_id = cell(row, 1)
        try:
            if action == ACTION_DELETE and record_id:
                batch.deletions.append(parse_deletion(record_id))
                batch.row_count += 1
                continue

            if len(row) < min_columns:
                raise ValueError("Not enough columns")
            fields = row_to_fields(row)
            if not fields.date or fields.date.startswith(_SKIPPED_DATE_PREFIXES):
                continue
            valuations, transactions = fields_to_records(fields, category)
        except ValueError as e:
            logger.warning(f"Rejected line {line_num}: {row} - {e}")
            batch.errors.append(f"Line {line_num}: {e}")
            continue

        batch.valuations.extend(valuations)
        batch.transactions.extend(transactions)
        batch.row_count += 1

    logger.info(
        f"Parsed {batch.row_count} rows for {category.name} "
        f"({len(batch.errors)} rejected)"
    )
    return batch


def check_header(header: Optional[List[str]], expected: List[str]) -> None:
    """Validate a header row.

    Raises:
        ValueError: If the file is empty or the header does not match.
    """
    if header is None:
        raise ValueError("Empty CSV file")
    names = [h.strip().lstrip("\ufeff") for h in header[: len(expected)]]
    if names != expected:
        raise ValueError(f"Unexpected header row.\nExpected: {expected}")
