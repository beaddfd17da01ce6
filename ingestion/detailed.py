import csv
import logging
from typing import List, TextIO

from ingestion.rows import RowFields, cell, check_header, read_rows
from models.category import Category
from models.data_import import ImportBatch

logger = logging.getLogger(__name__)

CSV_HEADERS = ["Action", "ID", "Date", "Deposit", "Withdraw", "Sale", "Valuation", "Memo"]

# Memo may be left off entirely
_MIN_COLUMNS = 7


def row_to_fields(row: List[str]) -> RowFields:
    """Map a detailed-format row onto its named cells.

    Args:
        row: CSV row matching CSV_HEADERS structure

    Returns:
        RowFields with every amount cell filled in
    """
    return RowFields(
        date=cell(row, 2),
        deposit=cell(row, 3),
        withdraw=cell(row, 4),
        sale=cell(row, 5),
        valuation=cell(row, 6),
        memo=cell(row, 7),
    )


def ingest(source: TextIO, category: Category) -> ImportBatch:
    """
    Ingest a detailed asset history CSV.

    Expected format:
    - Header row (line 1): Action,ID,Date,Deposit,Withdraw,Sale,Valuation,Memo
    - Data rows (line 2+): one dated change per row

    A withdraw must come with the sale price it was realised at; the
    realized gain stored with it is sale - withdraw.

    Raises:
        ValueError: If the file is empty or the header doesn't match
    """
    reader = csv.reader(source)
    check_header(next(reader, None), CSV_HEADERS)
    logger.info("Found detailed CSV header")
    return read_rows(reader, category, row_to_fields, _MIN_COLUMNS)
