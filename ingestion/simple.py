import csv
import logging
from typing import List, TextIO

from ingestion.rows import RowFields, cell, check_header, read_rows
from models.category import Category
from models.data_import import ImportBatch

logger = logging.getLogger(__name__)

CSV_HEADERS = ["Action", "ID", "Date", "Valuation", "Memo"]

_MIN_COLUMNS = 4


def row_to_fields(row: List[str]) -> RowFields:
    """Map a simple-format row onto its named cells."""
    return RowFields(date=cell(row, 2), valuation=cell(row, 3), memo=cell(row, 4))


def ingest(source: TextIO, category: Category) -> ImportBatch:
    """
    Ingest a valuation-only CSV, used for cash and liability assets.

    Expected format:
    - Header row (line 1): Action,ID,Date,Valuation,Memo
    - Data rows (line 2+): one valuation per row

    Raises:
        ValueError: If the file is empty or the header doesn't match
    """
    reader = csv.reader(source)
    check_header(next(reader, None), CSV_HEADERS)
    logger.info("Found simple CSV header")
    return read_rows(reader, category, row_to_fields, _MIN_COLUMNS)
