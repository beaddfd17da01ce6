"""Models for CSV imports: the parsed batch and the stored import record."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from models.transaction import Transaction
from models.valuation import Valuation


@dataclass
class DataImport:
    """Represents a data import operation.

    Attributes:
        id: Unique identifier (auto-generated).
        category_id: ID of the asset the file was imported into.
        filename: Name of the archived file (None if archiving disabled).
        imported_count: Number of rows applied.
        error_count: Number of rows rejected.
        created_at: Timestamp when the import was created.
    """

    id: int
    category_id: int
    filename: Optional[str]
    imported_count: int
    error_count: int
    created_at: datetime


@dataclass
class RecordDeletion:
    """A request to delete a stored record by ID.

    Attributes:
        kind: "transaction" or "valuation".
        record_id: ID of the record in its table.
    """

    kind: str
    record_id: int


@dataclass
class ImportBatch:
    """Everything parsed from one import file, ready to be written.

    Attributes:
        valuations: New valuations (id None).
        transactions: New transactions (id None).
        deletions: Records the file asks to delete.
        errors: One message per rejected row, prefixed with its line number.
        row_count: Number of rows that parsed successfully.
    """

    valuations: List[Valuation] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)
    deletions: List[RecordDeletion] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    row_count: int = 0
