"""DataImport service for database operations."""

from typing import List, Optional
from datetime import datetime
from logger import get_logger
from models.data_import import DataImport, ImportBatch
from services.transactions import insert_transaction
from services.valuations import insert_valuation

logger = get_logger("services.data_imports")

_DATA_IMPORT_SELECT_FIELDS = (
    "id, category_id, filename, imported_count, error_count, created_at"
)

_DELETE_STATEMENTS = {
    "transaction": "DELETE FROM transactions WHERE id = ? AND category_id = ?",
    "valuation": "DELETE FROM valuations WHERE id = ? AND category_id = ?",
}


class DataImportService:
    """Service for applying import batches and keeping their records."""

    def __init__(self, db_manager):
        """Initialize the data import service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def apply(
        self, category_id: int, batch: ImportBatch, filename: Optional[str]
    ) -> DataImport:
        """Write an import batch for one category and record the import.

        Deletions run first, then valuations, then transactions, all in one
        unit. A deletion naming a record that does not exist in the
        category is counted as an error rather than failing the import.

        Args:
            category_id: The category the file was imported into.
            batch: Parsed rows from an ingestion module.
            filename: Name of the archived file (None if archiving disabled).

        Returns:
            The created DataImport record.
        """
        missing = 0
        with self.db_manager.connect() as conn:
            try:
                for deletion in batch.deletions:
                    cursor = conn.execute(
                        _DELETE_STATEMENTS[deletion.kind],
                        (deletion.record_id, category_id),
                    )
                    if cursor.rowcount == 0:
                        logger.warning(
                            f"No {deletion.kind} with ID {deletion.record_id} "
                            f"in category {category_id}"
                        )
                        missing += 1

                for valuation in batch.valuations:
                    insert_valuation(
                        conn, category_id, valuation.current_value, valuation.recorded_at
                    )

                for transaction in batch.transactions:
                    transaction.category_id = category_id
                    insert_transaction(conn, transaction)

                cursor = conn.execute(
                    """
                    INSERT INTO data_imports (category_id, filename, imported_count, error_count)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        category_id,
                        filename,
                        batch.row_count - missing,
                        len(batch.errors) + missing,
                    ),
                )
                import_id = cursor.lastrowid
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        logger.info(
            f"Imported {batch.row_count - missing} rows into category {category_id} "
            f"({len(batch.errors) + missing} errors)"
        )
        return self.find(import_id)

    def find(self, data_import_id: int) -> Optional[DataImport]:
        """Get a single data import by ID.

        Args:
            data_import_id: The data import ID to find.

        Returns:
            DataImport object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_DATA_IMPORT_SELECT_FIELDS} FROM data_imports WHERE id = ?",
                (data_import_id,),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_data_import(row)
            return None

    def find_by_category(self, category_id: int) -> List[DataImport]:
        """Get all data imports for a specific category.

        Args:
            category_id: The category ID to filter by.

        Returns:
            List of DataImport objects ordered by created_at (newest first).
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_DATA_IMPORT_SELECT_FIELDS}
                FROM data_imports
                WHERE category_id = ?
                ORDER BY created_at DESC, id DESC
                """,
                (category_id,),
            )
            rows = cursor.fetchall()

            return [self._row_to_data_import(row) for row in rows]

    def _row_to_data_import(self, row: tuple) -> DataImport:
        """Convert a database row to a DataImport object.

        Args:
            row: Database row tuple.

        Returns:
            DataImport object.
        """
        return DataImport(
            id=row[0],
            category_id=row[1],
            filename=row[2],
            imported_count=row[3],
            error_count=row[4],
            created_at=datetime.fromisoformat(row[5]),
        )
