"""Valuation service for database operations."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
from models.valuation import Valuation

_VALUATION_SELECT_FIELDS = "id, category_id, current_value, recorded_at, transaction_id"


def insert_valuation(
    conn,
    category_id: int,
    value: Decimal,
    recorded_at: datetime,
    transaction_id: Optional[int] = None,
) -> int:
    """Insert a valuation row on an open connection without committing.

    Used by the services that write a valuation together with other rows.
    transaction_id links the row to the transaction it was entered with.

    Returns:
        The new valuation ID.
    """
    cursor = conn.execute(
        """
        INSERT INTO valuations (category_id, current_value, recorded_at, transaction_id)
        VALUES (?, ?, ?, ?)
        """,
        (category_id, float(value), recorded_at.isoformat(), transaction_id),
    )
    return cursor.lastrowid


class ValuationService:
    """Service for managing valuation snapshots."""

    def __init__(self, db_manager):
        """Initialize the valuation service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def create(
        self,
        category_id: int,
        value: Decimal,
        recorded_at: Optional[datetime] = None,
    ) -> Valuation:
        """Record what a category is worth at a point in time.

        Args:
            category_id: The category being valued.
            value: Current value.
            recorded_at: When the value applies. Defaults to now.

        Returns:
            The created Valuation with id populated.
        """
        recorded_at = recorded_at or datetime.now()
        with self.db_manager.connect() as conn:
            valuation_id = insert_valuation(conn, category_id, value, recorded_at)
            conn.commit()

        return Valuation(
            id=valuation_id,
            category_id=category_id,
            current_value=Decimal(value),
            recorded_at=recorded_at,
        )

    def bulk_create(
        self,
        values: Iterable[Tuple[int, Decimal]],
        recorded_at: Optional[datetime] = None,
    ) -> List[Valuation]:
        """Record valuations for several categories with one timestamp.

        All rows are written in a single unit; nothing is stored if any
        insert fails.

        Args:
            values: (category_id, value) pairs.
            recorded_at: Shared timestamp. Defaults to now.

        Returns:
            The created Valuation objects.
        """
        values = list(values)
        if not values:
            return []

        recorded_at = recorded_at or datetime.now()
        created = []
        with self.db_manager.connect() as conn:
            try:
                for category_id, value in values:
                    valuation_id = insert_valuation(conn, category_id, value, recorded_at)
                    created.append(
                        Valuation(
                            id=valuation_id,
                            category_id=category_id,
                            current_value=Decimal(value),
                            recorded_at=recorded_at,
                        )
                    )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        return created

    def find(self, valuation_id: int) -> Optional[Valuation]:
        """Get a single valuation by ID.

        Returns:
            Valuation object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_VALUATION_SELECT_FIELDS} FROM valuations WHERE id = ?",
                (valuation_id,),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_valuation(row)
            return None

    def find_by_category(self, category_id: int) -> List[Valuation]:
        """Get all valuations of a category, oldest first."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_VALUATION_SELECT_FIELDS}
                FROM valuations
                WHERE category_id = ?
                ORDER BY recorded_at, id
                """,
                (category_id,),
            )
            return [self._row_to_valuation(row) for row in cursor.fetchall()]

    def find_all(self) -> List[Valuation]:
        """Get every valuation, oldest first."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_VALUATION_SELECT_FIELDS} FROM valuations ORDER BY recorded_at, id"
            )
            return [self._row_to_valuation(row) for row in cursor.fetchall()]

    def find_all_by_category(self) -> Dict[int, List[Valuation]]:
        """Get every valuation grouped by category ID, oldest first."""
        grouped: Dict[int, List[Valuation]] = {}
        for valuation in self.find_all():
            grouped.setdefault(valuation.category_id, []).append(valuation)
        return grouped

    def update(
        self, valuation_id: int, value: Decimal, recorded_at: datetime
    ) -> Valuation:
        """Change the value and timestamp of a valuation.

        Raises:
            Exception: If valuation not found.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "UPDATE valuations SET current_value = ?, recorded_at = ? WHERE id = ?",
                (float(value), recorded_at.isoformat(), valuation_id),
            )
            conn.commit()

            if cursor.rowcount == 0:
                raise Exception(f"Valuation with ID {valuation_id} not found")

        return self.find(valuation_id)

    def delete(self, valuation_id: int) -> bool:
        """Delete a valuation by ID.

        Returns:
            True if valuation was deleted, False if not found.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute("DELETE FROM valuations WHERE id = ?", (valuation_id,))
            conn.commit()
            return cursor.rowcount > 0

    def _row_to_valuation(self, row: tuple) -> Valuation:
        """Convert a database row to a Valuation object."""
        return Valuation(
            id=row[0],
            category_id=row[1],
            current_value=Decimal(str(row[2])),
            recorded_at=datetime.fromisoformat(row[3]),
            transaction_id=row[4],
        )
