"""Transaction service for database operations."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from models.transaction import Transaction, TRANSACTION_TYPES
from services.valuations import insert_valuation

# SQL Query Constants
_TRANSACTION_SELECT_FIELDS = """id, category_id, transaction_type, amount, transacted_at,
       realized_gain, memo"""

_TRANSACTION_INSERT_FIELDS = """category_id, transaction_type, amount, transacted_at,
    realized_gain, memo"""

# Automatically generate placeholders from field count
_TRANSACTION_INSERT_PLACEHOLDERS = (
    f"({', '.join(['?'] * len(_TRANSACTION_INSERT_FIELDS.split(',')))})"
)


def _validate(transaction_type: str, amount: Decimal) -> None:
    if transaction_type not in TRANSACTION_TYPES:
        raise ValueError(f"Unknown transaction type: {transaction_type}")
    if amount < 0:
        raise ValueError(f"Transaction amount must not be negative: {amount}")


def _optional_float(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def insert_transaction(conn, transaction: Transaction) -> int:
    """Insert a transaction row on an open connection without committing.

    Returns:
        The new transaction ID.
    """
    _validate(transaction.type, transaction.amount)
    cursor = conn.execute(
        f"""
        INSERT INTO transactions ({_TRANSACTION_INSERT_FIELDS})
        VALUES {_TRANSACTION_INSERT_PLACEHOLDERS}
        """,
        (
            transaction.category_id,
            transaction.type,
            float(transaction.amount),
            transaction.transacted_at.isoformat(),
            _optional_float(transaction.realized_gain),
            transaction.memo,
        ),
    )
    return cursor.lastrowid


class TransactionService:
    """Service for managing deposits and withdrawals."""

    def __init__(self, db_manager):
        """Initialize the transaction service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def create(
        self, transaction: Transaction, valuation: Optional[Decimal] = None
    ) -> Transaction:
        """Create a transaction, optionally with the resulting balance.

        When a valuation is given it is stored as a valuation record with
        the transaction's exact timestamp and linked to the transaction.
        Both rows are written in one unit: either both persist or neither
        does.

        Args:
            transaction: Transaction to insert (id is ignored).
            valuation: Optional value of the category after the transaction.

        Returns:
            The Transaction with its new id set.

        Raises:
            ValueError: If the type is unknown or the amount is negative.
        """
        with self.db_manager.connect() as conn:
            try:
                transaction.id = insert_transaction(conn, transaction)
                if valuation is not None:
                    insert_valuation(
                        conn,
                        transaction.category_id,
                        valuation,
                        transaction.transacted_at,
                        transaction_id=transaction.id,
                    )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        return transaction

    def update(
        self,
        transaction_id: int,
        *,
        type: str,
        amount: Decimal,
        transacted_at: datetime,
        realized_gain: Optional[Decimal] = None,
        memo: Optional[str] = None,
        valuation: Optional[Decimal] = None,
    ) -> Transaction:
        """Rewrite a transaction and its paired valuation in one unit.

        The valuation linked to the transaction is dropped. A new linked
        valuation at the new timestamp is added when one is given. Other
        valuations of the category are left alone, whatever their time.

        Raises:
            ValueError: If the type is unknown or the amount is negative.
            Exception: If transaction not found.
        """
        _validate(type, amount)
        existing = self.find(transaction_id)
        if existing is None:
            raise Exception(f"Transaction with ID {transaction_id} not found")

        with self.db_manager.connect() as conn:
            try:
                conn.execute(
                    """
                    UPDATE transactions
                    SET transaction_type = ?, amount = ?, transacted_at = ?,
                        realized_gain = ?, memo = ?
                    WHERE id = ?
                    """,
                    (
                        type,
                        float(amount),
                        transacted_at.isoformat(),
                        _optional_float(realized_gain),
                        memo,
                        transaction_id,
                    ),
                )

                conn.execute(
                    "DELETE FROM valuations WHERE transaction_id = ?", (transaction_id,)
                )
                if valuation is not None:
                    insert_valuation(
                        conn,
                        existing.category_id,
                        valuation,
                        transacted_at,
                        transaction_id=transaction_id,
                    )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        return self.find(transaction_id)

    def delete(self, transaction_id: int) -> bool:
        """Delete a transaction together with its paired valuation.

        Only the valuation linked to the transaction is removed; unlinked
        valuations at the same time stay.

        Returns:
            True if the transaction was deleted, False if not found.
        """
        existing = self.find(transaction_id)
        if existing is None:
            return False

        with self.db_manager.connect() as conn:
            try:
                conn.execute(
                    "DELETE FROM valuations WHERE transaction_id = ?", (transaction_id,)
                )
                conn.execute("DELETE FROM transactions WHERE id = ?", (transaction_id,))
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        return True

    def find(self, transaction_id: int) -> Optional[Transaction]:
        """Get a single transaction by ID.

        Returns:
            Transaction object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_TRANSACTION_SELECT_FIELDS}
                FROM transactions
                WHERE id = ?
                """,
                (transaction_id,),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_transaction(row)
            return None

    def find_by_category(self, category_id: int) -> List[Transaction]:
        """Get all transactions of a category, oldest first."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_TRANSACTION_SELECT_FIELDS}
                FROM transactions
                WHERE category_id = ?
                ORDER BY transacted_at, id
                """,
                (category_id,),
            )
            return [self._row_to_transaction(row) for row in cursor.fetchall()]

    def find_all(self) -> List[Transaction]:
        """Get every transaction, oldest first."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_TRANSACTION_SELECT_FIELDS}
                FROM transactions
                ORDER BY transacted_at, id
                """
            )
            return [self._row_to_transaction(row) for row in cursor.fetchall()]

    def find_all_by_category(self) -> Dict[int, List[Transaction]]:
        """Get every transaction grouped by category ID, oldest first."""
        grouped: Dict[int, List[Transaction]] = {}
        for transaction in self.find_all():
            grouped.setdefault(transaction.category_id, []).append(transaction)
        return grouped

    def _row_to_transaction(self, row: tuple) -> Transaction:
        """Convert a database row to a Transaction object."""
        return Transaction(
            id=row[0],
            category_id=row[1],
            type=row[2],
            amount=Decimal(str(row[3])),
            transacted_at=datetime.fromisoformat(row[4]),
            realized_gain=Decimal(str(row[5])) if row[5] is not None else None,
            memo=row[6],
        )
