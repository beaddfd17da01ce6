"""Helper utilities for tests."""

from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
import sqlite3

from models.category import Category
from models.transaction import Transaction, DEPOSIT
from models.valuation import Valuation


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    # Get all .sql files and sort them
    migration_files = sorted(migrations_dir.glob("*.sql"))

    for migration_file in migration_files:
        with open(migration_file, "r") as f:
            sql = f.read()

        # Execute the migration
        conn.executescript(sql)

    conn.commit()


def at_noon(day: date) -> datetime:
    return datetime.combine(day, time(12, 0))


def make_category(id, name=None, parent_id=None, order=0, **flags) -> Category:
    """Build an unsaved Category for pure-function tests."""
    return Category(
        id=id,
        name=name or f"Category {id}",
        order=order,
        parent_id=parent_id,
        **flags,
    )


def make_valuation(category_id, value, day, id=None, hour=12) -> Valuation:
    return Valuation(
        id=id,
        category_id=category_id,
        current_value=Decimal(str(value)),
        recorded_at=datetime.combine(day, time(hour, 0)),
    )


def make_transaction(
    category_id, amount, day, type=DEPOSIT, id=None, hour=12, realized_gain=None, memo=None
) -> Transaction:
    return Transaction(
        id=id,
        category_id=category_id,
        type=type,
        amount=Decimal(str(amount)),
        transacted_at=datetime.combine(day, time(hour, 0)),
        realized_gain=Decimal(str(realized_gain)) if realized_gain is not None else None,
        memo=memo,
    )
