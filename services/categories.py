"""Category service for database operations."""

from typing import Iterable, List, Optional, Tuple
from models.category import Category, DEFAULT_COLOR

_CATEGORY_SELECT_FIELDS = """id, name, color, sort_order, parent_id, is_cash, is_liability,
       valuation_order, is_valuation_target"""


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db_manager):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find_all(self) -> List[Category]:
        """Get all categories from the database.

        Returns:
            List of Category objects, ordered by sort order then id.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories ORDER BY sort_order, id"
            )
            return [self._row_to_category(row) for row in cursor.fetchall()]

    def find(self, category_id: int) -> Optional[Category]:
        """Get a single category by ID.

        Args:
            category_id: The category ID to find.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE id = ?",
                (category_id,),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_category(row)
            return None

    def find_by_name(self, name: str) -> Optional[Category]:
        """Get a single category by name.

        Args:
            name: The category name to find.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE name = ?",
                (name,),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_category(row)
            return None

    def children_of(self, parent_id: int) -> List[Category]:
        """Get the direct children of a category, in sibling order."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_CATEGORY_SELECT_FIELDS}
                FROM categories
                WHERE parent_id = ?
                ORDER BY sort_order, id
                """,
                (parent_id,),
            )
            return [self._row_to_category(row) for row in cursor.fetchall()]

    def create(
        self,
        name: str,
        *,
        color: Optional[str] = None,
        order: Optional[int] = None,
        parent_id: Optional[int] = None,
        is_cash: bool = False,
        is_liability: bool = False,
    ) -> Category:
        """Create a new category.

        Args:
            name: Category name (should be unique).
            color: Display color. Defaults to grey.
            order: Sibling sort key. Defaults to one past the current maximum.
            parent_id: Optional parent category ID.
            is_cash: Cost basis tracks the value instead of transactions.
            is_liability: Value counts against net worth.

        Returns:
            The created Category object with id populated.

        Raises:
            sqlite3.IntegrityError: If the name is already taken.
        """
        color = color or DEFAULT_COLOR
        with self.db_manager.connect() as conn:
            if order is None:
                row = conn.execute("SELECT MAX(sort_order) FROM categories").fetchone()
                order = (row[0] if row[0] is not None else -1) + 1

            cursor = conn.execute(
                """
                INSERT INTO categories (name, color, sort_order, parent_id, is_cash, is_liability)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (name, color, order, parent_id, int(is_cash), int(is_liability)),
            )
            conn.commit()

            return Category(
                id=cursor.lastrowid,
                name=name,
                color=color,
                order=order,
                parent_id=parent_id,
                is_cash=is_cash,
                is_liability=is_liability,
            )

    def update(
        self,
        category_id: int,
        name: str,
        *,
        color: str = DEFAULT_COLOR,
        order: int = 0,
        parent_id: Optional[int] = None,
        is_cash: bool = False,
        is_liability: bool = False,
    ) -> Category:
        """Update an existing category.

        Args:
            category_id: The category ID to update.
            name: New category name.
            color: New display color.
            order: New sibling sort key.
            parent_id: New parent category ID (None makes it a root).
            is_cash: New cash flag.
            is_liability: New liability flag.

        Returns:
            The updated Category object.

        Raises:
            ValueError: If the new parent is the category itself or one of
                its descendants.
            Exception: If category not found.
        """
        if parent_id is not None and self._is_self_or_descendant(parent_id, category_id):
            raise ValueError(
                f"Category {parent_id} cannot be the parent of category {category_id}"
            )

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                UPDATE categories
                SET name = ?, color = ?, sort_order = ?, parent_id = ?, is_cash = ?,
                    is_liability = ?
                WHERE id = ?
                """,
                (
                    name,
                    color,
                    order,
                    parent_id,
                    int(is_cash),
                    int(is_liability),
                    category_id,
                ),
            )
            conn.commit()

            if cursor.rowcount == 0:
                raise Exception(f"Category with ID {category_id} not found")

        return self.find(category_id)

    def update_valuation_settings(
        self, settings: Iterable[Tuple[int, Optional[int], bool]]
    ) -> int:
        """Update bulk-valuation form settings for several categories at once.

        Args:
            settings: (category_id, valuation_order, is_valuation_target) tuples.

        Returns:
            Number of categories updated.
        """
        data = [
            (valuation_order, int(is_target), category_id)
            for category_id, valuation_order, is_target in settings
        ]
        if not data:
            return 0

        with self.db_manager.connect() as conn:
            try:
                cursor = conn.executemany(
                    """
                    UPDATE categories
                    SET valuation_order = ?, is_valuation_target = ?
                    WHERE id = ?
                    """,
                    data,
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            return cursor.rowcount

    def delete(self, category_id: int) -> bool:
        """Delete a category with its records, orphaning its children.

        Children are kept and become roots. Tags, valuations, transactions
        and import records of the category are removed in the same unit.

        Args:
            category_id: The category ID to delete.

        Returns:
            True if category was deleted, False if not found.
        """
        with self.db_manager.connect() as conn:
            try:
                conn.execute(
                    "UPDATE categories SET parent_id = NULL WHERE parent_id = ?",
                    (category_id,),
                )
                for table in ("category_tags", "valuations", "transactions", "data_imports"):
                    conn.execute(
                        f"DELETE FROM {table} WHERE category_id = ?", (category_id,)
                    )
                cursor = conn.execute(
                    "DELETE FROM categories WHERE id = ?", (category_id,)
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            return cursor.rowcount > 0

    def _is_self_or_descendant(self, candidate_id: int, category_id: int) -> bool:
        """Check whether candidate_id is category_id or lies below it."""
        parents = {c.id: c.parent_id for c in self.find_all()}
        current = candidate_id
        seen = set()
        while current is not None and current not in seen:
            if current == category_id:
                return True
            seen.add(current)
            current = parents.get(current)
        return False

    def _row_to_category(self, row: tuple) -> Category:
        """Convert a database row to a Category object."""
        return Category(
            id=row[0],
            name=row[1],
            color=row[2],
            order=row[3],
            parent_id=row[4],
            is_cash=bool(row[5]),
            is_liability=bool(row[6]),
            valuation_order=row[7],
            is_valuation_target=bool(row[8]),
        )
