"""Tag service for database operations."""

from typing import Dict, List, Optional
from models.tag import CategoryTag, TagGroup, TagOption


class TagService:
    """Service for managing tag groups, their options and category tags."""

    def __init__(self, db_manager):
        """Initialize the tag service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def create_group(self, name: str, order: Optional[int] = None) -> TagGroup:
        """Create a new tag group.

        Args:
            name: Group name (must be unique).
            order: Display order. Defaults to one past the current maximum.

        Returns:
            The created TagGroup with no options.
        """
        with self.db_manager.connect() as conn:
            if order is None:
                row = conn.execute("SELECT MAX(sort_order) FROM tag_groups").fetchone()
                order = (row[0] if row[0] is not None else -1) + 1
            cursor = conn.execute(
                "INSERT INTO tag_groups (name, sort_order) VALUES (?, ?)",
                (name, order),
            )
            conn.commit()
            return TagGroup(id=cursor.lastrowid, name=name, order=order)

    def add_option(self, group_id: int, name: str, order: Optional[int] = None) -> TagOption:
        """Add an option to a tag group."""
        with self.db_manager.connect() as conn:
            if order is None:
                row = conn.execute(
                    "SELECT MAX(sort_order) FROM tag_options WHERE tag_group_id = ?",
                    (group_id,),
                ).fetchone()
                order = (row[0] if row[0] is not None else -1) + 1
            cursor = conn.execute(
                "INSERT INTO tag_options (tag_group_id, name, sort_order) VALUES (?, ?, ?)",
                (group_id, name, order),
            )
            conn.commit()
            return TagOption(id=cursor.lastrowid, group_id=group_id, name=name, order=order)

    def find_groups(self) -> List[TagGroup]:
        """Get all tag groups with their options, both in display order."""
        with self.db_manager.connect() as conn:
            groups = [
                TagGroup(id=row[0], name=row[1], order=row[2])
                for row in conn.execute(
                    "SELECT id, name, sort_order FROM tag_groups ORDER BY sort_order, id"
                ).fetchall()
            ]
            by_id = {group.id: group for group in groups}
            cursor = conn.execute(
                """
                SELECT id, tag_group_id, name, sort_order
                FROM tag_options
                ORDER BY sort_order, id
                """
            )
            for row in cursor.fetchall():
                by_id[row[1]].options.append(
                    TagOption(id=row[0], group_id=row[1], name=row[2], order=row[3])
                )
        return groups

    def find_group_by_name(self, name: str) -> Optional[TagGroup]:
        for group in self.find_groups():
            if group.name == name:
                return group
        return None

    def assign(self, category_id: int, group_id: int, option_id: int) -> None:
        """Set a category's option for a group, replacing any previous one.

        Raises:
            ValueError: If the option does not belong to the group.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                "SELECT tag_group_id FROM tag_options WHERE id = ?", (option_id,)
            ).fetchone()
            if row is None or row[0] != group_id:
                raise ValueError(
                    f"Tag option {option_id} does not belong to tag group {group_id}"
                )
            conn.execute(
                """
                INSERT OR REPLACE INTO category_tags (category_id, tag_group_id, tag_option_id)
                VALUES (?, ?, ?)
                """,
                (category_id, group_id, option_id),
            )
            conn.commit()

    def clear(self, category_id: int, group_id: int) -> bool:
        """Remove a category's option for a group.

        Returns:
            True if a tag was removed, False if none was set.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM category_tags WHERE category_id = ? AND tag_group_id = ?",
                (category_id, group_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def find_category_tags(self) -> Dict[int, List[CategoryTag]]:
        """Get every category's own tags, keyed by category ID."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                SELECT ct.category_id, ct.tag_group_id, ct.tag_option_id, g.name, o.name
                FROM category_tags ct
                JOIN tag_groups g ON g.id = ct.tag_group_id
                JOIN tag_options o ON o.id = ct.tag_option_id
                ORDER BY ct.category_id, g.sort_order, g.id
                """
            )
            grouped: Dict[int, List[CategoryTag]] = {}
            for row in cursor.fetchall():
                grouped.setdefault(row[0], []).append(
                    CategoryTag(
                        category_id=row[0],
                        group_id=row[1],
                        option_id=row[2],
                        group_name=row[3],
                        option_name=row[4],
                    )
                )
            return grouped
