"""Category model for the asset hierarchy."""

from dataclasses import dataclass
from typing import Optional

DEFAULT_COLOR = "#cccccc"


@dataclass
class Category:
    """Represents a node in the asset tree.

    Attributes:
        id: Unique identifier (auto-generated).
        name: Category name (unique).
        color: Display color, e.g. "#60a5fa".
        order: Sort key among siblings.
        parent_id: Optional parent category ID. A parent that no longer
            exists makes this category a root.
        is_cash: Cost basis always equals the current value.
        is_liability: Value counts against net worth.
        valuation_order: Position in the bulk valuation form.
        is_valuation_target: Whether the bulk valuation form lists it.
    """

    id: int
    name: str
    color: str = DEFAULT_COLOR
    order: int = 0
    parent_id: Optional[int] = None
    is_cash: bool = False
    is_liability: bool = False
    valuation_order: Optional[int] = None
    is_valuation_target: bool = True

    def to_dict(self) -> dict:
        """Convert category to dictionary for display and export."""
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "order": self.order,
            "parent_id": self.parent_id,
            "is_cash": self.is_cash,
            "is_liability": self.is_liability,
            "valuation_order": self.valuation_order,
            "is_valuation_target": self.is_valuation_target,
        }
