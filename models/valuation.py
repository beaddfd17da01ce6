from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


@dataclass
class Valuation:
    """Point-in-time snapshot of what a category is worth."""

    id: Optional[int]  # None until stored
    category_id: int
    current_value: Decimal
    recorded_at: datetime
    transaction_id: Optional[int] = None  # set when written with a transaction

    @property
    def day(self) -> date:
        """Calendar day the valuation applies to."""
        return self.recorded_at.date()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category_id": self.category_id,
            "current_value": float(self.current_value),
            "recorded_at": self.recorded_at.isoformat(),
            "transaction_id": self.transaction_id,
        }
