from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

DEPOSIT = "DEPOSIT"
WITHDRAW = "WITHDRAW"
VALUATION = "VALUATION"  # legacy marker, carries no amount

TRANSACTION_TYPES = (DEPOSIT, WITHDRAW, VALUATION)


@dataclass
class Transaction:
    id: Optional[int]  # None until stored
    category_id: int
    type: str  # 'DEPOSIT', 'WITHDRAW' or 'VALUATION'
    amount: Decimal  # always non-negative
    transacted_at: datetime
    realized_gain: Optional[Decimal] = None  # only meaningful for WITHDRAW
    memo: Optional[str] = None

    @property
    def day(self) -> date:
        """Calendar day the transaction applies to."""
        return self.transacted_at.date()

    @property
    def cost_delta(self) -> Decimal:
        """Signed effect on cost basis (and on net flow for the day)."""
        if self.type == DEPOSIT:
            return self.amount
        if self.type == WITHDRAW:
            return -self.amount
        return Decimal("0")

    def to_dict(self) -> dict:
        """Convert transaction to dictionary for display and export."""
        return {
            "id": self.id,
            "category_id": self.category_id,
            "type": self.type,
            "amount": float(self.amount),
            "transacted_at": self.transacted_at.isoformat(),
            "realized_gain": (
                float(self.realized_gain) if self.realized_gain is not None else None
            ),
            "memo": self.memo,
        }
