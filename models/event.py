from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

KIND_TRANSACTION = "tx"
KIND_VALUATION = "as"


@dataclass
class HistoryEvent:
    """A row of the unified transaction/valuation history list.

    Attributes:
        id: Kind-prefixed record ID, e.g. "tx-12" or "as-5".
        kind: KIND_TRANSACTION or KIND_VALUATION.
        record_id: ID of the underlying record.
        occurred_at: Exact timestamp of the record.
        type: DEPOSIT, WITHDRAW or VALUATION.
        amount: Transaction amount (0 for valuation rows).
        point_in_time_valuation: Resulting balance on that day, if known.
        profit_ratio: Unrealized profit in percent of cost, if cost > 0.
    """

    id: str
    kind: str
    record_id: int
    category_id: int
    category_name: str
    category_color: str
    occurred_at: datetime
    type: str
    amount: Decimal
    point_in_time_valuation: Optional[Decimal] = None
    realized_gain: Optional[Decimal] = None
    memo: Optional[str] = None
    profit_ratio: Optional[Decimal] = None

    @property
    def is_transaction(self) -> bool:
        return self.kind == KIND_TRANSACTION

    def to_dict(self) -> dict:
        def _num(value):
            return float(value) if value is not None else None

        return {
            "id": self.id,
            "date": self.occurred_at.isoformat(),
            "category_id": self.category_id,
            "category_name": self.category_name,
            "category_color": self.category_color,
            "type": self.type,
            "amount": float(self.amount),
            "point_in_time_valuation": _num(self.point_in_time_valuation),
            "realized_gain": _num(self.realized_gain),
            "memo": self.memo,
            "profit_ratio": _num(self.profit_ratio),
        }
