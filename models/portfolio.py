"""Read models for consolidated portfolio views."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from models.event import HistoryEvent
from models.history import HistoryPoint


@dataclass
class AggregatedCategory:
    """A category with its own and consolidated (own + descendants) figures.

    Attributes:
        depth: Distance from the root of its tree (roots are 0).
        parent_id: Effective parent; None for roots and orphans.
        liability_value: Magnitude of liability descendants that were kept
            out of current_value and cost_basis.
        tags: Tag group name mapped to the option name set on this category.
    """

    id: int
    name: str
    color: str
    order: int
    depth: int
    parent_id: Optional[int]
    is_cash: bool
    is_liability: bool
    own_value: Decimal
    own_cost_basis: Decimal
    own_daily_change: Decimal
    current_value: Decimal
    cost_basis: Decimal
    daily_change: Decimal
    liability_value: Decimal = Decimal("0")
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def profit(self) -> Decimal:
        return self.current_value - self.cost_basis

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "order": self.order,
            "depth": self.depth,
            "parent_id": self.parent_id,
            "is_cash": self.is_cash,
            "is_liability": self.is_liability,
            "own_value": float(self.own_value),
            "own_cost_basis": float(self.own_cost_basis),
            "own_daily_change": float(self.own_daily_change),
            "current_value": float(self.current_value),
            "cost_basis": float(self.cost_basis),
            "daily_change": float(self.daily_change),
            "liability_value": float(self.liability_value),
            "tags": dict(self.tags),
        }


@dataclass
class PortfolioSummary:
    total_assets: Decimal
    total_liabilities: Decimal
    net_worth: Decimal
    total_cost: Decimal
    total_profit: Decimal
    profit_percent: Optional[Decimal]
    daily_change: Decimal

    def to_dict(self) -> dict:
        return {
            "total_assets": float(self.total_assets),
            "total_liabilities": float(self.total_liabilities),
            "net_worth": float(self.net_worth),
            "total_cost": float(self.total_cost),
            "total_profit": float(self.total_profit),
            "profit_percent": (
                float(self.profit_percent) if self.profit_percent is not None else None
            ),
            "daily_change": float(self.daily_change),
        }


@dataclass
class ChildSummary:
    id: int
    name: str
    color: str
    current_value: Decimal
    is_liability: bool


@dataclass
class CategoryDetail:
    """Everything the single-asset view needs.

    current_value comes from the tree aggregation; cost_basis comes from the
    last point of the (merged) history series.
    """

    id: int
    name: str
    color: str
    is_cash: bool
    is_liability: bool
    parent_id: Optional[int]
    parent_name: Optional[str]
    current_value: Decimal
    cost_basis: Decimal
    total_deposit: Decimal
    total_withdrawal: Decimal
    total_realized_gain: Decimal
    children: List[ChildSummary]
    history: List[HistoryPoint]
    breakdown: Dict[int, List[HistoryPoint]]
    transactions: List[HistoryEvent]

    @property
    def profit(self) -> Decimal:
        return self.current_value - self.cost_basis

    @property
    def profit_percent(self) -> Optional[Decimal]:
        if self.cost_basis > 0:
            return self.profit / self.cost_basis * 100
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "is_cash": self.is_cash,
            "is_liability": self.is_liability,
            "parent": (
                {"id": self.parent_id, "name": self.parent_name}
                if self.parent_id is not None
                else None
            ),
            "current_value": float(self.current_value),
            "cost_basis": float(self.cost_basis),
            "total_deposit": float(self.total_deposit),
            "total_withdrawal": float(self.total_withdrawal),
            "total_realized_gain": float(self.total_realized_gain),
            "children": [
                {
                    "id": c.id,
                    "name": c.name,
                    "color": c.color,
                    "current_value": float(c.current_value),
                    "is_liability": c.is_liability,
                }
                for c in self.children
            ],
            "history": [p.to_dict() for p in self.history],
            "breakdown": {
                child_id: [p.to_dict() for p in series]
                for child_id, series in self.breakdown.items()
            },
            "transactions": [e.to_dict() for e in self.transactions],
        }
