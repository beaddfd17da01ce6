"""Time-series models produced by history reconstruction."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List


@dataclass
class HistoryPoint:
    """One day of a category's value and cost basis."""

    date: date
    value: Decimal
    cost: Decimal

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "value": float(self.value),
            "cost": float(self.cost),
        }


@dataclass
class MergedHistory:
    """Combined series for a category and its descendants.

    Attributes:
        points: Subtree totals per date.
        breakdown: Direct child ID mapped to that child's subtree series,
            aligned to the same dates as points.
    """

    points: List[HistoryPoint]
    breakdown: Dict[int, List[HistoryPoint]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "points": [p.to_dict() for p in self.points],
            "breakdown": {
                child_id: [p.to_dict() for p in series]
                for child_id, series in self.breakdown.items()
            },
        }


@dataclass
class GlobalHistoryPoint:
    """Whole-portfolio figures for one day.

    Attributes:
        categories: Root category ID mapped to its consolidated value,
            negated for liabilities.
        tags: Tag group name mapped to {option name: signed total}.
    """

    date: date
    total_assets: Decimal
    total_cost: Decimal
    total_liabilities: Decimal
    net_worth: Decimal
    categories: Dict[int, Decimal] = field(default_factory=dict)
    tags: Dict[str, Dict[str, Decimal]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "total_assets": float(self.total_assets),
            "total_cost": float(self.total_cost),
            "total_liabilities": float(self.total_liabilities),
            "net_worth": float(self.net_worth),
            "categories": {k: float(v) for k, v in self.categories.items()},
            "tags": {
                group: {option: float(v) for option, v in totals.items()}
                for group, totals in self.tags.items()
            },
        }
