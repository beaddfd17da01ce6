"""Tag models used to break the portfolio down by user-defined groups."""

from dataclasses import dataclass, field
from typing import List


@dataclass
class TagOption:
    id: int
    group_id: int
    name: str
    order: int = 0


@dataclass
class TagGroup:
    """A dimension such as "Asset class" holding options like "Cash"."""

    id: int
    name: str
    order: int = 0
    options: List[TagOption] = field(default_factory=list)


@dataclass
class CategoryTag:
    category_id: int
    group_id: int
    option_id: int
    group_name: str
    option_name: str
