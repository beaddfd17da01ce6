"""Bottom-up consolidation of the category tree.

Every category has "own" figures taken from its own records (latest
valuation, signed transaction sum) and "consolidated" figures that also
include all of its descendants. Consolidation is a single pass over the
nodes ordered deepest-first, so each node has already received everything
from its own children by the time it is folded into its parent.
"""

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set

from logger import get_logger
from models.category import Category
from models.portfolio import AggregatedCategory, PortfolioSummary
from models.tag import CategoryTag
from models.transaction import Transaction
from models.valuation import Valuation

logger = get_logger("tools.aggregation")

ZERO = Decimal("0")


@dataclass
class TreeNode:
    """A category placed in the flattened tree.

    Attributes:
        category: The category itself.
        depth: 0 for roots.
        parent_id: Effective parent ID. None for roots, orphans whose parent
            is missing, and nodes promoted to roots to break a cycle.
    """

    category: Category
    depth: int
    parent_id: Optional[int]


@dataclass
class OwnFigures:
    value: Decimal = ZERO
    cost_basis: Decimal = ZERO
    daily_change: Decimal = ZERO


@dataclass
class Consolidated:
    current_value: Decimal
    cost_basis: Decimal
    daily_change: Decimal
    liability_value: Decimal = ZERO


def _sibling_key(category: Category):
    return (category.order, category.id)


def build_children_map(categories: Iterable[Category]) -> Dict[int, List[Category]]:
    """Map each parent ID to its children, sorted by sibling order.

    Children whose parent is not in the given set are left out; they are
    roots as far as the tree is concerned.
    """
    categories = list(categories)
    known_ids = {c.id for c in categories}
    children: Dict[int, List[Category]] = defaultdict(list)
    for category in categories:
        if category.parent_id is not None and category.parent_id in known_ids:
            children[category.parent_id].append(category)
    for siblings in children.values():
        siblings.sort(key=_sibling_key)
    return dict(children)


def flatten_tree(categories: Iterable[Category]) -> List[TreeNode]:
    """Flatten the category forest into display (pre-order) sequence.

    Roots are categories with no parent or with a parent that is not in the
    set. Siblings are visited by ascending order. A visited set guards the
    traversal; any category left unvisited can only be part of a parent
    cycle and is promoted to a root so it is never silently dropped.

    Args:
        categories: Flat list of categories with parent pointers.

    Returns:
        TreeNode list in pre-order, each with its depth and effective parent.
    """
    categories = list(categories)
    by_id = {c.id: c for c in categories}
    children = build_children_map(categories)

    roots = sorted(
        (c for c in categories if c.parent_id is None or c.parent_id not in by_id),
        key=_sibling_key,
    )
    for category in roots:
        if category.parent_id is not None:
            logger.warning(
                f"Category {category.id} ({category.name}) references missing parent "
                f"{category.parent_id}; treating it as a root"
            )

    nodes: List[TreeNode] = []
    visited: Set[int] = set()

    def visit(root: Category) -> None:
        stack = [(root, 0, None)]
        while stack:
            category, depth, parent_id = stack.pop()
            if category.id in visited:
                continue
            visited.add(category.id)
            nodes.append(TreeNode(category=category, depth=depth, parent_id=parent_id))
            # Reversed so the first sibling is popped first
            for child in reversed(children.get(category.id, [])):
                stack.append((child, depth + 1, category.id))

    for root in roots:
        visit(root)

    for category in sorted(categories, key=_sibling_key):
        if category.id not in visited:
            logger.warning(
                f"Category {category.id} ({category.name}) is part of a parent cycle; "
                "treating it as a root"
            )
            visit(category)

    return nodes


def collect_descendants(
    category_id: int, children_map: Dict[int, List[Category]]
) -> List[Category]:
    """Get all direct and indirect descendants of a category, in pre-order."""
    result: List[Category] = []
    visited: Set[int] = {category_id}
    stack = list(reversed(children_map.get(category_id, [])))
    while stack:
        category = stack.pop()
        if category.id in visited:
            continue
        visited.add(category.id)
        result.append(category)
        stack.extend(reversed(children_map.get(category.id, [])))
    return result


def latest_valuations(
    valuations: Iterable[Valuation], count: int = 2
) -> List[Valuation]:
    """Get the most recent valuations, newest first."""
    ordered = sorted(valuations, key=lambda v: (v.recorded_at, v.id), reverse=True)
    return ordered[:count]


def transaction_cost_basis(transactions: Iterable[Transaction]) -> Decimal:
    """Signed sum of deposits minus withdrawals. Not clamped."""
    return sum((t.cost_delta for t in transactions), ZERO)


def own_figures(
    category: Category,
    valuations: Iterable[Valuation],
    transactions: Iterable[Transaction],
) -> OwnFigures:
    """Compute a category's own value, daily change and cost basis.

    Missing data is not an error: no valuation gives a value of 0, fewer
    than two valuations gives a daily change of 0, and no transactions give
    a cost basis of 0 (or the value itself for cash categories).
    """
    recent = latest_valuations(valuations)
    value = recent[0].current_value if recent else ZERO
    daily_change = (
        recent[0].current_value - recent[1].current_value if len(recent) > 1 else ZERO
    )
    if category.is_cash:
        cost_basis = value
    else:
        cost_basis = transaction_cost_basis(transactions)
    return OwnFigures(value=value, cost_basis=cost_basis, daily_change=daily_change)


def consolidate(
    nodes: List[TreeNode], figures: Dict[int, OwnFigures]
) -> Dict[int, Consolidated]:
    """Fold every node's totals into its parent, deepest nodes first.

    A liability child of a non-liability parent is kept out of the
    parent's value, cost basis and daily change; its magnitude goes to the
    parent's liability_value instead. Liability subtrees still aggregate
    their own children.

    Args:
        nodes: Output of flatten_tree.
        figures: Own figures per category ID; missing IDs count as zero.

    Returns:
        Consolidated figures per category ID.
    """
    totals: Dict[int, Consolidated] = {}
    for node in nodes:
        own = figures.get(node.category.id, OwnFigures())
        totals[node.category.id] = Consolidated(
            current_value=own.value,
            cost_basis=own.cost_basis,
            daily_change=own.daily_change,
        )

    by_id = {node.category.id: node.category for node in nodes}

    # sorted() is stable, so equal depths keep pre-order
    for node in sorted(nodes, key=lambda n: n.depth, reverse=True):
        if node.parent_id is None:
            continue
        child = totals[node.category.id]
        parent = totals[node.parent_id]
        parent.liability_value += child.liability_value
        if node.category.is_liability and not by_id[node.parent_id].is_liability:
            parent.liability_value += child.current_value
            continue
        parent.current_value += child.current_value
        parent.cost_basis += child.cost_basis
        parent.daily_change += child.daily_change

    return totals


def tags_by_group(tags: Iterable[CategoryTag]) -> Dict[str, str]:
    return {t.group_name: t.option_name for t in tags}


def aggregate_categories(
    categories: Iterable[Category],
    valuations_by_category: Dict[int, List[Valuation]],
    transactions_by_category: Dict[int, List[Transaction]],
    tags_by_category: Optional[Dict[int, List[CategoryTag]]] = None,
) -> List[AggregatedCategory]:
    """Compute own and consolidated figures for every category.

    Args:
        categories: Flat list of all categories.
        valuations_by_category: Category ID mapped to its valuations (any
            order; only the latest two are used).
        transactions_by_category: Category ID mapped to its transactions.
        tags_by_category: Optional category ID mapped to its tags.

    Returns:
        AggregatedCategory rows in pre-order (depth-first, sibling order).

    Example:
        Stocks (own 0) with children A (100) and B (50) gives
        Stocks.current_value == 150, A and B unchanged.
    """
    tags_by_category = tags_by_category or {}
    nodes = flatten_tree(categories)

    figures = {
        node.category.id: own_figures(
            node.category,
            valuations_by_category.get(node.category.id, []),
            transactions_by_category.get(node.category.id, []),
        )
        for node in nodes
    }
    totals = consolidate(nodes, figures)

    logger.debug(f"Aggregated {len(nodes)} categories")

    result = []
    for node in nodes:
        category = node.category
        own = figures[category.id]
        total = totals[category.id]
        result.append(
            AggregatedCategory(
                id=category.id,
                name=category.name,
                color=category.color,
                order=category.order,
                depth=node.depth,
                parent_id=node.parent_id,
                is_cash=category.is_cash,
                is_liability=category.is_liability,
                own_value=own.value,
                own_cost_basis=own.cost_basis,
                own_daily_change=own.daily_change,
                current_value=total.current_value,
                cost_basis=total.cost_basis,
                daily_change=total.daily_change,
                liability_value=total.liability_value,
                tags=tags_by_group(tags_by_category.get(category.id, [])),
            )
        )
    return result


def summarize(aggregated: Iterable[AggregatedCategory]) -> PortfolioSummary:
    """Total the top-level categories into dashboard figures.

    Only roots are summed so that nothing is counted twice. Liability roots
    never enter total_assets or total_cost; they are subtracted in
    net_worth.
    """
    total_assets = ZERO
    total_cost = ZERO
    total_liabilities = ZERO
    daily_change = ZERO

    for row in aggregated:
        if row.parent_id is not None:
            continue
        if row.is_liability:
            total_liabilities += row.current_value + row.liability_value
            continue
        total_assets += row.current_value
        total_cost += row.cost_basis
        total_liabilities += row.liability_value
        daily_change += row.daily_change

    total_profit = total_assets - total_cost
    profit_percent = total_profit / total_cost * 100 if total_cost > 0 else None

    return PortfolioSummary(
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        net_worth=total_assets - total_liabilities,
        total_cost=total_cost,
        total_profit=total_profit,
        profit_percent=profit_percent,
        daily_change=daily_change,
    )
