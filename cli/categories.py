#!/usr/bin/env python3

import sys
import json
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from config import get_seed_dir
from logger import get_logger
from models.transaction import Transaction

logger = get_logger()


def format_money(value, symbol: str) -> str:
    return f"{symbol}{value:,.0f}"


def cmd_list(args, services):
    """List all categories as a tree with consolidated values."""
    rows = services.portfolio.get_aggregated_categories()

    if not rows:
        logger.info("No categories found.")
        return

    symbol = services.config.currency_symbol
    logger.info("\nCategories:")
    logger.info("=" * 80)
    for row in rows:
        indent = "  " * row.depth
        flags = []
        if row.is_cash:
            flags.append("cash")
        if row.is_liability:
            flags.append("liability")
        flag_text = f" [{', '.join(flags)}]" if flags else ""
        logger.info(
            f"{indent}{row.name} (ID: {row.id}){flag_text}: "
            f"{format_money(row.current_value, symbol)} "
            f"(cost {format_money(row.cost_basis, symbol)}, "
            f"day {format_money(row.daily_change, symbol)})"
        )
        if row.liability_value:
            logger.info(
                f"{indent}  excludes liabilities of "
                f"{format_money(row.liability_value, symbol)}"
            )
        if row.tags:
            tag_text = ", ".join(f"{g}: {o}" for g, o in row.tags.items())
            logger.info(f"{indent}  tags: {tag_text}")

    logger.info("-" * 80)
    logger.info(f"\nTotal categories: {len(rows)}")


def cmd_create(args, services):
    """Create a new category from command-line options."""
    parent_id = None
    if args.parent:
        parent = services.categories.find_by_name(args.parent)
        if not parent:
            logger.error(f"Parent category '{args.parent}' not found.")
            sys.exit(1)
        parent_id = parent.id

    try:
        category = services.categories.create(
            args.name,
            color=args.color,
            parent_id=parent_id,
            is_cash=args.cash,
            is_liability=args.liability,
        )
    except Exception as e:
        logger.error(f"Error creating category: {e}")
        sys.exit(1)

    logger.info(f"\n✓ Category created successfully with ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    if category.parent_id:
        logger.info(f"  Parent ID: {category.parent_id}")


def cmd_delete(args, services):
    """Delete a category by ID."""
    category_id = args.category_id

    # Check if category exists
    category = services.categories.find(category_id)
    if not category:
        logger.error(f"Category with ID {category_id} not found.")
        sys.exit(1)

    children = services.categories.children_of(category_id)
    logger.info("\nCategory to delete:")
    logger.info(f"  ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    if children:
        logger.info(
            f"  {len(children)} child categor{'y' if len(children) == 1 else 'ies'} "
            "will become top-level"
        )
    logger.info("  All of its valuations and transactions will be deleted.")

    if not args.yes:
        confirm = (
            input("\nAre you sure you want to delete this category? (yes/no): ")
            .strip()
            .lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    try:
        if services.categories.delete(category_id):
            logger.info(f"✓ Category '{category.name}' deleted successfully.")
        else:
            logger.error("Failed to delete category.")
            sys.exit(1)
    except Exception as e:
        logger.error(f"Error deleting category: {e}")
        sys.exit(1)


def _seed_timestamp(today: date, days_ago: int) -> datetime:
    return datetime.combine(today - timedelta(days=days_ago), time(12, 0))


def _seed_category(data, parent_id, services, today, tag_options, counts):
    name = data.get("name")
    if not name:
        logger.warning("Skipping category with no name")
        return

    existing = services.categories.find_by_name(name)
    if existing:
        logger.info(f"⊘ Skipped '{name}' (already exists)")
        counts["skipped"] += 1
        category = existing
    else:
        category = services.categories.create(
            name,
            color=data.get("color"),
            parent_id=parent_id,
            is_cash=data.get("is_cash", False),
            is_liability=data.get("is_liability", False),
        )
        logger.info(f"✓ Created '{name}' (ID: {category.id})")
        counts["created"] += 1

        for group_name, option_name in data.get("tags", {}).items():
            group_id, option_id = tag_options[(group_name, option_name)]
            services.tags.assign(category.id, group_id, option_id)

        for entry in data.get("transactions", []):
            services.transactions.create(
                Transaction(
                    id=None,
                    category_id=category.id,
                    type=entry["type"],
                    amount=Decimal(entry["amount"]),
                    transacted_at=_seed_timestamp(today, entry["days_ago"]),
                    realized_gain=(
                        Decimal(entry["realized_gain"])
                        if "realized_gain" in entry
                        else None
                    ),
                    memo=entry.get("memo"),
                )
            )
        for entry in data.get("valuations", []):
            services.valuations.create(
                category.id,
                Decimal(entry["value"]),
                _seed_timestamp(today, entry["days_ago"]),
            )

    for child in data.get("children", []):
        _seed_category(child, category.id, services, today, tag_options, counts)


def seed_portfolio(data, services, today=None):
    """Create the demo tag groups, categories and records.

    Categories that already exist (by name) are left untouched, records
    included. Record dates are given as days before today.

    Returns:
        Dict with "created" and "skipped" category counts.
    """
    today = today or date.today()
    counts = {"created": 0, "skipped": 0}

    tag_options = {}
    for group_data in data.get("tag_groups", []):
        group = services.tags.find_group_by_name(group_data["name"])
        if group is None:
            group = services.tags.create_group(group_data["name"])
        existing = {option.name: option for option in group.options}
        for option_name in group_data.get("options", []):
            option = existing.get(option_name) or services.tags.add_option(
                group.id, option_name
            )
            tag_options[(group.name, option_name)] = (group.id, option.id)

    for category_data in data.get("categories", []):
        _seed_category(category_data, None, services, today, tag_options, counts)

    return counts


def cmd_seed(args, services):
    """Seed demo categories and records from JSON file."""
    seed_file = get_seed_dir() / "portfolio.json"

    if not seed_file.exists():
        logger.error(f"Seed file not found: {seed_file}")
        sys.exit(1)

    try:
        with open(seed_file, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing JSON file: {e}")
        sys.exit(1)

    logger.info("\nSeeding portfolio from db/seed/portfolio.json")
    logger.info("=" * 80)

    counts = seed_portfolio(data, services)

    logger.info("=" * 80)
    logger.info("\nSeeding complete!")
    logger.info(f"Created: {counts['created']}")
    logger.info(f"Skipped: {counts['skipped']}")
    logger.info(f"Total: {counts['created'] + counts['skipped']}")


def setup_parser(subparsers):
    """Setup categories subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "categories",
        help="Manage asset categories",
        description="Create, list, and delete asset categories",
    )

    # Add subcommands for categories
    categories_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available category commands",
        dest="subcommand",
        required=True,
    )

    # categories list
    list_parser = categories_subparsers.add_parser(
        "list", help="List all categories with their values"
    )
    list_parser.set_defaults(func=cmd_list)

    # categories create
    create_parser = categories_subparsers.add_parser(
        "create",
        help="Create a new category",
        epilog="""
Examples:
  python -m cli categories create "Bank Deposits" --cash
  python -m cli categories create "S&P500" --parent Stocks --color "#3b82f6"
        """,
    )
    create_parser.add_argument("name", help="Category name")
    create_parser.add_argument("--parent", help="Name of the parent category")
    create_parser.add_argument("--color", help="Display color, e.g. #3b82f6")
    create_parser.add_argument(
        "--cash",
        action="store_true",
        help="Cost basis follows the value (no deposits or withdrawals)",
    )
    create_parser.add_argument(
        "--liability",
        action="store_true",
        help="Value counts against net worth",
    )
    create_parser.set_defaults(func=cmd_create)

    # categories delete
    delete_parser = categories_subparsers.add_parser(
        "delete", help="Delete a category by ID"
    )
    delete_parser.add_argument(
        "category_id",
        type=int,
        help="ID of the category to delete",
    )
    delete_parser.add_argument(
        "--yes", action="store_true", help="Skip the confirmation prompt"
    )
    delete_parser.set_defaults(func=cmd_delete)

    # categories seed
    seed_parser = categories_subparsers.add_parser(
        "seed", help="Seed demo categories and records from JSON file"
    )
    seed_parser.set_defaults(func=cmd_seed)
