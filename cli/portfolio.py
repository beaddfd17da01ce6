#!/usr/bin/env python3

import sys
import json
from config import HISTORY_RANGES
from logger import get_logger

logger = get_logger()


def _money(value, symbol):
    return f"{symbol}{value:,.0f}"


def _percent(value):
    return f"{value:+.2f}%" if value is not None else "n/a"


def cmd_summary(args, services):
    """Show dashboard totals."""
    summary = services.portfolio.get_summary()
    symbol = services.config.currency_symbol

    logger.info("\nPortfolio Summary:")
    logger.info("=" * 80)
    logger.info(f"Total assets:      {_money(summary.total_assets, symbol)}")
    logger.info(f"Total liabilities: {_money(summary.total_liabilities, symbol)}")
    logger.info(f"Net worth:         {_money(summary.net_worth, symbol)}")
    logger.info(f"Cost basis:        {_money(summary.total_cost, symbol)}")
    logger.info(
        f"Profit:            {_money(summary.total_profit, symbol)} "
        f"({_percent(summary.profit_percent)})"
    )
    logger.info(f"Daily change:      {_money(summary.daily_change, symbol)}")


def cmd_detail(args, services):
    """Show one category with its history and records."""
    category = services.categories.find_by_name(args.category)
    if not category:
        logger.error(f"Category '{args.category}' not found.")
        sys.exit(1)

    range_key = args.range or services.config.history_range
    detail = services.portfolio.get_category_detail(category.id, range_key)

    if args.json:
        print(json.dumps(detail.to_dict(), indent=2, ensure_ascii=False))
        return

    symbol = services.config.currency_symbol
    logger.info(f"\n{detail.name}")
    logger.info("=" * 80)
    if detail.parent_name:
        logger.info(f"Parent:         {detail.parent_name}")
    logger.info(f"Current value:  {_money(detail.current_value, symbol)}")
    logger.info(f"Cost basis:     {_money(detail.cost_basis, symbol)}")
    logger.info(
        f"Profit:         {_money(detail.profit, symbol)} "
        f"({_percent(detail.profit_percent)})"
    )
    logger.info(f"Deposits:       {_money(detail.total_deposit, symbol)}")
    logger.info(f"Withdrawals:    {_money(detail.total_withdrawal, symbol)}")
    logger.info(f"Realized gain:  {_money(detail.total_realized_gain, symbol)}")

    if detail.children:
        logger.info("\nChildren:")
        for child in detail.children:
            suffix = " (liability)" if child.is_liability else ""
            logger.info(f"  {child.name}: {_money(child.current_value, symbol)}{suffix}")

    logger.info(f"\nHistory ({range_key}):")
    for point in detail.history:
        logger.info(
            f"  {point.date}  value {_money(point.value, symbol):>16}  "
            f"cost {_money(point.cost, symbol):>16}"
        )

    logger.info(f"\nRecords: {len(detail.transactions)}")
    logger.info("Use 'python -m cli records history' to list them.")


def cmd_history(args, services):
    """Show the whole-portfolio daily series."""
    series = services.portfolio.get_global_history_series()

    if args.json:
        print(json.dumps([p.to_dict() for p in series], indent=2, ensure_ascii=False))
        return

    if not series:
        logger.info("No history found.")
        return

    symbol = services.config.currency_symbol
    for point in series:
        logger.info(
            f"{point.date}  assets {_money(point.total_assets, symbol):>16}  "
            f"cost {_money(point.total_cost, symbol):>16}  "
            f"net worth {_money(point.net_worth, symbol):>16}"
        )
        if args.tags:
            for group, totals in point.tags.items():
                breakdown = ", ".join(
                    f"{option} {_money(total, symbol)}" for option, total in totals.items()
                )
                logger.info(f"    {group}: {breakdown}")


def setup_parser(subparsers):
    """Setup portfolio subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "portfolio",
        help="Show consolidated portfolio figures",
        description="Show totals, single-asset detail and history",
    )

    portfolio_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available portfolio commands",
        dest="subcommand",
        required=True,
    )

    # portfolio summary
    summary_parser = portfolio_subparsers.add_parser(
        "summary", help="Show dashboard totals"
    )
    summary_parser.set_defaults(func=cmd_summary)

    # portfolio detail
    detail_parser = portfolio_subparsers.add_parser(
        "detail", help="Show one category with its merged history"
    )
    detail_parser.add_argument("category", help="Category name")
    detail_parser.add_argument(
        "--range",
        choices=HISTORY_RANGES,
        help="History window (default: display.history_range from config)",
    )
    detail_parser.add_argument(
        "--json", action="store_true", help="Print the full detail as JSON"
    )
    detail_parser.set_defaults(func=cmd_detail)

    # portfolio history
    history_parser = portfolio_subparsers.add_parser(
        "history", help="Show the whole-portfolio daily series"
    )
    history_parser.add_argument(
        "--tags", action="store_true", help="Include tag group breakdowns"
    )
    history_parser.add_argument(
        "--json", action="store_true", help="Print the series as JSON"
    )
    history_parser.set_defaults(func=cmd_history)
