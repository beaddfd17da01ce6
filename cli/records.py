#!/usr/bin/env python3

import sys
from datetime import datetime
from decimal import Decimal
from ingestion.rows import parse_amount, parse_date
from logger import get_logger
from models.event import KIND_TRANSACTION
from models.transaction import DEPOSIT, WITHDRAW, Transaction
from tools.events import parse_event_id

logger = get_logger()


def _amount(text: str, label: str) -> Decimal:
    try:
        return parse_amount(text, label)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)


def _timestamp(args) -> datetime:
    if not args.date:
        return datetime.now()
    try:
        return parse_date(args.date)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)


def _find_category(services, name):
    category = services.categories.find_by_name(name)
    if not category:
        logger.error(f"Category '{name}' not found.")
        logger.info("Use 'python -m cli categories list' to see available categories.")
        sys.exit(1)
    return category


def cmd_valuation(args, services):
    """Record the current value of one or more categories.

    Several NAME=VALUE pairs are written with one shared timestamp.
    """
    pairs = []
    for entry in args.entries:
        name, sep, value = entry.rpartition("=")
        if not sep or not name:
            logger.error(f"Expected NAME=VALUE, got '{entry}'")
            sys.exit(1)
        category = _find_category(services, name)
        pairs.append((category, _amount(value, "value")))

    recorded_at = _timestamp(args)
    created = services.valuations.bulk_create(
        [(category.id, value) for category, value in pairs], recorded_at
    )
    for (category, value), valuation in zip(pairs, created):
        logger.info(
            f"✓ {category.name}: {value} on {recorded_at.date()} (ID: as-{valuation.id})"
        )


def _create_transaction(args, services, transaction_type, realized_gain=None):
    category = _find_category(services, args.category)
    if category.is_cash or category.is_liability:
        logger.error(
            f"'{category.name}' is a cash or liability category; record a valuation instead."
        )
        sys.exit(1)

    transaction = Transaction(
        id=None,
        category_id=category.id,
        type=transaction_type,
        amount=abs(_amount(args.amount, "amount")),
        transacted_at=_timestamp(args),
        realized_gain=realized_gain,
        memo=args.memo,
    )
    valuation = _amount(args.valuation, "valuation") if args.valuation else None
    transaction = services.transactions.create(transaction, valuation)

    logger.info(
        f"✓ {transaction.type} of {transaction.amount} recorded for {category.name} "
        f"(ID: {KIND_TRANSACTION}-{transaction.id})"
    )
    if valuation is not None:
        logger.info(f"  Valuation after transaction: {valuation}")


def cmd_deposit(args, services):
    """Record money put into a category."""
    _create_transaction(args, services, DEPOSIT)


def cmd_withdraw(args, services):
    """Record money taken out of a category at a sale price."""
    amount = abs(_amount(args.amount, "amount"))
    realized_gain = None
    if args.sale:
        realized_gain = _amount(args.sale, "sale") - amount
    _create_transaction(args, services, WITHDRAW, realized_gain)


def cmd_history(args, services):
    """Show the merged transaction and valuation history."""
    category_id = None
    if args.category:
        category_id = _find_category(services, args.category).id

    events = services.portfolio.get_history_events(category_id)
    if not events:
        logger.info("No history found.")
        return

    for event in events[: args.limit]:
        parts = [
            f"{event.occurred_at.date()}",
            f"{event.id:<8}",
            f"{event.category_name:<20}",
            f"{event.type:<9}",
        ]
        if event.is_transaction:
            parts.append(f"{event.amount:>14,.0f}")
        else:
            parts.append(" " * 14)
        if event.point_in_time_valuation is not None:
            parts.append(f"value {event.point_in_time_valuation:,.0f}")
        if event.profit_ratio is not None:
            parts.append(f"({event.profit_ratio:+.1f}%)")
        if event.realized_gain is not None:
            parts.append(f"gain {event.realized_gain:,.0f}")
        if event.memo:
            parts.append(event.memo)
        logger.info("  ".join(parts))

    if len(events) > args.limit:
        logger.info(f"... {len(events) - args.limit} older rows not shown")


def cmd_delete(args, services):
    """Delete a history row; a transaction takes its paired valuation with it."""
    try:
        kind, record_id = parse_event_id(args.event_id)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    if kind == KIND_TRANSACTION:
        deleted = services.transactions.delete(record_id)
    else:
        deleted = services.valuations.delete(record_id)

    if not deleted:
        logger.error(f"History item {args.event_id} not found.")
        sys.exit(1)
    logger.info(f"✓ Deleted {args.event_id}")


def _add_transaction_arguments(parser, with_sale=False):
    parser.add_argument("category", help="Category name")
    parser.add_argument("amount", help="Transaction amount")
    if with_sale:
        parser.add_argument(
            "--sale",
            help="Proceeds of the sale; realized gain is sale minus amount",
        )
    parser.add_argument(
        "--valuation", help="Value of the category after the transaction"
    )
    parser.add_argument("--date", help="Date in YYYY-MM-DD format (default: now)")
    parser.add_argument("--memo", help="Free-text note")


def setup_parser(subparsers):
    """Setup records subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "records",
        help="Record valuations, deposits and withdrawals",
        description="Create, list, and delete valuations and transactions",
    )

    records_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available record commands",
        dest="subcommand",
        required=True,
    )

    # records valuation
    valuation_parser = records_subparsers.add_parser(
        "valuation",
        help="Record current values",
        epilog="""
Examples:
  python -m cli records valuation "Bank Deposits=1050000"
  python -m cli records valuation "S&P500=550000" "Mortgage=1980000" --date 2025-03-31
        """,
    )
    valuation_parser.add_argument(
        "entries", nargs="+", help="One or more NAME=VALUE pairs"
    )
    valuation_parser.add_argument(
        "--date", help="Date in YYYY-MM-DD format (default: now)"
    )
    valuation_parser.set_defaults(func=cmd_valuation)

    # records deposit
    deposit_parser = records_subparsers.add_parser("deposit", help="Record a deposit")
    _add_transaction_arguments(deposit_parser)
    deposit_parser.set_defaults(func=cmd_deposit)

    # records withdraw
    withdraw_parser = records_subparsers.add_parser(
        "withdraw", help="Record a withdrawal"
    )
    _add_transaction_arguments(withdraw_parser, with_sale=True)
    withdraw_parser.set_defaults(func=cmd_withdraw)

    # records history
    history_parser = records_subparsers.add_parser(
        "history", help="Show transactions and valuations, newest first"
    )
    history_parser.add_argument(
        "category", nargs="?", help="Limit to a category and its descendants"
    )
    history_parser.add_argument(
        "--limit", type=int, default=50, help="Number of rows to show (default: 50)"
    )
    history_parser.set_defaults(func=cmd_history)

    # records delete
    delete_parser = records_subparsers.add_parser(
        "delete", help="Delete a history row by ID (e.g. tx-12 or as-5)"
    )
    delete_parser.add_argument("event_id", help="History row ID")
    delete_parser.set_defaults(func=cmd_delete)
