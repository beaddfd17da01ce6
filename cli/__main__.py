#!/usr/bin/env python3
"""
Assetree CLI - Unified command-line interface for tracking assets and liabilities.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    categories   Manage the asset category tree
    records      Record valuations, deposits and withdrawals
    portfolio    Show totals, single-asset detail and history
    data         Import and export CSV data
    migrate      Database migrations

Examples:
    python -m cli migrate apply
    python -m cli categories seed
    python -m cli categories list
    python -m cli records deposit "S&P500" 50000 --valuation 600000
    python -m cli portfolio detail Stocks --range 3M
    python -m cli data import sp500.csv --category "S&P500"
"""

import sys
import argparse
from cli import categories, records, portfolio, data, migrate
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import setup_logging


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Assetree - Personal asset and net worth tracking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Create subparsers for each command
    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    # Register each command's subparser
    categories.setup_parser(subparsers)
    records.setup_parser(subparsers)
    portfolio.setup_parser(subparsers)
    data.setup_parser(subparsers)
    migrate.setup_parser(subparsers)

    # Parse arguments and execute
    args = parser.parse_args()

    # Call the appropriate handler function
    if hasattr(args, "func"):
        try:
            # Load configuration
            config = load_config()

            # Set up logging
            setup_logging(config)

            # Migrate commands need db_manager for raw database operations
            if args.command == "migrate":
                args.func(args, DatabaseManager(config))
            else:
                args.func(args, Services(config))
        except Exception as e:
            print(f"Error: {e}")
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
