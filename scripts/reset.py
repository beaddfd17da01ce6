#!/usr/bin/env python3
"""Reset script for Assetree.

This script will:
1. Delete the data directory (including database, logs, and archives)
2. Run migrations to create a fresh database
3. Optionally load the demo portfolio (--seed)
"""

import argparse
import json
import shutil
import sys

from config import get_seed_dir, load_config
from db.manager import DatabaseManager
from cli.categories import seed_portfolio
from cli.migrate import cmd_apply
from logger import setup_logging
from services.base import Services


def reset(seed: bool = False):
    """Reset the application state."""
    print("Assetree Reset Script")
    print("=" * 50)

    # Load configuration
    config = load_config()

    # Check if reset is enabled
    if not config.enable_reset:
        print("\nReset is disabled in configuration (enable_reset=false).")
        print("To enable reset, set enable_reset=true in ~/.config/assetree.toml")
        sys.exit(1)

    # Show what will be deleted
    print(f"\nData directory: {config.base_dir}")
    print(f"Database: {config.db_path}")
    print(f"Logs: {config.log_dir}")
    print(f"Archives: {config.archive_dir}")

    # Confirm with user
    response = input("\nThis will delete ALL data. Continue? (yes/no): ")
    if response.lower() != "yes":
        print("Reset cancelled.")
        sys.exit(0)

    # Delete the data directory
    if config.base_dir.exists():
        print(f"\nDeleting {config.base_dir}...")
        shutil.rmtree(config.base_dir)
        print("✓ Data directory deleted")
    else:
        print(f"\n✓ Data directory does not exist: {config.base_dir}")

    setup_logging(config)

    # Run migrations to create database
    print("\nRunning migrations...")
    db_manager = DatabaseManager(config)
    cmd_apply(argparse.Namespace(dry_run=False), db_manager)

    if seed:
        print("\nLoading demo portfolio...")
        with open(get_seed_dir() / "portfolio.json", "r") as f:
            data = json.load(f)
        counts = seed_portfolio(data, Services(config, db_manager=db_manager))
        print(f"✓ Created {counts['created']} categories")

    print("\n" + "=" * 50)
    print("Reset complete! Database has been recreated.")
    print(f"Database location: {config.db_path}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Wipe and recreate the database")
    parser.add_argument(
        "--seed", action="store_true", help="Load the demo portfolio afterwards"
    )
    reset(seed=parser.parse_args().seed)
