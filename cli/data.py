#!/usr/bin/env python3

import io
import sys
import csv
import gzip
import shutil
from pathlib import Path
from datetime import datetime
from ingestion import detect_format, get_ingestion_module
from ingestion.export import build_template, export_all
from logger import get_logger

logger = get_logger()


def _archive(csv_path: Path, category_name: str, config):
    """Gzip a copy of the imported file into the archive directory.

    Returns:
        The archive filename, or None if archiving is disabled.
    """
    if not config.archive_enabled:
        return None

    config.archive_dir.mkdir(parents=True, exist_ok=True)

    # {category_name}_{timestamp}_{original_filename}.gz
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    safe_name = category_name.replace("/", "_").replace(" ", "_")
    archive_filename = f"{safe_name}_{timestamp}_{csv_path.name}.gz"
    archive_path = config.archive_dir / archive_filename

    with open(csv_path, "rb") as f_in:
        with gzip.open(archive_path, "wb") as f_out:
            shutil.copyfileobj(f_in, f_out)

    logger.info(f"Archived CSV to: {archive_path}")
    return archive_filename


def _write_output(text: str, output):
    if output:
        with open(output, "w", newline="") as f:
            f.write(text)
        logger.info(f"✓ Wrote {output}")
    else:
        sys.stdout.write(text)


def cmd_import(args, services):
    """Import valuations and transactions for one category from a CSV file.

    Args:
        args: Parsed command-line arguments with csv_file and category
        services: Services container
    """
    csv_path = Path(args.csv_file)
    if not csv_path.exists():
        logger.error(f"File not found: {args.csv_file}")
        sys.exit(1)

    category = services.categories.find_by_name(args.category)
    if not category:
        logger.error(f"Category '{args.category}' not found.")
        logger.info("Use 'python -m cli categories list' to see available categories.")
        sys.exit(1)

    # utf-8-sig drops the byte order mark spreadsheet exports often add
    with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
        content = f.read()

    header = next(csv.reader(io.StringIO(content)), [])
    module_name = detect_format(header)
    logger.info(f"Importing into: {category.name} (ID: {category.id})")
    logger.info(f"CSV file: {args.csv_file} ({module_name} format)")
    logger.info("-" * 80)

    try:
        batch = get_ingestion_module(module_name).ingest(io.StringIO(content), category)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    for error in batch.errors:
        logger.warning(f"  {error}")

    if not batch.row_count:
        logger.info("No rows to import.")
        return

    archive_filename = _archive(csv_path, category.name, services.config)
    data_import = services.data_imports.apply(category.id, batch, archive_filename)

    logger.info(f"✓ Imported {data_import.imported_count} row(s)")
    logger.info(f"  Valuations added: {len(batch.valuations)}")
    logger.info(f"  Transactions added: {len(batch.transactions)}")
    logger.info(f"  Records deleted: {len(batch.deletions)}")
    if data_import.error_count:
        logger.info(f"  Errors: {data_import.error_count}")
    logger.info(f"Created data import record (ID: {data_import.id})")


def cmd_export(args, services):
    """Export every record to CSV."""
    text = export_all(
        services.categories.find_all(),
        services.transactions.find_all(),
        services.valuations.find_all(),
    )
    _write_output(text, args.output)


def cmd_template(args, services):
    """Write an import template, prefilled for a category when given."""
    category = None
    transactions, valuations = [], []
    if args.category:
        category = services.categories.find_by_name(args.category)
        if not category:
            logger.error(f"Category '{args.category}' not found.")
            sys.exit(1)
        transactions = services.transactions.find_by_category(category.id)
        valuations = services.valuations.find_by_category(category.id)

    _write_output(build_template(category, transactions, valuations), args.output)


def setup_parser(subparsers):
    """Setup data subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "data",
        help="Import and export CSV data",
        description="Import records from CSV, export all records, build templates",
    )

    data_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available data commands",
        dest="subcommand",
        required=True,
    )

    # data import
    import_parser = data_subparsers.add_parser(
        "import",
        help="Import a CSV file into a category",
        epilog="""
Examples:
  python -m cli data template --category "S&P500" --output sp500.csv
  python -m cli data import sp500.csv --category "S&P500"
        """,
    )
    import_parser.add_argument("csv_file", help="Path to the CSV file to import")
    import_parser.add_argument(
        "--category", required=True, help="Name of the category to import into"
    )
    import_parser.set_defaults(func=cmd_import)

    # data export
    export_parser = data_subparsers.add_parser(
        "export", help="Export all transactions and valuations"
    )
    export_parser.add_argument("--output", help="Output file (default: stdout)")
    export_parser.set_defaults(func=cmd_export)

    # data template
    template_parser = data_subparsers.add_parser(
        "template", help="Write an import template"
    )
    template_parser.add_argument(
        "--category", help="Prefill with this category's existing records"
    )
    template_parser.add_argument("--output", help="Output file (default: stdout)")
    template_parser.set_defaults(func=cmd_template)
