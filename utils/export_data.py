#!/usr/bin/env python3
"""
Utility to export tables from the shop layout SQLite database to CSV format.

Usage:
    python export_data.py <table_name> [--output output.csv]
    python export_data.py --list  # List all available tables
    python export_data.py --help  # Show this help message
"""

import sqlite3
import csv
import sys
import argparse
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from backend.app import db


def get_connection():
    """Get a connection to the SQLite database."""
    if not Path(db.DB_PATH).exists():
        raise FileNotFoundError(f"Database not found at {db.DB_PATH}")
    return sqlite3.connect(db.DB_PATH)


def list_tables():
    """List all user tables in the database."""
    conn = get_connection()
    cur = conn.cursor()
    cur.execute(
        "SELECT name FROM sqlite_master WHERE type='table' "
        "AND name NOT LIKE 'sqlite_%' ORDER BY name;"
    )
    tables = [row[0] for row in cur.fetchall()]
    conn.close()
    return tables


def export_table_to_csv(table_name: str, output_file: str = None):
    """
    Export a table from the database to a CSV file.

    Args:
        table_name: Name of the table to export
        output_file: Path to the output CSV file (default: <table_name>.csv)

    Returns:
        (path to the created CSV file, number of data rows written)
    """
    if output_file is None:
        output_file = f"{table_name}.csv"

    # Only names that exist in sqlite_master reach the f-strings below.
    if table_name not in list_tables():
        raise ValueError(f"Table '{table_name}' does not exist in the database")

    conn = get_connection()
    cur = conn.cursor()
    cur.execute(f"PRAGMA table_info({table_name});")
    columns = [row[1] for row in cur.fetchall()]
    cur.execute(f"SELECT * FROM {table_name};")
    rows = cur.fetchall()
    conn.close()

    output_path = Path(output_file)
    with open(output_path, 'w', newline='', encoding='utf-8') as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(columns)
        writer.writerows(rows)

    return output_path, len(rows)


def main():
    parser = argparse.ArgumentParser(
        description="Export SQLite tables from the shop layout database to CSV format",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python export_data.py shop_layout_areas
  python export_data.py list_items --output items_backup.csv
  python export_data.py --list
        """
    )
    parser.add_argument('table', nargs='?', help='Name of the table to export')
    parser.add_argument('--output', '-o', help='Output CSV file path (default: <table_name>.csv)')
    parser.add_argument('--list', '-l', action='store_true', help='List all available tables')

    args = parser.parse_args()

    if args.list:
        try:
            tables = list_tables()
        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        if tables:
            print("Available tables:")
            for table in tables:
                print(f"  - {table}")
        else:
            print("No tables found in the database")
        return

    if not args.table:
        parser.print_help()
        sys.exit(1)

    try:
        output_path, row_count = export_table_to_csv(args.table, args.output)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("\nUse '--list' to see available tables")
        sys.exit(1)

    print(f"✓ Successfully exported '{args.table}' to {output_path}")
    print(f"  Rows exported: {row_count}")


if __name__ == '__main__':
    main()
