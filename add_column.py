#!/usr/bin/env python3
"""
Add a column to a table through the exec_sql RPC, then check that it shows up.

Needs an exec_sql(sql text) function in the database and the service role key.
If the RPC call fails, the SQL is printed so it can be run in the SQL editor.

  python add_column.py --table monster_types --column image_generation_status
  python add_column.py --table monsters --column has_underscores --type BOOLEAN --default FALSE
"""

from __future__ import annotations

import argparse
import re
import sys

from db_clients import StoreWriter, open_store
from db_config import SERVICE, load_settings
from db_errors import ConfigurationMissing, RemoteRequestFailed

IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
COLUMN_TYPE = re.compile(r"^[A-Za-z][A-Za-z0-9_ ]*(\(\d+(,\s*\d+)?\))?(\[\])?$")
DEFAULT_VALUE = re.compile(r"^(NULL|TRUE|FALSE|-?\d+(\.\d+)?|'[^']*')$", re.IGNORECASE)


def add_column_sql(table: str, column: str, column_type: str = "TEXT", default: str = "NULL") -> str:
    """Build the ALTER TABLE statement. Identifiers and literals are validated, not quoted."""
    for label, value in (("table", table), ("column", column)):
        if not IDENT.match(value):
            raise ValueError(f"Invalid {label} name: {value!r}")
    if not COLUMN_TYPE.match(column_type):
        raise ValueError(f"Invalid column type: {column_type!r}")
    if not DEFAULT_VALUE.match(default):
        raise ValueError(f"Invalid default: {default!r}")
    return f"ALTER TABLE {table} ADD COLUMN IF NOT EXISTS {column} {column_type} DEFAULT {default};"


def has_column(store: StoreWriter, table: str, column: str) -> bool | None:
    """True/False from one sample row; None if the table is empty."""
    rows = store.select(table, "*", limit=1)
    if not rows:
        return None
    return column in rows[0]


def add_column(store: StoreWriter, table: str, column: str, column_type: str = "TEXT", default: str = "NULL") -> bool:
    """Run the ALTER via exec_sql. Returns False (after printing the SQL) if the RPC failed."""
    sql = add_column_sql(table, column, column_type, default)
    print(f"Adding {column} to {table}...", flush=True)
    try:
        store.exec_sql(sql)
    except RemoteRequestFailed as e:
        print(f"Could not add column via RPC (code={e.code or '-'} {e.message}). Run this SQL manually:", file=sys.stderr)
        print(sql)
        return False
    print(f"Added {column} to {table}.")
    return True


def main() -> int:
    ap = argparse.ArgumentParser(description="ALTER TABLE ... ADD COLUMN IF NOT EXISTS via exec_sql RPC.")
    ap.add_argument("--table", required=True)
    ap.add_argument("--column", required=True)
    ap.add_argument("--type", dest="column_type", default="TEXT", help="SQL type (default TEXT)")
    ap.add_argument("--default", default="NULL", help="Default value literal (default NULL)")
    args = ap.parse_args()

    try:
        sql = add_column_sql(args.table, args.column, args.column_type, args.default)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1

    settings = load_settings()
    try:
        store = open_store(settings, SERVICE)
    except ConfigurationMissing as e:
        print(str(e), file=sys.stderr)
        print(f"SQL to run manually:\n{sql}")
        return 1

    if not add_column(store, args.table, args.column, args.column_type, args.default):
        return 1
    try:
        present = has_column(store, args.table, args.column)
    except RemoteRequestFailed as e:
        print(f"Verify failed: {e}", file=sys.stderr)
        return 1
    if present is None:
        print(f"{args.table} is empty; cannot verify from a sample row.")
    else:
        print(f"{args.table} has {args.column}: {'yes' if present else 'no'}")
        if not present:
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
