#!/usr/bin/env python3
"""
Print row counts for the compendium tables.

Each table is counted on its own; a table that errors (missing table, RLS,
bad key) is reported with its error code and the rest are still counted.
Exits 1 if any table failed.

Uses SUPABASE_ANON_KEY by default; --service uses SUPABASE_SERVICE_ROLE_KEY
(counts then include rows hidden by row-level security).
  python db_table_counts.py [--tables monsters spells] [--service] [--out data/table_counts.csv]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import pandas as pd

from db_clients import StoreReader, open_store
from db_config import ANON, SERVICE, load_settings
from db_errors import ConfigurationMissing, RemoteRequestFailed

TABLES = [
    "monsters",
    "monster_types",
    "spells",
    "magic_items",
    "races",
    "feats",
    "weapons",
    "armor",
]


def count_tables(store: StoreReader, tables: list[str]) -> list[dict]:
    """One row per table: table, count (None on error), error."""
    rows = []
    for table in tables:
        try:
            n = store.count(table)
        except RemoteRequestFailed as e:
            print(f"{table}: error - code={e.code or '-'} {e.message}", file=sys.stderr)
            rows.append({"table": table, "count": None, "error": str(e)})
            continue
        print(f"{table}: {n} records", flush=True)
        rows.append({"table": table, "count": n, "error": ""})
    return rows


def main() -> int:
    ap = argparse.ArgumentParser(description="Row counts for compendium tables.")
    ap.add_argument("--tables", nargs="+", default=TABLES, help="Tables to count")
    ap.add_argument("--service", action="store_true", help="Use the service role key (bypasses RLS)")
    ap.add_argument("--out", type=Path, default=None, help="Also write the counts to this CSV")
    args = ap.parse_args()

    settings = load_settings()
    try:
        store = open_store(settings, SERVICE if args.service else ANON)
    except ConfigurationMissing as e:
        print(str(e), file=sys.stderr)
        return 1

    rows = count_tables(store, args.tables)
    if args.out:
        args.out.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame(rows, columns=["table", "count", "error"]).to_csv(args.out, index=False)
        print(f"Wrote {args.out}")
    failed = [r["table"] for r in rows if r["error"]]
    if failed:
        print(f"{len(failed)} table(s) failed: {', '.join(failed)}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
