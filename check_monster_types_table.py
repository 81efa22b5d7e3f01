#!/usr/bin/env python3
"""
Show what is in monster_types: row count, columns, a few sample rows, and how
many types still have no icon image.

Uses SUPABASE_SERVICE_ROLE_KEY if set, otherwise SUPABASE_ANON_KEY.
  python check_monster_types_table.py [--table monster_types] [--samples 3]
"""

from __future__ import annotations

import argparse
import sys

from db_clients import StoreReader, open_store
from db_config import ANON, SERVICE, load_settings
from db_errors import CompendiumError


def summarize_catalog(store: StoreReader, table: str, samples: int = 3) -> dict:
    rows = store.select_all(table, order="id")
    return {
        "count": len(rows),
        "columns": list(rows[0].keys()) if rows else [],
        "samples": rows[:samples],
        "missing_image": sorted(r.get("type_name") or "?" for r in rows if not r.get("icon_image")),
    }


def main() -> int:
    ap = argparse.ArgumentParser(description="Inspect the monster_types lookup table.")
    ap.add_argument("--table", default="monster_types")
    ap.add_argument("--samples", type=int, default=3)
    args = ap.parse_args()

    settings = load_settings()
    try:
        store = open_store(settings, SERVICE if settings.service_key else ANON)
        summary = summarize_catalog(store, args.table, args.samples)
    except CompendiumError as e:
        print(f"Error accessing {args.table}: {e}", file=sys.stderr)
        return 1

    print(f"Found {summary['count']} records in {args.table}")
    if not summary["count"]:
        print("Table is empty. Run populate_monster_types.py first.")
        return 0
    print(f"Columns: {', '.join(summary['columns'])}")
    for i, row in enumerate(summary["samples"], 1):
        print(f"Record {i}: {row}")
    if summary["missing_image"]:
        print(f"{len(summary['missing_image'])} type(s) without icon_image: {', '.join(summary['missing_image'])}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
