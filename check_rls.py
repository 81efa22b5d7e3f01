#!/usr/bin/env python3
"""
Compare what the anon key and the service role key can see in a table.

If the anon count is lower, row-level security is hiding rows from the anon
tier and scripts that read the full table should use the service key.

Requires: SUPABASE_URL, SUPABASE_ANON_KEY and SUPABASE_SERVICE_ROLE_KEY.
  python check_rls.py [--table monsters]
"""

from __future__ import annotations

import argparse
import sys

from db_clients import StoreReader, open_store
from db_config import ANON, SERVICE, load_settings
from db_errors import ConfigurationMissing, RemoteRequestFailed


def tier_count(store: StoreReader, table: str) -> int | None:
    try:
        n = store.count(table)
    except RemoteRequestFailed as e:
        print(f"  {store.tier}: error - code={e.code or '-'} {e.message}", file=sys.stderr)
        return None
    print(f"  {store.tier}: {n} rows", flush=True)
    return n


def compare_tiers(anon: StoreReader, service: StoreReader, table: str) -> str:
    """Return 'hidden', 'same' or 'unknown'."""
    print(f"Counting {table}...")
    a = tier_count(anon, table)
    s = tier_count(service, table)
    if a is None or s is None:
        return "unknown"
    return "hidden" if a < s else "same"


def main() -> int:
    ap = argparse.ArgumentParser(description="Check whether RLS hides rows from the anon key.")
    ap.add_argument("--table", default="monsters")
    args = ap.parse_args()

    settings = load_settings()
    try:
        anon = open_store(settings, ANON)
        service = open_store(settings, SERVICE)
    except ConfigurationMissing as e:
        print(str(e), file=sys.stderr)
        return 1

    verdict = compare_tiers(anon, service, args.table)
    if verdict == "hidden":
        print(f"RLS hides rows in {args.table} from the anon key; use the service role key for full reads.")
    elif verdict == "same":
        print(f"Anon and service role see the same number of rows in {args.table}.")
    else:
        print("Could not compare; see errors above.", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
