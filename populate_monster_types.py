#!/usr/bin/env python3
"""
Build the monster_types lookup table from the distinct data.type values in monsters.

Reads every monster (paginated), lowercases data.type (surrounding whitespace
stripped, blank values ignored), and inserts one monster_types row per type
that is not already there. Existing types are read first, and a unique-key
conflict on insert counts as "already present", so re-running is safe. Any
other insert error is reported with the failing type and the run exits 1 after
trying the rest.

Requires: SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (inserts need the service role).
--dry-run only needs SUPABASE_ANON_KEY (or the service key).
  python populate_monster_types.py [--dry-run] [--source-table monsters] [--catalog-table monster_types]
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from typing import Iterable

from db_clients import StoreReader, StoreWriter, open_store
from db_config import ANON, SERVICE, Settings, load_settings
from db_errors import CompendiumError, ConfigurationMissing, PartialInsertFailure, RemoteRequestFailed

SOURCE_TABLE = "monsters"
CATALOG_TABLE = "monster_types"
KEY_COLUMN = "type_name"


@dataclass
class CatalogResult:
    observed: list[str]
    existing: list[str] = field(default_factory=list)
    inserted: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)


def normalize_type(value) -> str | None:
    """Canonical catalog key for a data.type value, or None if it has none."""
    if not isinstance(value, str):
        return None
    name = value.strip().lower()
    return name or None


def extract_type_names(records: Iterable[dict]) -> list[str]:
    """Distinct normalized data.type values, sorted."""
    types: set[str] = set()
    for record in records:
        data = record.get("data") if isinstance(record, dict) else None
        if not isinstance(data, dict):
            continue
        name = normalize_type(data.get("type"))
        if name:
            types.add(name)
    return sorted(types)


def fetch_type_names(store: StoreReader, table: str = SOURCE_TABLE) -> list[str]:
    """Read all monsters (data column only) and extract their type names."""
    records = store.select_all(table, "data", order="id")
    print(f"Read {len(records)} rows from {table}.", flush=True)
    return extract_type_names(records)


def existing_type_names(store: StoreReader, table: str = CATALOG_TABLE) -> set[str]:
    rows = store.select_all(table, KEY_COLUMN, order=KEY_COLUMN)
    return {r[KEY_COLUMN] for r in rows if r.get(KEY_COLUMN)}


def insert_type_names(store: StoreWriter, names: list[str], table: str = CATALOG_TABLE) -> CatalogResult:
    """
    Insert names that are not yet in the catalog, one row each.

    Unique-key conflicts are treated as already present. Other failures are
    collected and raised together as PartialInsertFailure once every name has
    been tried.
    """
    result = CatalogResult(observed=list(names))
    present = existing_type_names(store, table)
    result.existing = [n for n in names if n in present]
    failures: list[tuple[str, RemoteRequestFailed]] = []
    for name in names:
        if name in present:
            continue
        try:
            store.insert(table, {KEY_COLUMN: name})
        except RemoteRequestFailed as e:
            if e.is_conflict:
                print(f"  {name}: already present (conflict {e.code})", flush=True)
                result.conflicts.append(name)
                continue
            print(f"  {name}: insert failed - {e}", file=sys.stderr)
            failures.append((name, e))
            continue
        print(f"  {name}: inserted", flush=True)
        result.inserted.append(name)
    if failures:
        raise PartialInsertFailure(failures, result.inserted)
    return result


def build_catalog(reader: StoreReader, writer: StoreWriter | None, *, source_table: str = SOURCE_TABLE,
                  catalog_table: str = CATALOG_TABLE) -> CatalogResult:
    """Extract types from source_table, then insert the missing ones with writer (None = dry run)."""
    names = fetch_type_names(reader, source_table)
    print(f"Found {len(names)} unique monster types: {', '.join(names)}", flush=True)
    if writer is None:
        return CatalogResult(observed=names)
    if not names:
        return CatalogResult(observed=[])
    return insert_type_names(writer, names, catalog_table)


def run(settings: Settings, *, dry_run: bool = False, source_table: str = SOURCE_TABLE,
        catalog_table: str = CATALOG_TABLE) -> int:
    try:
        if dry_run:
            tier = SERVICE if settings.service_key else ANON
            reader, writer = open_store(settings, tier), None
        else:
            writer = open_store(settings, SERVICE)
            reader = writer
        result = build_catalog(reader, writer, source_table=source_table, catalog_table=catalog_table)
    except ConfigurationMissing as e:
        print(str(e), file=sys.stderr)
        return 1
    except PartialInsertFailure as e:
        print(f"Catalog incomplete: {e}", file=sys.stderr)
        for name, err in e.failures:
            print(f"  {name!r}: code={err.code or '-'} {err.message}", file=sys.stderr)
        return 1
    except CompendiumError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not result.observed:
        print(f"No monster types found in {source_table}.")
        return 0
    if dry_run:
        print("Dry run. Nothing inserted.")
        return 0
    print(
        f"Done. {len(result.inserted)} inserted, {len(result.existing)} already present, "
        f"{len(result.conflicts)} skipped on conflict ({len(result.observed)} types total)."
    )
    return 0


def main() -> int:
    ap = argparse.ArgumentParser(description="Populate monster_types from distinct monsters.data.type values.")
    ap.add_argument("--dry-run", action="store_true", help="Only extract and print the types; no inserts")
    ap.add_argument("--source-table", default=SOURCE_TABLE, help="Table holding the monster records")
    ap.add_argument("--catalog-table", default=CATALOG_TABLE, help="Lookup table to populate")
    args = ap.parse_args()

    settings = load_settings()
    return run(settings, dry_run=args.dry_run, source_table=args.source_table, catalog_table=args.catalog_table)


if __name__ == "__main__":
    raise SystemExit(main())
