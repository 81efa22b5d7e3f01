#!/usr/bin/env python3
"""
Combine the main monsters export with a second export (e.g. monsters_remaining.json
from a later fetch), dropping duplicates across both.

Records from the main file come first, so on a clash the main file's copy wins.
The main file is backed up byte-for-byte before it is overwritten with the
combined export; the second file is left alone. Both files are parsed before
anything is written.

Usage:
  python combine_monster_files.py data/monsters.json data/monsters_remaining.json
  python combine_monster_files.py data/monsters.json data/monsters_remaining.json --backup data/monsters_complete_backup.json
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from clean_monsters_json import (
    CollapseResult,
    cleaned_document,
    collapse_duplicates,
    load_export,
    print_summary,
    write_backup,
    write_discard_report,
    write_json_atomic,
)
from db_errors import MalformedInput


def combine_exports(main_path: Path, extra_path: Path, backup_path: Path | None = None,
                    report_path: Path | None = None, *, dry_run: bool = False) -> CollapseResult:
    main_path, extra_path = Path(main_path), Path(extra_path)
    backup_path = Path(backup_path) if backup_path else main_path.with_name(f"{main_path.stem}_complete_backup{main_path.suffix}")
    report_path = Path(report_path) if report_path else main_path.with_name(f"{main_path.stem}_combined_duplicates.csv")
    if backup_path.resolve() in (main_path.resolve(), extra_path.resolve()):
        raise ValueError(f"Backup path must differ from both inputs: {backup_path}")

    main_raw, main_doc = load_export(main_path)
    _, extra_doc = load_export(extra_path)
    print(f"Main file: {len(main_doc['results'])} records")
    print(f"Additional file: {len(extra_doc['results'])} records")

    combined = list(main_doc["results"]) + list(extra_doc["results"])
    result = collapse_duplicates(combined)
    print_summary(result, len(combined))
    if dry_run:
        return result

    write_backup(main_raw, backup_path)
    print(f"Main file backed up to: {backup_path}", flush=True)
    write_json_atomic(main_path, cleaned_document(main_doc, result.kept))
    print(f"Combined export written: {main_path} ({len(result.kept)} records)", flush=True)
    write_discard_report(result.discarded, report_path)
    print(f"Discard report: {report_path}", flush=True)
    return result


def main() -> int:
    ap = argparse.ArgumentParser(description="Merge two monster exports into the first, removing duplicates.")
    ap.add_argument("main", type=Path, help="Main export (overwritten with the combined result)")
    ap.add_argument("extra", type=Path, help="Export with additional monsters")
    ap.add_argument("--backup", type=Path, default=None, help="Backup of the main file (default: <main>_complete_backup.json)")
    ap.add_argument("--report", type=Path, default=None, help="Discard report CSV")
    ap.add_argument("--dry-run", action="store_true", help="Report only; write nothing")
    args = ap.parse_args()

    try:
        result = combine_exports(args.main, args.extra, args.backup, args.report, dry_run=args.dry_run)
    except MalformedInput as e:
        print(f"Malformed input, nothing written: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1
    if args.dry_run:
        print("Dry run. Nothing written.")
    else:
        print(f"Done. {len(result.kept)} unique monsters, {len(result.discarded)} duplicates removed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
