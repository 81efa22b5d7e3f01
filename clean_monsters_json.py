#!/usr/bin/env python3
"""
Remove duplicate monsters from an exported monsters.json before it is loaded.

The export looks like {"count": N, "next": null, "previous": null, "results": [...]}.
Each record is keyed by its slug; records without a slug get a key derived from
the name (lowercased, every run of characters other than a-z/0-9 replaced by a
single "-", leading/trailing "-" removed, so "Orc Chief" -> "orc-chief"). The
first record for a key is kept in its original position; later ones are
dropped and listed in a discard report (name, key, original index).

Write order: the original file is copied byte-for-byte to the backup path and
fsynced first; only then is the cleaned file written (temp file + rename). A
file that does not parse is never touched.

Usage:
  python clean_monsters_json.py data/monsters.json
  python clean_monsters_json.py data/monsters.json --backup data/monsters_backup.json --report data/dupes.csv
  python clean_monsters_json.py data/monsters.json --dry-run
"""

from __future__ import annotations

import argparse
import json
import os
import re
import shutil
import sys
import tempfile
from collections import Counter
from dataclasses import asdict, dataclass, field
from pathlib import Path

import pandas as pd

from db_errors import MalformedInput

NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")
REPORT_COLUMNS = ["name", "key", "index"]


def slug_from_name(name) -> str:
    """'Orc Chief' -> 'orc-chief', 'orc!' -> 'orc'."""
    return NON_ALNUM_RUN.sub("-", str(name or "").lower()).strip("-")


def derive_key(record: dict) -> str:
    """Explicit slug if it is a non-empty string, else a slug built from the name."""
    slug = record.get("slug")
    if isinstance(slug, str) and slug.strip():
        return slug.strip()
    return slug_from_name(record.get("name"))


@dataclass(frozen=True)
class DiscardedRecord:
    name: str
    key: str
    index: int


@dataclass
class CollapseResult:
    kept: list[dict] = field(default_factory=list)
    discarded: list[DiscardedRecord] = field(default_factory=list)

    def duplicate_counts(self) -> Counter:
        """Copies per key (kept one included), only for keys that had duplicates."""
        counts = Counter(d.key for d in self.discarded)
        for key in counts:
            counts[key] += 1
        return counts


def collapse_duplicates(records: list[dict]) -> CollapseResult:
    """Keep the first record per derived key, in original order; report the rest."""
    result = CollapseResult()
    seen: set[str] = set()
    for index, record in enumerate(records):
        key = derive_key(record)
        if key in seen:
            result.discarded.append(DiscardedRecord(name=str(record.get("name") or ""), key=key, index=index))
            continue
        seen.add(key)
        result.kept.append(record)
    return result


def parse_export(raw: bytes, path: Path) -> dict:
    """Parse export bytes; raise MalformedInput unless it is an object with a results list of objects."""
    try:
        doc = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedInput(path, f"not valid JSON ({e})") from e
    if not isinstance(doc, dict):
        raise MalformedInput(path, "top level is not an object")
    results = doc.get("results")
    if not isinstance(results, list):
        raise MalformedInput(path, "missing 'results' list")
    for i, record in enumerate(results):
        if not isinstance(record, dict):
            raise MalformedInput(path, f"results[{i}] is not an object")
    return doc


def load_export(path: Path) -> tuple[bytes, dict]:
    """Return (raw bytes, parsed document)."""
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise MalformedInput(path, f"cannot read ({e.strerror or e})") from e
    return raw, parse_export(raw, path)


def cleaned_document(doc: dict, kept: list[dict]) -> dict:
    """Same envelope (key order included) with count and results replaced."""
    out = dict(doc)
    out["count"] = len(kept)
    out["results"] = kept
    return out


def write_backup(raw: bytes, backup_path: Path) -> None:
    """Write the original bytes and fsync before returning."""
    backup_path.parent.mkdir(parents=True, exist_ok=True)
    with open(backup_path, "wb") as f:
        f.write(raw)
        f.flush()
        os.fsync(f.fileno())


def write_json_atomic(path: Path, doc: dict) -> None:
    """Write JSON to a temp file next to path, fsync, then rename over path (keeping its mode)."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(doc, f, indent=2, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def write_discard_report(discarded: list[DiscardedRecord], report_path: Path) -> None:
    report_path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame([asdict(d) for d in discarded], columns=REPORT_COLUMNS)
    df.to_csv(report_path, index=False)


def default_backup_path(path: Path) -> Path:
    return path.with_name(f"{path.stem}_backup{path.suffix}")


def default_report_path(path: Path) -> Path:
    return path.with_name(f"{path.stem}_duplicates.csv")


def print_summary(result: CollapseResult, total: int, top: int = 10) -> None:
    print(f"Original: {total} records")
    print(f"Unique: {len(result.kept)}")
    print(f"Duplicates found: {len(result.discarded)}")
    counts = result.duplicate_counts()
    if counts:
        kept_name = {derive_key(r): r.get("name") for r in result.kept}
        print(f"Top {min(top, len(counts))} most duplicated:")
        for key, n in counts.most_common(top):
            print(f"  - {kept_name.get(key) or key} ({key}): {n} copies")


def clean_export_file(path: Path, backup_path: Path | None = None, report_path: Path | None = None,
                      *, dry_run: bool = False) -> CollapseResult:
    """
    Deduplicate the export at path in place.

    Raises MalformedInput (nothing written) if the file does not parse. With
    dry_run nothing is written at all.
    """
    path = Path(path)
    backup_path = Path(backup_path) if backup_path else default_backup_path(path)
    report_path = Path(report_path) if report_path else default_report_path(path)
    if backup_path.resolve() == path.resolve():
        raise ValueError(f"Backup path must differ from the source: {backup_path}")

    raw, doc = load_export(path)
    records = doc["results"]
    result = collapse_duplicates(records)
    print_summary(result, len(records))
    if dry_run:
        return result

    write_backup(raw, backup_path)
    print(f"Backup written: {backup_path}", flush=True)
    write_json_atomic(path, cleaned_document(doc, result.kept))
    print(f"Cleaned file written: {path} ({len(result.kept)} records)", flush=True)
    write_discard_report(result.discarded, report_path)
    print(f"Discard report: {report_path} ({len(result.discarded)} rows)", flush=True)
    return result


def main() -> int:
    ap = argparse.ArgumentParser(description="Remove duplicate monsters (by slug or name) from an export JSON.")
    ap.add_argument("path", type=Path, help="monsters.json export ({count, next, previous, results})")
    ap.add_argument("--backup", type=Path, default=None, help="Backup path (default: <name>_backup.json beside it)")
    ap.add_argument("--report", type=Path, default=None, help="Discard report CSV (default: <name>_duplicates.csv)")
    ap.add_argument("--dry-run", action="store_true", help="Report duplicates only; write nothing")
    args = ap.parse_args()

    try:
        result = clean_export_file(args.path, args.backup, args.report, dry_run=args.dry_run)
    except MalformedInput as e:
        print(f"Malformed input, nothing written: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1
    if args.dry_run:
        print("Dry run. Nothing written.")
    else:
        print(f"Removed {len(result.discarded)} duplicates.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
