#!/usr/bin/env python3
"""
Generate an icon for each monster_types row that has none and store the result.

For every row without icon_image (all rows with --force) a prompt is built,
one image is requested, and the row is updated with icon_image = <URL> and
image_generation_status = "success". A failed request sets
image_generation_status = "error: <kind>: <message>" (kind is quota_exceeded,
rate_limited, validation_error or unknown) and the next row is tried. There
are no retries; re-run the script to pick up rows that failed.

The stored URL is the one the image API returns, which expires after a while;
copy the images elsewhere if they need to last.

Requires: SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY and OPENAI_API_KEY.
  python generate_monster_type_images.py [--model dall-e-3] [--size 1024x1024] [--quality standard] [--force] [--limit 5]
"""

from __future__ import annotations

import argparse
import re
import sys
from dataclasses import dataclass, field

from db_clients import StoreWriter, open_store
from db_config import SERVICE, Settings, load_settings
from db_errors import ConfigurationMissing, ImageGenerationError, RemoteRequestFailed
from image_api import DEFAULT_MODEL, DEFAULT_QUALITY, DEFAULT_SIZE, ImageApiClient

CATALOG_TABLE = "monster_types"

# Types whose descriptions tend to trip the content filter
SAFE_PROMPTS = {
    "fiend": "A mythical creature with dark features, horns, and wings, stylized as a simple icon on black background",
    "monstrosity": "A large mythical beast with multiple features, dark colors, simple icon style on black background",
    "undead": "A skeletal or ghostly figure, simple icon style on black background",
    "aberration": "A strange otherworldly creature, simple icon style on black background",
    "ooze": "A blob-like creature, simple icon style on black background",
}
SENSITIVE_WORDS = re.compile(r"\b(blood|gore|violent|dead|corpse|flesh|bone)\w*", re.IGNORECASE)


def build_prompt(row: dict) -> str:
    type_name = (row.get("type_name") or "").strip().lower()
    if type_name in SAFE_PROMPTS:
        return SAFE_PROMPTS[type_name]
    desc = (row.get("visual_description") or "").strip()
    if desc:
        desc = " ".join(SENSITIVE_WORDS.sub("", desc).split())
        return f"A simple icon of {desc}, suitable for all audiences"
    return f"A simple icon of a generic fantasy {type_name or 'monster'} creature, on a black background"


@dataclass
class GenerationSummary:
    succeeded: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def rows_to_generate(rows: list[dict], force: bool = False, limit: int | None = None) -> tuple[list[dict], list[dict]]:
    """Split rows into (to generate, skipped because they already have an image)."""
    todo, skipped = [], []
    for row in sorted(rows, key=lambda r: r.get("type_name") or ""):
        if row.get("icon_image") and not force:
            skipped.append(row)
        else:
            todo.append(row)
    if limit is not None:
        todo = todo[:limit]
    return todo, skipped


def generate_for_row(store: StoreWriter, images: ImageApiClient, row: dict, *, model: str, size: str,
                     quality: str | None, table: str = CATALOG_TABLE) -> str:
    """Generate and record one icon. Returns the status written to the row."""
    name = row.get("type_name") or "?"
    prompt = build_prompt(row)
    print(f"Generating image for {name}: {prompt}", flush=True)
    try:
        url = images.generate_image(prompt, model=model, size=size, quality=quality)
    except ImageGenerationError as e:
        status = f"error: {e.kind}: {e.message}"
        print(f"  {name}: {e.kind} - {e.message}", file=sys.stderr)
        store.update(table, {"image_generation_status": status}, {"id": row["id"]})
        return status
    store.update(table, {"icon_image": url, "image_generation_status": "success"}, {"id": row["id"]})
    print(f"  {name}: {url}", flush=True)
    return "success"


def generate_images(store: StoreWriter, images: ImageApiClient, *, model: str = DEFAULT_MODEL,
                    size: str = DEFAULT_SIZE, quality: str | None = DEFAULT_QUALITY, force: bool = False,
                    limit: int | None = None, table: str = CATALOG_TABLE) -> GenerationSummary:
    rows = store.select_all(table, "id, type_name, visual_description, icon_image", order="id")
    todo, skipped = rows_to_generate(rows, force=force, limit=limit)
    summary = GenerationSummary(skipped=[r.get("type_name") or "?" for r in skipped])
    print(f"{len(rows)} types, {len(todo)} to generate, {len(skipped)} already have an image.", flush=True)
    for row in todo:
        name = row.get("type_name") or "?"
        try:
            status = generate_for_row(store, images, row, model=model, size=size, quality=quality, table=table)
        except RemoteRequestFailed as e:
            # the row update itself failed
            print(f"  {name}: could not update {table} - {e}", file=sys.stderr)
            summary.failed.append((name, str(e)))
            continue
        if status == "success":
            summary.succeeded.append(name)
        else:
            summary.failed.append((name, status))
    return summary


def run(settings: Settings, **kwargs) -> int:
    try:
        api_key = settings.require_image_api()
        store = open_store(settings, SERVICE)
    except ConfigurationMissing as e:
        print(str(e), file=sys.stderr)
        return 1
    try:
        summary = generate_images(store, ImageApiClient(api_key), **kwargs)
    except RemoteRequestFailed as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Done. {len(summary.succeeded)} generated, {len(summary.failed)} failed, {len(summary.skipped)} skipped.")
    for name, status in summary.failed:
        print(f"  {name}: {status}", file=sys.stderr)
    return 1 if summary.failed else 0


def main() -> int:
    ap = argparse.ArgumentParser(description="Generate icon images for monster_types rows.")
    ap.add_argument("--model", default=DEFAULT_MODEL)
    ap.add_argument("--size", default=DEFAULT_SIZE)
    ap.add_argument("--quality", default=DEFAULT_QUALITY)
    ap.add_argument("--force", action="store_true", help="Regenerate rows that already have icon_image")
    ap.add_argument("--limit", type=int, default=None, help="Only generate this many")
    args = ap.parse_args()

    settings = load_settings()
    return run(settings, model=args.model, size=args.size, quality=args.quality, force=args.force, limit=args.limit)


if __name__ == "__main__":
    raise SystemExit(main())
