#!/usr/bin/env python3
"""
Try the same simple prompts on two image models and report what each returns.

Useful when a type keeps failing on one model: shows whether the other model
accepts the prompt, and which typed failure the first one gives. One request
per prompt and model, no retries.

  python scripts/compare_image_models.py [--models dall-e-2 dall-e-3] [--prompt "A white ghost figure on black background"]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent  # repo root
sys.path.insert(0, str(ROOT))

from db_config import load_settings  # noqa: E402
from db_errors import ConfigurationMissing, ImageGenerationError  # noqa: E402
from image_api import DEFAULT_SIZE, ImageApiClient  # noqa: E402

TEST_PROMPTS = {
    "ooze_simple": "A blue and purple blob shape on black background",
    "undead_simple": "A white ghost figure on black background",
    "swarm_simple": "Multiple small flying creatures on black background",
    "plant_simple": "A green plant with blue leaves on black background",
}
MODELS = ["dall-e-2", "dall-e-3"]


def compare_models(client: ImageApiClient, prompts: dict[str, str], models: list[str],
                   size: str = DEFAULT_SIZE) -> list[dict]:
    """One row per (prompt, model): outcome is 'ok' or the failure kind, detail is the URL or message."""
    rows = []
    for label, prompt in prompts.items():
        print(f"\n{label}: {prompt!r}", flush=True)
        for model in models:
            try:
                url = client.generate_image(prompt, model=model, size=size)
            except ImageGenerationError as e:
                print(f"  {model}: {e.kind} (code={e.code or '-'}) {e.message}")
                rows.append({"prompt": label, "model": model, "outcome": e.kind, "detail": e.message})
                continue
            print(f"  {model}: ok {url}")
            rows.append({"prompt": label, "model": model, "outcome": "ok", "detail": url})
    return rows


def main() -> int:
    ap = argparse.ArgumentParser(description="Compare image models on a few prompts.")
    ap.add_argument("--models", nargs="+", default=MODELS)
    ap.add_argument("--prompt", action="append", default=None, help="Custom prompt (repeatable); replaces the built-in set")
    ap.add_argument("--size", default=DEFAULT_SIZE)
    args = ap.parse_args()

    settings = load_settings()
    try:
        key = settings.require_image_api()
    except ConfigurationMissing as e:
        print(str(e), file=sys.stderr)
        return 1

    prompts = {f"custom_{i}": p for i, p in enumerate(args.prompt, 1)} if args.prompt else TEST_PROMPTS
    rows = compare_models(ImageApiClient(key), prompts, args.models, args.size)
    ok = sum(1 for r in rows if r["outcome"] == "ok")
    print(f"\n{ok}/{len(rows)} requests returned an image.")
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
