#!/usr/bin/env python3
"""
Check that OPENAI_API_KEY works with one tiny chat completion.

Prints the first characters of the key, then either the reply or the typed
failure (quota_exceeded, rate_limited, validation_error, unknown) with the
API's error code.

  python scripts/probe_api_key.py [--model gpt-3.5-turbo]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent  # repo root
sys.path.insert(0, str(ROOT))

from db_config import load_settings  # noqa: E402
from db_errors import ConfigurationMissing, ImageGenerationError  # noqa: E402
from image_api import CHAT_MODEL, ImageApiClient  # noqa: E402


def mask_key(key: str, shown: int = 10) -> str:
    return f"{key[:shown]}..." if len(key) > shown else "***"


def main() -> int:
    ap = argparse.ArgumentParser(description="Verify the OpenAI API key with a minimal chat completion.")
    ap.add_argument("--model", default=CHAT_MODEL)
    args = ap.parse_args()

    settings = load_settings()
    try:
        key = settings.require_image_api()
    except ConfigurationMissing as e:
        print(str(e), file=sys.stderr)
        return 1

    print(f"API key (first 10 chars): {mask_key(key)}")
    print(f"Testing with chat completion ({args.model})...", flush=True)
    try:
        reply = ImageApiClient(key).chat_ping(args.model)
    except ImageGenerationError as e:
        print(f"Chat API error: {e.kind}", file=sys.stderr)
        print(f"  code: {e.code or '-'}", file=sys.stderr)
        print(f"  message: {e.message}", file=sys.stderr)
        return 1
    print(f"Chat API OK. Response: {reply}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
