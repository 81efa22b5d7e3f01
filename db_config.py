"""
Configuration for the compendium scripts.

Credentials come from the environment, after loading KEY=VALUE lines from
.env files in the repo root (variables already set in the environment win).
Build one Settings in main() and pass it to whatever needs it.

  SUPABASE_URL               https://xxx.supabase.co
  SUPABASE_ANON_KEY          anon key (row-level security applies)
  SUPABASE_SERVICE_ROLE_KEY  service role key (bypasses RLS; needed for writes)
  OPENAI_API_KEY             image generation probes
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping

from db_errors import ConfigurationMissing

ROOT = Path(__file__).resolve().parent
ENV_FILES = (ROOT / ".env", ROOT / ".env.local", ROOT / "backend" / ".env")

ANON = "anon"
SERVICE = "service"
TIERS = (ANON, SERVICE)


def _load_env_file(path: Path, environ: MutableMapping[str, str]) -> None:
    """Parse KEY=VALUE lines and set them in environ unless already set."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        return
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        k, v = line.split("=", 1)
        k = k.strip()
        if k.startswith("export "):
            k = k[len("export "):].strip()
        v = v.strip().strip("'\"")
        if k:
            environ.setdefault(k, v)


def load_dotenv(paths=ENV_FILES, environ: MutableMapping[str, str] | None = None) -> None:
    """Load .env files (repo root, .env.local, backend/.env) into the environment."""
    target = os.environ if environ is None else environ
    for path in paths:
        if path.exists():
            _load_env_file(path, target)


@dataclass(frozen=True)
class Settings:
    supabase_url: str = ""
    anon_key: str = ""
    service_key: str = ""
    openai_api_key: str = ""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            supabase_url=(env.get("SUPABASE_URL") or "").strip().rstrip("/"),
            anon_key=(env.get("SUPABASE_ANON_KEY") or "").strip(),
            service_key=(env.get("SUPABASE_SERVICE_ROLE_KEY") or "").strip(),
            openai_api_key=(env.get("OPENAI_API_KEY") or "").strip(),
        )

    def store_key(self, tier: str) -> str:
        if tier == ANON:
            return self.anon_key
        if tier == SERVICE:
            return self.service_key
        raise ValueError(f"Unknown store tier {tier!r} (expected one of {TIERS})")

    def require_store(self, tier: str) -> tuple[str, str]:
        """Return (url, key) for the tier or raise ConfigurationMissing."""
        key = self.store_key(tier)
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if not key:
            missing.append("SUPABASE_SERVICE_ROLE_KEY" if tier == SERVICE else "SUPABASE_ANON_KEY")
        if missing:
            raise ConfigurationMissing(missing)
        return self.supabase_url, key

    def require_image_api(self) -> str:
        if not self.openai_api_key:
            raise ConfigurationMissing(["OPENAI_API_KEY"])
        return self.openai_api_key


def load_settings() -> Settings:
    """Load .env files, then read Settings from the environment. Call once per script."""
    load_dotenv()
    return Settings.from_env()
