# checklist/core/config.py

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.split(",") if p.strip()]


@dataclass(frozen=True)
class Settings:
    supabase_url: str = ""
    supabase_key: str = ""
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    def require_supabase(self) -> None:
        """
        Supabase credentials are only needed once a client is built,
        so importing the app (tests, docs) works without them.
        """
        if not self.supabase_url or not self.supabase_key:
            raise RuntimeError("SUPABASE_URL/SUPABASE_KEY missing from environment (.env)")


def load_settings() -> Settings:
    return Settings(
        supabase_url=os.getenv("SUPABASE_URL", "").rstrip("/"),
        supabase_key=os.getenv("SUPABASE_KEY", ""),
        cors_origins=_env_list("CORS_ORIGINS", ["http://localhost:3000"]),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_dir=os.getenv("LOG_DIR") or None,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
