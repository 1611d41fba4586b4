"""
Configuration helpers for the referral backend.

Routers, services and scripts read settings through get_settings() instead of
fetching os.environ directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    public_base_url: str
    data_dir: Path
    log_level: str
    password_min_length: int
    trust_proxy: bool = False


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str | None, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    app_env = (os.getenv("APP_ENV") or "dev").lower()
    default_level = "DEBUG" if app_env == "dev" else "INFO"
    return Settings(
        app_env=app_env,
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
        data_dir=Path(os.getenv("DATA_DIR") or "data").resolve(),
        log_level=(os.getenv("LOG_LEVEL") or default_level).upper(),
        password_min_length=max(1, _int(os.getenv("PASSWORD_MIN_LENGTH"), 8)),
        trust_proxy=(os.getenv("TRUST_PROXY") or "").lower() in {"1", "true", "yes"},
    )
