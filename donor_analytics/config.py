"""Runtime settings and logging setup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path


DEFAULT_DB_PATH = Path(".data/donor_analytics.db")
DEFAULT_HISTORY_LIMIT = 50
DEFAULT_TOP_DONORS = 10
DEFAULT_LOG_LEVEL = "INFO"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Settings:
    db_path: Path = DEFAULT_DB_PATH
    history_limit: int = DEFAULT_HISTORY_LIMIT
    top_donors: int = DEFAULT_TOP_DONORS
    log_level: str = DEFAULT_LOG_LEVEL


def get_settings() -> Settings:
    db_path = os.getenv("DONOR_ANALYTICS_DB_PATH", "").strip()
    return Settings(
        db_path=Path(db_path) if db_path else DEFAULT_DB_PATH,
        history_limit=_env_int("DONOR_ANALYTICS_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT),
        top_donors=_env_int("DONOR_ANALYTICS_TOP_DONORS", DEFAULT_TOP_DONORS),
        log_level=os.getenv("DONOR_ANALYTICS_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
        or DEFAULT_LOG_LEVEL,
    )


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
