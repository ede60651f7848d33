import os
from functools import lru_cache
from pathlib import Path
from typing import Optional


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: Optional[str] = None,
        enforce_category_type: bool = True,
        log_level: str = "INFO",
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.enforce_category_type = enforce_category_type
        self.log_level = log_level


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("TRACKER_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    database_url = os.getenv("TRACKER_DATABASE_URL")
    if not database_url:
        default_db = _ensure_data_dir() / "tracker.db"
        database_url = f"sqlite:///{default_db}"
    # Unset means the process's local time zone.
    timezone = os.getenv("TRACKER_TIMEZONE") or None
    enforce_category_type = _env_flag("TRACKER_ENFORCE_CATEGORY_TYPE", "1")
    log_level = os.getenv("TRACKER_LOG_LEVEL", "INFO").upper()
    return Settings(
        database_url=database_url,
        timezone=timezone,
        enforce_category_type=enforce_category_type,
        log_level=log_level,
    )
