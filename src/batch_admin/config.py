from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    files_dir: str = "./batch-files"
    unique_paths: bool = False
    jobs_file: str | None = None
    api_prefix: str = ""
    default_page_size: int = 20
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            files_dir=os.getenv("BATCH_ADMIN_FILES_DIR", "./batch-files"),
            unique_paths=_env_bool("BATCH_ADMIN_FILES_UNIQUE_PATHS"),
            jobs_file=os.getenv("BATCH_ADMIN_JOBS_FILE") or None,
            api_prefix=os.getenv("BATCH_ADMIN_API_PREFIX", "").rstrip("/"),
            default_page_size=int(os.getenv("BATCH_ADMIN_DEFAULT_PAGE_SIZE", "20")),
            log_level=os.getenv("BATCH_ADMIN_LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
