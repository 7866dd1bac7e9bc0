"""Runtime settings for DesignDesk, read from the environment."""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

from .core.constants import DEFAULT_MAX_UPLOAD_SIZE_MB


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///designdesk.db"
    upload_dir: str = "uploads"
    session_secret_key: str = "designdesk-dev-secret-change-me"
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )
    max_upload_size_mb: int = DEFAULT_MAX_UPLOAD_SIZE_MB
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        origins = os.getenv("CORS_ORIGINS")
        return cls(
            database_url=os.getenv("DATABASE_URL", defaults.database_url),
            upload_dir=os.getenv("UPLOAD_DIR", defaults.upload_dir),
            session_secret_key=os.getenv("SESSION_SECRET_KEY", defaults.session_secret_key),
            cors_origins=_split_csv(origins) if origins else defaults.cors_origins,
            max_upload_size_mb=int(os.getenv("MAX_UPLOAD_SIZE_MB", str(defaults.max_upload_size_mb))),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load .env once and return the process-wide settings."""
    load_dotenv()
    return Settings.from_env()
