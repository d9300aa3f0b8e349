import json
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings


PROJECT_ROOT = Path(__file__).resolve().parent.parent
LOCAL_ENV_FILE = PROJECT_ROOT / ".env.local"

if LOCAL_ENV_FILE.exists():
    load_dotenv(LOCAL_ENV_FILE, override=True)


def split_origins(value: Optional[str]) -> List[str]:
    """Parse a JSON list or a comma-separated string of origins."""
    stripped = (value or "").strip()
    if not stripped:
        return []

    items: List = []
    if stripped.startswith("[") and stripped.endswith("]"):
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = parsed
    if not items:
        items = stripped.split(",")

    return [str(item).strip() for item in items if str(item).strip()]


class Settings(BaseSettings):
    class Config:
        env_file = ".env"
        extra = "ignore"

    database_url: str = "sqlite:///./adperf.db"
    database_public_url: str = ""
    environment: str = "development"
    log_level: str = Field(default="INFO")

    # Performance store
    store_page_size: int = Field(default=1000)  # rows per page on paginated reads
    upsert_chunk_size: int = Field(default=500)  # rows per INSERT ... ON CONFLICT statement
    default_lookback_days: int = Field(default=14)

    frontend_base_url: str = Field(default="http://localhost:3000")
    additional_cors_origins: str | None = Field(default=None)

    def get_database_url(self) -> str:
        """
        Get the appropriate database URL.
        Prefers DATABASE_PUBLIC_URL for local development (external access).
        Falls back to DATABASE_URL.
        """
        public_url = os.getenv('DATABASE_PUBLIC_URL') or self.database_public_url
        if public_url:
            return public_url
        return os.getenv('DATABASE_URL') or self.database_url

    def get_additional_cors_origins(self) -> List[str]:
        return split_origins(self.additional_cors_origins)


def _is_valid_origin(origin: str) -> bool:
    parsed = urlparse(origin)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def get_cors_origins(settings: Settings) -> List[str]:
    """Collect the frontend origin plus any extra origins, skipping invalid and duplicate entries."""
    candidates = [settings.frontend_base_url, *settings.get_additional_cors_origins()]
    origins: List[str] = []
    for candidate in candidates:
        if not candidate:
            continue
        origin = candidate.strip().rstrip("/")
        if not _is_valid_origin(origin) or origin in origins:
            continue
        origins.append(origin)
    return origins


@lru_cache()
def get_settings():
    return Settings()
