from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Literal


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # Supabase project config
    SUPABASE_URL: str | None = None          # e.g., "https://xxxx.supabase.co"
    SUPABASE_SERVICE_KEY: str | None = None  # service_role secret key
    SUPABASE_DB_URL: str | None = None       # only needed by the seed script (DDL + COPY)

    # "memory" keeps everything in-process (local runs, tests)
    STORE_BACKEND: Literal["supabase", "memory"] = "supabase"

    # Application config
    APP_NAME: str = "Asset Catalog Service"
    HOST: str = "0.0.0.0"
    PORT: int = 4001
    CORS_ORIGINS: list[str] = ["*"]

    # Asset tree
    ASSET_PATH_MAX_DEPTH: int = 5

    # Live measurement generator
    LIVE_INGEST_ENABLED: bool = True
    LIVE_INTERVAL_SECONDS: float = 2.0
    CLEANUP_INTERVAL_SECONDS: float = 60.0
    DATA_RETENTION_HOURS: int = 24

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
