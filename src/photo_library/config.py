"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

MIB = 1024 * 1024


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    library_root: Path
    supabase_url: str
    supabase_service_key: str
    upload_chunk_size: int = 5 * MIB
    upload_session_ttl_seconds: int = 24 * 60 * 60
    upload_sweep_interval_seconds: int = 10 * 60
    import_max_file_size: int = 100 * MIB
    import_workers: int = 1
    thumbnail_quality: int = 85
    job_workers: int = 2
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
