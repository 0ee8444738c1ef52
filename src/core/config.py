"""
Centralised application settings loaded from environment / .env file.
"""
from __future__ import annotations

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load .env from project root (two levels up from this file)
_ENV_PATH = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseSettings):
    # ── Tables ───────────────────────────────────────────
    default_page_size: int = 50
    page_size_options: list[int] = [25, 50, 75, 100]
    search_placeholder: str = "Search..."

    # ── Sessions ─────────────────────────────────────────
    session_ttl_seconds: int = 1800
    max_sessions: int = 128

    # ── Sample data ──────────────────────────────────────
    sample_seed: int = 42
    sample_dataset_size: int = 240

    # ── App ──────────────────────────────────────────────
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
