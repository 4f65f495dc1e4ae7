"""
@file_name: settings.py
@date: 2026-10-02
@description: Unified configuration management

Uses pydantic-settings to load environment variables and the project .env file
into a single Settings object.

Usage:
    from story_keeper.settings import settings

    api_key = settings.openai_api_key
    db_host = settings.db_host
"""

import os
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root directory (3 levels up from src/story_keeper/settings.py)
_PROJECT_ROOT = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    """Application global configuration, automatically loaded from .env file and environment variables"""

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ===== LLM =====
    openai_api_key: str = ""
    openai_base_url: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_embedding_model: str = "text-embedding-3-small"

    # Per-call timeouts (seconds) for text generation and embedding requests
    llm_timeout: float = 30.0
    embedding_timeout: float = 10.0

    # ===== Database =====
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: int = 3306
    db_name: str = ""
    db_user: str = ""
    db_password: str = ""

    # ===== Logging =====
    log_level: str = "INFO"


settings = Settings()

# Sync the API key to os.environ so the OpenAI SDK picks it up when constructed without arguments.
if settings.openai_api_key and not os.environ.get("OPENAI_API_KEY"):
    os.environ["OPENAI_API_KEY"] = settings.openai_api_key
