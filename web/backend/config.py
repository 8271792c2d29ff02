#!/usr/bin/env python3
"""
Configuration centralisée pour le backend.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

ROOT_DIR = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Configuration via variables d'environnement (DATABASE_PATH, ENCRYPTION_KEY_FILE, RATE_LIMIT, DEBUG)."""

    # Database (partagée avec le bot)
    database_path: str = str(ROOT_DIR / "fishinge.db")
    encryption_key_file: str = str(ROOT_DIR / ".fishinge.key")

    # Limite de requêtes par IP sur /api
    rate_limit: str = "60/minute"

    debug: bool = False

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Singleton settings."""
    return Settings()
