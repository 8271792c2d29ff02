#!/usr/bin/env python3
"""
Dépendances FastAPI partagées
"""

import logging
from typing import Optional

from database.manager import DatabaseManager
from web.backend.config import get_settings

logger = logging.getLogger(__name__)

# ============================================================
# DATABASE SINGLETON
# ============================================================

_db_instance: Optional[DatabaseManager] = None


def get_database() -> DatabaseManager:
    """
    Singleton DatabaseManager.

    La base est créée par le bot (database/init_db.py) ; le dashboard ne
    fait que la lire.
    """
    global _db_instance

    if _db_instance is None:
        settings = get_settings()
        _db_instance = DatabaseManager(
            db_path=settings.database_path,
            key_file=settings.encryption_key_file
        )
        logger.info("📦 DatabaseManager singleton initialized")

    return _db_instance
