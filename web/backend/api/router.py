#!/usr/bin/env python3
"""
API Routes - Endpoints JSON du dashboard (lecture seule)
"""

import logging
import re

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ValidationError, field_validator
from slowapi import Limiter
from slowapi.util import get_remote_address

from database.manager import DatabaseManager
from web.backend.config import get_settings
from web.backend.dependencies import get_database

logger = logging.getLogger(__name__)
router = APIRouter()

# Partagé avec l'app (app.state.limiter)
limiter = Limiter(key_func=get_remote_address)
RATE_LIMIT = get_settings().rate_limit


# ============================================================
# PYDANTIC MODELS - Validation des entrées
# ============================================================

class UserName(BaseModel):
    """Login Twitch demandé dans l'URL."""
    name: str

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip().lstrip('@').lower()

        if not re.match(r'^[a-z0-9_]{1,25}$', v):
            raise ValueError('Login Twitch invalide')

        return v


# ============================================================
# LEADERBOARD / FISHES
# ============================================================

@router.get("/leaderboard")
@limiter.limit(RATE_LIMIT)
async def leaderboard(
    request: Request,
    include_bots: bool = False,
    db: DatabaseManager = Depends(get_database)
):
    """Score total par utilisateur (bots exclus par défaut)."""
    entries = db.get_leaderboard(include_bots=include_bots)
    return {
        "include_bots": include_bots,
        "entries": entries,
        "count": len(entries)
    }


@router.get("/fishes")
@limiter.limit(RATE_LIMIT)
async def fishes(
    request: Request,
    db: DatabaseManager = Depends(get_database)
):
    """Table des poissons avec leur chance de tirage."""
    table = db.get_fish_table()
    return {"fishes": table, "count": len(table)}


# ============================================================
# STATS
# ============================================================

@router.get("/user/{name}")
@limiter.limit(RATE_LIMIT)
async def user_stats(
    request: Request,
    name: str,
    db: DatabaseManager = Depends(get_database)
):
    """Statistiques d'un pêcheur."""
    try:
        login = UserName(name=name).name
    except ValidationError:
        raise HTTPException(400, "Invalid user name")

    stats = db.get_user_stats(login)
    if stats is None:
        raise HTTPException(404, f"No catches for user '{login}'")
    return stats


@router.get("/stats")
@limiter.limit(RATE_LIMIT)
async def global_stats(
    request: Request,
    db: DatabaseManager = Depends(get_database)
):
    """Statistiques globales (meilleure prise, performance des poissons)."""
    stats = db.get_global_stats()
    if stats is None:
        raise HTTPException(404, "No catches yet")
    return stats
