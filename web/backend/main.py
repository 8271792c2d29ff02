#!/usr/bin/env python3
"""
Fishinge Web Backend - FastAPI

API JSON du dashboard : leaderboard, poissons, stats par utilisateur et globales.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from web.backend.api.router import limiter
from web.backend.api.router import router as api_router
from web.backend.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown events."""
    logger.info("🚀 Fishinge Web Backend starting...")
    yield
    logger.info("👋 Fishinge Web Backend shutting down...")


app = FastAPI(
    title="Fishinge API",
    description="API du dashboard Fishinge",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate Limiter state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS (le frontend peut être servi ailleurs)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api", tags=["API"])


# ============================================================
# SECURITY HEADERS MIDDLEWARE
# ============================================================
@app.middleware("http")
async def security_headers(request: Request, call_next):
    """Ajoute les headers de sécurité à toutes les réponses."""
    response: Response = await call_next(request)

    # Anti-clickjacking
    response.headers["X-Frame-Options"] = "DENY"

    # Empêche le sniffing MIME
    response.headers["X-Content-Type-Options"] = "nosniff"

    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

    # API JSON uniquement
    response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"

    return response


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )
    uvicorn.run(
        "web.backend.main:app",
        host="0.0.0.0",
        port=8080,
        reload=get_settings().debug
    )
