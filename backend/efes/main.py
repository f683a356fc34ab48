from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from efes.config import settings
from efes.api.routes import router
from efes.services.cache import get_redis

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Haifa Efes Rights Engine",
    description=(
        "Compute urban-renewal building rights for a Haifa parcel under "
        "TAMA 38, the Shaked alternative and the HFP/2666 district plan."
    ),
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/")
async def root():
    return {
        "name": "Haifa Efes Rights Engine",
        "version": "1.0.0",
        "endpoints": {
            "api_docs": "/docs",
            "health": "/health",
            "enrich": "GET /api/enrich?lng=...&lat=...",
            "calculate": "POST /api/calculate",
            "districts": "GET /api/districts",
        },
    }


@app.get("/health")
async def health():
    """Health check with dependency status."""
    status = {"status": "healthy", "version": "1.0.0"}

    if not settings.redis_url:
        status["redis"] = "not configured"
    elif await get_redis():
        status["redis"] = "connected"
    else:
        status["redis"] = "unavailable"

    return status
