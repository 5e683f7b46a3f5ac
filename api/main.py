"""FastAPI application - Billing API.

Serve with ``uvicorn api.main:app``.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from billing_tool import __version__
from billing_tool.config import get_settings
from billing_tool.logging_config import configure_logging

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title="Billing API",
    description="Unbilled time summaries and invoice draft totals.",
    version=__version__,
)

# Set BILLING_ALLOWED_ORIGINS='["*"]' to allow any origin
_allow_all = "*" in settings.allowed_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if _allow_all else settings.allowed_origins,
    allow_credentials=not _allow_all,  # credentials not allowed with wildcard
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

app.include_router(router)


@app.get("/")
async def root():
    return {
        "name": "Billing API",
        "version": __version__,
        "docs": "/docs",
        "health": "/api/v1/health",
    }
