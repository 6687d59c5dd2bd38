"""Application factory for the Vedic Flow FastAPI backend."""

from __future__ import annotations

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, configure_logging, get_settings
from .llm import TextProvider, get_provider
from .memory import SessionMemory
from .routers import journey


DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]


def _resolve_allowed_origins() -> list[str]:
    """Return allowed origins, optionally sourced from an env override."""

    raw = os.getenv("VEDICFLOW_ALLOWED_ORIGINS")
    if raw:
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    return DEFAULT_ALLOWED_ORIGINS


def create_app(
    *,
    provider: TextProvider | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create and configure a FastAPI application instance."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Vedic Flow Backend",
        version="0.1.0",
        description="Guided intake and staged astro-action plan generation.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_resolve_allowed_origins(),
        allow_origin_regex=r"http://localhost:\d+$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.provider = provider or get_provider(settings)
    app.state.session_memory = SessionMemory()
    app.include_router(journey.router)
    return app


app = create_app()
