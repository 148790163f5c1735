"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads assessments and builds the data service once
  - CORS middleware
  - Global exception handlers (ServiceError → its status code, KeyError → 404)
  - All API routes mounted under ``/api``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``assessment-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from assessment_engine.errors import ServiceError
from assessment_engine.service import LocalAssessmentService
from assessment_engine.store import AssessmentStore

from assessment_server.config import ServerSettings, load_settings
from assessment_server.errors import (
    generic_error_handler,
    key_error_handler,
    service_error_handler,
)
from assessment_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup.

    Startup:
      1. Load YAML assessments into an ``AssessmentStore``
      2. Build the ``LocalAssessmentService`` over it
      3. Stash both on ``app.state`` for dependency injection

    Submissions are held in memory, purged once older than
    ``submission_ttl_hours``, and dropped on shutdown.
    """
    settings: ServerSettings = app.state.settings

    store = AssessmentStore(assessment_dir=settings.assessment_dir)
    store.load()
    logger.info("AssessmentStore loaded successfully")

    app.state.store = store
    ttl = timedelta(hours=settings.submission_ttl_hours) if settings.submission_ttl_hours > 0 else None
    app.state.service = LocalAssessmentService(
        store,
        include_unpublished=settings.include_unpublished,
        submission_ttl=ttl,
    )

    yield

    logger.info(
        "Shutting down; discarding %d in-memory submissions",
        len(app.state.service.submissions),
    )


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    # --- Configure logging ---
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Assessment API Server",
        description="Reference data service for configurable assessments",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings so the lifespan handler can read them
    app.state.settings = settings

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api prefix) ---
    @app.get("/health")
    async def health(request: Request) -> dict:
        """Readiness probe — reports how many assessments are loaded."""
        store: AssessmentStore | None = getattr(request.app.state, "store", None)
        if store is None:
            return {"status": "error", "detail": "assessments not loaded"}
        return {"status": "ok", "assessments": len(store.definitions)}

    # --- Mount all API routes ---
    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn assessment_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``assessment-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "assessment_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
