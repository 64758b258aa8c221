"""
FastAPI application for the content pipeline.
"""

import os
from typing import Callable, List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from services.content_pipeline.service import SourceContentPipeline
from utils.logger import get_logger
from webapp.routers import concepts, generated_content, health, source_content

logger = get_logger(__name__)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",  # Vite dev server
    "http://localhost:3000",
]


def _cors_origins() -> List[str]:
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or DEFAULT_CORS_ORIGINS


def create_app(pipeline_factory: Optional[Callable[[], SourceContentPipeline]] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        pipeline_factory: Builds the pipeline used by POST /api/source-content.
            Defaults to a pipeline wired with the real ingestor, derivation
            service and repositories.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Lattice API",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.pipeline_factory = pipeline_factory or SourceContentPipeline

    app.include_router(health.router)
    app.include_router(source_content.router)
    app.include_router(concepts.router)
    app.include_router(generated_content.router)

    logger.info("Lattice API created")
    return app
