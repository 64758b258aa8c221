"""
Shared dependencies for FastAPI routes.
"""

from fastapi import HTTPException, Request

from repositories.concepts_repo import ConceptsRepository
from repositories.generated_content_repo import GeneratedContentRepository
from repositories.quizzes_repo import QuizzesRepository
from repositories.source_content_repo import SourceContentRepository
from services.content_pipeline.errors import AuthMissingError
from services.content_pipeline.service import SourceContentPipeline
from utils.logger import get_logger

logger = get_logger(__name__)


def get_pipeline(request: Request) -> SourceContentPipeline:
    """Build the pipeline from the factory stored on app state."""
    factory = request.app.state.pipeline_factory
    try:
        return factory()
    except AuthMissingError as exc:
        logger.error("Pipeline unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc))


def get_source_repo() -> SourceContentRepository:
    return SourceContentRepository()


def get_concepts_repo() -> ConceptsRepository:
    return ConceptsRepository()


def get_quizzes_repo() -> QuizzesRepository:
    return QuizzesRepository()


def get_content_repo() -> GeneratedContentRepository:
    return GeneratedContentRepository()
