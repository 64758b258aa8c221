"""
Source content API: submit a video to the pipeline and browse what it produced.
"""
from dataclasses import asdict
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import (
    get_concepts_repo,
    get_content_repo,
    get_pipeline,
    get_quizzes_repo,
    get_source_repo,
)
from ..schemas import (
    ConceptListResponse,
    GeneratedContentListResponse,
    PipelineResultOut,
    ProcessSourceContentRequest,
    QuizListResponse,
    SourceContentListResponse,
)
from models.enums import SourceType
from repositories.concepts_repo import ConceptsRepository
from repositories.generated_content_repo import GeneratedContentRepository
from repositories.quizzes_repo import QuizzesRepository
from repositories.source_content_repo import SourceContentRepository
from services.content_pipeline.errors import (
    AcquisitionError,
    ContentPipelineError,
    InvalidReferenceError,
    NoTranscriptError,
    VideoUnavailableError,
)
from services.content_pipeline.service import SourceContentPipeline, assemble_result
from utils.logger import get_logger

router = APIRouter(prefix="/api", tags=["source-content"])
logger = get_logger(__name__)

_ACCEPTED_TYPES = (SourceType.VIDEO.value, "youtube")


def _http_error_for(exc: ContentPipelineError) -> HTTPException:
    if isinstance(exc, InvalidReferenceError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, (VideoUnavailableError, NoTranscriptError)):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, AcquisitionError):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


@router.post("/source-content", status_code=201, response_model=PipelineResultOut)
def process_source_content(
    body: ProcessSourceContentRequest,
    pipeline: SourceContentPipeline = Depends(get_pipeline),
) -> Dict[str, Any]:
    """Run the pipeline for a video URL. Already-processed URLs return the stored result."""
    if body.type not in _ACCEPTED_TYPES:
        raise HTTPException(status_code=400, detail="Only video sources are supported")
    try:
        return pipeline.process_video(body.url).to_dict()
    except ContentPipelineError as exc:
        logger.warning("source content processing failed for %s: %s", body.url, exc)
        raise _http_error_for(exc)
    except Exception as exc:
        logger.exception("source content processing failed: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to process source content")


@router.get("/source-content", response_model=SourceContentListResponse)
async def list_source_content(
    repo: SourceContentRepository = Depends(get_source_repo),
) -> Dict[str, Any]:
    sources = [asdict(source) for source in repo.list_sources()]
    return {"source_contents": sources, "count": len(sources)}


@router.get("/source-content/{source_id}", response_model=PipelineResultOut)
async def get_source_content(
    source_id: str,
    source_repo: SourceContentRepository = Depends(get_source_repo),
    concepts_repo: ConceptsRepository = Depends(get_concepts_repo),
    quizzes_repo: QuizzesRepository = Depends(get_quizzes_repo),
    content_repo: GeneratedContentRepository = Depends(get_content_repo),
) -> Dict[str, Any]:
    source = source_repo.get_source_by_id(source_id)
    if source is None:
        raise HTTPException(status_code=404, detail="Source content not found")
    return assemble_result(source, concepts_repo, quizzes_repo, content_repo).to_dict()


@router.get("/source-content/{source_id}/concepts", response_model=ConceptListResponse)
async def get_source_concepts(
    source_id: str,
    source_repo: SourceContentRepository = Depends(get_source_repo),
    concepts_repo: ConceptsRepository = Depends(get_concepts_repo),
) -> Dict[str, Any]:
    if source_repo.get_source_by_id(source_id) is None:
        raise HTTPException(status_code=404, detail="Source content not found")
    concepts = [asdict(concept) for concept in concepts_repo.list_concepts_by_source(source_id)]
    return {"concepts": concepts, "count": len(concepts)}


@router.get("/source-content/{source_id}/quizzes", response_model=QuizListResponse)
async def get_source_quizzes(
    source_id: str,
    source_repo: SourceContentRepository = Depends(get_source_repo),
    quizzes_repo: QuizzesRepository = Depends(get_quizzes_repo),
) -> Dict[str, Any]:
    if source_repo.get_source_by_id(source_id) is None:
        raise HTTPException(status_code=404, detail="Source content not found")
    quizzes = [asdict(quiz) for quiz in quizzes_repo.list_quizzes_by_source(source_id)]
    return {"quizzes": quizzes, "count": len(quizzes)}


@router.get("/source-content/{source_id}/content", response_model=GeneratedContentListResponse)
async def get_source_generated_content(
    source_id: str,
    source_repo: SourceContentRepository = Depends(get_source_repo),
    concepts_repo: ConceptsRepository = Depends(get_concepts_repo),
    content_repo: GeneratedContentRepository = Depends(get_content_repo),
) -> Dict[str, Any]:
    if source_repo.get_source_by_id(source_id) is None:
        raise HTTPException(status_code=404, detail="Source content not found")
    concept_ids = [concept.id for concept in concepts_repo.list_concepts_by_source(source_id)]
    items = [asdict(item) for item in content_repo.list_content_by_concept_ids(concept_ids)]
    return {"generated_content": items, "count": len(items)}


@router.delete("/source-content/{source_id}")
async def delete_source_content(
    source_id: str,
    repo: SourceContentRepository = Depends(get_source_repo),
) -> Dict[str, Any]:
    if not repo.delete_source(source_id):
        raise HTTPException(status_code=404, detail="Source content not found")
    return {"id": source_id, "deleted": True}
