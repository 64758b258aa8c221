"""
Concept CRUD endpoints.
"""
from dataclasses import asdict
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_concepts_repo, get_source_repo
from ..schemas import ConceptListResponse, ConceptOut, CreateConceptRequest, UpdateConceptRequest
from repositories.concepts_repo import ConceptsRepository
from repositories.source_content_repo import SourceContentRepository
from utils.logger import get_logger

router = APIRouter(prefix="/api", tags=["concepts"])
logger = get_logger(__name__)


@router.get("/concepts", response_model=ConceptListResponse)
async def list_concepts(repo: ConceptsRepository = Depends(get_concepts_repo)) -> Dict[str, Any]:
    concepts = [asdict(concept) for concept in repo.list_concepts()]
    return {"concepts": concepts, "count": len(concepts)}


@router.get("/concepts/{concept_id}", response_model=ConceptOut)
async def get_concept(concept_id: str, repo: ConceptsRepository = Depends(get_concepts_repo)) -> Dict[str, Any]:
    concept = repo.get_concept(concept_id)
    if concept is None:
        raise HTTPException(status_code=404, detail="Concept not found")
    return asdict(concept)


@router.post("/concepts", status_code=201, response_model=ConceptOut)
async def create_concept(
    body: CreateConceptRequest,
    repo: ConceptsRepository = Depends(get_concepts_repo),
    source_repo: SourceContentRepository = Depends(get_source_repo),
) -> Dict[str, Any]:
    if body.source_content_id and source_repo.get_source_by_id(body.source_content_id) is None:
        raise HTTPException(status_code=400, detail="Source content not found")
    try:
        concept = repo.create_concept(
            title=body.title,
            description=body.description,
            source_content_id=body.source_content_id,
        )
    except Exception as exc:
        logger.exception("concept create failed: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to create concept")
    return asdict(concept)


@router.patch("/concepts/{concept_id}", response_model=ConceptOut)
async def update_concept(
    concept_id: str,
    body: UpdateConceptRequest,
    repo: ConceptsRepository = Depends(get_concepts_repo),
) -> Dict[str, Any]:
    concept = repo.update_concept(concept_id, title=body.title, description=body.description)
    if concept is None:
        raise HTTPException(status_code=404, detail="Concept not found")
    return asdict(concept)


@router.delete("/concepts/{concept_id}")
async def delete_concept(concept_id: str, repo: ConceptsRepository = Depends(get_concepts_repo)) -> Dict[str, Any]:
    if not repo.delete_concept(concept_id):
        raise HTTPException(status_code=404, detail="Concept not found")
    return {"id": concept_id, "deleted": True}
