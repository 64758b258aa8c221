"""
Generated content endpoints: list drafts and published pieces, edit or publish them.
"""
from dataclasses import asdict
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_content_repo
from ..schemas import GeneratedContentListResponse, GeneratedContentOut, UpdateGeneratedContentRequest
from repositories.generated_content_repo import GeneratedContentRepository

router = APIRouter(prefix="/api", tags=["generated-content"])


@router.get("/generated-content", response_model=GeneratedContentListResponse)
async def list_generated_content(
    platform: Optional[str] = None,
    status: Optional[str] = None,
    repo: GeneratedContentRepository = Depends(get_content_repo),
) -> Dict[str, Any]:
    items = repo.list_content()
    if platform:
        items = [item for item in items if item.platform == platform]
    if status:
        items = [item for item in items if item.status == status]
    payload = [asdict(item) for item in items]
    return {"generated_content": payload, "count": len(payload)}


@router.patch("/generated-content/{content_id}", response_model=GeneratedContentOut)
async def update_generated_content(
    content_id: str,
    body: UpdateGeneratedContentRequest,
    repo: GeneratedContentRepository = Depends(get_content_repo),
) -> Dict[str, Any]:
    item = repo.update_content(content_id, title=body.title, body=body.body, status=body.status)
    if item is None:
        raise HTTPException(status_code=404, detail="Generated content not found")
    return asdict(item)
