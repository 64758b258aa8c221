"""
Pydantic models for API request/response schemas.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


# Source content
class ProcessSourceContentRequest(BaseModel):
    """Request model for submitting a video to the pipeline."""
    type: str = "video"  # "video" or legacy "youtube"
    url: str


class SourceContentOut(BaseModel):
    id: str
    type: str
    url: str
    title: str
    transcript: Optional[str] = None
    processed_at: Optional[str] = None
    created_at: Optional[str] = None


class SourceContentListResponse(BaseModel):
    source_contents: List[SourceContentOut]
    count: int


# Concepts
class ConceptOut(BaseModel):
    id: Optional[str] = None
    title: str
    description: str
    source_content_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ConceptListResponse(BaseModel):
    concepts: List[ConceptOut]
    count: int


class CreateConceptRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    source_content_id: Optional[str] = None


class UpdateConceptRequest(BaseModel):
    """Partial concept update (all fields optional)."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)


# Quizzes
class QuizQuestionOut(BaseModel):
    id: Optional[str] = None
    concept_id: str
    question: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_answer: str
    explanation: str = ""
    created_at: Optional[str] = None


class QuizListResponse(BaseModel):
    quizzes: List[QuizQuestionOut]
    count: int


# Generated content
class GeneratedContentOut(BaseModel):
    id: Optional[str] = None
    platform: str
    title: str
    body: str
    concept_ids: List[str] = []
    status: str = "draft"
    published_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class GeneratedContentListResponse(BaseModel):
    generated_content: List[GeneratedContentOut]
    count: int


class UpdateGeneratedContentRequest(BaseModel):
    """Partial update; status moves an item between draft and published."""
    title: Optional[str] = None
    body: Optional[str] = None
    status: Optional[Literal["draft", "published"]] = None


# Pipeline
class PipelineResultOut(BaseModel):
    source_content: SourceContentOut
    concepts: List[ConceptOut] = []
    quizzes: List[QuizQuestionOut] = []
    generated_content: List[GeneratedContentOut] = []
