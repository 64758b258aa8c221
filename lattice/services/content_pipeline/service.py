"""
Pipeline orchestrator: video URL -> transcript -> concepts -> quizzes -> platform content.

Only acquisition and source persistence can fail a run. Every later stage
degrades: the result keeps what was produced before the failure and the loss
is logged.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional

from models.enums import SourceType
from models.models import Concept, GeneratedContentItem, PipelineResult, QuizQuestion, SourceContent
from repositories.concepts_repo import ConceptsRepository
from repositories.generated_content_repo import GeneratedContentRepository
from repositories.quizzes_repo import QuizzesRepository
from repositories.source_content_repo import SourceContentRepository
from services.content_pipeline.constants import PIPELINE_PLATFORMS
from services.content_pipeline.derivation_service import DerivationService
from services.content_pipeline.errors import (
    DuplicateSourceError,
    NoTranscriptError,
    PersistenceError,
    PipelineCancelledError,
)
from services.content_pipeline.ingestors.youtube_ingestor import YouTubeIngestor
from utils.logger import get_logger, log_event

logger = get_logger(__name__)


class SourceContentPipeline:
    def __init__(
        self,
        ingestor: Optional[YouTubeIngestor] = None,
        derivation: Optional[DerivationService] = None,
        source_repo: Optional[SourceContentRepository] = None,
        concepts_repo: Optional[ConceptsRepository] = None,
        quizzes_repo: Optional[QuizzesRepository] = None,
        content_repo: Optional[GeneratedContentRepository] = None,
        platforms: Optional[List[str]] = None,
    ) -> None:
        self.ingestor = ingestor or YouTubeIngestor()
        self.derivation = derivation or DerivationService()
        self.source_repo = source_repo or SourceContentRepository()
        self.concepts_repo = concepts_repo or ConceptsRepository()
        self.quizzes_repo = quizzes_repo or QuizzesRepository()
        self.content_repo = content_repo or GeneratedContentRepository()
        self.platforms = list(platforms or PIPELINE_PLATFORMS)

    def process_video(self, url: str, cancel_event: Optional[threading.Event] = None) -> PipelineResult:
        """
        Run the full pipeline for one video URL.

        A URL that was already processed returns the stored result without
        calling the ingestor or the derivation service.
        """
        self._stage(url, "dedup_check", "started")
        existing = self._find_existing(url)
        if existing is not None:
            self._stage(url, "dedup_check", "hit", source_content_id=existing.id)
            return self._assemble(existing)

        self._check_cancelled(cancel_event, url, "acquire")
        self._stage(url, "acquire", "started")
        video_info = self.ingestor.fetch_video_info(url)
        if video_info.transcript is None:
            self._stage(url, "acquire", "failed", level=logging.WARNING, reason="no_transcript")
            raise NoTranscriptError("No transcript available for this video")
        self._stage(url, "acquire", "done", chars=len(video_info.transcript.text))

        self._check_cancelled(cancel_event, url, "persist_source")
        try:
            source = self.source_repo.create_source(
                type=SourceType.VIDEO.value,
                url=url,
                title=video_info.metadata.title,
                transcript=video_info.transcript.text,
            )
        except DuplicateSourceError:
            # Lost a race with a concurrent submission of the same URL.
            winner = self._find_existing(url)
            if winner is None:
                raise
            self._stage(url, "persist_source", "duplicate", source_content_id=winner.id)
            return self._assemble(winner)
        except Exception as exc:
            self._stage(url, "persist_source", "failed", level=logging.ERROR, error=str(exc))
            raise PersistenceError(f"Failed to save source content: {exc}") from exc
        self._stage(url, "persist_source", "done", source_content_id=source.id)

        result = PipelineResult(source_content=source)

        self._check_cancelled(cancel_event, url, "extract_concepts")
        concepts = self._extract_and_save_concepts(url, source, cancel_event)
        if not concepts:
            return result
        result.concepts = concepts

        self._check_cancelled(cancel_event, url, "generate_quizzes")
        result.quizzes = self._generate_and_save_quizzes(url, concepts, cancel_event)

        self._check_cancelled(cancel_event, url, "generate_content")
        result.generated_content = self._generate_and_save_content(url, concepts, cancel_event)

        self._stage(
            url,
            "complete",
            "done",
            source_content_id=source.id,
            concepts=len(result.concepts),
            quizzes=len(result.quizzes),
            generated_content=len(result.generated_content),
        )
        return result

    def get_source_content_with_related(self, source_id: str) -> Optional[PipelineResult]:
        source = self.source_repo.get_source_by_id(source_id)
        if source is None:
            return None
        return self._assemble(source)

    def _find_existing(self, url: str) -> Optional[SourceContent]:
        try:
            return self.source_repo.get_source_by_url(url)
        except Exception as exc:
            raise PersistenceError(f"Failed to check for duplicates: {exc}") from exc

    def _extract_and_save_concepts(
        self,
        url: str,
        source: SourceContent,
        cancel_event: Optional[threading.Event],
    ) -> List[Concept]:
        self._stage(url, "extract_concepts", "started")
        try:
            extracted = self.derivation.extract_concepts(source.transcript or "", source.id, cancel_event=cancel_event)
        except PipelineCancelledError:
            raise
        except Exception as exc:
            self._skip(url, "extract_concepts", exc)
            return []
        if not extracted:
            self._stage(url, "extract_concepts", "empty", level=logging.WARNING)
            return []
        try:
            saved = self.concepts_repo.create_concepts_batch(extracted)
        except Exception as exc:
            self._skip(url, "persist_concepts", exc)
            return []
        self._stage(url, "extract_concepts", "done", count=len(saved))
        return saved

    def _generate_and_save_quizzes(
        self,
        url: str,
        concepts: List[Concept],
        cancel_event: Optional[threading.Event],
    ) -> List[QuizQuestion]:
        self._stage(url, "generate_quizzes", "started")
        questions: List[QuizQuestion] = []
        for concept in concepts:
            self._check_cancelled(cancel_event, url, "generate_quizzes")
            try:
                questions.extend(self.derivation.generate_quiz(concept, cancel_event=cancel_event))
            except PipelineCancelledError:
                raise
            except Exception as exc:
                self._skip(url, "generate_quizzes", exc, concept_id=concept.id)
        if not questions:
            self._stage(url, "generate_quizzes", "empty", level=logging.WARNING)
            return []
        try:
            saved = self.quizzes_repo.create_quizzes_batch(questions)
        except Exception as exc:
            self._skip(url, "persist_quizzes", exc, dropped=len(questions))
            return []
        self._stage(url, "generate_quizzes", "done", count=len(saved))
        return saved

    def _generate_and_save_content(
        self,
        url: str,
        concepts: List[Concept],
        cancel_event: Optional[threading.Event],
    ) -> List[GeneratedContentItem]:
        self._stage(url, "generate_content", "started")
        items: List[GeneratedContentItem] = []
        for platform in self.platforms:
            self._check_cancelled(cancel_event, url, "generate_content")
            try:
                items.append(self.derivation.generate_content(platform, concepts, cancel_event=cancel_event))
            except PipelineCancelledError:
                raise
            except Exception as exc:
                self._skip(url, "generate_content", exc, platform=platform)
        if not items:
            self._stage(url, "generate_content", "empty", level=logging.WARNING)
            return []
        try:
            saved = self.content_repo.create_content_batch(items)
        except Exception as exc:
            self._skip(url, "persist_content", exc, dropped=len(items))
            return []
        self._stage(url, "generate_content", "done", count=len(saved))
        return saved

    def _assemble(self, source: SourceContent) -> PipelineResult:
        return assemble_result(source, self.concepts_repo, self.quizzes_repo, self.content_repo)

    def _check_cancelled(self, cancel_event: Optional[threading.Event], url: str, stage: str) -> None:
        if cancel_event is not None and cancel_event.is_set():
            self._stage(url, stage, "cancelled", level=logging.WARNING)
            raise PipelineCancelledError(f"Pipeline cancelled before {stage}")

    def _skip(self, url: str, stage: str, exc: Exception, **fields) -> None:
        self._stage(
            url,
            stage,
            "skipped",
            level=logging.WARNING,
            error_type=type(exc).__name__,
            error=str(exc),
            **fields,
        )

    @staticmethod
    def _stage(url: str, stage: str, status: str, level: int = logging.INFO, **fields) -> None:
        log_event(logger, "pipeline_stage", level=level, stage=stage, status=status, url=url, **fields)


def assemble_result(
    source: SourceContent,
    concepts_repo: ConceptsRepository,
    quizzes_repo: QuizzesRepository,
    content_repo: GeneratedContentRepository,
) -> PipelineResult:
    """Rebuild a result from stored rows; unreadable parts come back empty."""
    result = PipelineResult(source_content=source)
    try:
        result.concepts = concepts_repo.list_concepts_by_source(source.id)
    except Exception as exc:
        logger.warning("Failed to load concepts for source %s: %s", source.id, exc)
    try:
        result.quizzes = quizzes_repo.list_quizzes_by_source(source.id)
    except Exception as exc:
        logger.warning("Failed to load quizzes for source %s: %s", source.id, exc)
    if result.concepts:
        concept_ids = [concept.id for concept in result.concepts if concept.id]
        try:
            result.generated_content = content_repo.list_content_by_concept_ids(concept_ids)
        except Exception as exc:
            logger.warning("Failed to load generated content for source %s: %s", source.id, exc)
    return result
