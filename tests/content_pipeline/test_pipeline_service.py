import threading

import pytest

from models.models import Concept, GeneratedContentItem, QuizQuestion, Transcript, VideoInfo, VideoMetadata
from repositories.concepts_repo import ConceptsRepository
from repositories.generated_content_repo import GeneratedContentRepository
from repositories.quizzes_repo import QuizzesRepository
from repositories.source_content_repo import SourceContentRepository
from services.content_pipeline.errors import (
    DuplicateSourceError,
    EmptyResponseError,
    NoTranscriptError,
    PersistenceError,
    PipelineCancelledError,
    ServiceError,
    VideoUnavailableError,
)
from services.content_pipeline.service import SourceContentPipeline, assemble_result

pytestmark = pytest.mark.unit

VIDEO_URL = "https://www.youtube.com/watch?v=1ZhsdckCK2c"


class FakeIngestor:
    def __init__(self, transcript="spaced repetition beats cramming", error=None):
        self.transcript = transcript
        self.error = error
        self.calls = 0

    def fetch_video_info(self, url):
        self.calls += 1
        if self.error is not None:
            raise self.error
        transcript = Transcript(text=self.transcript) if self.transcript is not None else None
        return VideoInfo(
            metadata=VideoMetadata(title="Learning How to Learn", duration_seconds=600, channel_name="Chan"),
            transcript=transcript,
        )


class FakeDerivation:
    """Scripted derivation service; failures are keyed by stage and platform."""

    def __init__(self, concept_titles=("Spacing", "Chunking", "Recall"), fail=None, on_quiz=None):
        self.concept_titles = list(concept_titles)
        self.fail = fail or {}
        self.on_quiz = on_quiz
        self.calls = {"extract_concepts": 0, "generate_quiz": 0, "generate_content": 0}

    def extract_concepts(self, transcript, source_content_id, cancel_event=None):
        self.calls["extract_concepts"] += 1
        if "concepts" in self.fail:
            raise self.fail["concepts"]
        return [Concept(title=t, description=f"{t} explained", source_content_id=source_content_id) for t in self.concept_titles]

    def generate_quiz(self, concept, cancel_event=None):
        self.calls["generate_quiz"] += 1
        if self.on_quiz is not None:
            self.on_quiz(concept)
        if concept.title in self.fail.get("quiz_for", ()):
            raise ServiceError("quiz failed", status_code=500)
        return [
            QuizQuestion(
                concept_id=concept.id,
                question=f"What is {concept.title}?",
                option_a="a",
                option_b="b",
                option_c="c",
                option_d="d",
                correct_answer="A",
            )
        ]

    def generate_content(self, platform, concepts, cancel_event=None):
        self.calls["generate_content"] += 1
        if platform in self.fail.get("platforms", ()):
            raise EmptyResponseError("no content")
        return GeneratedContentItem(
            platform=platform,
            title=f"{platform} title",
            body=f"{platform} body",
            concept_ids=[c.id for c in concepts],
        )


class BrokenQuizzesRepo(QuizzesRepository):
    def create_quizzes_batch(self, questions):
        raise RuntimeError("database is locked")


class BrokenConceptsWriter(ConceptsRepository):
    def create_concepts_batch(self, concepts):
        raise RuntimeError("database is locked")


class BrokenContentRepo(GeneratedContentRepository):
    def create_content_batch(self, items):
        raise RuntimeError("database is locked")


class RacingSourceRepo(SourceContentRepository):
    """Simulates a concurrent request inserting the same URL between dedup check and insert."""

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self.lookups = 0

    def get_source_by_url(self, url):
        self.lookups += 1
        if self.lookups == 1:
            return None
        return super().get_source_by_url(url)

    def create_source(self, type, url, title, transcript=None):
        super().create_source(type=type, url=url, title="Winner", transcript="winner transcript")
        raise DuplicateSourceError(url)


@pytest.fixture
def make_pipeline(session_factory):
    def _make(ingestor=None, derivation=None, **repo_overrides):
        repos = {
            "source_repo": SourceContentRepository(session_factory),
            "concepts_repo": ConceptsRepository(session_factory),
            "quizzes_repo": QuizzesRepository(session_factory),
            "content_repo": GeneratedContentRepository(session_factory),
        }
        repos.update(repo_overrides)
        return SourceContentPipeline(
            ingestor=ingestor or FakeIngestor(),
            derivation=derivation or FakeDerivation(),
            **repos,
        )

    return _make


def test_full_run_produces_and_persists_everything(make_pipeline, session_factory):
    pipeline = make_pipeline()
    result = pipeline.process_video(VIDEO_URL)

    assert result.source_content.type == "video"
    assert result.source_content.title == "Learning How to Learn"
    assert result.source_content.transcript == "spaced repetition beats cramming"
    assert [c.title for c in result.concepts] == ["Spacing", "Chunking", "Recall"]
    assert all(c.id and c.source_content_id == result.source_content.id for c in result.concepts)
    assert len(result.quizzes) == 3
    assert {q.concept_id for q in result.quizzes} == {c.id for c in result.concepts}
    assert [item.platform for item in result.generated_content] == ["linkedin", "twitter", "blog"]
    assert all(item.status == "draft" for item in result.generated_content)

    stored = pipeline.get_source_content_with_related(result.source_content.id)
    assert [c.id for c in stored.concepts] == [c.id for c in result.concepts]
    assert sorted(q.id for q in stored.quizzes) == sorted(q.id for q in result.quizzes)
    assert sorted(i.id for i in stored.generated_content) == sorted(i.id for i in result.generated_content)


def test_second_submission_returns_stored_result_without_new_calls(make_pipeline):
    ingestor = FakeIngestor()
    derivation = FakeDerivation()
    pipeline = make_pipeline(ingestor, derivation)

    first = pipeline.process_video(VIDEO_URL)
    calls_after_first = dict(derivation.calls)
    second = pipeline.process_video(VIDEO_URL)

    assert ingestor.calls == 1
    assert derivation.calls == calls_after_first
    assert second.source_content.id == first.source_content.id
    assert [c.id for c in second.concepts] == [c.id for c in first.concepts]
    assert len(second.quizzes) == len(first.quizzes)
    assert len(second.generated_content) == len(first.generated_content)


def test_acquisition_failure_persists_nothing(make_pipeline, session_factory):
    pipeline = make_pipeline(ingestor=FakeIngestor(error=VideoUnavailableError("Video is private or unavailable")))
    with pytest.raises(VideoUnavailableError):
        pipeline.process_video(VIDEO_URL)
    assert SourceContentRepository(session_factory).list_sources() == []


def test_missing_transcript_fails_before_persisting(make_pipeline, session_factory):
    derivation = FakeDerivation()
    pipeline = make_pipeline(ingestor=FakeIngestor(transcript=None), derivation=derivation)
    with pytest.raises(NoTranscriptError):
        pipeline.process_video(VIDEO_URL)
    assert SourceContentRepository(session_factory).list_sources() == []
    assert derivation.calls["extract_concepts"] == 0


def test_concept_failure_keeps_source_only(make_pipeline, session_factory):
    derivation = FakeDerivation(fail={"concepts": EmptyResponseError("Derivation service returned no content")})
    result = make_pipeline(derivation=derivation).process_video(VIDEO_URL)

    assert result.source_content.id
    assert result.concepts == []
    assert result.quizzes == []
    assert result.generated_content == []
    assert derivation.calls["generate_quiz"] == 0
    assert derivation.calls["generate_content"] == 0
    assert SourceContentRepository(session_factory).get_source_by_url(VIDEO_URL) is not None


def test_no_concepts_extracted_keeps_source_only(make_pipeline):
    derivation = FakeDerivation(concept_titles=())
    result = make_pipeline(derivation=derivation).process_video(VIDEO_URL)
    assert result.concepts == []
    assert derivation.calls["generate_quiz"] == 0


def test_one_platform_failure_keeps_the_others(make_pipeline):
    derivation = FakeDerivation(fail={"platforms": ("twitter",)})
    result = make_pipeline(derivation=derivation).process_video(VIDEO_URL)
    assert [item.platform for item in result.generated_content] == ["linkedin", "blog"]
    assert len(result.concepts) == 3


def test_quiz_failure_for_one_concept_keeps_the_rest(make_pipeline):
    derivation = FakeDerivation(fail={"quiz_for": ("Chunking",)})
    result = make_pipeline(derivation=derivation).process_video(VIDEO_URL)
    titles = {c.id: c.title for c in result.concepts}
    assert sorted(titles[q.concept_id] for q in result.quizzes) == ["Recall", "Spacing"]
    assert len(result.generated_content) == 3


def test_quiz_persistence_failure_yields_no_quizzes(make_pipeline, session_factory):
    pipeline = make_pipeline(quizzes_repo=BrokenQuizzesRepo(session_factory))
    result = pipeline.process_video(VIDEO_URL)
    assert len(result.concepts) == 3
    assert result.quizzes == []
    assert len(result.generated_content) == 3


def test_concept_persistence_failure_keeps_source_only(make_pipeline, session_factory):
    derivation = FakeDerivation()
    pipeline = make_pipeline(derivation=derivation, concepts_repo=BrokenConceptsWriter(session_factory))
    result = pipeline.process_video(VIDEO_URL)

    assert result.source_content.id
    assert result.concepts == []
    assert result.quizzes == []
    assert result.generated_content == []
    assert derivation.calls["extract_concepts"] == 1
    assert derivation.calls["generate_quiz"] == 0
    assert derivation.calls["generate_content"] == 0
    assert SourceContentRepository(session_factory).get_source_by_url(VIDEO_URL) is not None


def test_content_persistence_failure_keeps_concepts_and_quizzes(make_pipeline, session_factory):
    pipeline = make_pipeline(content_repo=BrokenContentRepo(session_factory))
    result = pipeline.process_video(VIDEO_URL)

    assert len(result.concepts) == 3
    assert len(result.quizzes) == 3
    assert result.generated_content == []
    stored = GeneratedContentRepository(session_factory).list_content_by_concept_ids([c.id for c in result.concepts])
    assert stored == []


def test_source_persistence_failure_is_fatal(make_pipeline, session_factory):
    class BrokenSourceRepo(SourceContentRepository):
        def create_source(self, type, url, title, transcript=None):
            raise RuntimeError("disk full")

    pipeline = make_pipeline(source_repo=BrokenSourceRepo(session_factory))
    with pytest.raises(PersistenceError) as excinfo:
        pipeline.process_video(VIDEO_URL)
    assert not isinstance(excinfo.value, DuplicateSourceError)


def test_lost_insert_race_returns_winner(make_pipeline, session_factory):
    derivation = FakeDerivation()
    source_repo = RacingSourceRepo(session_factory)
    result = make_pipeline(derivation=derivation, source_repo=source_repo).process_video(VIDEO_URL)

    assert result.source_content.title == "Winner"
    assert result.concepts == []
    assert derivation.calls["extract_concepts"] == 0
    assert len(SourceContentRepository(session_factory).list_sources()) == 1


def test_cancel_before_start_does_nothing(make_pipeline, session_factory):
    cancel = threading.Event()
    cancel.set()
    ingestor = FakeIngestor()
    with pytest.raises(PipelineCancelledError):
        make_pipeline(ingestor=ingestor).process_video(VIDEO_URL, cancel_event=cancel)
    assert ingestor.calls == 0
    assert SourceContentRepository(session_factory).list_sources() == []


def test_cancel_during_quizzes_stops_remaining_work(make_pipeline, session_factory):
    cancel = threading.Event()
    derivation = FakeDerivation(on_quiz=lambda concept: cancel.set())
    with pytest.raises(PipelineCancelledError):
        make_pipeline(derivation=derivation).process_video(VIDEO_URL, cancel_event=cancel)

    assert derivation.calls["generate_quiz"] == 1
    assert derivation.calls["generate_content"] == 0
    # Work persisted before cancellation stays.
    source = SourceContentRepository(session_factory).get_source_by_url(VIDEO_URL)
    assert source is not None
    assert len(ConceptsRepository(session_factory).list_concepts_by_source(source.id)) == 3


def test_get_source_content_with_related_missing_returns_none(make_pipeline):
    assert make_pipeline().get_source_content_with_related("missing") is None


def test_assemble_result_degrades_on_read_failures(session_factory):
    class BrokenConcepts(ConceptsRepository):
        def list_concepts_by_source(self, source_content_id):
            raise RuntimeError("boom")

    source = SourceContentRepository(session_factory).create_source(type="video", url=VIDEO_URL, title="Talk")
    result = assemble_result(
        source,
        BrokenConcepts(session_factory),
        QuizzesRepository(session_factory),
        GeneratedContentRepository(session_factory),
    )
    assert result.source_content == source
    assert result.concepts == []
    assert result.generated_content == []
