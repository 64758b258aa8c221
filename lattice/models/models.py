from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class CaptionTrack:
    url: str
    encoding: str  # declared ext ("json3", "vtt", "srv3", ...) or "unknown"


@dataclass
class Transcript:
    text: str
    language: str = "en"


@dataclass
class VideoMetadata:
    title: str = ""
    duration_seconds: int = 0
    channel_name: str = ""


@dataclass
class VideoInfo:
    metadata: VideoMetadata
    transcript: Optional[Transcript] = None  # None when captions could not be acquired


@dataclass
class SourceContent:
    id: str
    type: str  # 'video' | 'pdf' | 'article'
    url: str
    title: str
    transcript: Optional[str] = None
    processed_at: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class Concept:
    title: str
    description: str
    source_content_id: Optional[str] = None
    id: Optional[str] = None  # assigned on insert
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class QuizQuestion:
    concept_id: str
    question: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_answer: str  # 'A' | 'B' | 'C' | 'D'
    explanation: str = ""
    id: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class GeneratedContentItem:
    platform: str  # 'linkedin' | 'twitter' | 'blog' | 'email'
    title: str
    body: str
    concept_ids: List[str] = field(default_factory=list)
    status: str = "draft"  # 'draft' | 'published'
    id: Optional[str] = None
    published_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class PipelineResult:
    source_content: SourceContent
    concepts: List[Concept] = field(default_factory=list)
    quizzes: List[QuizQuestion] = field(default_factory=list)
    generated_content: List[GeneratedContentItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
