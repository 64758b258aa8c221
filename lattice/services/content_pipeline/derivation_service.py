"""
Concept extraction, quiz generation and platform content generation.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Tuple

from llms.llm_env_utils import load_llm_env
from models.enums import ContentStatus, Platform
from models.models import Concept, GeneratedContentItem, QuizQuestion
from services.content_pipeline.derivation_client import DerivationClient, parse_json_reply
from services.content_pipeline.errors import MalformedDerivationJSONError
from utils.logger import get_logger

logger = get_logger(__name__)

CONCEPT_SYSTEM_PROMPT = "You are an expert educator extracting core learnable concepts from content."
QUIZ_SYSTEM_PROMPT = (
    "You are an expert educator creating effective quiz questions that test understanding "
    "and application, not just recall."
)

_VALID_ANSWERS = ("A", "B", "C", "D")

_PLATFORM_PROMPTS: Dict[str, Tuple[str, str]] = {
    Platform.LINKEDIN.value: (
        "You are a consultant writing a LinkedIn post demonstrating expertise to attract clients.",
        "Create a LinkedIn case study post using these concepts:\n\n"
        "{concepts}\n"
        "Format:\n"
        "- Hook: Start with a relatable client problem or situation\n"
        "- Body: Show how you used these concepts to solve it (tell a story)\n"
        "- Result: Share measurable outcomes or clear benefits\n"
        "- Call-to-action: Invite discussion or connections\n\n"
        "Tone: Professional, credible, approachable (not overly salesy)\n"
        "Length: 1200-1500 characters\n\n"
        "Return as JSON:\n"
        '{{"title": "...", "body": "..."}}',
    ),
    Platform.TWITTER.value: (
        "You are a consultant creating an engaging X (Twitter) thread to demonstrate expertise.",
        "Create a 5-tweet thread about these concepts:\n\n"
        "{concepts}\n"
        "Structure:\n"
        "- Tweet 1: Hook - why this matters (create curiosity)\n"
        "- Tweets 2-4: Key insights from the concepts (one insight per tweet)\n"
        "- Tweet 5: Actionable takeaway + CTA\n\n"
        "Tone: Casual but authoritative, conversational\n"
        "Length: Each tweet under 280 characters\n"
        "Use line breaks for readability\n\n"
        "Return as JSON:\n"
        '{{"title": "Thread title", "body": "1/\\n[tweet 1]\\n\\n2/\\n[tweet 2]\\n\\n..."}}',
    ),
    Platform.BLOG.value: (
        "You are a consultant writing an educational blog post to demonstrate deep expertise.",
        "Write a comprehensive blog post tutorial using these concepts:\n\n"
        "{concepts}\n"
        "Structure:\n"
        "- Introduction: Why this matters (set context, create interest)\n"
        "- Section per concept:\n"
        "  * Clear explanation\n"
        "  * How to apply it (with examples)\n"
        "  * Common mistakes to avoid\n"
        "- Conclusion: Summary + next steps for the reader\n\n"
        "Tone: Teaching, detailed, actionable (position yourself as the expert guide)\n"
        "Length: 800-1200 words\n"
        "Use Markdown formatting (headings, lists, etc.)\n\n"
        "Return as JSON:\n"
        '{{"title": "...", "body": "..."}}',
    ),
    Platform.EMAIL.value: (
        "You are a consultant creating valuable content to share with your network.",
        "Create an email newsletter about these concepts:\n\n"
        "{concepts}\n"
        "Format:\n"
        "- Subject line (compelling, specific)\n"
        "- Introduction (1-2 sentences)\n"
        "- Key insights (bullet points)\n"
        "- Conclusion with CTA\n\n"
        "Tone: Friendly, professional, valuable\n"
        "Length: 400-600 words\n\n"
        "Return as JSON:\n"
        '{{"title": "Subject line", "body": "Email body"}}',
    ),
}


class DerivationService:
    def __init__(
        self,
        client: Optional[DerivationClient] = None,
        concepts_min: Optional[int] = None,
        concepts_max: Optional[int] = None,
    ) -> None:
        cfg = load_llm_env()
        self.client = client or DerivationClient()
        self.concepts_min = concepts_min if concepts_min is not None else cfg["CONCEPTS_MIN"]
        self.concepts_max = concepts_max if concepts_max is not None else cfg["CONCEPTS_MAX"]

    def extract_concepts(
        self,
        transcript: str,
        source_content_id: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[Concept]:
        prompt = (
            f"Analyze this transcript and extract {self.concepts_min}-{self.concepts_max} "
            "concepts that someone should learn.\n\n"
            "For each concept:\n"
            "- Title: Clear, concise name (max 100 chars)\n"
            "- Description: Detailed explanation (2-4 sentences, focus on practical understanding)\n\n"
            "Focus on:\n"
            "- Fundamental ideas and mental models\n"
            "- Actionable techniques they can apply\n"
            "- Key insights worth remembering\n\n"
            "Return ONLY a JSON array, no markdown formatting, no code blocks:\n"
            '[{"title": "...", "description": "..."}]\n\n'
            f"Transcript:\n{transcript}"
        )
        parsed = self.client.ask_for_json(prompt, system=CONCEPT_SYSTEM_PROMPT, cancel_event=cancel_event)
        concepts = []
        for item in _expect_list(parsed, "concepts"):
            title = _text(item.get("title"))
            if not title:
                continue
            concepts.append(
                Concept(
                    title=title,
                    description=_text(item.get("description")),
                    source_content_id=source_content_id,
                )
            )
        return concepts

    def generate_quiz(
        self,
        concept: Concept,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[QuizQuestion]:
        prompt = (
            "Generate 2-3 quiz questions for this concept to test understanding and application.\n\n"
            "Concept:\n"
            f"Title: {concept.title}\n"
            f"Description: {concept.description}\n\n"
            "For each question:\n"
            "- Question: Tests understanding or application (avoid simple recall)\n"
            "- 4 options (A, B, C, D) - make them plausible\n"
            "- Correct answer (A, B, C, or D)\n"
            "- Explanation: Why correct answer is right and others are wrong (2-3 sentences)\n\n"
            "Return ONLY a JSON array, no markdown formatting, no code blocks:\n"
            "[\n"
            "  {\n"
            '    "question": "...",\n'
            '    "option_a": "...",\n'
            '    "option_b": "...",\n'
            '    "option_c": "...",\n'
            '    "option_d": "...",\n'
            '    "correct_answer": "B",\n'
            '    "explanation": "..."\n'
            "  }\n"
            "]"
        )
        parsed = self.client.ask_for_json(prompt, system=QUIZ_SYSTEM_PROMPT, cancel_event=cancel_event)
        questions = []
        for item in _expect_list(parsed, "quiz questions"):
            question = _normalize_question(item, concept.id)
            if question is None:
                logger.warning("Dropping malformed quiz question for concept %s", concept.id)
                continue
            questions.append(question)
        return questions

    def generate_content(
        self,
        platform: str,
        concepts: List[Concept],
        cancel_event: Optional[threading.Event] = None,
    ) -> GeneratedContentItem:
        """
        Write one piece of platform content from the given concepts.

        A reply that is not valid JSON is kept as the body, with a title built
        from the concept titles.
        """
        concepts_text = "".join(
            f"{idx}. {concept.title}: {concept.description}\n" for idx, concept in enumerate(concepts, start=1)
        )
        system, template = _PLATFORM_PROMPTS.get(platform, _PLATFORM_PROMPTS[Platform.EMAIL.value])
        raw = self.client.ask(template.format(concepts=concepts_text), system=system, cancel_event=cancel_event)

        try:
            parsed = parse_json_reply(raw)
        except MalformedDerivationJSONError:
            parsed = None
        if isinstance(parsed, dict):
            title = _text(parsed.get("title"))
            body = _text(parsed.get("body"))
        else:
            logger.info("Content reply for %s is not JSON; using raw text as body", platform)
            title = title_from_concepts(concepts)
            body = raw

        return GeneratedContentItem(
            platform=platform,
            title=title,
            body=body,
            concept_ids=[concept.id for concept in concepts if concept.id],
            status=ContentStatus.DRAFT.value,
        )


def title_from_concepts(concepts: List[Concept]) -> str:
    if not concepts:
        return "Generated Content"
    if len(concepts) == 1:
        return concepts[0].title
    return f"{concepts[0].title} and More"


def _expect_list(parsed: Any, what: str) -> List[Dict[str, Any]]:
    if not isinstance(parsed, list):
        raise MalformedDerivationJSONError(f"Expected a JSON array of {what}")
    return [item for item in parsed if isinstance(item, dict)]


def _normalize_question(item: Dict[str, Any], concept_id: Optional[str]) -> Optional[QuizQuestion]:
    question = _text(item.get("question"))
    answer = _text(item.get("correct_answer")).upper()
    options = [_text(item.get(key)) for key in ("option_a", "option_b", "option_c", "option_d")]
    if not question or answer not in _VALID_ANSWERS:
        return None
    return QuizQuestion(
        concept_id=concept_id or "",
        question=question,
        option_a=options[0],
        option_b=options[1],
        option_c=options[2],
        option_d=options[3],
        correct_answer=answer,
        explanation=_text(item.get("explanation")),
    )


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
