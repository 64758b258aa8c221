"""
Repository for multiple-choice quiz questions attached to concepts.
"""
import uuid
from typing import Any, Callable, ContextManager, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from db.postgres_db import get_db_session, utc_now_iso
from models.models import QuizQuestion

SessionFactory = Callable[[], ContextManager[Session]]


def _row_to_question(row: Dict[str, Any]) -> QuizQuestion:
    return QuizQuestion(
        id=str(row["id"]),
        concept_id=str(row["concept_id"]),
        question=row["question"],
        option_a=row["option_a"],
        option_b=row["option_b"],
        option_c=row["option_c"],
        option_d=row["option_d"],
        correct_answer=row["correct_answer"],
        explanation=row.get("explanation") or "",
        created_at=row.get("created_at"),
    )


class QuizzesRepository:
    """SQL-backed quiz question repository."""

    def __init__(self, session_factory: Optional[SessionFactory] = None) -> None:
        self._session = session_factory or get_db_session

    def create_quizzes_batch(self, questions: List[QuizQuestion]) -> List[QuizQuestion]:
        """Insert all questions in one transaction; any failure inserts none."""
        if not questions:
            return []
        now = utc_now_iso()
        saved: List[QuizQuestion] = []
        with self._session() as session:
            for position, question in enumerate(questions):
                question_id = str(uuid.uuid4())
                params = {
                    "id": question_id,
                    "concept_id": question.concept_id,
                    "question": question.question,
                    "option_a": question.option_a,
                    "option_b": question.option_b,
                    "option_c": question.option_c,
                    "option_d": question.option_d,
                    "correct_answer": question.correct_answer,
                    "explanation": question.explanation,
                    "position": position,
                    "created_at": now,
                }
                session.execute(
                    text("""
                        INSERT INTO quiz_question (
                            id, concept_id, question, option_a, option_b, option_c, option_d,
                            correct_answer, explanation, position, created_at
                        ) VALUES (
                            :id, :concept_id, :question, :option_a, :option_b, :option_c, :option_d,
                            :correct_answer, :explanation, :position, :created_at
                        )
                    """),
                    params,
                )
                saved.append(_row_to_question(params))
        return saved

    def list_quizzes_by_source(self, source_content_id: str) -> List[QuizQuestion]:
        """Questions of every concept extracted from the source, in concept order."""
        with self._session() as session:
            rows = session.execute(
                text("""
                    SELECT q.id, q.concept_id, q.question, q.option_a, q.option_b, q.option_c,
                           q.option_d, q.correct_answer, q.explanation, q.created_at
                    FROM quiz_question q
                    JOIN concept c ON c.id = q.concept_id
                    WHERE c.source_content_id = :source_content_id
                    ORDER BY q.created_at ASC, q.position ASC
                """),
                {"source_content_id": str(source_content_id)},
            ).mappings().fetchall()
        return [_row_to_question(dict(row)) for row in rows]

    def list_quizzes_by_concept(self, concept_id: str) -> List[QuizQuestion]:
        with self._session() as session:
            rows = session.execute(
                text("""
                    SELECT id, concept_id, question, option_a, option_b, option_c,
                           option_d, correct_answer, explanation, created_at
                    FROM quiz_question
                    WHERE concept_id = :concept_id
                    ORDER BY created_at ASC, position ASC
                """),
                {"concept_id": str(concept_id)},
            ).mappings().fetchall()
        return [_row_to_question(dict(row)) for row in rows]
