"""
Repository for concepts extracted from source content.
"""
import uuid
from typing import Any, Callable, ContextManager, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from db.postgres_db import get_db_session, utc_now_iso
from models.models import Concept

SessionFactory = Callable[[], ContextManager[Session]]

_CONCEPT_COLUMNS = "id, title, description, source_content_id, created_at, updated_at"


def _row_to_concept(row: Dict[str, Any]) -> Concept:
    source_id = row.get("source_content_id")
    return Concept(
        id=str(row["id"]),
        title=row["title"],
        description=row["description"],
        source_content_id=str(source_id) if source_id is not None else None,
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class ConceptsRepository:
    """SQL-backed concept repository."""

    def __init__(self, session_factory: Optional[SessionFactory] = None) -> None:
        self._session = session_factory or get_db_session

    def create_concepts_batch(self, concepts: List[Concept]) -> List[Concept]:
        """Insert all concepts in one transaction; any failure inserts none."""
        if not concepts:
            return []
        now = utc_now_iso()
        saved: List[Concept] = []
        with self._session() as session:
            for position, concept in enumerate(concepts):
                concept_id = str(uuid.uuid4())
                session.execute(
                    text("""
                        INSERT INTO concept (id, title, description, source_content_id, position, created_at, updated_at)
                        VALUES (:id, :title, :description, :source_content_id, :position, :created_at, :updated_at)
                    """),
                    {
                        "id": concept_id,
                        "title": concept.title,
                        "description": concept.description,
                        "source_content_id": concept.source_content_id,
                        "position": position,
                        "created_at": now,
                        "updated_at": now,
                    },
                )
                saved.append(
                    Concept(
                        id=concept_id,
                        title=concept.title,
                        description=concept.description,
                        source_content_id=concept.source_content_id,
                        created_at=now,
                        updated_at=now,
                    )
                )
        return saved

    def list_concepts_by_source(self, source_content_id: str) -> List[Concept]:
        with self._session() as session:
            rows = session.execute(
                text(f"""
                    SELECT {_CONCEPT_COLUMNS} FROM concept
                    WHERE source_content_id = :source_content_id
                    ORDER BY created_at ASC, position ASC
                """),
                {"source_content_id": str(source_content_id)},
            ).mappings().fetchall()
        return [_row_to_concept(dict(row)) for row in rows]

    def list_concepts(self) -> List[Concept]:
        with self._session() as session:
            rows = session.execute(
                text(f"SELECT {_CONCEPT_COLUMNS} FROM concept ORDER BY created_at DESC, position ASC"),
            ).mappings().fetchall()
        return [_row_to_concept(dict(row)) for row in rows]

    def get_concept(self, concept_id: str) -> Optional[Concept]:
        with self._session() as session:
            row = session.execute(
                text(f"SELECT {_CONCEPT_COLUMNS} FROM concept WHERE id = :id"),
                {"id": str(concept_id)},
            ).mappings().fetchone()
        if not row:
            return None
        return _row_to_concept(dict(row))

    def create_concept(
        self,
        title: str,
        description: str,
        source_content_id: Optional[str] = None,
    ) -> Concept:
        return self.create_concepts_batch(
            [Concept(title=title, description=description, source_content_id=source_content_id)]
        )[0]

    def update_concept(
        self,
        concept_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Optional[Concept]:
        """Update the given fields; returns None when the concept does not exist."""
        updates: Dict[str, Any] = {}
        if title is not None:
            updates["title"] = title
        if description is not None:
            updates["description"] = description
        if updates:
            updates["updated_at"] = utc_now_iso()
            assignments = ", ".join(f"{column} = :{column}" for column in updates)
            with self._session() as session:
                session.execute(
                    text(f"UPDATE concept SET {assignments} WHERE id = :id"),
                    {**updates, "id": str(concept_id)},
                )
        return self.get_concept(concept_id)

    def delete_concept(self, concept_id: str) -> bool:
        with self._session() as session:
            session.execute(
                text("DELETE FROM quiz_question WHERE concept_id = :id"),
                {"id": str(concept_id)},
            )
            result = session.execute(
                text("DELETE FROM concept WHERE id = :id"),
                {"id": str(concept_id)},
            )
            return (result.rowcount or 0) > 0
