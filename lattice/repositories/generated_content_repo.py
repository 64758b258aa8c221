"""
Repository for generated platform content and its concept links.

The ordered concept ids of an item live in generated_content_concept, one row
per (content, concept) pair with the list position.
"""
import uuid
from collections import defaultdict
from typing import Any, Callable, ContextManager, Dict, List, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.orm import Session

from db.postgres_db import get_db_session, utc_now_iso
from models.enums import ContentStatus
from models.models import GeneratedContentItem

SessionFactory = Callable[[], ContextManager[Session]]

_CONTENT_COLUMNS = "id, platform, title, body, status, published_at, created_at, updated_at"


def _row_to_item(row: Dict[str, Any], concept_ids: List[str]) -> GeneratedContentItem:
    return GeneratedContentItem(
        id=str(row["id"]),
        platform=row["platform"],
        title=row["title"],
        body=row["body"],
        concept_ids=concept_ids,
        status=row["status"],
        published_at=row.get("published_at"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class GeneratedContentRepository:
    """SQL-backed generated content repository."""

    def __init__(self, session_factory: Optional[SessionFactory] = None) -> None:
        self._session = session_factory or get_db_session

    def create_content_batch(self, items: List[GeneratedContentItem]) -> List[GeneratedContentItem]:
        """Insert all items and their concept links in one transaction."""
        if not items:
            return []
        now = utc_now_iso()
        saved: List[GeneratedContentItem] = []
        with self._session() as session:
            for position, item in enumerate(items):
                content_id = str(uuid.uuid4())
                status = item.status or ContentStatus.DRAFT.value
                session.execute(
                    text("""
                        INSERT INTO generated_content (
                            id, platform, title, body, status, published_at, position, created_at, updated_at
                        ) VALUES (
                            :id, :platform, :title, :body, :status, :published_at, :position, :created_at, :updated_at
                        )
                    """),
                    {
                        "id": content_id,
                        "platform": item.platform,
                        "title": item.title,
                        "body": item.body,
                        "status": status,
                        "published_at": item.published_at,
                        "position": position,
                        "created_at": now,
                        "updated_at": now,
                    },
                )
                concept_ids = list(dict.fromkeys(str(cid) for cid in item.concept_ids))
                for concept_position, concept_id in enumerate(concept_ids):
                    session.execute(
                        text("""
                            INSERT INTO generated_content_concept (content_id, concept_id, position)
                            VALUES (:content_id, :concept_id, :position)
                        """),
                        {"content_id": content_id, "concept_id": concept_id, "position": concept_position},
                    )
                saved.append(
                    GeneratedContentItem(
                        id=content_id,
                        platform=item.platform,
                        title=item.title,
                        body=item.body,
                        concept_ids=concept_ids,
                        status=status,
                        published_at=item.published_at,
                        created_at=now,
                        updated_at=now,
                    )
                )
        return saved

    def list_content_by_concept_ids(self, concept_ids: List[str]) -> List[GeneratedContentItem]:
        """Items linked to at least one of the given concepts."""
        ids = [str(cid) for cid in concept_ids or []]
        if not ids:
            return []
        stmt = text(f"""
            SELECT {_CONTENT_COLUMNS} FROM generated_content
            WHERE id IN (
                SELECT content_id FROM generated_content_concept WHERE concept_id IN :concept_ids
            )
            ORDER BY created_at ASC, position ASC
        """).bindparams(bindparam("concept_ids", expanding=True))
        with self._session() as session:
            rows = [dict(row) for row in session.execute(stmt, {"concept_ids": ids}).mappings().fetchall()]
            links = self._concept_ids_for(session, [row["id"] for row in rows])
        return [_row_to_item(row, links.get(str(row["id"]), [])) for row in rows]

    def list_content(self) -> List[GeneratedContentItem]:
        with self._session() as session:
            rows = [
                dict(row)
                for row in session.execute(
                    text(f"SELECT {_CONTENT_COLUMNS} FROM generated_content ORDER BY created_at DESC, position ASC"),
                ).mappings().fetchall()
            ]
            links = self._concept_ids_for(session, [row["id"] for row in rows])
        return [_row_to_item(row, links.get(str(row["id"]), [])) for row in rows]

    def get_content(self, content_id: str) -> Optional[GeneratedContentItem]:
        with self._session() as session:
            row = session.execute(
                text(f"SELECT {_CONTENT_COLUMNS} FROM generated_content WHERE id = :id"),
                {"id": str(content_id)},
            ).mappings().fetchone()
            if not row:
                return None
            row = dict(row)
            links = self._concept_ids_for(session, [row["id"]])
        return _row_to_item(row, links.get(str(row["id"]), []))

    def update_content(
        self,
        content_id: str,
        title: Optional[str] = None,
        body: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Optional[GeneratedContentItem]:
        """
        Update editable fields. Moving to 'published' stamps published_at once;
        moving back to 'draft' clears it.
        """
        existing = self.get_content(content_id)
        if existing is None:
            return None
        now = utc_now_iso()
        updates: Dict[str, Any] = {}
        if title is not None:
            updates["title"] = title
        if body is not None:
            updates["body"] = body
        if status is not None:
            updates["status"] = status
            if status == ContentStatus.PUBLISHED.value and not existing.published_at:
                updates["published_at"] = now
            elif status == ContentStatus.DRAFT.value:
                updates["published_at"] = None
        if updates:
            updates["updated_at"] = now
            assignments = ", ".join(f"{column} = :{column}" for column in updates)
            with self._session() as session:
                session.execute(
                    text(f"UPDATE generated_content SET {assignments} WHERE id = :id"),
                    {**updates, "id": str(content_id)},
                )
        return self.get_content(content_id)

    @staticmethod
    def _concept_ids_for(session: Session, content_ids: List[str]) -> Dict[str, List[str]]:
        if not content_ids:
            return {}
        stmt = text("""
            SELECT content_id, concept_id FROM generated_content_concept
            WHERE content_id IN :content_ids
            ORDER BY content_id ASC, position ASC
        """).bindparams(bindparam("content_ids", expanding=True))
        links: Dict[str, List[str]] = defaultdict(list)
        for row in session.execute(stmt, {"content_ids": [str(cid) for cid in content_ids]}).mappings():
            links[str(row["content_id"])].append(str(row["concept_id"]))
        return dict(links)
