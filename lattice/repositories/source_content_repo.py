"""
Repository for processed source content (videos, PDFs, articles).
"""
import uuid
from typing import Any, Callable, ContextManager, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.postgres_db import get_db_session, utc_now_iso
from models.models import SourceContent
from services.content_pipeline.errors import DuplicateSourceError

SessionFactory = Callable[[], ContextManager[Session]]

_SOURCE_COLUMNS = "id, type, url, title, transcript, processed_at, created_at"


def _row_to_source(row: Dict[str, Any]) -> SourceContent:
    return SourceContent(
        id=str(row["id"]),
        type=row["type"],
        url=row["url"],
        title=row["title"],
        transcript=row.get("transcript"),
        processed_at=row.get("processed_at"),
        created_at=row.get("created_at"),
    )


class SourceContentRepository:
    """SQL-backed source_content repository."""

    def __init__(self, session_factory: Optional[SessionFactory] = None) -> None:
        self._session = session_factory or get_db_session

    def create_source(self, type: str, url: str, title: str, transcript: Optional[str] = None) -> SourceContent:
        """Insert a source row; a second row for the same url raises DuplicateSourceError."""
        now = utc_now_iso()
        source_id = str(uuid.uuid4())
        try:
            with self._session() as session:
                session.execute(
                    text("""
                        INSERT INTO source_content (id, type, url, title, transcript, processed_at, created_at)
                        VALUES (:id, :type, :url, :title, :transcript, :processed_at, :created_at)
                    """),
                    {
                        "id": source_id,
                        "type": type,
                        "url": url,
                        "title": title,
                        "transcript": transcript,
                        "processed_at": now,
                        "created_at": now,
                    },
                )
        except IntegrityError as exc:
            if self.get_source_by_url(url) is not None:
                raise DuplicateSourceError(url) from exc
            raise
        return SourceContent(
            id=source_id,
            type=type,
            url=url,
            title=title,
            transcript=transcript,
            processed_at=now,
            created_at=now,
        )

    def get_source_by_url(self, url: str) -> Optional[SourceContent]:
        with self._session() as session:
            row = session.execute(
                text(f"SELECT {_SOURCE_COLUMNS} FROM source_content WHERE url = :url"),
                {"url": url},
            ).mappings().fetchone()
        if not row:
            return None
        return _row_to_source(dict(row))

    def get_source_by_id(self, source_id: str) -> Optional[SourceContent]:
        with self._session() as session:
            row = session.execute(
                text(f"SELECT {_SOURCE_COLUMNS} FROM source_content WHERE id = :id"),
                {"id": str(source_id)},
            ).mappings().fetchone()
        if not row:
            return None
        return _row_to_source(dict(row))

    def list_sources(self) -> List[SourceContent]:
        """All sources, newest first."""
        with self._session() as session:
            rows = session.execute(
                text(f"SELECT {_SOURCE_COLUMNS} FROM source_content ORDER BY created_at DESC, id ASC"),
            ).mappings().fetchall()
        return [_row_to_source(dict(row)) for row in rows]

    def delete_source(self, source_id: str) -> bool:
        """Delete a source; its concepts are kept and detached. Returns False if absent."""
        with self._session() as session:
            session.execute(
                text("UPDATE concept SET source_content_id = NULL WHERE source_content_id = :id"),
                {"id": str(source_id)},
            )
            result = session.execute(
                text("DELETE FROM source_content WHERE id = :id"),
                {"id": str(source_id)},
            )
            return (result.rowcount or 0) > 0
