"""
Table definitions for source content, concepts, quizzes and generated content.
"""

import sqlalchemy as sa
from sqlalchemy.engine import Engine

metadata = sa.MetaData()

source_content = sa.Table(
    "source_content",
    metadata,
    sa.Column("id", sa.Text(), primary_key=True),
    sa.Column("type", sa.Text(), nullable=False),
    sa.Column("url", sa.Text(), nullable=False),
    sa.Column("title", sa.Text(), nullable=False),
    sa.Column("transcript", sa.Text(), nullable=True),
    sa.Column("processed_at", sa.Text(), nullable=True),
    sa.Column("created_at", sa.Text(), nullable=False),
    sa.CheckConstraint("type IN ('video', 'pdf', 'article')", name="ck_source_content_type"),
    sa.UniqueConstraint("url", name="uq_source_content_url"),
)

concept = sa.Table(
    "concept",
    metadata,
    sa.Column("id", sa.Text(), primary_key=True),
    sa.Column("title", sa.Text(), nullable=False),
    sa.Column("description", sa.Text(), nullable=False),
    sa.Column(
        "source_content_id",
        sa.Text(),
        sa.ForeignKey("source_content.id", ondelete="SET NULL"),
        nullable=True,
    ),
    sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    sa.Column("created_at", sa.Text(), nullable=False),
    sa.Column("updated_at", sa.Text(), nullable=False),
    sa.Index("ix_concept_source_content", "source_content_id"),
)

quiz_question = sa.Table(
    "quiz_question",
    metadata,
    sa.Column("id", sa.Text(), primary_key=True),
    sa.Column("concept_id", sa.Text(), sa.ForeignKey("concept.id", ondelete="CASCADE"), nullable=False),
    sa.Column("question", sa.Text(), nullable=False),
    sa.Column("option_a", sa.Text(), nullable=False),
    sa.Column("option_b", sa.Text(), nullable=False),
    sa.Column("option_c", sa.Text(), nullable=False),
    sa.Column("option_d", sa.Text(), nullable=False),
    sa.Column("correct_answer", sa.Text(), nullable=False),
    sa.Column("explanation", sa.Text(), nullable=True),
    sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    sa.Column("created_at", sa.Text(), nullable=False),
    sa.CheckConstraint("correct_answer IN ('A', 'B', 'C', 'D')", name="ck_quiz_question_answer"),
    sa.Index("ix_quiz_question_concept", "concept_id"),
)

generated_content = sa.Table(
    "generated_content",
    metadata,
    sa.Column("id", sa.Text(), primary_key=True),
    sa.Column("platform", sa.Text(), nullable=False),
    sa.Column("title", sa.Text(), nullable=False),
    sa.Column("body", sa.Text(), nullable=False),
    sa.Column("status", sa.Text(), nullable=False, server_default="draft"),
    sa.Column("published_at", sa.Text(), nullable=True),
    sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    sa.Column("created_at", sa.Text(), nullable=False),
    sa.Column("updated_at", sa.Text(), nullable=False),
    sa.CheckConstraint(
        "platform IN ('linkedin', 'twitter', 'blog', 'email')",
        name="ck_generated_content_platform",
    ),
    sa.CheckConstraint("status IN ('draft', 'published')", name="ck_generated_content_status"),
    sa.Index("ix_generated_content_status", "status"),
)

generated_content_concept = sa.Table(
    "generated_content_concept",
    metadata,
    sa.Column(
        "content_id",
        sa.Text(),
        sa.ForeignKey("generated_content.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    sa.Column("concept_id", sa.Text(), primary_key=True),
    sa.Column("position", sa.Integer(), nullable=False),
    sa.Index("ix_generated_content_concept_concept", "concept_id"),
)


def create_schema(engine: Engine) -> None:
    metadata.create_all(engine)
