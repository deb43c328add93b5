"""
SnipStash Backend - Snippet SQLAlchemy Model
============================================

What:  ORM model representing the `snippets` table.
Who:   Read and written by the record store only.

Table Design:
    - id: UUID string generated by the application at creation.
    - tags: text[] on PostgreSQL, JSON elsewhere (SQLite in tests). Always
      written as a normalised list of strings.
    - user_id: the single owner. Ownership is checked by the snippet
      service, not by the database.
    - Index on user_id: the home page lists "my snippets" on every load.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column

from snipstash.database import Base
from snipstash.models.account import utcnow

TagList = JSON().with_variant(postgresql.ARRAY(Text), "postgresql")


class Snippet(Base):
    """
    A stored code snippet.

    Lifecycle:
        1. Created by an authenticated account (owner = session account)
        2. Updated (PUT/PATCH) only by its owner; updated_at restamped
        3. Deleted only by its owner
    """

    __tablename__ = "snippets"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    code: Mapped[str] = mapped_column(Text, nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    language: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="text",
        server_default=text("'text'"),
    )

    tags: Mapped[List[str]] = mapped_column(TagList, nullable=False, default=list)

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_snippets_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Snippet(id={self.id}, title='{self.title}', user_id={self.user_id})>"
