"""
SnipStash Backend - Record Store
================================

What:  Typed CRUD over the `snippets` table with exact-match filters.
How:   Each operation is one round trip plus a commit; no retries, no
       locking. Concurrent updates to one snippet are last-write-wins.
Who:   Called by the snippet service only.

Every driver failure is re-raised as StoreError(detail=<raw message>);
"no such row" is a None return, never an exception.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.exceptions import StoreError
from snipstash.models.account import utcnow
from snipstash.models.snippet import Snippet

logger = logging.getLogger(__name__)

# Columns a caller may change through update()
MUTABLE_FIELDS = ("title", "code", "description", "language", "tags")


class SnippetStore:
    """
    CRUD over the `snippets` table.

    Every method takes the caller's AsyncSession and commits its own write,
    so a returned Snippet is already durable. Methods never check ownership;
    that is the snippet service's job.

    Query Patterns:
        - find_many(user_id):  WHERE user_id = :id ORDER BY created_at DESC
                               (idx_snippets_user_id)
        - find_unique(id):     primary key lookup
    """

    async def find_many(self, db: AsyncSession, user_id: Optional[str] = None) -> List[Snippet]:
        """All snippets, newest first; only `user_id`'s when given."""
        query = select(Snippet)
        if user_id:
            query = query.where(Snippet.user_id == user_id)
        query = query.order_by(desc(Snippet.created_at))
        try:
            result = await db.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error fetching snippets: %s", str(e))
            raise StoreError(message="Could not retrieve snippets", detail=str(e))

    async def find_unique(self, db: AsyncSession, snippet_id: str) -> Optional[Snippet]:
        try:
            result = await db.execute(select(Snippet).where(Snippet.id == snippet_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Error fetching snippet %s: %s", snippet_id, str(e))
            raise StoreError(message="Could not retrieve the snippet", detail=str(e))

    async def create(
        self,
        db: AsyncSession,
        *,
        title: str,
        code: str,
        user_id: str,
        description: Optional[str] = None,
        language: str = "text",
        tags: Optional[List[str]] = None,
    ) -> Snippet:
        """Insert a snippet with a fresh id and matching created/updated stamps."""
        now = utcnow()
        snippet = Snippet(
            id=str(uuid.uuid4()),
            title=title,
            code=code,
            description=description,
            language=language,
            tags=list(tags or []),
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )
        try:
            db.add(snippet)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to create snippet: %s", str(e))
            raise StoreError(message="Unable to create snippet. Please try again later.", detail=str(e))

        logger.info("Snippet created: %s (owner=%s)", snippet.id, user_id)
        return snippet

    async def update(
        self,
        db: AsyncSession,
        snippet_id: str,
        changes: Dict[str, Any],
    ) -> Optional[Snippet]:
        """
        Apply `changes` and restamp updated_at.

        Returns None when the row no longer exists. Keys outside
        MUTABLE_FIELDS are ignored so id, owner and created_at never move.
        """
        try:
            snippet = await db.get(Snippet, snippet_id)
            if snippet is None:
                return None
            for field, value in changes.items():
                if field in MUTABLE_FIELDS:
                    setattr(snippet, field, value)
            snippet.updated_at = utcnow()
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to update snippet %s: %s", snippet_id, str(e))
            raise StoreError(message="Failed to update snippet in database", detail=str(e))
        return snippet

    async def delete(self, db: AsyncSession, snippet_id: str) -> Optional[Snippet]:
        """Delete and return the last-known row, or None if it was already gone."""
        try:
            snippet = await db.get(Snippet, snippet_id)
            if snippet is None:
                return None
            await db.delete(snippet)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to delete snippet %s: %s", snippet_id, str(e))
            raise StoreError(message="Failed to delete snippet from database", detail=str(e))
        return snippet


snippet_store = SnippetStore()
