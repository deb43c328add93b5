"""
SnipStash Backend - Snippet Service
===================================

What:  Business rules for snippet CRUD: required fields, tag normalisation,
       merge semantics of PUT/PATCH and the ownership check.
Who:   Called by the /api/snippets route handlers and the pages router.

Guard Order (writes):
    1. Session present        → else AuthenticationError (401), in the route
    2. Snippet exists         → else NotFoundError (404)
    3. Caller owns it         → else ForbiddenError (403)
    4. Body valid             → else ValidationError (400)
    5. Store write succeeds   → else StoreError (500)

    Ownership is checked before the body is even parsed, so a non-owner
    gets 403 whatever they send.

Reads are not ownership-checked: any caller who knows an id can read it,
and listing without a filter returns every account's snippets.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.exceptions import ForbiddenError, NotFoundError, StoreError, ValidationError
from snipstash.models.account import as_utc
from snipstash.models.snippet import Snippet
from snipstash.schemas.snippet import SnippetCreate, SnippetResponse, SnippetUpdate
from snipstash.services.record_store import snippet_store

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "text"


def normalize_tags(tags: Any) -> List[str]:
    """
    Tags as stored: a list passes through unchanged, a comma-separated
    string is split and trimmed with empty parts dropped, anything else
    is an empty list.

        >>> normalize_tags("a, b ,c")
        ['a', 'b', 'c']
    """
    if isinstance(tags, list):
        return tags
    if isinstance(tags, str):
        return [t.strip() for t in tags.split(",") if t.strip()]
    return []


def has_value(value: Any) -> bool:
    return isinstance(value, list) or bool(value)


def to_response(snippet: Snippet) -> SnippetResponse:
    return SnippetResponse(
        id=snippet.id,
        title=snippet.title,
        code=snippet.code,
        description=snippet.description,
        language=snippet.language,
        tags=normalize_tags(snippet.tags),
        user_id=snippet.user_id,
        created_at=as_utc(snippet.created_at),
        updated_at=as_utc(snippet.updated_at),
    )


class SnippetService:
    """Stateless; one shared instance below."""

    async def list_snippets(
        self,
        db: AsyncSession,
        owner_id: Optional[str] = None,
    ) -> List[SnippetResponse]:
        """
        Snippets owned by `owner_id`, or every snippet when it is None.

        The route resolves `owner_id` as: userId query parameter first,
        then the session account, then nothing.
        """
        snippets = await snippet_store.find_many(db, user_id=owner_id)
        logger.info("Listed %d snippets (owner=%s)", len(snippets), owner_id or "*")
        return [to_response(s) for s in snippets]

    async def get_snippet(self, db: AsyncSession, snippet_id: str) -> SnippetResponse:
        snippet = await snippet_store.find_unique(db, snippet_id)
        if snippet is None:
            raise NotFoundError(resource="snippet", resource_id=snippet_id)
        return to_response(snippet)

    async def create_snippet(
        self,
        db: AsyncSession,
        account_id: str,
        payload: SnippetCreate,
    ) -> SnippetResponse:
        """
        Create a snippet owned by `account_id`.

        Raises:
            ForbiddenError: body names a different userId than the session
            ValidationError: title or code missing (nothing is written)
            StoreError: the insert failed
        """
        if payload.user_id and payload.user_id != account_id:
            logger.warning(
                "User ID mismatch on create: session=%s body=%s", account_id, payload.user_id
            )
            raise ForbiddenError(message="User ID mismatch")

        if not payload.title or not payload.code:
            raise ValidationError(message="Missing required fields: title and code are required")

        snippet = await snippet_store.create(
            db,
            title=payload.title,
            code=payload.code,
            description=payload.description,
            language=payload.language or DEFAULT_LANGUAGE,
            tags=normalize_tags(payload.tags),
            user_id=account_id,
        )
        return to_response(snippet)

    async def get_owned(
        self,
        db: AsyncSession,
        account_id: str,
        snippet_id: str,
        action: str = "update",
    ) -> Snippet:
        """Load a snippet for a write: 404 if missing, 403 if not the caller's."""
        snippet = await snippet_store.find_unique(db, snippet_id)
        if snippet is None:
            raise NotFoundError(resource="snippet", resource_id=snippet_id)
        if snippet.user_id != account_id:
            logger.warning(
                "Forbidden: account %s tried to %s snippet %s owned by %s",
                account_id, action, snippet_id, snippet.user_id,
            )
            raise ForbiddenError(message=f"You can only {action} your own snippets")
        return snippet

    async def replace_snippet(
        self,
        db: AsyncSession,
        snippet: Snippet,
        payload: SnippetUpdate,
    ) -> SnippetResponse:
        """
        Full update (PUT). Sent fields, nulls included, override the stored
        ones; absent fields keep their stored value. Code and
        language must be non-empty after the merge.
        """
        provided = payload.provided_fields()
        merged: Dict[str, Any] = {
            "title": provided.get("title", snippet.title),
            "code": provided.get("code", snippet.code),
            "description": provided.get("description", snippet.description),
            "language": provided.get("language", snippet.language),
            "tags": normalize_tags(provided.get("tags", snippet.tags)),
        }
        if not merged["code"]:
            raise ValidationError(message="Code is required", field="code")
        if not merged["language"]:
            raise ValidationError(message="Language is required", field="language")

        return await self._write(db, snippet.id, merged)

    async def patch_snippet(
        self,
        db: AsyncSession,
        snippet: Snippet,
        payload: SnippetUpdate,
    ) -> SnippetResponse:
        """
        Partial update (PATCH). Only sent fields change.

        At least one sent field must carry a value: a body of only nulls and
        empty strings is "No fields to update". A tags list counts even when
        empty, so `{"tags": []}` clears the tags.
        """
        changes = payload.provided_fields()
        if not any(has_value(v) for v in changes.values()):
            raise ValidationError(message="No fields to update")
        if "tags" in changes:
            changes["tags"] = normalize_tags(changes["tags"])

        return await self._write(db, snippet.id, changes)

    async def delete_snippet(self, db: AsyncSession, snippet: Snippet) -> SnippetResponse:
        deleted = await snippet_store.delete(db, snippet.id)
        if deleted is None:
            raise StoreError(
                message="Failed to delete snippet from database",
                detail=f"snippet {snippet.id} was not found at delete time",
            )
        logger.info("Snippet deleted: %s", snippet.id)
        return to_response(deleted)

    async def _write(self, db: AsyncSession, snippet_id: str, changes: Dict[str, Any]) -> SnippetResponse:
        updated = await snippet_store.update(db, snippet_id, changes)
        if updated is None:
            logger.error("Update returned no row for snippet %s", snippet_id)
            raise StoreError(
                message="Failed to update snippet in database",
                detail=f"snippet {snippet_id} was not found at update time",
            )
        logger.info("Snippet updated: %s (%s)", snippet_id, ", ".join(sorted(changes)))
        return to_response(updated)


snippet_service = SnippetService()
