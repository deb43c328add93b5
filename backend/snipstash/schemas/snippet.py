"""
SnipStash Backend - Snippet Request/Response Schemas
====================================================

What:  The JSON contract of /api/snippets.
Why:   Required fields are checked by the snippet service rather than by
       Pydantic, so that a missing title or code answers 400 with the same
       body shape as every other validation error.

Tags arrive either as a list or as a comma-separated string; the service
normalises them before anything is stored.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import Field

from snipstash.schemas.common import CamelModel

TagsInput = Optional[Union[List[str], str]]


class SnippetCreate(CamelModel):
    """Body of POST /api/snippets."""
    title: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    language: Optional[str] = None
    tags: TagsInput = None
    user_id: Optional[str] = Field(
        default=None,
        description="Optional; must equal the session account when present",
    )


class SnippetUpdate(CamelModel):
    """
    Body of PUT and PATCH /api/snippets/{id}.

    Every field is optional on the wire. PUT merges over the stored record
    and then requires code and language; PATCH requires at least one field.
    """
    title: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    language: Optional[str] = None
    tags: TagsInput = None

    def provided_fields(self) -> dict:
        """
        Fields the client actually sent, explicit nulls included.

        An absent key keeps the stored value; `"description": null` clears
        it, and a null code or language fails the PUT checks.
        """
        return {name: getattr(self, name) for name in self.model_fields_set}


class SnippetResponse(CamelModel):
    """A stored snippet as returned by every snippet endpoint."""
    id: str = Field(description="Snippet identifier (UUID string)")
    title: str
    code: str
    description: Optional[str] = None
    language: str = Field(description="Free-text language tag, 'text' by default")
    tags: List[str] = Field(default_factory=list)
    user_id: str = Field(description="Owner account id")
    created_at: datetime
    updated_at: datetime
