"""
SnipStash Backend - Snippet Route Handlers
==========================================

What:  CRUD over /api/snippets.
How:   Handlers stay thin: resolve the session, call SnippetService, return
       the record. Errors travel as exceptions to the global handlers.
Who:   Called by the home and snippet pages, and by any JSON client.

Write endpoints read their JSON body with parse_body() after the session
and ownership checks, so 401/404/403 win over a malformed body.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.database import get_db_session, session_scope
from snipstash.deps import get_session_token, parse_body, require_account_id
from snipstash.schemas.common import ErrorResponse
from snipstash.schemas.snippet import SnippetCreate, SnippetResponse, SnippetUpdate
from snipstash.services.credential_store import credential_store
from snipstash.services.snippet_service import snippet_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Snippets"])

WRITE_ERRORS = {
    400: {"description": "Invalid body", "model": ErrorResponse},
    401: {"description": "No session", "model": ErrorResponse},
    403: {"description": "Not the owner", "model": ErrorResponse},
    404: {"description": "Snippet not found", "model": ErrorResponse},
    500: {"description": "Store error", "model": ErrorResponse},
}


@router.get(
    "/snippets",
    response_model=List[SnippetResponse],
    summary="List snippets",
    description=(
        "Snippets of the account named by `userId`, else of the signed-in "
        "account, else every snippet. Always answers with a JSON list."
    ),
)
async def list_snippets(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    token: Optional[str] = Depends(get_session_token),
):
    """
    The one endpoint that never answers with an error object: failures are
    logged and the client gets `[]` with status 500. The store session is
    opened here rather than injected, so a misconfigured store lands in the
    same branch.
    """
    try:
        async with session_scope() as db:
            # An empty ?userId= falls through to the session account
            owner_id = user_id or await credential_store.resolve_session(db, token)
            snippets = await snippet_service.list_snippets(db, owner_id=owner_id)
    except Exception as e:
        logger.error("Failed to list snippets: %s", str(e), exc_info=True)
        return JSONResponse(status_code=500, content=[])
    return snippets


@router.post(
    "/snippets",
    response_model=SnippetResponse,
    responses={k: v for k, v in WRITE_ERRORS.items() if k != 404},
    summary="Create a snippet",
)
async def create_snippet(
    request: Request,
    account_id: str = Depends(require_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetResponse:
    """
    Create a snippet owned by the signed-in account.

    Flow:
        1. require_account_id: 401 without a live session
        2. parse_body: 400 for malformed JSON
        3. SnippetService.create_snippet: 403 on a foreign userId, 400 for
           missing title or code, otherwise insert and return the record
    """
    payload = await parse_body(request, SnippetCreate)
    return await snippet_service.create_snippet(db, account_id, payload)


@router.get(
    "/snippets/{snippet_id}",
    response_model=SnippetResponse,
    responses={404: {"description": "Snippet not found", "model": ErrorResponse}},
    summary="Get a single snippet",
)
async def get_snippet(
    snippet_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> SnippetResponse:
    """Any snippet by id, whoever owns it. 404 when it does not exist."""
    return await snippet_service.get_snippet(db, snippet_id)


@router.put(
    "/snippets/{snippet_id}",
    response_model=SnippetResponse,
    responses=WRITE_ERRORS,
    summary="Replace a snippet",
    description="Sent fields are merged over the stored snippet; code and language must remain set.",
)
async def replace_snippet(
    snippet_id: str,
    request: Request,
    account_id: str = Depends(require_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetResponse:
    snippet = await snippet_service.get_owned(db, account_id, snippet_id, action="update")
    payload = await parse_body(request, SnippetUpdate)
    return await snippet_service.replace_snippet(db, snippet, payload)


@router.patch(
    "/snippets/{snippet_id}",
    response_model=SnippetResponse,
    responses=WRITE_ERRORS,
    summary="Partially update a snippet",
)
async def patch_snippet(
    snippet_id: str,
    request: Request,
    account_id: str = Depends(require_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetResponse:
    """
    Change only the fields present in the body. Explicit nulls are sent
    through, so `{"description": null}` clears the description.
    """
    snippet = await snippet_service.get_owned(db, account_id, snippet_id, action="update")
    payload = await parse_body(request, SnippetUpdate)
    return await snippet_service.patch_snippet(db, snippet, payload)


@router.delete(
    "/snippets/{snippet_id}",
    response_model=SnippetResponse,
    responses={k: v for k, v in WRITE_ERRORS.items() if k != 400},
    summary="Delete a snippet",
)
async def delete_snippet(
    snippet_id: str,
    account_id: str = Depends(require_account_id),
    db: AsyncSession = Depends(get_db_session),
) -> SnippetResponse:
    snippet = await snippet_service.get_owned(db, account_id, snippet_id, action="delete")
    return await snippet_service.delete_snippet(db, snippet)
