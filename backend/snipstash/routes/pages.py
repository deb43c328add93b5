"""
SnipStash Backend - HTML Pages
==============================

What:  Server-rendered pages: landing, sign-in/register, home (own
       snippets + create form) and the snippet view/edit page.
How:   Jinja2 templates. Pages render initial data server-side and talk to
       the JSON API from small inline scripts for every write.
Who:   Reached only after SessionGateMiddleware has let the request
       pass; the gate leaves the account id on request.state.
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.config import settings
from snipstash.database import get_db_session
from snipstash.exceptions import NotFoundError
from snipstash.services.credential_store import credential_store
from snipstash.services.snippet_service import snippet_service

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(include_in_schema=False)


def _account_id(request: Request) -> Optional[str]:
    return getattr(request.state, "account_id", None)


@router.get("/landing", response_class=HTMLResponse)
async def landing_page(request: Request):
    return templates.TemplateResponse(
        request, "landing.html", {"signed_in": _account_id(request) is not None}
    )


@router.get("/auth", response_class=HTMLResponse)
async def auth_page(request: Request):
    return templates.TemplateResponse(
        request,
        "auth.html",
        {
            "signed_in": False,
            "callback_url": request.query_params.get("callbackUrl", "/"),
            "min_password_length": settings.min_password_length,
        },
    )


@router.get("/", response_class=HTMLResponse)
async def home_page(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
):
    account_id = _account_id(request)
    snippets = await snippet_service.list_snippets(db, owner_id=account_id)
    account = await credential_store.get_account(db, account_id) if account_id else None
    return templates.TemplateResponse(
        request,
        "home.html",
        {"signed_in": True, "account": account, "snippets": snippets},
    )


@router.get("/snippets/{snippet_id}", response_class=HTMLResponse)
async def snippet_page(
    snippet_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
):
    try:
        snippet = await snippet_service.get_snippet(db, snippet_id)
    except NotFoundError:
        logger.info("Snippet page requested for missing snippet %s", snippet_id)
        return templates.TemplateResponse(
            request, "snippet.html", {"signed_in": True, "snippet": None}, status_code=404
        )
    return templates.TemplateResponse(
        request,
        "snippet.html",
        {
            "signed_in": True,
            "snippet": snippet,
            "is_owner": snippet.user_id == _account_id(request),
        },
    )
