"""
SnipStash Backend - Session Route Handlers
==========================================

What:  Sign-in, sign-out and current-session lookup under /api/auth.
How:   Sign-in opens a server-side session and hands the browser an opaque
       token in an http-only cookie. Only the token's HMAC digest is stored.

Cookie:
    name      SESSION_COOKIE_NAME (snipstash-session)
    flags     HttpOnly, SameSite=Lax, Secure when ENVIRONMENT=production
    lifetime  SESSION_MAX_AGE_DAYS, same as the stored session
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.config import settings
from snipstash.database import get_db_session
from snipstash.deps import get_session_token, parse_body
from snipstash.models.account import Account
from snipstash.schemas.account import (
    AccountResponse,
    SessionResponse,
    SignInRequest,
    SignInResponse,
)
from snipstash.schemas.common import ErrorResponse, MessageResponse
from snipstash.services.account_service import account_service
from snipstash.services.redirects import resolve_redirect

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Accounts"])


def _account_response(account: Account) -> AccountResponse:
    return AccountResponse(id=account.id, email=account.email, name=account.name or "")


def _base_url(request: Request) -> str:
    return settings.base_url or str(request.base_url)


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_max_age_days * 24 * 60 * 60,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


@router.post(
    "/signin",
    response_model=SignInResponse,
    responses={
        400: {"description": "Malformed body", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Sign in with email and password",
)
async def sign_in(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> SignInResponse:
    payload = await parse_body(request, SignInRequest)
    account, token, _ = await account_service.sign_in(db, payload)
    _set_session_cookie(response, token)

    redirect = resolve_redirect(
        payload.callback_url or "/",
        base_url=_base_url(request),
        production=settings.is_production,
    )
    return SignInResponse(user=_account_response(account), redirect=redirect)


@router.post(
    "/signout",
    response_model=MessageResponse,
    summary="Sign out and clear the session cookie",
)
async def sign_out(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await account_service.sign_out(db, token)
    logger.info("Signed out (had_session=%s)", token is not None)
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    return MessageResponse(message="Signed out")


@router.get(
    "/session",
    response_model=SessionResponse,
    summary="Current session",
    description="The signed-in account, or `{\"user\": null}`.",
)
async def current_session(
    token: Optional[str] = Depends(get_session_token),
    db: AsyncSession = Depends(get_db_session),
) -> SessionResponse:
    account = await account_service.current_account(db, token)
    if account is None:
        return SessionResponse(user=None)
    return SessionResponse(user=_account_response(account))
