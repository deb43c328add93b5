"""
SnipStash Backend - Registration Route
======================================

What:  POST /api/register, creating an email/password account.
Who:   Called by the register form on /auth.

The account is not signed in afterwards; the page follows up with
POST /api/auth/signin using the same credentials.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.database import get_db_session
from snipstash.deps import parse_body
from snipstash.schemas.account import RegisterRequest, RegisterResponse
from snipstash.schemas.common import ErrorResponse
from snipstash.services.account_service import account_service

router = APIRouter(prefix="/api", tags=["Accounts"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    responses={
        400: {"description": "Missing fields, weak password or duplicate email", "model": ErrorResponse},
        500: {"description": "Store not configured or store failure", "model": ErrorResponse},
    },
    summary="Register a new account",
)
async def register(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> RegisterResponse:
    """
    A missing STORE_URL fails inside get_db_session and a missing STORE_KEY
    inside the service; both surface as 500 configuration_error.
    """
    payload = await parse_body(request, RegisterRequest)
    return await account_service.register(db, payload)
