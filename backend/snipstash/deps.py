"""
SnipStash Backend - Request Dependencies
========================================

What:  FastAPI dependencies for the session cookie and the current account,
       plus the JSON body reader used by write endpoints.
Who:   Injected into route handlers via Depends().
"""

import json
from typing import Optional, Type, TypeVar

import pydantic
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from snipstash.config import settings
from snipstash.database import get_db_session
from snipstash.exceptions import AuthenticationError, ValidationError
from snipstash.services.credential_store import credential_store

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


def get_session_token(request: Request) -> Optional[str]:
    """Raw session token from the cookie, if any."""
    return request.cookies.get(settings.session_cookie_name) or None


async def get_optional_account_id(
    token: Optional[str] = Depends(get_session_token),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[str]:
    """
    Account id of the current session, or None.
    Store failures propagate (500); only "no session" is None.
    """
    return await credential_store.resolve_session(db, token)


async def require_account_id(
    account_id: Optional[str] = Depends(get_optional_account_id),
) -> str:
    """Account id of the current session; 401 without one."""
    if account_id is None:
        raise AuthenticationError(message="Unauthorized")
    return account_id


async def parse_body(request: Request, model: Type[ModelT]) -> ModelT:
    """
    Read and validate a JSON body inside the handler.

    Write endpoints call this after their auth and ownership checks, so
    those answer first even when the body is garbage.

    Raises:
        ValidationError: body is not JSON, or does not fit `model`
    """
    raw = await request.body()
    try:
        data = json.loads(raw or b"{}")
    except ValueError:
        raise ValidationError(message="Invalid request body")
    if not isinstance(data, dict):
        raise ValidationError(message="Invalid request body")
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ValidationError(message="Invalid request body", context={"fields": fields})
