"""
SnipStash Backend - Account Request/Response Schemas
====================================================

What:  Bodies for registration, sign-in, sign-out and session lookup.
       Email and password are optional at the schema level; the account
       service answers 400/401 for missing values itself.
"""

from typing import Optional

from pydantic import Field

from snipstash.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    email: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None


class AccountSummary(CamelModel):
    id: str
    email: str


class AccountResponse(CamelModel):
    id: str
    email: str
    name: str = ""


class RegisterResponse(CamelModel):
    message: str
    user: AccountSummary
    confirmation_pending: bool = Field(
        default=False,
        description="True when the account must confirm its email before signing in",
    )


class SignInRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    callback_url: Optional[str] = Field(
        default=None,
        description="Where to send the browser afterwards; checked against the redirect allow-list",
    )


class SignInResponse(CamelModel):
    user: AccountResponse
    redirect: str


class SessionResponse(CamelModel):
    user: Optional[AccountResponse] = None
