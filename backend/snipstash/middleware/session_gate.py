"""
SnipStash Backend - Session Gate Middleware
===========================================

What:  Redirects page requests based on whether the browser has a session.
How:   Resolves the session cookie against the credential store, then applies
       the routing policy below. API routes are never redirected; their
       handlers answer 401 themselves.
When:  After RequestIDMiddleware and RequestLoggingMiddleware, so redirects
       are logged with a request id.

Routing Policy (first match wins):
    1. Asset/internal prefixes           → pass
    2. /api/...                          → pass
    3. /landing                          → pass
    4. Signed in:  /auth                 → redirect /
                   anything else         → pass
    5. Signed out: /auth                 → pass
                   /                     → redirect /landing
                   anything else         → redirect /auth

Failure Mode:
    If resolving the session raises (store unreachable, STORE_KEY missing),
    the request is treated as signed out. Protected pages therefore send the
    browser to /auth rather than rendering without an account.
"""

import logging
from typing import Awaitable, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from snipstash.config import settings
from snipstash.database import session_scope
from snipstash.services.credential_store import credential_store

logger = logging.getLogger(__name__)

ASSET_PREFIXES = ("/static", "/favicon", "/docs", "/redoc", "/openapi.json", "/health")
API_PREFIX = "/api"
LANDING_PATH = "/landing"
LOGIN_PATH = "/auth"
HOME_PATH = "/"

SessionResolver = Callable[[str], Awaitable[Optional[str]]]


def is_public_path(path: str) -> bool:
    """Rules 1-3: paths that pass without a session lookup."""
    if path.startswith(ASSET_PREFIXES):
        return True
    if path == API_PREFIX or path.startswith(API_PREFIX + "/"):
        return True
    return path == LANDING_PATH


def gate_decision(path: str, authenticated: bool) -> Optional[str]:
    """
    Where to redirect `path`, or None to let it through.

        >>> gate_decision("/auth", authenticated=True)
        '/'
        >>> gate_decision("/snippets/42", authenticated=False)
        '/auth'
    """
    if is_public_path(path):
        return None

    if authenticated:
        if path == LOGIN_PATH:
            return HOME_PATH
        return None

    if path == LOGIN_PATH:
        return None
    if path == HOME_PATH:
        return LANDING_PATH
    return LOGIN_PATH


async def resolve_with_store(token: str) -> Optional[str]:
    """Default resolver: one short-lived store session per lookup."""
    async with session_scope() as db:
        return await credential_store.resolve_session(db, token)


class SessionGateMiddleware(BaseHTTPMiddleware):
    """
    Applies gate_decision to every request.

    The resolved account id is left on `request.state.account_id` (None when
    signed out) so page handlers do not look the session up twice.
    """

    def __init__(self, app, resolver: Optional[SessionResolver] = None, **kwargs):
        super().__init__(app, **kwargs)
        self.resolver = resolver or resolve_with_store

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        request.state.account_id = None

        if is_public_path(path):
            return await call_next(request)

        account_id = await self._resolve(request)
        request.state.account_id = account_id

        target = gate_decision(path, authenticated=account_id is not None)
        if target is not None:
            logger.info("Session gate: %s → %s (signed_in=%s)", path, target, account_id is not None)
            return RedirectResponse(url=str(request.url.replace(path=target)), status_code=307)

        return await call_next(request)

    async def _resolve(self, request: Request) -> Optional[str]:
        token = request.cookies.get(settings.session_cookie_name)
        if not token:
            return None
        try:
            return await self.resolver(token)
        except Exception as e:
            logger.warning("Session resolution failed, treating request as signed out: %s", str(e))
            return None
