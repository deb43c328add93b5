"""
SnipStash Backend - Request ID Middleware
=========================================

What:  Gives every request a short correlation id and echoes it back in the
       X-Request-ID response header.
How:   Reuses a client-sent X-Request-ID when present, else the first 8 hex
       characters of a UUID4. The id lives in a ContextVar, so exception
       handlers and loggers can read it without access to the request.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns a request id before any other middleware runs.

    Flow:
        1. Take X-Request-ID from the client, or mint one
        2. Store it in request_id_var and on request.state.request_id
        3. Call the rest of the stack
        4. Echo it in the X-Request-ID response header

    Error bodies built in main.py read the same ContextVar, so the id a
    client sees in `request_id` matches the one in the server logs.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
