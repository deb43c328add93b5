"""
SnipStash Backend - Request Logging Middleware
==============================================

What:  One access-log line per request: method, path, status, duration,
       request id and client address.
How:   Level follows the status class: 5xx → ERROR, 4xx → WARNING,
       everything else → INFO. Health probes are not logged.

Bodies, cookies and auth headers are never logged; they carry passwords and
session tokens.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from snipstash.middleware.request_id import request_id_var

logger = logging.getLogger("snipstash.access")

UNLOGGED_PATHS = {"/health"}


def level_for_status(status: int) -> int:
    """
    Log level for a response status.

        >>> level_for_status(403) == logging.WARNING
        True
    """
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Times each request and writes one line to the `snipstash.access` logger.

    Runs inside RequestIDMiddleware (the id is already set) and outside the
    session gate, so 307 redirects from the gate are logged like any other
    response. The structured fields also go into `extra` for handlers that
    emit JSON.

    Example line:
        GET /api/snippets 200 4.2ms [1f0c2a9e] from 127.0.0.1
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in UNLOGGED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        status = response.status_code

        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
