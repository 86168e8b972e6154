# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request logging context middleware.

Every log record written while a request is handled carries the request
ID, method and path. The school and user are added by the require_school
and require_user dependencies once they are known.

Example:
    GET /api/v1/analytics/school-overview
    X-Request-ID: 3f9c1a2b7d4e

    Response headers include X-Request-ID: 3f9c1a2b7d4e
"""

from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from eduanalytics.utils.logging import bind_context, clear_context

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request-scoped values to the structlog context.

    The request ID is taken from the X-Request-ID header when the caller
    sends one, otherwise generated, and is echoed in the response.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        clear_context()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex[:12]
        bind_context(request_id=request_id, method=request.method, path=request.url.path)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_context()
