"""Request correlation middleware.

Propagates a request ID into the logging context and echoes it back in the
x-request-id response header.
"""

from __future__ import annotations

import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from contentsync.observability.logging import request_id_var


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Middleware for propagating the request ID.

    Headers:
    - x-request-id: taken from the request when present, generated otherwise
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = (
            request.headers.get("x-request-id")
            or request.headers.get("x-amzn-requestid")  # AWS ALB
            or str(uuid.uuid4())
        )

        token = request_id_var.set(request_id)
        try:
            request.state.request_id = request_id
            response = await call_next(request)
            response.headers["x-request-id"] = request_id
            return response
        finally:
            request_id_var.reset(token)
