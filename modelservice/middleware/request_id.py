"""
Request ID middleware for correlation tracking.

Every request gets a correlation ID:
- Read from the X-Request-ID header when the client sends one
- Generated (UUID4) otherwise
- Stored on request.state.request_id for handlers and error logs
- Echoed back in the X-Request-ID response header
"""

import logging
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware adding a request ID to every request.

    Example:
        app.add_middleware(RequestIDMiddleware)
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)

        logger.debug(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={"request_id": request_id, "event": "request_completed"}
        )
        response.headers["X-Request-ID"] = request_id
        return response
