"""
Exception handlers mapping domain errors to HTTP responses.

Every ServiceError is rendered as ``{"error": {name, code, message, details}}``
with the error's code as status.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from modelservice.core.errors import ServiceError

logger = logging.getLogger(__name__)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render a ServiceError raised anywhere below a route."""
    request_id = getattr(request.state, "request_id", None)
    level = logging.ERROR if exc.code >= 500 else logging.INFO
    logger.log(
        level,
        f"{exc.__class__.__name__}: {exc.message}",
        extra={"request_id": request_id, "event": "service_error"}
    )

    return JSONResponse(
        status_code=exc.code,
        content=jsonable_encoder({"error": exc.to_dict()}),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
