"""Global exception handlers — map SDK exceptions to HTTP status codes.

The data service raises ``ServiceError`` carrying the status code the
condition maps to (404 for an unknown assessment or session and for a gated
result, 400 for an empty submission).  ``KeyError`` from a direct store
lookup is an unknown assessment id.  Handlers installed on the app turn
these into responses so route handlers stay on the happy path.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from assessment_engine.errors import ServiceError

logger = logging.getLogger(__name__)


# Internal details (session ids, config ids) stay in the server log.
_SAFE_MESSAGES: dict[int, str] = {
    400: "Invalid request",
    404: "Resource not found",
}


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Map ``ServiceError`` to its own status code.

    An error without a status code is a server fault and becomes 500.  The
    raw message is logged but never sent to the client.
    """
    status = exc.status_code or 500
    if status >= 500:
        logger.error("ServiceError [%d] at %s: %s", status, request.url, exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    logger.warning("ServiceError [%d] at %s: %s", status, request.url, exc)
    safe_detail = _SAFE_MESSAGES.get(status, "Invalid request")
    return JSONResponse(status_code=status, content={"detail": safe_detail})


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    """Map ``KeyError`` (unknown assessment id) to 404."""
    logger.warning("KeyError at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": "Resource not found"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
