"""Map domain exceptions onto HTTP responses"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from retail_backoffice.domain.exceptions import (
    DomainException,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def status_code_for(exc: DomainException) -> int:
    if isinstance(exc, ValidationError):
        return 422
    elif isinstance(exc, InvalidStateError):
        return 409
    elif isinstance(exc, NotFoundError):
        return 404
    elif isinstance(exc, PersistenceError):
        return 503
    return 500


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code = status_code_for(exc)
    request_id = getattr(request.state, "request_id", "unknown")

    if status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc}", extra={"request_id": request_id})
    else:
        logger.warning(f"{type(exc).__name__}: {exc}", extra={"request_id": request_id})

    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unexpected error: {exc}",
        exc_info=exc,
        extra={"request_id": getattr(request.state, "request_id", "unknown")},
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(Exception, unexpected_exception_handler)
