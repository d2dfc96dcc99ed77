"""Global exception handlers for FastAPI.

Every failure, whether raised by the service, by request validation, by
routing or by anything unexpected, is rendered through the response
envelope so clients only ever see one response shape.
"""

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from usersvc.core.envelope import EnvelopeResponse, encode_error
from usersvc.core.errors import DomainError, MalformedRequest, ServiceError, root_cause

logger = logging.getLogger(__name__)


async def service_error_handler(request: Request, exc: ServiceError) -> EnvelopeResponse:
    """Handle errors raised by the service layer."""
    if isinstance(root_cause(exc), DomainError):
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    else:
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc
        )
    return encode_error(exc)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> EnvelopeResponse:
    """Report an undecodable request body as a malformed request."""
    problems = []
    for err in exc.errors():
        loc = " -> ".join(str(part) for part in err.get("loc", []))
        problems.append(f"{loc}: {err.get('msg', 'Invalid value')}")
    message = "malformed request"
    if problems:
        message = f"{message}: {'; '.join(problems)}"
    return encode_error(MalformedRequest(message))


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> EnvelopeResponse:
    """Routing errors (unknown path, wrong method) keep their own status."""
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return EnvelopeResponse(
        status_code=exc.status_code,
        content={"meta": {"status": exc.status_code, "error": detail}},
        headers=getattr(exc, "headers", None),
    )


async def sqlalchemy_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> EnvelopeResponse:
    """Storage errors that escaped the repository (e.g. on commit)."""
    logger.error(
        "Database error on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return encode_error(exc)


async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> EnvelopeResponse:
    """Catch-all for unhandled exceptions. Logs full traceback."""
    logger.error(
        "Unhandled exception on %s %s:\n%s",
        request.method,
        request.url.path,
        traceback.format_exc(),
    )
    return encode_error(exc)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global exception handlers on the FastAPI app."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
