"""Middleware: request ID injection and access logging."""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("usersvc.access")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag every request/response with X-Request-ID and log one access line."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id
        start = time.monotonic()
        try:
            response = await call_next(request)
        except Exception:
            # The 500 body is rendered further out, past this middleware.
            self._log(request, 500, start, request_id)
            raise
        response.headers["X-Request-ID"] = request_id
        self._log(request, response.status_code, start, request_id)
        return response

    @staticmethod
    def _log(request: Request, status_code: int, start: float, request_id: str) -> None:
        logger.info(
            "%s %s %s %.1fms request_id=%s",
            request.method,
            request.url.path,
            status_code,
            (time.monotonic() - start) * 1000,
            request_id,
        )
