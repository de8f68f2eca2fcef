"""Request ID injection and request timeouts."""

from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = structlog.get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Adds a unique X-Request-ID header to every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        structlog.contextvars.clear_contextvars()
        request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)
        logger.info("request_received", method=request.method, path=request.url.path)
        response = await call_next(request)
        response.headers["x-request-id"] = request_id
        return response


class RequestTimeoutMiddleware:
    """Bounds the whole authenticate-authorize-execute chain of a request.

    On timeout the handler is cancelled, which closes its database session and
    rolls back any open transaction, and a 504 is sent if nothing was sent yet.
    """

    def __init__(self, app: ASGIApp, timeout_seconds: float = 15.0) -> None:
        self.app = app
        self._timeout = timeout_seconds

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def _send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(self.app(scope, receive, _send), timeout=self._timeout)
        except TimeoutError:
            logger.error("request_timeout", path=scope.get("path"), timeout=self._timeout)
            if response_started:
                raise
            response = JSONResponse({"detail": "Request timed out"}, status_code=504)
            await response(scope, receive, send)
