"""
api/middleware.py -- Request body size limit.

BodyLimitMiddleware is plain ASGI rather than @app.middleware("http") because
it has to count bytes as they arrive. A declared Content-Length over the limit
is refused before the app runs. Bodies without one (chunked uploads) are
counted message by message and refused once the running total passes the
limit.

FastAPI turns any error raised while reading the body into its own 400, so the
middleware also remembers that the limit was hit and swaps whatever response
the app produced for the 413.
"""

from __future__ import annotations

import logging

from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from api.models import ErrorResponse

logger = logging.getLogger("recordvault.api")


class _BodyTooLarge(Exception):
    pass


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


class BodyLimitMiddleware:
    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                await _error_response(400, "Invalid Content-Length header")(scope, receive, send)
                return
            if declared > self.max_bytes:
                logger.warning("Rejected body of %d bytes on %s", declared, scope.get("path", ""))
                await _error_response(413, "Request body too large")(scope, receive, send)
                return

        received = 0
        exceeded = False
        started = False

        async def receive_limited() -> Message:
            nonlocal received, exceeded
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    exceeded = True
                    raise _BodyTooLarge()
            return message

        async def send_unless_exceeded(message: Message) -> None:
            nonlocal started
            if exceeded:
                return
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        try:
            await self.app(scope, receive_limited, send_unless_exceeded)
        except _BodyTooLarge:
            if started:
                raise

        if exceeded and not started:
            logger.warning("Rejected streamed body over %d bytes on %s", self.max_bytes, scope.get("path", ""))
            await _error_response(413, "Request body too large")(scope, receive, send)
