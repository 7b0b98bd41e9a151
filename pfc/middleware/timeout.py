"""Per-request deadline — abandon slow requests instead of letting them pile up."""
from __future__ import annotations

import asyncio
import logging

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RequestTimeoutMiddleware:
    """Cancel the downstream app after ``timeout`` seconds and answer 504.

    Plain ASGI (not BaseHTTPMiddleware) so the cancellation reaches the
    handler task itself, including any in-flight store call. Nothing is
    retried. If the response already started, the connection is just
    dropped.
    """

    def __init__(self, app: ASGIApp, timeout: float = 15.0):
        self.app = app
        self.timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(self.app(scope, receive, send_wrapper), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Request exceeded %.1fs deadline: %s %s",
                self.timeout, scope.get("method"), scope.get("path"),
            )
            if response_started:
                return
            response = JSONResponse(status_code=504, content={
                "error": "timeout",
                "message": "The request took too long and was abandoned.",
            })
            await response(scope, receive, send)
