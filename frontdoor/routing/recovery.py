"""
Fault recovery for the dispatch pipeline.

Any exception raised below this layer ends as a 500 response plus an ERROR
log record; nothing propagates to the server.
"""

import logging
import traceback

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from frontdoor.core.logging_config import ROUTER_LOGGER
from frontdoor.routing.context import request_uri

logger = logging.getLogger(ROUTER_LOGGER)


class RecoveryMiddleware:
    """
    Middleware that recovers from any exception and writes a 500 and a log.

    Implemented as a plain ASGI wrapper rather than BaseHTTPMiddleware so it
    can see whether the response has already started: once the status line
    is on the wire the fault is only logged.
    """

    def __init__(self, app: ASGIApp, expose_details: bool = True) -> None:
        self.app = app
        self.expose_details = expose_details

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
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            request = Request(scope)
            logger.error(
                "PANIC: %s %s: %s",
                request.method,
                request_uri(request),
                exc,
                exc_info=True,
            )
            if response_started:
                return
            response = self.panic_response(exc)
            await response(scope, receive, send)

    def panic_response(self, exc: Exception) -> Response:
        """Build the 500 response for a recovered fault"""
        if not self.expose_details:
            return PlainTextResponse("Internal Server Error", status_code=500)
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return PlainTextResponse(f"PANIC: {exc}\n{stack}", status_code=500)
