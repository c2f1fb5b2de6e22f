"""
Bridge from the fast router to the legacy application.

The fast router has two outcomes it does not answer itself: no route
matched, and a route matched the path but not the method. Both are handed
to the same legacy application with the original request, so its own 404
and 405 handling is what the client sees.
"""

import logging

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException
from starlette.types import ASGIApp, Receive, Scope, Send

from frontdoor.core.logging_config import ROUTER_LOGGER

logger = logging.getLogger(ROUTER_LOGGER)


class FallbackBridge:
    """Forwards unmatched requests to the legacy application."""

    def __init__(self, legacy_app: ASGIApp):
        self.legacy_app = legacy_app

    async def not_found(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Router default: no fast route matched"""
        await self.legacy_app(scope, receive, send)

    async def method_not_allowed(self, request: Request, exc: HTTPException) -> ASGIApp:
        """
        405 handler: a fast route matched the path but not the method.

        Exception handlers return an ASGI callable that is run with the
        original scope, receive and send; returning the legacy application
        hands it the untouched request.
        """
        logger.debug("Forwarding %s %s to the legacy router", request.method, request.url.path)
        return self.legacy_app

    def install(self, app: FastAPI) -> None:
        """Wire both unmatched outcomes of the app's router to the legacy application"""
        app.router.default = self.not_found
        app.add_exception_handler(405, self.method_not_allowed)
