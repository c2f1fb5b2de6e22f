"""Request start/completion logging on the router logger."""

import logging
import time
from http import HTTPStatus
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from frontdoor.core.logging_config import ROUTER_LOGGER
from frontdoor.routing.context import remote_address, request_uri


def status_text(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ""


def router_logging_enabled(disabled: bool, level: Optional[int]) -> bool:
    """
    Decide at startup whether the request logger is installed.

    Args:
        disabled: Router logging switched off in settings
        level: Configured router log level, None for "NONE"

    Returns:
        True when the router logger would emit records at that level
    """
    if disabled or level is None:
        return False
    return logging.getLogger(ROUTER_LOGGER).isEnabledFor(level)


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """
    Logs the start and completion of every request at a fixed level.
    """

    def __init__(self, app: ASGIApp, level: int = logging.INFO):
        super().__init__(app)
        self.level = level
        self.logger = logging.getLogger(ROUTER_LOGGER)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        uri = request_uri(request)

        self.logger.log(
            self.level,
            "Started %s %s for %s",
            request.method,
            uri,
            remote_address(request),
        )

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        self.logger.log(
            self.level,
            "Completed %s %s %d %s in %.1fms",
            request.method,
            uri,
            response.status_code,
            status_text(response.status_code),
            elapsed_ms,
        )
        return response
