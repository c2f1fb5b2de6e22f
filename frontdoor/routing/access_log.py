"""
Template-driven access log.

One line per completed request, rendered from the ``access_log_template``
setting and emitted at INFO on the access logger. The template sees:

    ctx       RequestContext (method, uri, remote_addr, proto, referer,
              user_agent, identity)
    identity  signed-in user name or "-"
    start     request start as an aware datetime
    response  ResponseSnapshot (status, duration, size)
"""

import logging
import time
from datetime import datetime

from fastapi import Request
from jinja2 import Environment
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from frontdoor.core.logging_config import ACCESS_LOGGER, ROUTER_LOGGER
from frontdoor.routing.context import RequestContext, ResponseSnapshot

logger = logging.getLogger(ROUTER_LOGGER)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Renders and emits one access log line per request."""

    def __init__(self, app: ASGIApp, template: str):
        super().__init__(app)
        self.template = Environment(autoescape=False).from_string(template)
        self.access_logger = logging.getLogger(ACCESS_LOGGER)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = datetime.now().astimezone()
        t0 = time.perf_counter()

        response = await call_next(request)

        # Identity is read after the downstream app had a chance to set it
        ctx = RequestContext.from_request(request)
        snapshot = ResponseSnapshot.from_response(response, time.perf_counter() - t0)
        try:
            line = self.template.render(
                ctx=ctx,
                identity=ctx.identity,
                start=start,
                response=snapshot,
            )
        except Exception as e:
            logger.warning("Could not render access log line: %s", e)
        else:
            self.access_logger.info(line)

        return response
