"""Static asset serving ahead of the application routes."""

from pathlib import Path
from typing import Union

from fastapi import Request
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import PlainTextResponse, Response
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp


class StaticAssetMiddleware(BaseHTTPMiddleware):
    """
    Serves files from a directory when the request path names one.

    Only GET and HEAD are answered; misses (including a missing directory)
    fall through to the next layer without touching the response.
    """

    def __init__(self, app: ASGIApp, directory: Union[str, Path], max_age: int):
        super().__init__(app)
        self.files = StaticFiles(directory=directory, check_dir=False)
        self.cache_control = f"public, max-age={max_age}"

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method not in ("GET", "HEAD"):
            return await call_next(request)

        try:
            response = await self.files.get_response(self.files.get_path(request.scope), request.scope)
        except HTTPException as e:
            if e.status_code in (404, 405):
                return await call_next(request)
            # e.g. 401 for an unreadable file; this runs outside the app exception handlers
            return PlainTextResponse(e.detail, status_code=e.status_code, headers=e.headers)

        response.headers["Cache-Control"] = self.cache_control
        return response
