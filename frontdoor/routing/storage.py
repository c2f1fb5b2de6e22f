"""
Serving object-storage-backed files (avatars, repository avatars).

A StorageServingMiddleware owns one path prefix. GET and HEAD requests under
that prefix are answered from the bound object store, either by streaming
the bytes through this service or by redirecting the client to a signed URL
on the store. Everything else passes through untouched.
"""

import logging
import mimetypes
import posixpath
from contextlib import closing
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Iterator, Optional

from fastapi import Request
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import PlainTextResponse, RedirectResponse, Response, StreamingResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from frontdoor.core.config import StorageSettings
from frontdoor.storage.base import ObjectStorage

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 64 * 1024


class ObjectStreamResponse(StreamingResponse):
    """Streams an object body and closes the store stream however the response ends."""

    def __init__(self, stream: BinaryIO, content: Iterator[bytes], media_type: str):
        super().__init__(content, media_type=media_type)
        self.stream = stream

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            # The body iterator may never have started, e.g. on disconnect
            self.stream.close()


class ServingMode(str, Enum):
    """How bytes reach the client."""

    DIRECT_PROXY = "direct_proxy"
    REDIRECT_TO_SIGNED_URL = "redirect_to_signed_url"

    @classmethod
    def from_settings(cls, storage_settings: StorageSettings) -> "ServingMode":
        if storage_settings.serve_direct:
            return cls.REDIRECT_TO_SIGNED_URL
        return cls.DIRECT_PROXY


@dataclass(frozen=True)
class StorageBinding:
    """A URL path prefix served from an object store."""

    prefix: str
    mode: ServingMode
    store: ObjectStorage

    def __post_init__(self) -> None:
        if not self.prefix or self.prefix != self.prefix.strip("/"):
            raise ValueError(f"Storage prefix must be a bare path segment, got {self.prefix!r}")

    def key_for(self, path: str) -> Optional[str]:
        """
        Object key for a request path.

        Returns:
            The key (possibly empty), or None if the path is not under the prefix
        """
        base = "/" + self.prefix
        if path != base and not path.startswith(base + "/"):
            return None
        return path[len(base):].lstrip("/")


class StorageServingMiddleware(BaseHTTPMiddleware):
    """Answers GET/HEAD requests under a binding's prefix from its store."""

    def __init__(self, app: ASGIApp, binding: StorageBinding, chunk_size: int = COPY_CHUNK_SIZE):
        super().__init__(app)
        self.binding = binding
        self.chunk_size = chunk_size
        # The serving mode is fixed for the lifetime of the middleware
        if binding.mode is ServingMode.REDIRECT_TO_SIGNED_URL:
            self.serve = self.redirect
        else:
            self.serve = self.proxy

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method not in ("GET", "HEAD"):
            return await call_next(request)

        key = self.binding.key_for(request.url.path)
        if key is None:
            return await call_next(request)

        if not key:
            logger.warning("Unable to find %s %s", self.binding.prefix, key)
            return PlainTextResponse("file not found", status_code=404)

        return await self.serve(request, key)

    async def redirect(self, request: Request, key: str) -> Response:
        """Send the client to a signed URL for the object"""
        prefix = self.binding.prefix
        try:
            url = await run_in_threadpool(self.binding.store.url, key, posixpath.basename(key))
        except FileNotFoundError:
            logger.warning("Unable to find %s %s", prefix, key)
            return PlainTextResponse("file not found", status_code=404)
        except Exception as e:
            logger.error("Error whilst getting URL for %s %s. Error: %s", prefix, key, e)
            return PlainTextResponse(f"Error whilst getting URL for {prefix} {key}", status_code=500)

        return RedirectResponse(url, status_code=301)

    async def proxy(self, request: Request, key: str) -> Response:
        """Stream the object through this service"""
        prefix = self.binding.prefix
        try:
            stream = await run_in_threadpool(self.binding.store.open, key)
        except FileNotFoundError:
            logger.warning("Unable to find %s %s", prefix, key)
            return PlainTextResponse("file not found", status_code=404)
        except Exception as e:
            logger.error("Error whilst opening %s %s. Error: %s", prefix, key, e)
            return PlainTextResponse(f"Error whilst opening {prefix} {key}", status_code=500)

        media_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
        if request.method == "HEAD":
            stream.close()
            response = Response(media_type=media_type)
            # The object length is unknown here; an empty body must not claim 0
            del response.headers["content-length"]
            return response

        return ObjectStreamResponse(stream, self.copy(stream, key), media_type)

    def copy(self, stream: BinaryIO, key: str) -> Iterator[bytes]:
        """
        Yield the object in chunks, closing the stream however iteration ends.

        The status line is already sent when this runs, so a read failure is
        logged and re-raised to abandon the response instead of ending it.
        """
        with closing(stream):
            try:
                while True:
                    chunk = stream.read(self.chunk_size)
                    if not chunk:
                        break
                    yield chunk
            except Exception as e:
                logger.error("Error whilst rendering %s %s. Error: %s", self.binding.prefix, key, e)
                raise
