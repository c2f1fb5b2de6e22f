"""Per-request snapshots shared by the logging middlewares."""

from dataclasses import dataclass
from typing import Optional

from starlette.requests import Request
from starlette.responses import Response

ANONYMOUS = "-"


def request_uri(request: Request) -> str:
    """Path plus query string, as sent by the client"""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def remote_address(request: Request) -> str:
    """Client address as ``host:port``, or "-" when the server gives none"""
    if request.client is None:
        return ANONYMOUS
    return f"{request.client.host}:{request.client.port}"


def signed_user_name(request: Request) -> str:
    """
    Name of the signed-in user, resolved from request-scoped state.

    The application behind the router stores it on ``request.state``; an
    authentication middleware may instead populate ``scope["user"]``.

    Returns:
        The user name, or an empty string for anonymous requests
    """
    name = getattr(request.state, "signed_user_name", None)
    if isinstance(name, str) and name:
        return name

    user = request.scope.get("user")
    if user is not None and getattr(user, "is_authenticated", False):
        return str(getattr(user, "display_name", "") or "")
    return ""


@dataclass(frozen=True)
class RequestContext:
    """Immutable view of the request for log rendering."""

    method: str
    uri: str
    remote_addr: str
    proto: str
    referer: str
    user_agent: str
    identity: str = ANONYMOUS

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        return cls(
            method=request.method,
            uri=request_uri(request),
            remote_addr=remote_address(request),
            proto=f"HTTP/{request.scope.get('http_version', '1.1')}",
            referer=request.headers.get("referer", ""),
            user_agent=request.headers.get("user-agent", ""),
            identity=signed_user_name(request) or ANONYMOUS,
        )


@dataclass(frozen=True)
class ResponseSnapshot:
    """Status, timing and size of a completed response."""

    status: int
    duration: float
    size: Optional[int] = None

    @classmethod
    def from_response(cls, response: Response, duration: float) -> "ResponseSnapshot":
        # call_next hands back the first http.response.start status
        length = response.headers.get("content-length")
        return cls(
            status=response.status_code,
            duration=duration,
            size=int(length) if length and length.isdigit() else None,
        )
