import logging
from typing import Mapping, Optional

from fastapi import FastAPI
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Receive, Scope, Send
from starlette.websockets import WebSocketClose
from uvicorn.importer import import_from_string

from frontdoor.core.config import Settings, settings
from frontdoor.core.logging_config import init_application_logging
from frontdoor.routing import build_bindings, new_router, register_routes
from frontdoor.storage import ObjectStorage

logger = logging.getLogger("frontdoor.main")


async def not_found_app(scope: Scope, receive: Receive, send: Send) -> None:
    """Stand-in legacy application that has no routes at all"""
    if scope["type"] == "websocket":
        await WebSocketClose()(scope, receive, send)
        return
    response = PlainTextResponse("Not Found", status_code=404)
    await response(scope, receive, send)


def load_legacy_app(target: Optional[str]) -> ASGIApp:
    """
    Import the legacy application named by an import string.

    Args:
        target: "module:attribute" of an ASGI application, or None

    Returns:
        The imported application, or not_found_app when nothing is configured
    """
    if not target:
        logger.warning("No legacy application configured, unmatched requests will get 404")
        return not_found_app
    return import_from_string(target)


def create_app(
    app_settings: Settings,
    legacy_app: ASGIApp,
    stores: Optional[Mapping[str, ObjectStorage]] = None,
) -> FastAPI:
    """
    Build the application: the fast router in front of the legacy application.

    Args:
        app_settings: Settings read at startup
        legacy_app: ASGI application that receives every request the fast
            router does not answer
        stores: Object stores by URL prefix, overriding the ones built from settings

    Returns:
        The ASGI application to serve
    """
    bindings = build_bindings(app_settings, stores)
    app = new_router(app_settings, bindings)
    register_routes(app, app_settings, legacy_app)

    logger.info(
        "Fast router ready: storage=%s access_log=%s",
        ", ".join(f"/{b.prefix} ({b.mode.value})" for b in bindings),
        app_settings.enable_access_log,
    )
    return app


# Initialize structured logging before the router decides which loggers to install
init_application_logging(settings)

app = create_app(settings, load_legacy_app(settings.legacy_app))
