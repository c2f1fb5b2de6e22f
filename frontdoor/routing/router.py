"""
The fast router.

Builds the FastAPI application that sits in front of the legacy router:
request logging, fault recovery, access logging, static assets and object
storage are applied in that order, then the two fast routes (health check
and robots.txt), then everything else goes to the legacy application.
"""

import logging
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from fastapi import FastAPI
from fastapi.responses import FileResponse, Response
from starlette.middleware import Middleware
from starlette.types import ASGIApp

from frontdoor.core.config import Settings
from frontdoor.core.logging_config import parse_log_level
from frontdoor.routing.access_log import AccessLogMiddleware
from frontdoor.routing.fallback import FallbackBridge
from frontdoor.routing.logger import RequestLoggerMiddleware, router_logging_enabled
from frontdoor.routing.recovery import RecoveryMiddleware
from frontdoor.routing.static import StaticAssetMiddleware
from frontdoor.routing.storage import ServingMode, StorageBinding, StorageServingMiddleware
from frontdoor.storage import ObjectStorage, new_storage

logger = logging.getLogger(__name__)

AVATARS_PREFIX = "avatars"
REPO_AVATARS_PREFIX = "repo-avatars"


def build_bindings(
    settings: Settings,
    stores: Optional[Mapping[str, ObjectStorage]] = None,
) -> List[StorageBinding]:
    """
    Create the storage bindings in the order they are checked.

    Args:
        settings: Application settings
        stores: Object stores by prefix; missing ones are built from settings

    Returns:
        Bindings for avatars and repository avatars

    Raises:
        ValueError: If two bindings claim the same prefix
    """
    stores = stores or {}
    configured = [
        (AVATARS_PREFIX, settings.avatar_storage),
        (REPO_AVATARS_PREFIX, settings.repo_avatar_storage),
    ]

    bindings: List[StorageBinding] = []
    for prefix, storage_settings in configured:
        store = stores[prefix] if prefix in stores else new_storage(storage_settings)
        bindings.append(StorageBinding(prefix, ServingMode.from_settings(storage_settings), store))

    validate_bindings(bindings)
    return bindings


def validate_bindings(bindings: Sequence[StorageBinding]) -> None:
    """Reject binding sets in which two bindings share a prefix"""
    seen = set()
    for binding in bindings:
        if binding.prefix in seen:
            raise ValueError(f"Storage prefix {binding.prefix!r} is bound more than once")
        seen.add(binding.prefix)


def new_router(settings: Settings, bindings: Sequence[StorageBinding]) -> FastAPI:
    """
    Create the fast router with its middleware chain.

    Middleware runs in list order, outermost first.
    """
    validate_bindings(bindings)
    middleware: List[Middleware] = []

    router_level = parse_log_level(settings.router_log_level)
    if router_logging_enabled(settings.disable_router_log, router_level):
        middleware.append(Middleware(RequestLoggerMiddleware, level=router_level))

    middleware.append(Middleware(RecoveryMiddleware, expose_details=settings.expose_panic_details))

    if settings.enable_access_log:
        middleware.append(Middleware(AccessLogMiddleware, template=settings.access_log_template))

    for directory in (
        Path(settings.custom_path) / "public",
        Path(settings.static_root_path) / "public",
    ):
        middleware.append(
            Middleware(StaticAssetMiddleware, directory=directory, max_age=settings.static_cache_max_age)
        )

    for binding in bindings:
        middleware.append(Middleware(StorageServingMiddleware, binding=binding))

    return FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
        middleware=middleware,
    )


def register_routes(app: FastAPI, settings: Settings, legacy_app: ASGIApp) -> None:
    """Register the fast routes and hand everything else to the legacy application"""

    # for health check
    @app.head("/", include_in_schema=False)
    async def health_check() -> Response:
        return Response(status_code=200)

    robots_txt = Path(settings.custom_path) / "robots.txt"
    if settings.enable_robots_txt and robots_txt.is_file():

        @app.get("/robots.txt", include_in_schema=False)
        async def robots() -> FileResponse:
            return FileResponse(robots_txt, media_type="text/plain")

    elif settings.enable_robots_txt:
        logger.info("No robots.txt at %s, leaving /robots.txt to the legacy router", robots_txt)

    FallbackBridge(legacy_app).install(app)
