"""Middleware chain and fallback wiring of the fast router."""

from frontdoor.routing.access_log import AccessLogMiddleware
from frontdoor.routing.fallback import FallbackBridge
from frontdoor.routing.logger import RequestLoggerMiddleware
from frontdoor.routing.recovery import RecoveryMiddleware
from frontdoor.routing.router import build_bindings, new_router, register_routes, validate_bindings
from frontdoor.routing.static import StaticAssetMiddleware
from frontdoor.routing.storage import ServingMode, StorageBinding, StorageServingMiddleware

__all__ = [
    "AccessLogMiddleware",
    "FallbackBridge",
    "RecoveryMiddleware",
    "RequestLoggerMiddleware",
    "ServingMode",
    "StaticAssetMiddleware",
    "StorageBinding",
    "StorageServingMiddleware",
    "build_bindings",
    "new_router",
    "register_routes",
    "validate_bindings",
]
