"""frontdoor: fast request-dispatch layer in front of a legacy ASGI application."""

__version__ = "1.0.0"
