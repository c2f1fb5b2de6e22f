#!/usr/bin/env python3
"""Run the frontdoor application"""
import uvicorn

from frontdoor.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "frontdoor.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
