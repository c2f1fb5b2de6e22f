"""
Global test configuration and fixtures for frontdoor

This module provides shared fixtures: settings rooted in a temporary
directory, in-memory object stores, a stand-in legacy application and
test clients for the assembled router.
"""

import logging
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from frontdoor.core.config import Settings
from frontdoor.core.logging_config import ROUTER_LOGGER
from frontdoor.main import create_app
from tests.utils.factories import AVATAR_BYTES, LegacyApp, MemoryStorage


# ============================================================================
# Settings Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def static_root(tmp_path) -> Path:
    """Static root directory; assets live under its public/ folder"""
    path = tmp_path / "static"
    (path / "public").mkdir(parents=True)
    return path


@pytest.fixture(scope="function")
def custom_path(tmp_path) -> Path:
    """Custom directory holding robots.txt and overriding public/ assets"""
    path = tmp_path / "custom"
    (path / "public").mkdir(parents=True)
    return path


@pytest.fixture(scope="function")
def make_settings(static_root, custom_path):
    """Build settings rooted in the temporary directories"""
    def _make(**overrides) -> Settings:
        values = {
            "static_root_path": str(static_root),
            "custom_path": str(custom_path),
            "json_logging": False,
        }
        values.update(overrides)
        return Settings(**values)
    return _make


# ============================================================================
# Collaborator Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def legacy_app() -> LegacyApp:
    """The application behind the fast router"""
    return LegacyApp()


@pytest.fixture(scope="function")
def avatar_store() -> MemoryStorage:
    """Avatar store holding avatar1.png"""
    return MemoryStorage({"avatar1.png": AVATAR_BYTES})


@pytest.fixture(scope="function")
def repo_avatar_store() -> MemoryStorage:
    """Repository avatar store holding one object"""
    return MemoryStorage({"1-abc.png": b"repo avatar"}, base_url="https://repo-cdn")


# ============================================================================
# Application Client Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def make_client(make_settings, legacy_app, avatar_store, repo_avatar_store, caplog):
    """Build a test client for the assembled router"""
    def _make(stores=None, **overrides) -> TestClient:
        # The request logger is only installed when its logger is enabled
        caplog.set_level(logging.INFO, logger=ROUTER_LOGGER)
        if stores is None:
            stores = {"avatars": avatar_store, "repo-avatars": repo_avatar_store}
        app = create_app(make_settings(**overrides), legacy_app, stores)
        return TestClient(app)
    return _make


@pytest.fixture(scope="function")
def client(make_client) -> TestClient:
    """Test client with default settings (proxy mode, no access log)"""
    return make_client()
