"""
Integration tests for object storage serving

Requests go through the full router: middleware chain, storage bindings
and the legacy fallback.
"""

import logging

import pytest

from frontdoor.core.config import StorageSettings
from frontdoor.storage import LocalStorage
from tests.utils.factories import AVATAR_BYTES, BrokenStreamStorage, FailingStorage, MemoryStorage

pytestmark = pytest.mark.integration


class TestDirectProxy:
    """Test streaming objects through the router"""

    def test_serves_object(self, client, avatar_store, legacy_app):
        response = client.get("/avatars/avatar1.png")

        assert response.status_code == 200
        assert response.content == AVATAR_BYTES
        assert response.headers["content-type"] == "image/png"
        assert avatar_store.calls == [("open", "avatar1.png")]
        assert all(stream.closed for stream in avatar_store.opened)
        assert legacy_app.calls == []

    def test_query_string_ignored(self, client, avatar_store):
        response = client.get("/avatars/avatar1.png?size=80")

        assert response.status_code == 200
        assert avatar_store.calls == [("open", "avatar1.png")]

    def test_unknown_type_is_octet_stream(self, make_client):
        store = MemoryStorage({"5f3a9c": b"\x00\x01"})
        client = make_client(stores={"avatars": store, "repo-avatars": MemoryStorage()})

        response = client.get("/avatars/5f3a9c")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/octet-stream"

    def test_second_binding(self, client, repo_avatar_store, avatar_store):
        response = client.get("/repo-avatars/1-abc.png")

        assert response.status_code == 200
        assert response.content == b"repo avatar"
        assert avatar_store.calls == []

    def test_head_sends_headers_only(self, client, avatar_store):
        response = client.head("/avatars/avatar1.png")

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["content-type"] == "image/png"
        # No length is better than a wrong one
        assert "content-length" not in response.headers
        assert all(stream.closed for stream in avatar_store.opened)

    def test_missing_object(self, client, caplog):
        response = client.get("/avatars/missing.png")

        assert response.status_code == 404
        assert response.text == "file not found"
        assert any(
            r.levelno == logging.WARNING and "Unable to find avatars missing.png" in r.getMessage()
            for r in caplog.records
        )

    @pytest.mark.parametrize("path", ["/avatars/", "/avatars"])
    def test_empty_key(self, client, avatar_store, legacy_app, path):
        response = client.get(path)

        assert response.status_code == 404
        assert avatar_store.calls == []
        assert legacy_app.calls == []

    def test_store_failure_is_500_without_detail(self, make_client, caplog):
        client = make_client(stores={"avatars": FailingStorage(), "repo-avatars": MemoryStorage()})

        response = client.get("/avatars/avatar1.png")

        assert response.status_code == 500
        assert response.text == "Error whilst opening avatars avatar1.png"
        assert FailingStorage.DETAIL not in response.text
        assert any(
            r.levelno == logging.ERROR and FailingStorage.DETAIL in r.getMessage()
            for r in caplog.records
        )

    def test_failure_while_streaming(self, make_client, caplog):
        store = BrokenStreamStorage(first_chunk=b"partial")
        client = make_client(stores={"avatars": store, "repo-avatars": MemoryStorage()})

        response = client.get("/avatars/avatar1.png")

        # Status was already sent; the response is abandoned, not completed
        assert response.status_code == 200
        assert store.streams[0].closed
        messages = [r.getMessage() for r in caplog.records]
        assert any("Error whilst rendering avatars avatar1.png" in m for m in messages)
        assert any(
            m.startswith("PANIC: GET /avatars/avatar1.png") and "connection reset by peer" in m
            for m in messages
        )


class TestRedirectToSignedURL:
    """Test redirecting clients to the store"""

    @pytest.fixture
    def redirect_client(self, make_client):
        return make_client(avatar_storage=StorageSettings(serve_direct=True))

    def test_redirects(self, redirect_client, avatar_store, legacy_app):
        response = redirect_client.get("/avatars/avatar1.png", follow_redirects=False)

        assert response.status_code == 301
        assert response.headers["location"] == "https://cdn/avatar1.png"
        assert avatar_store.calls == [("url", "avatar1.png")]
        assert avatar_store.opened == []
        assert legacy_app.calls == []

    def test_missing_object(self, redirect_client):
        response = redirect_client.get("/avatars/missing.png", follow_redirects=False)

        assert response.status_code == 404
        assert "location" not in response.headers

    def test_other_binding_still_proxies(self, redirect_client):
        response = redirect_client.get("/repo-avatars/1-abc.png", follow_redirects=False)

        assert response.status_code == 200
        assert response.content == b"repo avatar"

    def test_store_failure(self, make_client):
        client = make_client(
            stores={"avatars": FailingStorage(), "repo-avatars": MemoryStorage()},
            avatar_storage=StorageSettings(serve_direct=True),
        )

        response = client.get("/avatars/avatar1.png", follow_redirects=False)

        assert response.status_code == 500
        assert response.text == "Error whilst getting URL for avatars avatar1.png"
        assert FailingStorage.DETAIL not in response.text

    def test_local_store_cannot_redirect(self, make_client, tmp_path):
        (tmp_path / "avatar1.png").write_bytes(b"x")
        client = make_client(
            stores={"avatars": LocalStorage(tmp_path), "repo-avatars": MemoryStorage()},
            avatar_storage=StorageSettings(serve_direct=True),
        )

        response = client.get("/avatars/avatar1.png", follow_redirects=False)

        assert response.status_code == 500


class TestPassThrough:
    """Test requests the storage layer does not own"""

    @pytest.mark.parametrize("method", ["post", "put", "delete"])
    def test_other_methods_reach_legacy(self, client, avatar_store, legacy_app, method):
        response = getattr(client, method)("/avatars/avatar1.png")

        assert response.status_code == 404
        assert response.text == "legacy not found"
        assert avatar_store.calls == []
        assert legacy_app.calls == [(method.upper(), "/avatars/avatar1.png")]

    @pytest.mark.parametrize("path", ["/avatarsfoo/avatar1.png", "/user/avatars/avatar1.png"])
    def test_other_paths_reach_legacy(self, client, avatar_store, legacy_app, path):
        response = client.get(path)

        assert response.text == "legacy not found"
        assert avatar_store.calls == []
        assert legacy_app.calls == [("GET", path)]
