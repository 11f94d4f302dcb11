"""
tests/test_health.py -- Integration tests for the unauthenticated endpoints.

Covers:
  - GET /health: 200 with status, env, version and components
  - GET /api/hello: localized greeting, default locale and cookie override
  - SPA fallback: development notice for client routes, not-found envelope
    for unknown API paths whatever the method
"""

from __future__ import annotations

from api.main import __version__


def test_health_returns_200_with_components(api_client):
    resp = api_client.client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["env"] == "development"
    assert data["version"] == __version__
    assert data["components"] == {"app": "ok", "database": "ok"}


def test_health_no_auth_required(api_client):
    """Reachable with no session at all."""
    resp = api_client.client.get("/health", headers={})
    assert resp.status_code == 200


def test_hello_defaults_to_chinese(api_client):
    resp = api_client.client.get("/api/hello")
    assert resp.status_code == 200
    assert resp.json() == {"message": "你好，这是来自 API 的消息！"}


def test_hello_follows_locale_cookie(api_client):
    resp = api_client.client.get("/api/hello", headers={"Cookie": "i18nextLng=en"})
    assert resp.json()["message"] == "Hello, this is a message from the API!"


def test_unsupported_locale_falls_back_to_default(api_client):
    resp = api_client.client.get("/api/hello", headers={"Cookie": "i18nextLng=fr"})
    assert resp.json()["message"] == "你好，这是来自 API 的消息！"


def test_client_route_gets_dev_notice(api_client):
    """With STATIC_DIR unset, non-API GETs answer with a development notice."""
    for path in ("/", "/login", "/admin/users"):
        resp = api_client.client.get(path)
        assert resp.status_code == 200, path
        data = resp.json()
        assert data["status"] == "ok"
        assert data["env"] == "development"


def test_unknown_api_path_is_404_envelope(api_client):
    resp = api_client.client.get("/api/does-not-exist", headers={"Cookie": "i18nextLng=en"})
    assert resp.status_code == 404
    error = resp.json()["error"]
    assert error["code"] == "not_found"
    assert error["message"] == "Resource not found"


def test_unknown_api_path_with_other_method(api_client):
    """Only GET reaches the SPA catch-all; other methods still read as not found."""
    resp = api_client.client.post("/api/does-not-exist", json={}, headers={"Cookie": "i18nextLng=en"})
    assert resp.status_code == 405
    error = resp.json()["error"]
    assert error["code"] == "http_405"
    assert error["message"] == "Resource not found"
