"""Tests for RFC 7807 error handling."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from apps.api.core.errors import (
    AuthenticationError,
    NotFoundError,
    UpstreamError,
    ValidationError,
    register_error_handlers,
)
from packages.statement_engine.store import DuplicateCheckError, StoreError


@pytest.fixture
def error_app():
    """Create a test app with error handlers registered."""
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/test/not-found")
    async def raise_not_found():
        raise NotFoundError("Batch xyz not found")

    @app.get("/test/validation")
    async def raise_validation():
        raise ValidationError("Unknown transaction field: nope")

    @app.get("/test/auth")
    async def raise_auth():
        raise AuthenticationError()

    @app.get("/test/upstream")
    async def raise_upstream():
        raise UpstreamError("Customer sheet unavailable")

    @app.get("/test/store")
    async def raise_store():
        raise StoreError("insert_batch failed: timeout")

    @app.get("/test/dedup")
    async def raise_dedup():
        raise DuplicateCheckError("Duplicate check failed: connection reset")

    @app.get("/test/unhandled")
    async def raise_unhandled():
        raise RuntimeError("Unexpected crash")

    return app


@pytest.fixture
def client(error_app):
    return TestClient(error_app, raise_server_exceptions=False)


class TestRFC7807ErrorFormat:
    """All errors should return RFC 7807 Problem Details format."""

    def test_not_found_returns_rfc7807(self, client):
        response = client.get("/test/not-found")
        assert response.status_code == 404
        body = response.json()
        assert body["type"] == "about:blank"
        assert body["title"] == "Not Found"
        assert body["status"] == 404
        assert body["detail"] == "Batch xyz not found"
        assert body["instance"] == "/test/not-found"

    def test_validation_error_returns_rfc7807(self, client):
        response = client.get("/test/validation")
        assert response.status_code == 422
        assert response.json()["title"] == "Unprocessable Entity"

    def test_auth_error_returns_rfc7807(self, client):
        response = client.get("/test/auth")
        assert response.status_code == 401
        assert response.json()["title"] == "Unauthorized"

    def test_upstream_error_is_502(self, client):
        response = client.get("/test/upstream")
        assert response.status_code == 502
        assert response.json()["detail"] == "Customer sheet unavailable"

    @pytest.mark.parametrize("path", ["/test/store", "/test/dedup"])
    def test_store_errors_are_502(self, client, path):
        response = client.get(path)
        assert response.status_code == 502
        body = response.json()
        assert body["title"] == "Bad Gateway"
        assert body["instance"] == path

    def test_unhandled_error_returns_rfc7807(self, client):
        response = client.get("/test/unhandled")
        assert response.status_code == 500
        body = response.json()
        assert body["title"] == "Internal Server Error"
        assert body["detail"] == "An unexpected error occurred"
