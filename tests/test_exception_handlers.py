"""Tests for global exception handlers.

Validates that every error type maps to its HTTP status with the shared
error body, and that rate-limit rejections carry their headers.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from pydantic import BaseModel

from vaultgate.core.errors import (
    AppError,
    AuthenticationAppError,
    LimitExceededError,
    NotFoundAppError,
    PermissionAppError,
    RateLimitedError,
    ValidationAppError,
)
from vaultgate.core.exception_handlers import general_exception_handler, setup_exception_handlers
from vaultgate.services.rate_limiter import CombinedRateLimit


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    @pytest.mark.parametrize(
        "error, status_code",
        [
            (ValidationAppError(code="bad", message="bad input"), 400),
            (AuthenticationAppError(code="invalid_api_key", message="no"), 401),
            (PermissionAppError(code="admin_required", message="no"), 403),
            (NotFoundAppError(code="user_not_found", message="no"), 404),
            (LimitExceededError(code="limit_exceeded", message="full"), 429),
            (AppError(code="generic", message="generic"), 400),
        ],
    )
    def test_status_mapping(self, client, app_with_handlers, error, status_code) -> None:
        @app_with_handlers.get("/boom")
        async def boom():
            raise error

        response = client.get("/boom")

        assert response.status_code == status_code
        data = response.json()
        assert data["error"]["code"] == error.code
        assert data["error"]["message"] == error.message
        assert "request_id" in data["error"]

    def test_limit_exceeded_includes_details(self, client, app_with_handlers) -> None:
        @app_with_handlers.get("/full")
        async def full():
            raise LimitExceededError(
                code="limit_exceeded",
                message="You have reached the limit for files (10 max).",
                details={"kind": "files", "used": 10, "limit": 10},
            )

        response = client.get("/full")

        assert response.status_code == 429
        assert response.json()["error"]["details"] == {"kind": "files", "used": 10, "limit": 10}
        assert "Retry-After" not in response.headers

    def test_limit_exceeded_after_rate_limit_carries_window_headers(self, client, app_with_handlers) -> None:
        @app_with_handlers.get("/full")
        async def full(request: Request):
            request.state.rate_limit = CombinedRateLimit(
                success=True,
                limit=10,
                remaining=7,
                reset_seconds=60,
                retry_after_seconds=None,
                results=(),
            )
            raise LimitExceededError(code="limit_exceeded", message="full")

        response = client.get("/full")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert response.headers["RateLimit-Limit"] == "10"
        assert response.headers["RateLimit-Remaining"] == "0"
        assert response.headers["RateLimit-Reset"] == "60"

    def test_rate_limited_sets_headers(self, client, app_with_handlers) -> None:
        @app_with_handlers.get("/throttled")
        async def throttled():
            raise RateLimitedError(
                code="rate_limited",
                message="Too many requests. Try again later.",
                details={"retry_after": 42, "limit": 10, "remaining": 0, "reset": 42},
            )

        response = client.get("/throttled")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"
        assert response.headers["RateLimit-Limit"] == "10"
        assert response.headers["RateLimit-Remaining"] == "0"
        assert response.headers["RateLimit-Reset"] == "42"

    def test_details_omitted_when_empty(self, client, app_with_handlers) -> None:
        @app_with_handlers.get("/plain")
        async def plain():
            raise ValidationAppError(code="test", message="test")

        assert "details" not in client.get("/plain").json()["error"]


class TestRequestValidationHandler:
    def test_body_validation_returns_400(self, client, app_with_handlers) -> None:
        class Body(BaseModel):
            count: int

        @app_with_handlers.post("/items")
        async def items(body: Body):
            return body

        response = client.post("/items", json={"count": "many"})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "invalid_request"
        assert error["details"]["context"]["errors"][0]["loc"] == ["body", "count"]


class TestGeneralExceptionHandler:
    def test_unexpected_exception_returns_500(self, client, app_with_handlers) -> None:
        @app_with_handlers.get("/crash")
        async def crash():
            raise RuntimeError("database connection failed")

        response = client.get("/crash")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "internal_server_error"
        assert "database connection" not in response.text

    def test_general_exception_handler_never_leaks_stack_trace(self) -> None:
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        response = asyncio.run(general_exception_handler(request, ValueError("Test error with details")))

        response_text = bytes(response.body).decode()
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text
        assert json.loads(response_text)["error"]["code"] == "internal_server_error"


def test_multiple_handler_setups_does_not_fail() -> None:
    app = FastAPI()

    setup_exception_handlers(app)
    setup_exception_handlers(app)

    assert AppError in app.exception_handlers
    assert Exception in app.exception_handlers
