"""
Tests for the error envelope, request ids, and the health endpoints.
"""

import pytest
from httpx import AsyncClient
from fastapi import status
from sqlalchemy.exc import IntegrityError, OperationalError

from app.services.error_handler import ErrorHandlerService, error_responses
from app.utils.exceptions import MirrorSyncError, MissingFieldsError, NotFoundError
from tests.conftest import UserFactory


class TestErrorEnvelope:

    async def test_unknown_route(self, async_client: AsyncClient):
        response = await async_client.get("/api/nowhere")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        error = response.json()["error"]
        assert error["code"] == "NOT_FOUND"
        assert error["timestamp"].endswith("Z")
        assert error["request_id"]

    async def test_request_id_is_echoed(self, async_client: AsyncClient):
        user = await UserFactory.signup(async_client)

        response = await async_client.get(
            "/api/listings/unknown", headers={"X-Request-ID": "req-123", **user["headers"]}
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.headers["X-Request-ID"] == "req-123"
        assert response.json()["error"]["request_id"] == "req-123"

    async def test_processing_time_header(self, async_client: AsyncClient):
        response = await async_client.get("/")

        assert float(response.headers["X-Processing-Time"]) >= 0

    async def test_validation_error_details(self, async_client: AsyncClient):
        response = await async_client.post("/api/auth/login", json={"email": "x"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        fields = [detail["field"] for detail in error["details"]]
        assert any(field.endswith("email") for field in fields)
        assert any(field.endswith("password") for field in fields)


class TestErrorHandlerService:

    def test_api_exception_details(self):
        response = ErrorHandlerService.handle_api_exception(MissingFieldsError(["title"]))

        assert response.status_code == 400
        assert b'"MISSING_FIELDS"' in response.body
        assert b'"field":"title"' in response.body

    def test_not_found(self):
        response = ErrorHandlerService.handle_api_exception(NotFoundError("Property", "p1"))

        assert response.status_code == 404

    def test_mirror_sync_failure(self):
        response = ErrorHandlerService.handle_api_exception(MirrorSyncError("create", "p1"))

        assert response.status_code == 502
        assert b'"MIRROR_SYNC_FAILED"' in response.body

    def test_integrity_error_is_conflict(self):
        exc = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: properties.id"))

        assert ErrorHandlerService.handle_database_error(exc).status_code == 409

    def test_other_database_error(self):
        exc = OperationalError("SELECT", {}, Exception("connection refused"))

        response = ErrorHandlerService.handle_database_error(exc)

        assert response.status_code == 500
        assert b'"DATABASE_ERROR"' in response.body

    def test_unexpected_error_hides_details(self):
        response = ErrorHandlerService.handle_unexpected_error(RuntimeError("secret internals"))

        assert response.status_code == 500
        assert b"secret internals" not in response.body

    def test_error_responses_helper(self):
        assert set(error_responses(400, 404, 418)) == {400, 404}


class TestHealth:

    async def test_root(self, async_client: AsyncClient):
        response = await async_client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["api_prefix"] == "/api"

    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["database"] == "connected"
        assert data["document_store"] == "available"
