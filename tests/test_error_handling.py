"""
Tests for error handling and validation.
Tests custom exceptions, error response formatting, identity verification and middleware.
"""

import json
import pytest
from unittest.mock import Mock
from fastapi import HTTPException
from bson import ObjectId
from pymongo.errors import OperationFailure

from marketplace.services.error_handler import ErrorHandlerService
from marketplace.utils.exceptions import (
    NotFoundError,
    PropertyOwnershipError,
    RegistrationConflictError,
    StoreError,
    StoreTimeoutError,
    ValidationError
)
from marketplace.utils.identity import EmailClaimVerifier
from marketplace.utils.validators import ValidationUtils


class TestErrorHandlerService:
    """Test error handler service functionality."""

    def test_format_error_response(self):
        """Test error response formatting."""
        response = ErrorHandlerService.format_error_response(
            error_code="TEST_ERROR",
            message="Test error message",
            request_id="test123"
        )

        assert response == {"error": "Test error message", "code": "TEST_ERROR", "request_id": "test123"}

    @pytest.mark.parametrize("exception, status_code, code", [
        (ValidationError("bad input"), 400, "VALIDATION_ERROR"),
        (PropertyOwnershipError("delete"), 403, "FORBIDDEN"),
        (NotFoundError("Property", "abc"), 404, "NOT_FOUND"),
        (RegistrationConflictError("a@example.com"), 409, "REGISTRATION_CONFLICT"),
        (StoreError(), 500, "STORE_ERROR"),
        (StoreTimeoutError(), 500, "STORE_TIMEOUT"),
    ])
    def test_handle_api_exception_status_mapping(self, exception, status_code, code):
        """Test each error kind maps to its status code."""
        response = ErrorHandlerService.handle_api_exception(exception)

        assert response.status_code == status_code
        body = json.loads(response.body)
        assert body["code"] == code
        assert body["error"] == exception.detail
        assert body["request_id"]

    def test_handle_validation_error(self):
        """Test schema validation errors are malformed input."""
        mock_error = Mock()
        mock_error.errors.return_value = [
            {"loc": ("body", "price"), "msg": "Input should be a valid number", "type": "float_parsing", "input": "x"}
        ]

        response = ErrorHandlerService.handle_validation_error(mock_error)

        assert response.status_code == 400
        body = json.loads(response.body)
        assert body["code"] == "VALIDATION_ERROR"
        assert "body -> price" in body["error"]
        assert body["details"][0]["input"] == "x"

    def test_handle_store_error_hides_driver_message(self):
        """Test driver errors are reported without internal details."""
        response = ErrorHandlerService.handle_store_error(OperationFailure("auth failed on mongo:27017"))

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body["code"] == "STORE_ERROR"
        assert "27017" not in body["error"]

    def test_handle_http_exception(self):
        """Test generic HTTP exceptions keep their status."""
        response = ErrorHandlerService.handle_http_exception(HTTPException(status_code=503, detail="Database down"))

        assert response.status_code == 503
        assert json.loads(response.body)["code"] == "HTTP_503"

    def test_handle_unexpected_error(self):
        """Test unexpected errors do not leak their message."""
        response = ErrorHandlerService.handle_unexpected_error(RuntimeError("secret"))

        assert response.status_code == 500
        body = json.loads(response.body)
        assert body["code"] == "INTERNAL_SERVER_ERROR"
        assert "secret" not in body["error"]

    def test_request_id_from_request_state(self):
        """Test the middleware request id is reused."""
        request = Mock()
        request.state.request_id = "req-42"

        response = ErrorHandlerService.handle_api_exception(ValidationError("bad"), request)

        assert json.loads(response.body)["request_id"] == "req-42"


class TestValidationUtils:
    """Test boundary value validation."""

    def test_parse_object_id(self):
        """Test hex ids are parsed."""
        object_id = ObjectId()

        assert ValidationUtils.parse_object_id(str(object_id)) == object_id
        assert ValidationUtils.parse_object_id(object_id) is object_id

    def test_parse_object_id_missing(self):
        """Test missing ids are reported as required."""
        with pytest.raises(ValidationError, match="property ID is required"):
            ValidationUtils.parse_object_id(None, "property ID")

    def test_parse_object_id_invalid(self):
        """Test malformed ids are rejected."""
        with pytest.raises(ValidationError, match="Invalid property ID"):
            ValidationUtils.parse_object_id("1234", "property ID")

    @pytest.mark.parametrize("raw, expected", [
        ("100", 100.0),
        (250, 250.0),
        ("12.5", 12.5),
        ("abc", None),
        ("", None),
        (None, None),
        ("inf", None),
    ])
    def test_parse_price_bound(self, raw, expected):
        """Test price bounds parse leniently."""
        assert ValidationUtils.parse_price_bound(raw) == expected


class TestEmailClaimVerifier:
    """Test the default identity verifier."""

    @pytest.mark.asyncio
    async def test_normalizes_email(self):
        """Test emails are stripped and lowercased."""
        assert await EmailClaimVerifier().verify("  Alice@Example.COM ") == "alice@example.com"

    @pytest.mark.asyncio
    async def test_missing_email(self):
        """Test a missing claim."""
        with pytest.raises(ValidationError, match="Email is required"):
            await EmailClaimVerifier().verify("   ")

    @pytest.mark.asyncio
    async def test_malformed_email(self):
        """Test a malformed claim."""
        with pytest.raises(ValidationError, match="Invalid email format"):
            await EmailClaimVerifier().verify("alice-at-example")


class TestValidationMiddleware:
    """Test request middleware through the application."""

    @pytest.mark.asyncio
    async def test_request_id_header(self, async_client):
        """Test every response carries a request id."""
        response = await async_client.get("/")

        assert response.status_code == 200
        assert response.headers["X-Request-ID"]
        assert "X-Processing-Time" in response.headers

    @pytest.mark.asyncio
    async def test_error_body_uses_request_id(self, async_client):
        """Test error bodies reuse the request id header."""
        response = await async_client.get("/api/properties/not-an-id", headers={"X-Request-ID": "trace-1"})

        assert response.status_code == 400
        assert response.headers["X-Request-ID"] == "trace-1"
        assert response.json()["request_id"] == "trace-1"

    @pytest.mark.asyncio
    async def test_oversized_request_rejected(self, async_client):
        """Test requests above the size limit are rejected."""
        response = await async_client.post(
            "/api/users/register",
            content=b"x" * (1024 * 1024 + 1),
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
