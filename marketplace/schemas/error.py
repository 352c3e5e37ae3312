"""
Error response schemas for API documentation and consistent error formatting.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any


class ErrorDetail(BaseModel):
    """Schema for individual field error detail."""

    field: Optional[str] = Field(None, description="Field name that caused the error", examples=["email"])
    message: str = Field(..., description="Human-readable error message", examples=["Field required"])
    type: Optional[str] = Field(None, description="Error type identifier", examples=["missing"])
    input: Optional[Any] = Field(None, description="Input value that caused the error")


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    error: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Property not found: 64b7f0c2e4b0a1a2b3c4d5e6"]
    )

    code: str = Field(..., description="Error code identifier", examples=["NOT_FOUND"])

    request_id: Optional[str] = Field(
        None,
        description="Unique request identifier for tracking",
        examples=["abc12345"]
    )

    details: Optional[List[ErrorDetail]] = Field(
        None,
        description="Field errors for request validation failures"
    )


def _error_example(summary: str, message: str, code: str) -> dict:
    return {
        "summary": summary,
        "value": {"error": message, "code": code, "request_id": "abc12345"},
    }


# Common error response examples for documentation
COMMON_ERROR_RESPONSES = {
    400: {
        "description": "Bad Request - Missing or malformed input",
        "model": ErrorResponse,
        "content": {
            "application/json": {
                "examples": {
                    "invalid_id": _error_example("Invalid ID", "Invalid property ID", "VALIDATION_ERROR"),
                    "missing_email": _error_example("Missing Email", "Email is required", "VALIDATION_ERROR"),
                }
            }
        }
    },
    403: {
        "description": "Forbidden - Caller does not own the property",
        "model": ErrorResponse,
        "content": {
            "application/json": {
                "examples": {
                    "property_ownership": _error_example(
                        "Property Ownership Error",
                        "You cannot update a property that doesn't belong to you",
                        "FORBIDDEN"
                    ),
                }
            }
        }
    },
    404: {
        "description": "Not Found - Resource not found",
        "model": ErrorResponse,
        "content": {
            "application/json": {
                "examples": {
                    "user_not_found": _error_example("User Not Found", "User not found: alice@example.com", "NOT_FOUND"),
                    "property_not_found": _error_example(
                        "Property Not Found",
                        "Property not found: 64b7f0c2e4b0a1a2b3c4d5e6",
                        "NOT_FOUND"
                    ),
                }
            }
        }
    },
    500: {
        "description": "Internal Server Error - Store failure",
        "model": ErrorResponse,
        "content": {
            "application/json": {
                "examples": {
                    "store_error": _error_example("Store Error", "Database operation failed: find", "STORE_ERROR"),
                    "store_timeout": _error_example("Store Timeout", "Database operation timed out: find", "STORE_TIMEOUT"),
                }
            }
        }
    },
}

REGISTRATION_CONFLICT_RESPONSE = {
    409: {
        "description": "Conflict - Concurrent registration of the same email",
        "model": ErrorResponse,
        "content": {
            "application/json": {
                "examples": {
                    "registration_conflict": _error_example(
                        "Registration Conflict",
                        "A concurrent registration for 'alice@example.com' already exists",
                        "REGISTRATION_CONFLICT"
                    ),
                }
            }
        }
    },
}
