"""
Error handling service for consistent error response formatting and logging.
Every error body has the shape ``{"error": <message>, "code": <CODE>, "request_id": <id>}``.
"""

from typing import Dict, Any, Optional, List, Union
from fastapi import Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from pydantic import ValidationError as PydanticValidationError
from marketplace.utils.exceptions import APIException
import logging
import uuid

logger = logging.getLogger(__name__)


class ErrorHandlerService:
    """
    Service for handling and formatting errors consistently across the application.
    """

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        request_id: str,
        details: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """
        Format error response in a consistent structure.

        Args:
            error_code: Error code identifier
            message: Human-readable error message
            request_id: Request identifier for tracking
            details: Optional list of field errors

        Returns:
            Formatted error response dictionary
        """
        response = {
            "error": message,
            "code": error_code,
            "request_id": request_id,
        }

        if details:
            response["details"] = details

        return response

    @staticmethod
    def handle_api_exception(
        exception: APIException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle custom API exceptions with structured response.

        Args:
            exception: API exception instance
            request: Optional FastAPI request object

        Returns:
            JSON response with formatted error
        """
        request_id = ErrorHandlerService._get_request_id(request)
        extra = {
            "error_code": exception.error_code,
            "status_code": exception.status_code,
            "request_id": request_id,
            "path": request.url.path if request else None
        }

        if exception.status_code >= 500:
            logger.error(f"API Exception [{request_id}]: {exception.error_code} - {exception.detail}", extra=extra)
        else:
            logger.warning(f"API Exception [{request_id}]: {exception.error_code} - {exception.detail}", extra=extra)

        error_response = ErrorHandlerService.format_error_response(
            error_code=exception.error_code or "API_ERROR",
            message=exception.detail,
            request_id=request_id
        )

        return JSONResponse(
            status_code=exception.status_code,
            content=error_response,
            headers=exception.headers
        )

    @staticmethod
    def handle_validation_error(
        exception: Union[RequestValidationError, PydanticValidationError],
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle request schema validation errors as malformed input (400).

        Args:
            exception: FastAPI or pydantic validation error
            request: Optional FastAPI request object

        Returns:
            JSON response with validation error details
        """
        request_id = ErrorHandlerService._get_request_id(request)

        validation_details = []
        for error in exception.errors():
            field_path = " -> ".join(str(loc) for loc in error["loc"])
            validation_details.append({
                "field": field_path,
                "message": error["msg"],
                "type": error["type"],
                "input": ErrorHandlerService._safe_input(error.get("input"))
            })

        logger.warning(
            f"Validation Error [{request_id}]: {len(validation_details)} field errors",
            extra={
                "error_count": len(validation_details),
                "request_id": request_id,
                "path": request.url.path if request else None
            }
        )

        message = "Request validation failed"
        if validation_details:
            first = validation_details[0]
            message = f"{message}: {first['field']} - {first['message']}"

        error_response = ErrorHandlerService.format_error_response(
            error_code="VALIDATION_ERROR",
            message=message,
            request_id=request_id,
            details=validation_details
        )

        return JSONResponse(
            status_code=400,
            content=error_response
        )

    @staticmethod
    def handle_store_error(
        exception: PyMongoError,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle driver errors that escaped the repositories.

        Args:
            exception: pymongo error
            request: Optional FastAPI request object

        Returns:
            JSON response with store error information
        """
        request_id = ErrorHandlerService._get_request_id(request)

        logger.error(
            f"Store Error [{request_id}]: {type(exception).__name__} - {str(exception)}",
            extra={
                "request_id": request_id,
                "path": request.url.path if request else None,
                "exception_type": type(exception).__name__
            },
            exc_info=True
        )

        # Driver messages can carry connection details, keep them out of the body
        error_response = ErrorHandlerService.format_error_response(
            error_code="STORE_ERROR",
            message="Database operation failed",
            request_id=request_id
        )

        return JSONResponse(
            status_code=500,
            content=error_response
        )

    @staticmethod
    def handle_http_exception(
        exception: HTTPException,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle FastAPI and Starlette HTTP exceptions such as unknown routes.

        Args:
            exception: HTTP exception
            request: Optional FastAPI request object

        Returns:
            JSON response with HTTP error information
        """
        request_id = ErrorHandlerService._get_request_id(request)

        logger.warning(
            f"HTTP Exception [{request_id}]: {exception.status_code} - {exception.detail}",
            extra={
                "status_code": exception.status_code,
                "request_id": request_id,
                "path": request.url.path if request else None
            }
        )

        error_response = ErrorHandlerService.format_error_response(
            error_code=f"HTTP_{exception.status_code}",
            message=str(exception.detail),
            request_id=request_id
        )

        return JSONResponse(
            status_code=exception.status_code,
            content=error_response,
            headers=getattr(exception, "headers", None)
        )

    @staticmethod
    def handle_unexpected_error(
        exception: Exception,
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Handle unexpected errors with a generic response.

        Args:
            exception: Unexpected exception
            request: Optional FastAPI request object

        Returns:
            JSON response with generic error message
        """
        request_id = ErrorHandlerService._get_request_id(request)

        logger.error(
            f"Unexpected Error [{request_id}]: {type(exception).__name__} - {str(exception)}",
            extra={
                "request_id": request_id,
                "path": request.url.path if request else None,
                "exception_type": type(exception).__name__
            },
            exc_info=True
        )

        error_response = ErrorHandlerService.format_error_response(
            error_code="INTERNAL_SERVER_ERROR",
            message="An unexpected error occurred. Please try again later.",
            request_id=request_id
        )

        return JSONResponse(
            status_code=500,
            content=error_response
        )

    @staticmethod
    def _get_request_id(request: Optional[Request] = None) -> str:
        """Reuse the id assigned by the request middleware, or generate one."""
        if request is not None:
            request_id = getattr(request.state, "request_id", None)
            if request_id:
                return request_id
        return str(uuid.uuid4())[:8]

    @staticmethod
    def _safe_input(value: Any) -> Any:
        """Keep JSON-native inputs, stringify the rest."""
        if value is None or isinstance(value, (str, int, float, bool, list, dict)):
            return value
        return str(value)
