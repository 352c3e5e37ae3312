"""
Performance monitoring middleware for request timing.
Adds the X-Processing-Time header and logs slow requests.
"""

from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import time

logger = logging.getLogger(__name__)


class PerformanceMonitoringMiddleware(BaseHTTPMiddleware):
    """
    Middleware timing each request.
    Requests slower than the threshold are logged as warnings.
    """

    def __init__(
        self,
        app: ASGIApp,
        slow_request_threshold: float = 2.0,  # seconds
        enable_detailed_logging: bool = False
    ):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold
        self.enable_detailed_logging = enable_detailed_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        request_id = getattr(request.state, 'request_id', 'unknown')

        try:
            response = await call_next(request)
        except Exception as exc:
            processing_time = time.time() - start_time
            logger.error(
                f"Request error [{request_id}]: {type(exc).__name__} - {str(exc)} "
                f"(processing_time: {processing_time:.3f}s)",
                extra={
                    "request_id": request_id,
                    "path": request.url.path,
                    "method": request.method,
                    "processing_time": processing_time,
                    "error_type": type(exc).__name__
                },
                exc_info=True
            )
            raise

        processing_time = time.time() - start_time
        self._log_timing(request, response, request_id, processing_time)
        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"
        return response

    def _log_timing(self, request: Request, response: Response, request_id: str, processing_time: float) -> None:
        endpoint = f"{request.method} {request.url.path}"
        extra = {
            "request_id": request_id,
            "endpoint": endpoint,
            "status_code": response.status_code,
            "processing_time": processing_time
        }

        if processing_time > self.slow_request_threshold:
            logger.warning(f"SLOW REQUEST [{request_id}]: {endpoint} - {processing_time:.3f}s", extra=extra)
        elif self.enable_detailed_logging:
            logger.debug(f"Request [{request_id}]: {endpoint} - {processing_time:.3f}s", extra=extra)
