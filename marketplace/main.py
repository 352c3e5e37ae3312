"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from marketplace.config import settings
from marketplace.database import close_db_connection, ensure_indexes, get_database, test_database_connection
from marketplace.routers import users_router, properties_router
from marketplace.utils.exceptions import APIException
from marketplace.services.error_handler import ErrorHandlerService
from marketplace.middleware.validation import ValidationMiddleware
from marketplace.middleware.performance import PerformanceMonitoringMiddleware

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    db_connected = await test_database_connection()
    if not db_connected:
        logger.error("Failed to connect to database on startup")
    else:
        try:
            await ensure_indexes()
        except PyMongoError as e:
            logger.error(f"Failed to create indexes: {e}")

    yield

    logger.info("Shutting down application")
    close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Backend for a property rental marketplace.

    ## Features

    * **Users**: Registration doubling as login, profile and preferred locations
    * **Properties**: Listing CRUD restricted to the owner, search by location and price
    * **Likes**: Symmetric likes between users and listings
    * **Rentals**: Request, accept and reject rental requests

    ## Identity

    Callers identify themselves with an email, passed as the `email` query parameter or in the
    JSON body. The email is not authenticated.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Users",
            "description": "Registration, profiles and user-centric lookups"
        },
        {
            "name": "Properties",
            "description": "Listing management, search, likes and rental requests"
        },
        {
            "name": "Health",
            "description": "Service information and store connectivity"
        }
    ],
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Processing-Time"],
)

app.add_middleware(
    PerformanceMonitoringMiddleware,
    slow_request_threshold=settings.slow_request_threshold,
    enable_detailed_logging=settings.debug,
)

# Added last so it runs first and the request id is available to everything below
app.add_middleware(
    ValidationMiddleware,
    max_request_size=settings.max_request_size,
    enable_request_logging=settings.debug,
)

app.include_router(users_router, prefix=settings.api_prefix)
app.include_router(properties_router, prefix=settings.api_prefix)


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    """Handle custom API exceptions with structured error responses."""
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors as malformed input."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    """Handle Pydantic validation errors as malformed input."""
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(PyMongoError)
async def store_exception_handler(request: Request, exc: PyMongoError):
    """Handle driver errors that were not translated by a repository."""
    return ErrorHandlerService.handle_store_error(exc, request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions, including unknown routes and methods."""
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with secure error responses."""
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint providing basic API information.
    """
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "healthy",
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "api_prefix": settings.api_prefix
    }


@app.get("/health", tags=["Health"])
async def health_check(db: AsyncIOMotorDatabase = Depends(get_database)):
    """
    Health check endpoint with a store ping.
    Used by container health checks and load balancers.
    """
    db_healthy = await test_database_connection(db)

    if not db_healthy:
        raise HTTPException(
            status_code=503,
            detail="Database connection failed"
        )

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "marketplace.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
