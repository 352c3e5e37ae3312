"""
Configuration management using Pydantic settings.
Handles MongoDB connection, store timeouts, and environment variables for Docker deployment.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings with Docker environment variable support."""

    # Application configuration
    app_name: str = "Rental Marketplace API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    testing: bool = False
    log_level: str = "INFO"

    # MongoDB configuration - Docker-compatible defaults
    mongodb_url: str = "mongodb://mongo:27017"
    mongodb_db: str = "rental_marketplace"
    test_mongodb_db: str = "rental_marketplace_test"
    server_selection_timeout_ms: int = 5000

    # Every store operation is bounded by this timeout
    db_operation_timeout: float = 10.0

    # API configuration
    api_prefix: str = "/api"
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:8080", "http://localhost:8000"]

    # Search defaults
    default_search_limit: int = 10

    # Request handling
    max_request_size: int = 1024 * 1024  # 1MB
    slow_request_threshold: float = 2.0

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "testing", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @field_validator("db_operation_timeout")
    @classmethod
    def validate_db_operation_timeout(cls, v):
        if v <= 0:
            raise ValueError("DB_OPERATION_TIMEOUT must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing" or self.testing

    @property
    def database_name(self) -> str:
        """Database used by the running environment."""
        return self.test_mongodb_db if self.is_testing else self.mongodb_db

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one instance of settings throughout the app lifecycle.
    """
    return Settings()


# Global settings instance
settings = get_settings()
