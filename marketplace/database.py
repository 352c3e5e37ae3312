"""
Database connection management for MongoDB.
Handles the lazily created Motor client, collection names, and index setup.
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING
from marketplace.config import settings
import asyncio
import logging
from typing import Optional

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
PROPERTIES_COLLECTION = "properties"

_client: Optional[AsyncIOMotorClient] = None


def get_client() -> AsyncIOMotorClient:
    """
    Return the process-wide Motor client, creating it on first use.
    The client owns the connection pool and is safe for concurrent use.
    """
    global _client
    if _client is None:
        _client = AsyncIOMotorClient(
            settings.mongodb_url,
            serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
            appname="rental_marketplace_api",
        )
        logger.info(f"MongoDB client created for database '{settings.database_name}'")
    return _client


def get_database() -> AsyncIOMotorDatabase:
    """
    Dependency providing the store handle.
    Tests override this dependency with an in-memory database.
    """
    return get_client()[settings.database_name]


async def test_database_connection(database: Optional[AsyncIOMotorDatabase] = None) -> bool:
    """
    Ping the store.
    Returns True if the ping succeeds within the operation timeout, False otherwise.
    """
    database = database if database is not None else get_database()
    try:
        await asyncio.wait_for(database.command("ping"), timeout=settings.db_operation_timeout)
        logger.info("Database connection successful")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False


async def ensure_indexes(database: Optional[AsyncIOMotorDatabase] = None) -> None:
    """
    Create the lookup indexes used by the request layer.
    Email is indexed but not unique: registration checks before inserting.
    """
    database = database if database is not None else get_database()
    await database[USERS_COLLECTION].create_index([("email", ASCENDING)])
    await database[PROPERTIES_COLLECTION].create_index([("location", ASCENDING)])
    await database[PROPERTIES_COLLECTION].create_index([("price", ASCENDING)])
    await database[PROPERTIES_COLLECTION].create_index([("owner_email", ASCENDING)])
    logger.info("Database indexes ensured")


def close_db_connection() -> None:
    """
    Close the client.
    This should be called during application shutdown.
    """
    global _client
    if _client is not None:
        _client.close()
        _client = None
        logger.info("Database connections closed")
