"""
Base repository class with common document operations using Motor.
Every operation is bounded by the configured store timeout and store failures are
translated into StoreError so the request layer can map them to HTTP responses.
"""

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError, PyMongoError
from bson import ObjectId
from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar, Union
import asyncio
import logging

from marketplace.config import settings
from marketplace.models import Property, User
from marketplace.utils.exceptions import StoreError, StoreTimeoutError
from marketplace.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", User, Property)

SortSpec = Sequence[Tuple[str, int]]


def utc_now() -> datetime:
    """Timestamp used for created_at/updated_at."""
    return datetime.now(timezone.utc)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing common document operations.
    Wraps a single collection; documents are converted to and from models at this boundary.
    """

    def __init__(
        self,
        model: Type[ModelType],
        collection: AsyncIOMotorCollection,
        timeout: Optional[float] = None
    ):
        """
        Initialize repository with model class and collection handle.

        Args:
            model: Document model class providing from_mongo/to_mongo
            collection: Motor collection (or a compatible in-memory collection)
            timeout: Per-operation timeout in seconds, defaults to settings.db_operation_timeout
        """
        self.model = model
        self.collection = collection
        self.timeout = timeout if timeout is not None else settings.db_operation_timeout

    @property
    def collection_name(self) -> str:
        return getattr(self.collection, "name", self.model.__name__)

    async def _run(self, operation: str, awaitable: Awaitable[Any]) -> Any:
        """
        Execute a store call under the operation timeout.

        Raises:
            StoreTimeoutError: If the call does not complete in time
            DuplicateKeyError: Propagated unchanged for callers that handle it
            StoreError: For any other driver failure
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"{operation} on '{self.collection_name}' timed out after {self.timeout}s")
            raise StoreTimeoutError(f"Database operation timed out: {operation}")
        except DuplicateKeyError:
            logger.warning(f"{operation} on '{self.collection_name}' hit a duplicate key")
            raise
        except PyMongoError as e:
            logger.error(f"{operation} on '{self.collection_name}' failed: {e}")
            if getattr(e, "timeout", False):
                raise StoreTimeoutError(f"Database operation timed out: {operation}") from e
            raise StoreError(f"Database operation failed: {operation}") from e

    @staticmethod
    def build_update(
        set_fields: Optional[Dict[str, Any]] = None,
        add_to_set: Optional[Dict[str, Any]] = None,
        pull: Optional[Dict[str, Any]] = None,
        push: Optional[Dict[str, Any]] = None,
        touch: bool = True
    ) -> Dict[str, Any]:
        """
        Build an update document from field-set, set-insert, set-remove and append operators.

        Args:
            set_fields: Fields to overwrite ($set)
            add_to_set: Values to insert with set semantics ($addToSet)
            pull: Values to remove with set semantics ($pull)
            push: Values to append ($push)
            touch: Whether to refresh updated_at

        Returns:
            Update document
        """
        update: Dict[str, Any] = {}
        set_part = dict(set_fields or {})
        if touch:
            set_part.setdefault("updated_at", utc_now())
        if set_part:
            update["$set"] = set_part
        if add_to_set:
            update["$addToSet"] = dict(add_to_set)
        if pull:
            update["$pull"] = dict(pull)
        if push:
            update["$push"] = dict(push)
        return update

    async def create(self, obj: ModelType) -> ModelType:
        """
        Insert a new document.

        Args:
            obj: Model instance with a generated id

        Returns:
            The same model instance
        """
        await self._run("insert_one", self.collection.insert_one(obj.to_mongo()))
        logger.debug(f"Created {self.model.__name__} with id: {obj.id}")
        return obj

    async def find_one(self, filters: Dict[str, Any]) -> Optional[ModelType]:
        """Get the first document matching the filter."""
        document = await self._run("find_one", self.collection.find_one(filters))
        if document is None:
            logger.debug(f"{self.model.__name__} matching {filters} not found")
            return None
        return self.model.from_mongo(document)

    async def get_by_id(self, id: Union[str, ObjectId]) -> Optional[ModelType]:
        """
        Get a document by its id.

        Args:
            id: ObjectId or hex string

        Returns:
            Model instance or None if not found
        """
        object_id = ValidationUtils.parse_object_id(id, f"{self.model.__name__} ID")
        return await self.find_one({"_id": object_id})

    async def get_by_field(self, field: str, value: Any) -> Optional[ModelType]:
        """Get a document by an arbitrary field value."""
        return await self.find_one({field: value})

    async def find_many(
        self,
        filters: Optional[Dict[str, Any]] = None,
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0
    ) -> List[ModelType]:
        """
        Get documents matching a filter with optional sorting and pagination.

        Args:
            filters: Query filter, all documents when omitted
            sort: Sequence of (field, direction) pairs
            skip: Number of documents to skip
            limit: Maximum number of documents, 0 means no limit

        Returns:
            List of model instances
        """
        kwargs: Dict[str, Any] = {"skip": skip, "limit": limit}
        if sort:
            kwargs["sort"] = list(sort)
        cursor = self.collection.find(filters or {}, **kwargs)
        documents = await self._run("find", cursor.to_list(length=None))
        logger.debug(f"Retrieved {len(documents)} {self.model.__name__} records")
        return [self.model.from_mongo(document) for document in documents]

    async def find_by_ids(self, ids: Sequence[Union[str, ObjectId]]) -> List[ModelType]:
        """
        Get documents whose id is a member of ``ids``.
        An empty id list short-circuits to an empty result without a store call.
        """
        object_ids = [ValidationUtils.parse_object_id(value) for value in ids]
        if not object_ids:
            return []
        return await self.find_many({"_id": {"$in": object_ids}})

    async def update_one(self, filters: Dict[str, Any], update: Dict[str, Any]) -> int:
        """
        Apply an update document to the first matching document.

        Returns:
            Number of matched documents (0 or 1)
        """
        result = await self._run("update_one", self.collection.update_one(filters, update))
        logger.debug(f"Updated {self.model.__name__} matching {filters}: matched={result.matched_count}")
        return result.matched_count

    async def update_by_id(self, id: Union[str, ObjectId], update: Dict[str, Any]) -> int:
        """Apply an update document to the document with the given id."""
        object_id = ValidationUtils.parse_object_id(id, f"{self.model.__name__} ID")
        return await self.update_one({"_id": object_id}, update)

    async def delete_by_id(self, id: Union[str, ObjectId]) -> bool:
        """
        Delete a document by id.

        Returns:
            True if a document was deleted
        """
        object_id = ValidationUtils.parse_object_id(id, f"{self.model.__name__} ID")
        result = await self._run("delete_one", self.collection.delete_one({"_id": object_id}))
        deleted = result.deleted_count > 0
        if deleted:
            logger.debug(f"Deleted {self.model.__name__} with id: {id}")
        else:
            logger.debug(f"{self.model.__name__} with id {id} not found for deletion")
        return deleted

    async def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Run an aggregation pipeline and return raw documents."""
        cursor = self.collection.aggregate(pipeline)
        return await self._run("aggregate", cursor.to_list(length=None))
