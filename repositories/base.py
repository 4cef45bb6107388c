"""
Base repository for the data access layer.
Each repository wraps one MongoDB collection and maps documents to pydantic
document models; business logic stays in the services.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from bson import ObjectId
from bson.errors import InvalidId

from domain.models.base import DocumentModel

ModelType = TypeVar("ModelType", bound=DocumentModel)

logger = logging.getLogger("recipemanager.repositories")


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse a hex id; invalid ids behave like ids that do not exist."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MongoRepository(Generic[ModelType]):
    """
    Common CRUD operations on one collection.

    ``db`` is an async pymongo database; all methods are coroutines.
    Subclasses set ``model`` and receive the collection name from settings.
    """

    model: Type[ModelType]

    def __init__(self, db, collection_name: str):
        self.db = db
        self.collection_name = collection_name
        self.collection = db[collection_name]

    def _to_model(self, doc: Optional[Dict[str, Any]]) -> Optional[ModelType]:
        if doc is None:
            return None
        return self.model.from_document(doc)

    async def get_by_id(self, entity_id: str) -> Optional[ModelType]:
        """Get entity by id; unknown or malformed ids return None"""
        oid = to_object_id(entity_id)
        if oid is None:
            return None
        return self._to_model(await self.collection.find_one({"_id": oid}))

    async def get_many(self, entity_ids: List[str]) -> Dict[str, ModelType]:
        """Fetch several entities at once, keyed by id"""
        oids = [oid for oid in (to_object_id(i) for i in set(entity_ids)) if oid]
        if not oids:
            return {}
        cursor = self.collection.find({"_id": {"$in": oids}})
        return {str(doc["_id"]): self._to_model(doc) for doc in await cursor.to_list(None)}

    async def find(
        self,
        query: Optional[Dict[str, Any]] = None,
        sort: Optional[List[Tuple[str, int]]] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[ModelType]:
        cursor = self.collection.find(query or {})
        if sort:
            cursor = cursor.sort(sort)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return [self._to_model(doc) for doc in await cursor.to_list(None)]

    async def count(self, query: Optional[Dict[str, Any]] = None) -> int:
        return await self.collection.count_documents(query or {})

    async def insert(self, entity: ModelType) -> ModelType:
        """Insert a new document and return the entity with its id and timestamps"""
        now = utcnow()
        entity.created_at = entity.created_at or now
        entity.updated_at = now
        result = await self.collection.insert_one(entity.to_document())
        entity.id = str(result.inserted_id)
        logger.debug(f"Inserted {self.collection_name}/{entity.id}")
        return entity

    async def replace(self, entity: ModelType) -> ModelType:
        """Write the whole document (one atomic update per entity)"""
        oid = to_object_id(entity.id)
        if oid is None:
            raise ValueError(f"Cannot replace {self.collection_name} without a valid id")
        entity.updated_at = utcnow()
        await self.collection.replace_one({"_id": oid}, entity.to_document())
        return entity

    async def update_fields(self, entity_id: str, fields: Dict[str, Any]) -> bool:
        """Partial update by id using stored (aliased) field names"""
        oid = to_object_id(entity_id)
        if oid is None:
            return False
        fields = {**fields, "updatedAt": utcnow()}
        result = await self.collection.update_one({"_id": oid}, {"$set": fields})
        return result.matched_count > 0

    async def delete(self, entity_id: str) -> bool:
        oid = to_object_id(entity_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    async def delete_many(self, query: Dict[str, Any]) -> int:
        result = await self.collection.delete_many(query)
        return result.deleted_count

    async def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        cursor = await self.collection.aggregate(pipeline)
        return await cursor.to_list(None)
