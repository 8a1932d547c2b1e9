"""Repositories over MongoDB or a process-local dictionary store.

Services talk to a Repository only; the backend is picked from the
database URL scheme (`mongodb://` or `memory://`).
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar, cast
from urllib.parse import urlparse
from uuid import UUID

from pymongo import AsyncMongoClient, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.cursor import AsyncCursor
from pymongo.asynchronous.database import AsyncDatabase

from sessionmanager.core.db import MongoModel
from sessionmanager.core.query import Query, SortKey, build_mongo_query, build_mongo_sort, get_field_path, matches, sort_documents

M = TypeVar("M", bound=MongoModel)


class Repository(ABC, Generic[M]):
    """Persistence for a single model type."""

    def __init__(self, model: type[M]) -> None:
        self.model = model

    @abstractmethod
    async def create_index(self, field: str, unique: bool = False) -> None:
        """Ensure an index on a model field exists."""

    @abstractmethod
    async def insert(self, document: M) -> M:
        """Store a new document."""

    @abstractmethod
    async def get(self, id: UUID) -> M | None:
        """Get a document by id. Returns None if it doesn't exist."""

    @abstractmethod
    async def find(self, query: Query | None = None, sort: list[SortKey] | None = None) -> list[M]:
        """List documents matching the query in the given order."""

    @abstractmethod
    async def find_one(self, query: Query) -> M | None:
        """Get the first document matching the query."""

    @abstractmethod
    async def update(self, id: UUID, changes: dict[str, Any]) -> M | None:
        """Set fields on a document. Returns the updated document, or None if it doesn't exist."""

    @abstractmethod
    async def delete(self, id: UUID) -> bool:
        """Delete a document by id. Returns False if it didn't exist."""

    @abstractmethod
    async def delete_many(self, query: Query) -> int:
        """Delete all documents matching the query. Returns the number deleted."""


class MongoRepository(Repository[M]):
    """Repository over a MongoDB collection; model `id` is stored as `_id`."""

    def __init__(self, collection: AsyncCollection[dict[str, Any]], model: type[M]) -> None:
        super().__init__(model)
        self._collection = collection

    async def create_index(self, field: str, unique: bool = False) -> None:
        await self._collection.create_index([(get_field_path(field), 1)], unique=unique)

    async def insert(self, document: M) -> M:
        await self._collection.insert_one(self._to_document(document))
        return document

    async def get(self, id: UUID) -> M | None:
        raw = await self._collection.find_one({"_id": id})
        return None if raw is None else self.model.model_validate(raw)

    async def find(self, query: Query | None = None, sort: list[SortKey] | None = None) -> list[M]:
        cursor = self._collection.find(build_mongo_query(query))
        if sort:
            cursor = cursor.sort(build_mongo_sort(sort))
        return await self._list_cursor(cursor)

    async def find_one(self, query: Query) -> M | None:
        raw = await self._collection.find_one(build_mongo_query(query))
        return None if raw is None else self.model.model_validate(raw)

    async def update(self, id: UUID, changes: dict[str, Any]) -> M | None:
        raw = await self._collection.find_one_and_update(
            {"_id": id},
            {"$set": {get_field_path(name): value for name, value in changes.items()}},
            return_document=ReturnDocument.AFTER,
        )
        return None if raw is None else self.model.model_validate(raw)

    async def delete(self, id: UUID) -> bool:
        result = await self._collection.delete_one({"_id": id})
        return result.deleted_count > 0

    async def delete_many(self, query: Query) -> int:
        result = await self._collection.delete_many(build_mongo_query(query))
        return result.deleted_count

    @staticmethod
    def _to_document(model: MongoModel) -> dict[str, Any]:
        data = model.model_dump()
        data["_id"] = data.pop("id")
        return data

    async def _list_cursor(self, cursor: AsyncCursor[dict[str, Any]]) -> list[M]:
        return [self.model.model_validate(raw) async for raw in cursor]


class MemoryRepository(Repository[M]):
    """Dictionary-backed repository keyed by document id."""

    def __init__(self, model: type[M]) -> None:
        super().__init__(model)
        self._documents: dict[UUID, dict[str, Any]] = {}

    async def create_index(self, field: str, unique: bool = False) -> None:
        """Indexes are not needed for the in-memory store."""

    async def insert(self, document: M) -> M:
        self._documents[document.id] = document.model_dump()
        return document

    async def get(self, id: UUID) -> M | None:
        raw = self._documents.get(id)
        return None if raw is None else self.model.model_validate(raw)

    async def find(self, query: Query | None = None, sort: list[SortKey] | None = None) -> list[M]:
        found = [raw for raw in self._documents.values() if matches(raw, query)]
        if sort:
            found = sort_documents(found, sort)
        return [self.model.model_validate(raw) for raw in found]

    async def find_one(self, query: Query) -> M | None:
        raw = next((raw for raw in self._documents.values() if matches(raw, query)), None)
        return None if raw is None else self.model.model_validate(raw)

    async def update(self, id: UUID, changes: dict[str, Any]) -> M | None:
        if id not in self._documents:
            return None
        updated = self.model.model_validate({**self._documents[id], **changes})
        self._documents[id] = updated.model_dump()
        return updated

    async def delete(self, id: UUID) -> bool:
        return self._documents.pop(id, None) is not None

    async def delete_many(self, query: Query) -> int:
        ids = [id for id, raw in self._documents.items() if matches(raw, query)]
        for id in ids:
            del self._documents[id]
        return len(ids)


class Storage(ABC):
    """Factory for repositories sharing one backend."""

    @abstractmethod
    def get_repository(self, name: str, model: type[M]) -> Repository[M]:
        """Get the repository for a named collection."""

    async def close(self) -> None:
        """Release backend resources on shutdown."""


class MongoStorage(Storage):
    def __init__(self, database_url: str) -> None:
        self.mongo_client: AsyncMongoClient[dict[str, Any]] = AsyncMongoClient(
            database_url, uuidRepresentation="standard", tz_aware=True
        )
        self.database: AsyncDatabase[dict[str, Any]] = self.mongo_client.get_database(urlparse(database_url).path[1:])

    def get_repository(self, name: str, model: type[M]) -> Repository[M]:
        return MongoRepository(self.database.get_collection(name), model)

    async def close(self) -> None:
        await self.mongo_client.aclose()


class MemoryStorage(Storage):
    def __init__(self) -> None:
        self._repositories: dict[str, MemoryRepository[Any]] = {}

    def get_repository(self, name: str, model: type[M]) -> Repository[M]:
        if name not in self._repositories:
            self._repositories[name] = MemoryRepository(model)
        return cast(Repository[M], self._repositories[name])


def create_storage(database_url: str) -> Storage:
    """Create the storage backend for a database URL."""
    if urlparse(database_url).scheme == "memory":
        return MemoryStorage()
    return MongoStorage(database_url)
