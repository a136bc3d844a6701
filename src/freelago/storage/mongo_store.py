from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List

from pymongo import DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError

from ..database import MongoConnectionCache, check_mongo_health
from ..errors import DatabaseConnectionError, OperationError, TaskNotFoundError
from ..models.task import build_update_fields, parse_object_id, prepare_new_task
from .base import TaskStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _driver_errors(operation: str):
    """Translate driver exceptions into the service taxonomy."""
    try:
        yield
    except ConnectionFailure as e:
        raise DatabaseConnectionError(f"{operation}: {e}") from e
    except PyMongoError as e:
        raise OperationError(f"{operation}: {e}") from e


class MongoTaskStore(TaskStore):
    """Task store backed by the cached Motor collection."""

    def __init__(self, cache: MongoConnectionCache) -> None:
        self._cache = cache

    @property
    def cache(self) -> MongoConnectionCache:
        return self._cache

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        collection = await self._cache.ensure_connected()
        doc = prepare_new_task(payload)
        async with _driver_errors("insert_one"):
            result = await collection.insert_one(doc)
        logger.info("Task %s created", result.inserted_id)
        return {"acknowledged": result.acknowledged, "insertedId": str(result.inserted_id)}

    async def list_all(self) -> List[Dict[str, Any]]:
        collection = await self._cache.ensure_connected()
        async with _driver_errors("find"):
            cursor = collection.find({}).sort("createdAt", DESCENDING)
            return await cursor.to_list(length=None)

    async def get(self, task_id: str) -> Dict[str, Any]:
        oid = parse_object_id(task_id)
        collection = await self._cache.ensure_connected()
        async with _driver_errors("find_one"):
            task = await collection.find_one({"_id": oid})
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def list_by_owner(self, email: str) -> List[Dict[str, Any]]:
        collection = await self._cache.ensure_connected()
        async with _driver_errors("find"):
            return await collection.find({"userEmail": email}).to_list(length=None)

    async def update(self, task_id: str, payload: Dict[str, Any]) -> int:
        oid = parse_object_id(task_id)
        collection = await self._cache.ensure_connected()
        async with _driver_errors("update_one"):
            result = await collection.update_one({"_id": oid}, {"$set": build_update_fields(payload)})
        if result.matched_count == 0:
            raise TaskNotFoundError(task_id)
        return result.modified_count

    async def delete(self, task_id: str) -> int:
        oid = parse_object_id(task_id)
        collection = await self._cache.ensure_connected()
        async with _driver_errors("delete_one"):
            result = await collection.delete_one({"_id": oid})
        if result.deleted_count != 1:
            raise TaskNotFoundError(task_id)
        return result.deleted_count

    async def ping(self) -> bool:
        return await check_mongo_health(self._cache)

    async def close(self) -> None:
        self._cache.close()
