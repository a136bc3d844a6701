from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List

from bson import ObjectId

from ..errors import TaskNotFoundError
from ..models.task import build_update_fields, parse_object_id, prepare_new_task
from .base import TaskStore

logger = logging.getLogger(__name__)

_MISSING = object()


class InMemoryTaskStore(TaskStore):
    """
    Process-local task store with the same semantics as the Mongo store.

    Used by the test-suite and for local runs without a database
    (FREELAGO_STORAGE_BACKEND=memory). Documents are copied on the way in
    and out so callers never share state with the store.
    """

    def __init__(self) -> None:
        self._docs: Dict[ObjectId, Dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._docs)

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        doc = prepare_new_task(copy.deepcopy(payload))
        oid = ObjectId()
        doc["_id"] = oid
        self._docs[oid] = doc
        logger.info("Task %s created (in-memory)", oid)
        return {"acknowledged": True, "insertedId": str(oid)}

    async def list_all(self) -> List[Dict[str, Any]]:
        docs = sorted(
            self._docs.values(),
            key=lambda d: str(d.get("createdAt") or ""),
            reverse=True,
        )
        return copy.deepcopy(docs)

    async def get(self, task_id: str) -> Dict[str, Any]:
        oid = parse_object_id(task_id)
        doc = self._docs.get(oid)
        if doc is None:
            raise TaskNotFoundError(task_id)
        return copy.deepcopy(doc)

    async def list_by_owner(self, email: str) -> List[Dict[str, Any]]:
        return [copy.deepcopy(d) for d in self._docs.values() if d.get("userEmail") == email]

    async def update(self, task_id: str, payload: Dict[str, Any]) -> int:
        oid = parse_object_id(task_id)
        doc = self._docs.get(oid)
        if doc is None:
            raise TaskNotFoundError(task_id)

        modified = 0
        for name, value in build_update_fields(payload).items():
            old = doc.get(name, _MISSING)
            # $set compares by BSON type: 1, 1.0 and True are distinct values
            if type(old) is not type(value) or old != value:
                modified = 1
            doc[name] = copy.deepcopy(value)
        return modified

    async def delete(self, task_id: str) -> int:
        oid = parse_object_id(task_id)
        if self._docs.pop(oid, None) is None:
            raise TaskNotFoundError(task_id)
        return 1

    async def ping(self) -> bool:
        return True
