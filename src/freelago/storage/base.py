from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class TaskStore(ABC):
    """
    Single-document operations on the task collection.

    Implementations return raw documents (``_id`` still an ObjectId) and raise
    the errors from ``freelago.errors``; formatting for HTTP happens in the
    router.
    """

    @abstractmethod
    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a task; returns ``{"acknowledged": ..., "insertedId": ...}``."""

    @abstractmethod
    async def list_all(self) -> List[Dict[str, Any]]:
        """All tasks, newest ``createdAt`` first."""

    @abstractmethod
    async def get(self, task_id: str) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def list_by_owner(self, email: str) -> List[Dict[str, Any]]:
        """Tasks whose ``userEmail`` equals ``email`` exactly."""

    @abstractmethod
    async def update(self, task_id: str, payload: Dict[str, Any]) -> int:
        """Overwrite the allow-listed fields; returns the modified count."""

    @abstractmethod
    async def delete(self, task_id: str) -> int:
        ...

    @abstractmethod
    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        """Compatibility hook for shutdown."""
        return
