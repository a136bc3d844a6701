"""
Task storage backends.
"""

from ..database import MongoConnectionCache
from .base import TaskStore
from .memory_store import InMemoryTaskStore
from .mongo_store import MongoTaskStore

__all__ = ["TaskStore", "InMemoryTaskStore", "MongoTaskStore", "build_task_store"]


def build_task_store(config) -> TaskStore:
    """Create the store selected by FREELAGO_STORAGE_BACKEND."""
    if config.storage_backend == "memory":
        return InMemoryTaskStore()
    return MongoTaskStore(MongoConnectionCache(config))
