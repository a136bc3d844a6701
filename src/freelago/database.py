"""
Database connection management for the task collection.

This module provides the connection cache used by the Mongo task store: one
pooled Motor client per process, created lazily on first use, verified with a
ping round-trip and then reused by every request. The cache is owned by the
application (see ``freelago.main``) and handed to the store explicitly.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from .config import AppConfig
from .errors import DatabaseConnectionError

logger = logging.getLogger(__name__)

__all__ = [
    "MongoConnectionCache",
    "build_client_kwargs",
    "check_mongo_health",
]


def build_client_kwargs(config: AppConfig) -> Dict[str, Any]:
    """Driver options derived from configuration."""
    return dict(
        server_api=ServerApi(
            "1",
            strict=config.server_api_strict,
            deprecation_errors=config.server_api_deprecation_errors,
        ),
        maxPoolSize=config.max_pool_size,
        serverSelectionTimeoutMS=config.server_selection_timeout_ms,
    )


class MongoConnectionCache:
    """
    Once-initialized handle to the task collection.

    The cache moves from "unestablished" to "established" exactly once. A
    failed attempt leaves it unestablished so the next caller retries.
    IMPORTANT: Do NOT close the client per request; keep it warm.
    """

    def __init__(
        self,
        config: AppConfig,
        client_factory: Callable[..., AsyncIOMotorClient] = AsyncIOMotorClient,
    ) -> None:
        self._config = config
        self._client_factory = client_factory
        self._client: Optional[AsyncIOMotorClient] = None
        self._collection: Optional[AsyncIOMotorCollection] = None
        self._lock = asyncio.Lock()

    @property
    def is_established(self) -> bool:
        return self._collection is not None

    @property
    def client(self) -> Optional[AsyncIOMotorClient]:
        return self._client

    async def ensure_connected(self) -> AsyncIOMotorCollection:
        """Return the cached collection, connecting and pinging on first use."""
        if self._collection is not None:
            return self._collection

        async with self._lock:
            if self._collection is not None:
                return self._collection

            cfg = self._config
            logger.info(
                "Connecting to MongoDB %s (db=%s, collection=%s, pool_size=%s)",
                cfg.redacted_uri, cfg.db_name, cfg.collection_name, cfg.max_pool_size,
            )
            client = None
            try:
                client = self._client_factory(cfg.mongodb_uri, **build_client_kwargs(cfg))
                collection = client[cfg.db_name][cfg.collection_name]
                await client.admin.command("ping")
            except (PyMongoError, OSError) as e:
                if client is not None:
                    client.close()
                logger.error(f"MongoDB connection failed: {e}")
                raise DatabaseConnectionError(f"Cannot connect to MongoDB: {e}") from e

            self._client = client
            self._collection = collection
            logger.info("Pinged your deployment. You successfully connected to MongoDB!")
            return collection

    def close(self) -> None:
        """Release the pooled client; only called on application shutdown."""
        if self._client is not None:
            self._client.close()
            logger.info("MongoDB client closed")
        self._client = None
        self._collection = None


async def check_mongo_health(cache: MongoConnectionCache) -> bool:
    """Minimal liveness round-trip through the cached client."""
    try:
        await cache.ensure_connected()
        await cache.client.admin.command("ping")
        return True
    except Exception as e:
        logger.error(f"MongoDB health check failed: {e}")
        return False
