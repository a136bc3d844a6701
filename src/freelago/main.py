"""
Main Freelago FastAPI application.

Builds the Task API with its storage backend injected through ``app.state``.
Locally the module runs a uvicorn listener; in production the ASGI ``app``
object is handed to the serverless host, which imports ``freelago.main:app``.
The MongoDB connection is established lazily and cached for the life of the
process, so warm invocations reuse the pool.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from . import __version__
from .api.routers.tasks_router import get_task_store, router as tasks_router
from .config import AppConfig, get_app_config
from .errors import DatabaseConnectionError
from .logging_setup import setup_logging
from .storage import MongoTaskStore, TaskStore, build_task_store

logger = logging.getLogger(__name__)

ROOT_MESSAGE = "Freelago server running and connected to MongoDB."


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Freelago API application...")
    if app.state.task_store is None:
        app.state.task_store = build_task_store(app.state.config)

    store: TaskStore = app.state.task_store
    if isinstance(store, MongoTaskStore):
        try:
            await store.cache.ensure_connected()
        except DatabaseConnectionError as e:
            # Requests retry the connection lazily.
            logger.error(f"MongoDB connection failed: {e}")
    logger.info("Freelago API application startup complete")
    yield

    # Shutdown
    logger.info("Shutting down Freelago API application...")
    await store.close()
    logger.info("Freelago API application shutdown complete")


def create_app(config: Optional[AppConfig] = None, task_store: Optional[TaskStore] = None) -> FastAPI:
    config = config or get_app_config()

    app = FastAPI(
        title="Freelago API",
        description="Task marketplace backend",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.task_store = task_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(tasks_router, tags=["Tasks"])

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Request validation failed on {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=422, content={"message": "Invalid request payload"})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"message": "Internal server error"})

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return ROOT_MESSAGE

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": "freelago-api", "version": __version__}

    @app.get("/readyz")
    async def ready_check(request: Request):
        if await get_task_store(request).ping():
            return {"status": "ready", "deps": {"db": "ok"}}
        return JSONResponse(status_code=503, content={"status": "not_ready", "deps": {"db": "error"}})

    @app.get("/metrics")
    async def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


# Validated in main(); a bad environment must not fail at import.
app = create_app(config=AppConfig())


def main() -> int:
    setup_logging()
    try:
        config = get_app_config()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    if config.is_production:
        logger.info("Production mode: serve freelago.main:app from the ASGI host; no local listener")
        return 0

    import uvicorn
    logger.info(f"Freelago running at {config.port}")
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        proxy_headers=True,
        forwarded_allow_ips="*",
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
