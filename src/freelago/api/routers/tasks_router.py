from __future__ import annotations
import logging
from contextlib import contextmanager
from time import perf_counter
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request  # pyright: ignore[reportMissingImports]
from fastapi.responses import JSONResponse  # pyright: ignore[reportMissingImports]
from prometheus_client import Counter, Histogram  # pyright: ignore[reportMissingImports]

from ...config import AppConfig
from ...errors import InvalidIdentifierError, TaskNotFoundError, TaskValidationError
from ...models.task import format_task, validate_task_payload
from ...storage import TaskStore, build_task_store

router = APIRouter()
logger = logging.getLogger(__name__)

# --- Observability ---
TASK_REQUESTS = Counter(
    "freelago_task_requests_total", "Task API requests by outcome", ["operation", "outcome"]
)
TASK_STORE_LATENCY = Histogram(
    "freelago_task_store_latency_seconds", "Task store call latency seconds", ["operation"]
)

# --- Client-facing messages ---
MSG_CREATE_FAILED = "Failed to create task"
MSG_LIST_FAILED = "Failed to fetch all tasks"
MSG_OWNER_LIST_FAILED = "Failed to fetch tasks"
MSG_NOT_FOUND = "Task not found"
MSG_GET_FAILED = "Invalid Task ID format or Server Error"
MSG_UPDATE_FAILED = "Failed to update task"
MSG_UPDATED = "Task updated successfully"
MSG_DELETE_FAILED = "Invalid Task ID format"
MSG_INVALID_PAYLOAD = "Invalid task payload"


# --- Dependencies ---
def get_task_store(request: Request) -> TaskStore:
    """The app's store, built on first use when no lifespan startup ran."""
    state = request.app.state
    if state.task_store is None:
        state.task_store = build_task_store(state.config)
        logger.info("Task store built lazily (%s)", type(state.task_store).__name__)
    return state.task_store


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


# --- Helpers ---
def _message(status_code: int, message: str, operation: str, outcome: str) -> JSONResponse:
    TASK_REQUESTS.labels(operation, outcome).inc()
    return JSONResponse(status_code=status_code, content={"message": message})


@contextmanager
def _timed(operation: str):
    started = perf_counter()
    try:
        yield
    finally:
        TASK_STORE_LATENCY.labels(operation).observe(perf_counter() - started)


def _check_payload(payload: Dict[str, Any], config: AppConfig, *, for_update: bool) -> None:
    if config.strict_payloads:
        validate_task_payload(payload, for_update=for_update)


# --- Endpoints ---

@router.post("/task")
async def create_task(
    payload: Dict[str, Any],
    store: TaskStore = Depends(get_task_store),
    config: AppConfig = Depends(get_config),
):
    """
    Create a new task.

    The server stamps ``createdAt`` and resets ``bidsCount`` to 0; the body is
    otherwise stored as sent. Returns the insert acknowledgment.
    """
    try:
        _check_payload(payload, config, for_update=False)
        with _timed("create"):
            result = await store.create(payload)
    except TaskValidationError as e:
        logger.warning(f"Rejected task payload: {e.errors}")
        return _message(400, MSG_INVALID_PAYLOAD, "create", "invalid")
    except Exception:
        logger.exception("Error creating task")
        return _message(500, MSG_CREATE_FAILED, "create", "error")

    TASK_REQUESTS.labels("create", "ok").inc()
    return result


@router.get("/tasks")
async def list_tasks(store: TaskStore = Depends(get_task_store)):
    try:
        with _timed("list_all"):
            tasks = await store.list_all()
    except Exception:
        logger.exception("Error fetching all tasks")
        return _message(500, MSG_LIST_FAILED, "list_all", "error")

    TASK_REQUESTS.labels("list_all", "ok").inc()
    return [format_task(t) for t in tasks]


@router.get("/tasks/{task_id}")
async def get_task(task_id: str, store: TaskStore = Depends(get_task_store)):
    try:
        with _timed("get"):
            task = await store.get(task_id)
    except TaskNotFoundError:
        logger.info(f"Task not found for ID: {task_id}")
        return _message(404, MSG_NOT_FOUND, "get", "not_found")
    except Exception:
        # Malformed ids and server errors share one response.
        logger.exception("Error fetching single task by ID")
        return _message(400, MSG_GET_FAILED, "get", "error")

    TASK_REQUESTS.labels("get", "ok").inc()
    return format_task(task)


@router.get("/my-tasks/{email}")
async def list_tasks_by_owner(email: str, store: TaskStore = Depends(get_task_store)) -> Any:
    try:
        with _timed("list_by_owner"):
            tasks: List[Dict[str, Any]] = await store.list_by_owner(email)
    except Exception:
        logger.exception("Error fetching tasks")
        return _message(500, MSG_OWNER_LIST_FAILED, "list_by_owner", "error")

    TASK_REQUESTS.labels("list_by_owner", "ok").inc()
    return [format_task(t, default_bids=True) for t in tasks]


@router.put("/tasks/{task_id}")
async def update_task(
    task_id: str,
    payload: Dict[str, Any],
    store: TaskStore = Depends(get_task_store),
    config: AppConfig = Depends(get_config),
):
    """
    Overwrite the allow-listed fields of one task.

    Fields missing from the body are written as null. ``modifiedCount`` is 0
    when the task matched but nothing changed.
    """
    try:
        _check_payload(payload, config, for_update=True)
        with _timed("update"):
            modified = await store.update(task_id, payload)
    except TaskValidationError as e:
        logger.warning(f"Rejected task payload: {e.errors}")
        return _message(400, MSG_INVALID_PAYLOAD, "update", "invalid")
    except TaskNotFoundError:
        return _message(404, MSG_NOT_FOUND, "update", "not_found")
    except Exception:
        logger.exception("Error updating task")
        return _message(400, MSG_UPDATE_FAILED, "update", "error")

    TASK_REQUESTS.labels("update", "ok").inc()
    logger.info(f"Task {task_id} updated (modified={modified})")
    return {"message": MSG_UPDATED, "modifiedCount": modified}


@router.delete("/task/{task_id}")
async def delete_task(task_id: str, store: TaskStore = Depends(get_task_store)):
    try:
        with _timed("delete"):
            deleted = await store.delete(task_id)
    except TaskNotFoundError:
        return _message(404, MSG_NOT_FOUND, "delete", "not_found")
    except InvalidIdentifierError:
        return _message(400, MSG_DELETE_FAILED, "delete", "invalid_id")
    except Exception:
        logger.exception("Error deleting task")
        return _message(400, MSG_DELETE_FAILED, "delete", "error")

    TASK_REQUESTS.labels("delete", "ok").inc()
    logger.info(f"Task {task_id} deleted")
    return {"acknowledged": True, "deletedCount": deleted}
