"""
Error taxonomy for the Task API.

Storage implementations raise these; the route handlers translate them into
HTTP status codes and a short client-facing message.
"""
from __future__ import annotations


class FreelagoError(Exception):
    """Base class for all service errors."""


class DatabaseConnectionError(FreelagoError, ConnectionError):
    """The database handle could not be established or reused."""


class TaskNotFoundError(FreelagoError):
    """No document matches the given identifier."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class InvalidIdentifierError(FreelagoError, ValueError):
    """The identifier cannot be parsed into an ObjectId."""

    def __init__(self, task_id: object):
        super().__init__(f"Invalid task identifier: {task_id!r}")
        self.task_id = task_id


class OperationError(FreelagoError):
    """Any other failure raised by a database call."""


class TaskValidationError(FreelagoError, ValueError):
    """A request body failed the strict payload check."""

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message)
        self.errors = errors or []
