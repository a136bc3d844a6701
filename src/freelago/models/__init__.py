"""
Task document helpers and payload models.
"""

from .task import (
    ALLOWED_UPDATE_FIELDS,
    TaskCreatePayload,
    TaskUpdatePayload,
    build_update_fields,
    format_task,
    parse_object_id,
    prepare_new_task,
    utc_timestamp,
    validate_task_payload,
)

__all__ = [
    "ALLOWED_UPDATE_FIELDS",
    "TaskCreatePayload",
    "TaskUpdatePayload",
    "build_update_fields",
    "format_task",
    "parse_object_id",
    "prepare_new_task",
    "utc_timestamp",
    "validate_task_payload",
]
