from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from bson import Decimal128, ObjectId
from bson.errors import InvalidId
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..errors import InvalidIdentifierError, TaskValidationError

# Fields the update route is allowed to overwrite.
ALLOWED_UPDATE_FIELDS = ("title", "description", "category", "price", "budget", "deadline")

# Keys the server owns on create.
SERVER_ASSIGNED_FIELDS = ("_id", "id", "createdAt", "bidsCount")


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC with millisecond precision and a 'Z' suffix."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_object_id(task_id: Any) -> ObjectId:
    if isinstance(task_id, ObjectId):
        return task_id
    # ObjectId(None) would mint a fresh id
    if not isinstance(task_id, str):
        raise InvalidIdentifierError(task_id)
    try:
        return ObjectId(task_id)
    except (InvalidId, TypeError) as exc:
        raise InvalidIdentifierError(task_id) from exc


def prepare_new_task(payload: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Copy of the client payload with the server-owned fields set."""
    doc = {k: v for k, v in payload.items() if k not in ("_id", "id")}
    doc["createdAt"] = utc_timestamp(now)
    doc["bidsCount"] = 0
    return doc


def build_update_fields(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    The $set document for an update.

    Every allow-listed field is written; fields missing from the payload
    become null.
    """
    return {name: payload.get(name) for name in ALLOWED_UPDATE_FIELDS}


def format_task(doc: Dict[str, Any], *, default_bids: bool = False) -> Dict[str, Any]:
    """JSON-safe copy of a stored document with a string 'id'."""
    formatted = jsonable_encoder(doc, custom_encoder={ObjectId: str, Decimal128: str})
    if "_id" in doc:
        formatted["id"] = str(doc["_id"])
    if default_bids:
        formatted["bidsCount"] = doc.get("bidsCount") or 0
    return formatted


# --- Strict payload models ---

class _TaskFields(BaseModel):
    model_config = ConfigDict(extra="allow", strict=True)

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    deadline: Optional[str] = None
    price: Optional[Union[int, float, str]] = None
    budget: Optional[Union[int, float, str]] = None

    @field_validator("price", "budget", mode="before")
    @classmethod
    def validate_amount(cls, v):
        if v is None:
            return v
        if isinstance(v, bool):
            raise ValueError("must be a number")
        if isinstance(v, str):
            try:
                float(v)
            except ValueError:
                raise ValueError("must be a number or a numeric string")
        return v


class TaskCreatePayload(_TaskFields):
    title: str
    userEmail: str


class TaskUpdatePayload(_TaskFields):
    pass


def validate_task_payload(payload: Dict[str, Any], *, for_update: bool = False) -> None:
    """Raise TaskValidationError when a body does not match the task shape."""
    model = TaskUpdatePayload if for_update else TaskCreatePayload
    try:
        model.model_validate(payload)
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "error": err.get("msg")}
            for err in exc.errors()
        ]
        raise TaskValidationError("Invalid task payload", errors) from exc
