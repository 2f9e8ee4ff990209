"""
Record form validation - required fields, phone format and tag entry.
Every violation is collected into one ValidationError before rejecting.
"""

import time
import uuid
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..api.schemas import RecordForm
from ..util.logging import logger
from .errors import ValidationError
from .schema import Record


def now_ms() -> int:
    return int(time.time() * 1000)


def add_tag(tags: List[str], tag: str) -> List[str]:
    """Append a trimmed tag. Blank tags and duplicates are silently ignored."""
    tag = (tag or "").strip()
    if not tag or tag in tags:
        return list(tags)
    return list(tags) + [tag]


def remove_tag(tags: List[str], tag: str) -> List[str]:
    return [t for t in tags if t != tag]


_DOCUMENT_KEYS = {"case_details": "caseDetails", "created_at": "createdAt"}


def _field_errors(exc: PydanticValidationError) -> List[tuple]:
    errors = []
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "record"
        field = _DOCUMENT_KEYS.get(field, field)
        cause = error.get("ctx", {}).get("error")
        message = str(cause) if cause is not None else error["msg"]
        if message.endswith("cannot be empty"):
            message = "missing"
        errors.append((field, message))
    return errors


def validate_form(data: Dict[str, Any], existing: Optional[Record] = None) -> Dict[str, Any]:
    """
    Validate a candidate record (without id).

    Args:
        data: Form fields using document keys (name, phone, caseDetails, ...)
        existing: The record being edited, or None for a first submission

    Returns:
        Cleaned document fields. New submissions get createdAt stamped if unset;
        edits leave createdAt to the caller.

    Raises:
        ValidationError: listing every missing or invalid field
    """
    try:
        form = RecordForm.model_validate(data)
    except PydanticValidationError as e:
        errors = _field_errors(e)
        logger.log_validation_error("form", errors, existing.id if existing else None)
        raise ValidationError(errors) from e

    tags: List[str] = []
    for tag in form.tags:
        tags = add_tag(tags, tag)

    cleaned = {
        "name": form.name,
        "phone": form.phone,
        "caseDetails": form.case_details,
        "image": form.image if form.image is not None else "",
        "category": form.category if form.category is not None else "",
        "tags": tags,
    }
    if form.created_at is not None:
        cleaned["createdAt"] = form.created_at
    elif existing is None:
        cleaned["createdAt"] = now_ms()

    return cleaned


def prepare_new(data: Dict[str, Any]) -> Record:
    """Validate a first submission and give it a fresh id. createdAt is stamped if unset."""
    cleaned = validate_form(data)
    return Record.from_dict({"id": str(uuid.uuid4()), **cleaned})


def prepare_edit(existing: Record, data: Dict[str, Any]) -> Record:
    """Validate an edit, keeping the existing id and creation time."""
    cleaned = validate_form(data, existing=existing)
    cleaned["id"] = existing.id
    if existing.created_at is not None:
        cleaned["createdAt"] = existing.created_at
    else:
        cleaned.pop("createdAt", None)
    return Record.from_dict({**existing.extra, **cleaned})
