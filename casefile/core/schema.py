"""
Record model for suspect case entries.
Persisted with the camelCase keys of the exported document format.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import MalformedRecordError


CATEGORIES = ["Theft", "Assault", "Fraud", "Drug Offense", "Homicide", "Other"]

REQUIRED_FIELDS = ["id", "name", "phone", "caseDetails"]

# document key -> attribute name
_KEY_MAP = {
    "id": "id",
    "name": "name",
    "phone": "phone",
    "caseDetails": "case_details",
    "image": "image",
    "category": "category",
    "tags": "tags",
    "createdAt": "created_at",
}


def _check_types(data: Dict[str, Any]) -> None:
    for key in REQUIRED_FIELDS:
        if not isinstance(data.get(key), str):
            raise MalformedRecordError(key, "must be a string")

    for key in ("image", "category"):
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            raise MalformedRecordError(key, "must be a string")

    tags = data.get("tags")
    if tags is not None and (not isinstance(tags, list) or not all(isinstance(t, str) for t in tags)):
        raise MalformedRecordError("tags", "must be a list of strings")

    created_at = data.get("createdAt")
    # bool is an int subclass
    if created_at is not None and (isinstance(created_at, bool) or not isinstance(created_at, int)):
        raise MalformedRecordError("createdAt", "must be an integer timestamp")


@dataclass
class Record:
    id: str
    name: str
    phone: str
    case_details: str
    image: Optional[str] = None  # data URI
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    created_at: Optional[int] = None  # epoch milliseconds
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted document shape. Unset optional fields are omitted."""
        data = {}
        for key, attr in _KEY_MAP.items():
            value = getattr(self, attr)
            if value is None and key not in ("id", "name", "phone", "caseDetails"):
                continue
            data[key] = list(value) if attr == "tags" else value
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Record':
        """
        Create a record from a persisted document element.

        Raises:
            MalformedRecordError: a known field holds a value of the wrong type
        """
        _check_types(data)
        kwargs = {attr: data.get(key) for key, attr in _KEY_MAP.items()}
        if kwargs["tags"] is not None:
            kwargs["tags"] = list(kwargs["tags"])
        extra = {k: v for k, v in data.items() if k not in _KEY_MAP}
        return cls(extra=extra, **kwargs)

    def missing_fields(self) -> List[str]:
        """Document keys of required fields that are empty on this record."""
        return [key for key in REQUIRED_FIELDS if not getattr(self, _KEY_MAP[key])]

    def without_image(self) -> 'Record':
        """Copy of this record with the image payload cleared."""
        data = self.to_dict()
        data["image"] = ""
        return Record.from_dict(data)
