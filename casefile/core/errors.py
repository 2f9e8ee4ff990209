"""
Error taxonomy for the record store.
Validation and format errors are surfaced to callers; capacity and corrupt-state
errors are handled locally and only surface when degradation fails.
"""

from typing import List, Optional, Tuple


# Human-readable labels used in messages
FIELD_LABELS = {
    "id": "id",
    "name": "name",
    "phone": "phone",
    "caseDetails": "case details",
    "category": "category",
    "tags": "tags",
}


class CasefileError(Exception):
    """Base exception for all record store errors."""
    pass


class ValidationError(CasefileError):
    """
    One or more required fields are missing or malformed.

    Carries every violation, not just the first, as (field, message) pairs.
    """

    def __init__(self, errors: List[Tuple[str, str]]):
        self.errors = list(errors)
        super().__init__(self._summary())

    @property
    def fields(self) -> List[str]:
        return [field for field, _ in self.errors]

    def _summary(self) -> str:
        missing = [FIELD_LABELS.get(f, f) for f, msg in self.errors if msg == "missing"]
        invalid = [msg for _, msg in self.errors if msg != "missing"]

        parts = []
        if missing:
            parts.append(f"Missing required fields: {', '.join(missing)}")
        parts.extend(invalid)
        return "; ".join(parts) or "Invalid record"


class FormatError(CasefileError):
    """Import document failed shape or required-field checks."""

    def __init__(self, message: str, index: Optional[int] = None):
        self.index = index
        super().__init__(message)


class CapacityError(CasefileError):
    """Storage medium rejected a write because of its size limit."""
    pass


class CorruptStateError(CasefileError):
    """Persisted data is malformed. Logged on the read path, never raised to callers."""
    pass


class MalformedRecordError(CasefileError):
    """A record document holds a known field of the wrong type."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Field '{field}' {reason}")


class RecordNotFoundError(CasefileError):
    """Update targeted a record id that is not in the store."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Record not found: {record_id}")


class StorageUnavailableError(CasefileError):
    """Storage medium could not be opened, read or written."""
    pass
