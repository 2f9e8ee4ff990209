"""
Record store - owns the persisted set of case records.
A single storage key holds a JSON array of record documents. Reads never raise;
every mutation either returns a MutationResult or raises a CasefileError.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .config import STORAGE_KEY
from .errors import (
    CapacityError,
    CorruptStateError,
    MalformedRecordError,
    RecordNotFoundError,
    StorageUnavailableError,
    ValidationError,
)
from .notifier import ChangeNotifier
from .schema import Record
from ..util.logging import logger, sanitize_record


@dataclass
class MutationResult:
    """Outcome of a successful store mutation."""
    operation: str  # add, update, delete, replace_all
    count: int  # records in the store afterwards
    record_id: Optional[str] = None
    changed: bool = True
    image_stripped: bool = False


class RecordStore:
    """
    Data-access layer over a key-value storage backend.

    Args:
        backend: Storage medium (SQLiteBackend, MemoryBackend)
        notifier: Optional ChangeNotifier signalled after every mutation
        storage_key: Key holding the record array
    """

    def __init__(self, backend, notifier: Optional[ChangeNotifier] = None, storage_key: str = None):
        self.backend = backend
        self.notifier = notifier
        self.storage_key = storage_key or STORAGE_KEY

    def init(self) -> None:
        """Create the storage key with an empty array if it is absent."""
        try:
            if self.backend.get_item(self.storage_key) is None:
                logger.info(f"Initializing empty record array under '{self.storage_key}'")
                self.backend.set_item(self.storage_key, "[]")
        except Exception as e:
            logger.error(f"Error initializing record storage: {e}")

    # Reads

    def get_all(self) -> List[Record]:
        """All records in storage order. Absent or corrupt storage reads as empty."""
        try:
            raw = self.backend.get_item(self.storage_key)
        except StorageUnavailableError as e:
            logger.error(f"Error getting records from storage: {e}")
            return []

        if not raw:
            return []

        try:
            return self._decode(raw)
        except CorruptStateError as e:
            logger.log_corrupt_state(self.storage_key, str(e))
            return []

    def get_by_id(self, record_id: str) -> Optional[Record]:
        for record in self.get_all():
            if record.id == record_id:
                return record
        return None

    def count(self) -> int:
        return len(self.get_all())

    # Mutations

    def add(self, record: Record) -> MutationResult:
        """
        Insert a record, or overwrite the one with the same id.

        When the medium is full, retries once with the image payload stripped.

        Raises:
            ValidationError: a required field is empty
            CapacityError: the write does not fit even without the image
        """
        self._require_fields("add", record)
        logger.debug(f"Prepared record: {sanitize_record(record.to_dict())}")

        records = self.get_all()
        index = self._index_of(records, record.id)
        if index >= 0:
            logger.info(f"Updating existing record with ID: {record.id}")
            records[index] = record
        else:
            logger.info(f"Adding new record with ID: {record.id}")
            records.append(record)
            index = len(records) - 1

        image_stripped = False
        try:
            self._write(records)
        except CapacityError as e:
            if not record.image:
                logger.log_record_operation("add", record.id, "failed", {"error": str(e)})
                raise

            logger.warning("Quota exceeded. Trying to save without image...")
            records[index] = record.without_image()
            try:
                self._write(records)
            except CapacityError:
                logger.log_record_operation("add", record.id, "failed", {"error": "capacity", "image_stripped": True})
                raise
            image_stripped = True
            logger.info("Saved without image due to storage limitations")

        logger.log_record_operation("add", record.id, details={"count": len(records), "image_stripped": image_stripped})
        return self._mutated(MutationResult("add", len(records), record.id, image_stripped=image_stripped))

    def update(self, record: Record) -> MutationResult:
        """
        Replace the record with the same id.

        Raises:
            ValidationError: a required field is empty
            RecordNotFoundError: no record has this id; the store is left unchanged
        """
        self._require_fields("update", record)

        records = self.get_all()
        index = self._index_of(records, record.id)
        if index < 0:
            logger.log_record_operation("update", record.id, "failed", {"error": "not found"})
            raise RecordNotFoundError(record.id)

        records[index] = record
        self._write(records)

        logger.log_record_operation("update", record.id, details={"count": len(records)})
        return self._mutated(MutationResult("update", len(records), record.id))

    def delete(self, record_id: str) -> MutationResult:
        """Remove a record. An unknown id is a no-op, not an error."""
        records = self.get_all()
        remaining = [r for r in records if r.id != record_id]
        changed = len(remaining) != len(records)
        self._write(remaining)

        logger.log_record_operation("delete", record_id, details={"count": len(remaining), "changed": changed})
        return self._mutated(MutationResult("delete", len(remaining), record_id, changed=changed))

    def replace_all(self, records: List[Record]) -> MutationResult:
        """Overwrite the whole store. Used for import and bulk wipe."""
        records = list(records)
        self._write(records)

        logger.log_record_operation("replace_all", details={"count": len(records)})
        return self._mutated(MutationResult("replace_all", len(records)))

    def clear(self) -> MutationResult:
        return self.replace_all([])

    # Diagnostics

    def diagnostic_dump(self) -> Dict[str, Any]:
        """Log and return record count, approximate storage size and first record identity."""
        records = self.get_all()
        try:
            usage = self.backend.usage_bytes()
        except StorageUnavailableError as e:
            logger.error(f"Error measuring storage: {e}")
            usage = 0

        first = records[0] if records else None
        dump = {
            "storage_key": self.storage_key,
            "record_count": len(records),
            "usage_bytes": usage,
            "first_record_id": first.id if first else None,
            "first_record_name": first.name if first else None,
        }
        logger.log_storage_diagnostics(
            self.storage_key, len(records), usage,
            dump["first_record_id"], dump["first_record_name"]
        )
        return dump

    # Internals

    def _decode(self, raw: str) -> List[Record]:
        try:
            parsed = json.loads(raw)
        except ValueError as e:
            raise CorruptStateError(f"Stored data is not valid JSON: {e}") from e

        if not isinstance(parsed, list):
            raise CorruptStateError("Stored data is not an array")

        records = []
        for i, item in enumerate(parsed):
            if not isinstance(item, dict):
                raise CorruptStateError(f"Stored element {i} is not an object")
            try:
                records.append(Record.from_dict(item))
            except MalformedRecordError as e:
                raise CorruptStateError(f"Stored element {i} is malformed: {e}") from e
        return records

    def _write(self, records: List[Record]) -> None:
        payload = json.dumps([r.to_dict() for r in records], ensure_ascii=False)
        self.backend.set_item(self.storage_key, payload)

    def _mutated(self, result: MutationResult) -> MutationResult:
        if self.notifier is not None:
            self.notifier.notify()
        return result

    @staticmethod
    def _index_of(records: List[Record], record_id: str) -> int:
        for i, r in enumerate(records):
            if r.id == record_id:
                return i
        return -1

    @staticmethod
    def _require_fields(operation: str, record: Record) -> None:
        missing = record.missing_fields()
        if missing:
            errors = [(field, "missing") for field in missing]
            logger.log_validation_error(operation, errors, record.id or None)
            raise ValidationError(errors)
