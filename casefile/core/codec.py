"""
Import/export of the full record set as a portable JSON document.
Import is all-or-nothing: the document is checked completely before the store is touched.
"""

import asyncio
import json
from datetime import date
from pathlib import Path
from typing import List, Optional, Union

from .config import EXPORT_FILENAME_PREFIX
from .errors import FormatError, MalformedRecordError
from .schema import REQUIRED_FIELDS, Record
from .store import MutationResult, RecordStore
from ..util.logging import logger


def export_records(records: List[Record]) -> str:
    """Serialize every record, all fields, as pretty-printed JSON."""
    return json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)


def export_filename(day: Optional[date] = None) -> str:
    """Download name for an export, e.g. convict-records-2024-05-01.json."""
    day = day or date.today()
    return f"{EXPORT_FILENAME_PREFIX}-{day.isoformat()}.json"


def export_file(store: RecordStore, directory: Union[str, Path], day: Optional[date] = None) -> Path:
    """Write the current store as an export document under its dated filename."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    path = directory / export_filename(day)
    records = store.get_all()
    path.write_text(export_records(records), encoding="utf-8")

    logger.log_export(len(records), path.name)
    return path


def parse_document(text: Union[str, bytes]) -> List[Record]:
    """
    Validate an import document and build its records.

    Raises:
        FormatError: not JSON, not an array, or an element lacks a required field
            or holds a field of the wrong type
    """
    try:
        data = json.loads(text)
    except (ValueError, TypeError) as e:
        raise FormatError(f"Invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise FormatError("Invalid data format: Expected an array of records")

    records = []
    for index, item in enumerate(data):
        if not isinstance(item, dict) or any(not item.get(key) for key in REQUIRED_FIELDS):
            raise FormatError(f"Record at index {index} is missing required fields", index=index)
        try:
            records.append(Record.from_dict(item))
        except MalformedRecordError as e:
            raise FormatError(f"Record at index {index} has an invalid field: {e}", index=index) from e
    return records


def import_document(store: RecordStore, text: Union[str, bytes]) -> MutationResult:
    """Replace the entire store with the records of a document. Not a merge."""
    try:
        records = parse_document(text)
    except FormatError as e:
        logger.log_import(status="rejected", error=str(e), index=e.index)
        raise

    result = store.replace_all(records)
    logger.log_import(len(records))
    return result


async def import_file(store: RecordStore, path: Union[str, Path]) -> MutationResult:
    """Read an externally supplied file off the event loop, then import it."""
    try:
        text = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.log_import(status="failed", error=str(e))
        raise FormatError("Error reading file") from e

    return import_document(store, text)
