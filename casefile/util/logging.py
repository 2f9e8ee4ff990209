"""
Structured operation logging for the record store.
Image payloads and case text never reach the log verbatim.
"""

import logging
from typing import Any, Dict, List


class StructuredLogger:
    """Structured logger for store, notifier and import/export operations."""

    def __init__(self, name: str = "casefile"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status in ("failed", "rejected"):
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_record_operation(self, operation: str, record_id: str = None, status: str = "success", details: Dict[str, Any] = None):
        """Log a record store mutation."""
        log_details = {}
        if record_id is not None:
            log_details["record_id"] = record_id
        if details:
            log_details.update(details)

        self.log_operation(f"record.{operation}", status, log_details)

    def log_storage_diagnostics(self, storage_key: str, record_count: int, usage_bytes: int,
                                first_record_id: str = None, first_record_name: str = None):
        """Log the storage snapshot used for operator troubleshooting."""
        log_details = {
            "storage_key": storage_key,
            "record_count": record_count,
            "usage_kb": round(usage_bytes / 1024, 2),
        }
        if first_record_id is not None:
            log_details["first_record_id"] = first_record_id
            log_details["first_record_name"] = _truncate(first_record_name or "", 50)

        self.log_operation("storage.diagnostics", "snapshot", log_details)

    def log_corrupt_state(self, storage_key: str, reason: str):
        """Log malformed persisted data that was read as an empty store."""
        self.logger.warning(
            f"Operation: storage.read, Status: corrupt, Details: "
            f"{{'storage_key': '{storage_key}', 'reason': '{_truncate(reason, 100)}', 'fallback': 'empty'}}"
        )

    def log_export(self, record_count: int, filename: str = None):
        """Log an export of the record set."""
        log_details = {"record_count": record_count}
        if filename:
            log_details["filename"] = filename
        self.log_operation("codec.export", "success", log_details)

    def log_import(self, record_count: int = None, status: str = "success", error: str = None, index: int = None):
        """Log an import attempt."""
        log_details = {}
        if record_count is not None:
            log_details["record_count"] = record_count
        if error:
            log_details["error"] = _truncate(error, 100)
        if index is not None:
            log_details["index"] = index
        self.log_operation("codec.import", status, log_details)

    def log_validation_error(self, operation: str, errors: List[Any], record_id: str = None):
        """Log validation failures with field names only."""
        log_details = {
            "operation": operation,
            "fields": [e[0] if isinstance(e, (tuple, list)) else str(e)[:100] for e in errors],
            "error_count": len(errors),
        }
        if record_id:
            log_details["record_id"] = record_id

        self.log_operation("validation.error", "rejected", log_details)

    def log_notification(self, source: str, listener_count: int):
        """Log a change notification dispatch."""
        self.log_operation("notifier.dispatch", "success", {
            "source": source,
            "listeners": listener_count,
        })

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


def _truncate(value: str, limit: int) -> str:
    return value[:limit - 3] + "..." if len(value) > limit else value


def sanitize_record(data: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a record document safe to log: image replaced, long text truncated."""
    sanitized = {}
    for k, v in data.items():
        if k == "image":
            sanitized[k] = f"[{len(v)} chars]" if v else v
        elif isinstance(v, str):
            sanitized[k] = _truncate(v, 50)
        else:
            sanitized[k] = v
    return sanitized


# Global logger instance
logger = StructuredLogger()
