"""
Runtime configuration for the case record store.
All settings come from environment variables with local-first defaults.
"""

import os
from pathlib import Path

# Storage medium configuration
DB_PATH = os.getenv("DB_PATH", "./data/casefile.db")
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "sqlite")  # sqlite|memory
STORAGE_KEY = os.getenv("STORAGE_KEY", "convicts")

# Browser local storage caps out around 5 MiB; keep the same ceiling
STORAGE_QUOTA_BYTES = int(os.getenv("STORAGE_QUOTA_BYTES", str(5 * 1024 * 1024)))

# Debug flag is also exposed as a function so tests can flip it at runtime
DEBUG = os.getenv("DEBUG", "true").lower() == "true"

# Change notification (cross-view watcher)
NOTIFY_POLL_INTERVAL_SEC = float(os.getenv("NOTIFY_POLL_INTERVAL_SEC", "1.0"))

# Import/export
EXPORT_FILENAME_PREFIX = os.getenv("EXPORT_FILENAME_PREFIX", "convict-records")

VERSION = "1.0.0"


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "true").lower() == "true"


def ensure_db_directory(db_path: str = None):
    """Ensure the database directory exists."""
    Path(db_path or DB_PATH).parent.mkdir(parents=True, exist_ok=True)


def get_storage_backend():
    """Build the configured storage backend."""
    from .db import MemoryBackend, SQLiteBackend

    if STORAGE_BACKEND == "memory":
        return MemoryBackend(quota_bytes=STORAGE_QUOTA_BYTES)
    return SQLiteBackend(DB_PATH, quota_bytes=STORAGE_QUOTA_BYTES)


def validate_storage_config():
    """Validate storage configuration and return any issues."""
    issues = []

    if STORAGE_BACKEND not in ["sqlite", "memory"]:
        issues.append(f"Invalid STORAGE_BACKEND: {STORAGE_BACKEND}")

    if not STORAGE_KEY.strip():
        issues.append("STORAGE_KEY must not be empty")

    if STORAGE_QUOTA_BYTES < 1:
        issues.append("STORAGE_QUOTA_BYTES must be >= 1")

    if NOTIFY_POLL_INTERVAL_SEC <= 0:
        issues.append("NOTIFY_POLL_INTERVAL_SEC must be > 0")

    return issues
