"""
Storage medium - key-value slots backing the record store.
SQLite-backed by default; an in-memory backend swaps in for tests.
"""

import sqlite3
from contextlib import contextmanager
from typing import Dict, Generator, List, Optional

from .config import DB_PATH, ensure_db_directory
from .errors import CapacityError, StorageUnavailableError


@contextmanager
def get_db(db_path: str = None) -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection."""
    conn = sqlite3.connect(db_path or DB_PATH)
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: str = None):
    """Initialize the database with required tables."""
    ensure_db_directory(db_path)
    with get_db(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        ''')

        # Change counter other views poll to notice writes they did not make
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS kv_meta (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                version INTEGER NOT NULL DEFAULT 0
            )
        ''')
        cursor.execute('INSERT OR IGNORE INTO kv_meta (id, version) VALUES (1, 0)')

        for event in ("INSERT", "UPDATE", "DELETE"):
            cursor.execute(f'''
                CREATE TRIGGER IF NOT EXISTS kv_version_{event.lower()}
                AFTER {event} ON kv
                BEGIN
                    UPDATE kv_meta SET version = version + 1 WHERE id = 1;
                END
            ''')

        conn.commit()


def health_check(db_path: str = None):
    """Check database health."""
    try:
        with get_db(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
            table_names = [table[0] for table in cursor.fetchall()]
            return all(table in table_names for table in ['kv', 'kv_meta'])
    except Exception:
        return False


class SQLiteBackend:
    """Key-value slots in a single SQLite table, with a size quota."""

    def __init__(self, db_path: str = None, quota_bytes: Optional[int] = None):
        self.db_path = db_path or DB_PATH
        self.quota_bytes = quota_bytes
        try:
            init_db(self.db_path)
        except (sqlite3.Error, OSError) as e:
            raise StorageUnavailableError(f"Cannot open storage at {self.db_path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        try:
            with get_db(self.db_path) as conn:
                row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
                return row[0] if row else None
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"Failed to read key '{key}': {e}") from e

    def set_item(self, key: str, value: str) -> None:
        try:
            with get_db(self.db_path) as conn:
                if self.quota_bytes is not None:
                    row = conn.execute(
                        "SELECT COALESCE(SUM(LENGTH(key) + LENGTH(value)), 0) FROM kv WHERE key != ?",
                        (key,)
                    ).fetchone()
                    needed = row[0] + len(key) + len(value)
                    if needed > self.quota_bytes:
                        raise CapacityError(
                            f"Writing '{key}' needs {needed} bytes, quota is {self.quota_bytes}"
                        )
                conn.execute(
                    "INSERT INTO kv (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value)
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"Failed to write key '{key}': {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            with get_db(self.db_path) as conn:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
                conn.commit()
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"Failed to remove key '{key}': {e}") from e

    def keys(self) -> List[str]:
        try:
            with get_db(self.db_path) as conn:
                return [row[0] for row in conn.execute("SELECT key FROM kv ORDER BY key")]
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"Failed to list keys: {e}") from e

    def usage_bytes(self) -> int:
        """Approximate size of everything on the medium (key + value characters)."""
        try:
            with get_db(self.db_path) as conn:
                row = conn.execute(
                    "SELECT COALESCE(SUM(LENGTH(key) + LENGTH(value)), 0) FROM kv"
                ).fetchone()
                return row[0]
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"Failed to measure storage: {e}") from e

    def data_version(self) -> int:
        try:
            with get_db(self.db_path) as conn:
                return conn.execute("SELECT version FROM kv_meta WHERE id = 1").fetchone()[0]
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"Failed to read change counter: {e}") from e

    def health_check(self) -> bool:
        return health_check(self.db_path)


class MemoryBackend:
    """In-process key-value slots. Share one instance between stores to simulate two views."""

    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self._items: Dict[str, str] = {}
        self._version = 0

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            others = sum(len(k) + len(v) for k, v in self._items.items() if k != key)
            needed = others + len(key) + len(value)
            if needed > self.quota_bytes:
                raise CapacityError(
                    f"Writing '{key}' needs {needed} bytes, quota is {self.quota_bytes}"
                )
        self._items[key] = value
        self._version += 1

    def remove_item(self, key: str) -> None:
        if key in self._items:
            del self._items[key]
            self._version += 1

    def keys(self) -> List[str]:
        return sorted(self._items)

    def usage_bytes(self) -> int:
        return sum(len(k) + len(v) for k, v in self._items.items())

    def data_version(self) -> int:
        return self._version

    def health_check(self) -> bool:
        return True
