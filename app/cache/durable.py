"""
SQLite key-value storage for the durable cache tier.

Plays the role browser local storage plays for a web client: string keys,
string values, survives process restarts.
"""
import sqlite3
import logging
import threading
from pathlib import Path
from typing import Optional, List
from contextlib import contextmanager

logger = logging.getLogger("cache.durable")

# Default database path
DEFAULT_DB_PATH = Path(__file__).parent.parent.parent / "data" / "catalog_cache.db"


SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class DurableStoreError(Exception):
    """Raised when the durable store cannot complete an operation."""


class StorageQuotaExceeded(DurableStoreError):
    """Raised when a write would exceed the configured item quota."""


class SQLiteKeyValueStore:
    """
    SQLite-backed string key-value store.

    Supports the four operations the cache needs:
    - get_item / set_item / remove_item
    - keys(prefix) enumeration

    All sqlite3 errors surface as DurableStoreError.
    """

    def __init__(self, db_path: Optional[Path] = None, max_items: Optional[int] = None):
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self.max_items = max_items
        self._write_lock = threading.Lock()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize database with schema."""
        with self._get_connection() as conn:
            conn.executescript(SCHEMA)
            conn.commit()
        logger.info(f"Durable cache store ready at {self.db_path}")

    @contextmanager
    def _get_connection(self):
        """Get a database connection, translating sqlite errors."""
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise DurableStoreError(f"Cannot open {self.db_path}: {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            raise DurableStoreError(str(e)) from e
        finally:
            conn.close()

    def get_item(self, key: str) -> Optional[str]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
            return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        """
        Store a value, replacing any existing one.

        Raises:
            StorageQuotaExceeded: If a new key would exceed ``max_items``
            DurableStoreError: On any database failure
        """
        with self._write_lock, self._get_connection() as conn:
            if self.max_items is not None:
                exists = conn.execute(
                    "SELECT 1 FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
                count = conn.execute("SELECT COUNT(*) FROM kv_store").fetchone()[0]
                if not exists and count >= self.max_items:
                    raise StorageQuotaExceeded(
                        f"Quota of {self.max_items} items reached, cannot store {key}"
                    )
            conn.execute(
                "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
                (key, value),
            )
            conn.commit()

    def remove_item(self, key: str) -> None:
        with self._write_lock, self._get_connection() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()

    def keys(self, prefix: str = "") -> List[str]:
        """List keys starting with ``prefix``."""
        with self._get_connection() as conn:
            rows = conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
            return [row[0] for row in rows if row[0].startswith(prefix)]
