"""
Persistent storage for the table: balance, recent rounds and statistics.
Uses a single SQLite key/value table; values are JSON documents.
"""

import sqlite3
import threading
from pathlib import Path
from typing import Any, Optional

import orjson

from roulette_engine.core.history import DEFAULT_HISTORY_SIZE, RoundHistory
from roulette_engine.core.logger import get_logger
from roulette_engine.core.stats import SessionStats

logger = get_logger("storage")

BALANCE_KEY = "balance"
HISTORY_KEY = "history"
STATS_KEY = "stats"


class TableStore:
    """Thread-safe SQLite key/value store."""

    def __init__(self, db_path: Path, default_balance: int = 1000):
        self.db_path = Path(db_path)
        self.default_balance = default_balance
        self._local = threading.local()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initializing table store at {self.db_path}")
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        if getattr(self._local, "connection", None) is None:
            self._local.connection = sqlite3.connect(
                str(self.db_path), check_same_thread=False
            )
            self._local.connection.row_factory = sqlite3.Row
        return self._local.connection

    def _init_db(self):
        conn = self._get_connection()
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS table_state (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """
        )
        conn.commit()

    def close(self):
        conn = getattr(self._local, "connection", None)
        if conn is not None:
            conn.close()
            self._local.connection = None

    # ==================== Raw Access ====================

    def get(self, key: str) -> Optional[Any]:
        """Decoded value for ``key``; None when missing or unreadable."""
        row = self._get_connection().execute(
            "SELECT value FROM table_state WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        try:
            return orjson.loads(row["value"])
        except orjson.JSONDecodeError:
            logger.warning(f"Discarding corrupt value stored under '{key}'")
            return None

    def set(self, key: str, value: Any):
        conn = self._get_connection()
        conn.execute(
            """
            INSERT INTO table_state (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            (key, orjson.dumps(value).decode("utf-8")),
        )
        conn.commit()

    def delete(self, key: str):
        conn = self._get_connection()
        conn.execute("DELETE FROM table_state WHERE key = ?", (key,))
        conn.commit()

    # ==================== Balance ====================

    def load_balance(self) -> int:
        value = self.get(BALANCE_KEY)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            return self.default_balance
        return int(value)

    def save_balance(self, balance: int):
        self.set(BALANCE_KEY, int(balance))

    def clear_balance(self):
        self.delete(BALANCE_KEY)

    # ==================== History & Stats ====================

    def load_history(self, max_entries: int = DEFAULT_HISTORY_SIZE) -> RoundHistory:
        return RoundHistory.from_list(self.get(HISTORY_KEY), max_entries=max_entries)

    def save_history(self, history: RoundHistory):
        self.set(HISTORY_KEY, history.to_list())

    def load_stats(self) -> SessionStats:
        return SessionStats.from_dict(self.get(STATS_KEY))

    def save_stats(self, stats: SessionStats):
        self.set(STATS_KEY, stats.to_dict())
