"""SQLite-backed key/value store for search history and broken links.

Each record is a JSON blob under a fixed key, overwritten whole on every
save. Loading is best-effort: a missing or malformed record yields an empty
default and a logged warning, never an exception.
"""

import json
import logging
import sqlite3
from collections.abc import Callable, Iterable
from datetime import datetime
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from careersync.core.errors import PersistenceError
from careersync.core.schemas import HISTORY_LIMIT, SearchHistoryItem

logger = logging.getLogger(__name__)

T = TypeVar("T")

HISTORY_KEY = "pnw-career-sync-history"
BROKEN_LINKS_KEY = "pnw-career-sync-broken-links"

_BLOBS_TABLE = """
CREATE TABLE IF NOT EXISTS blobs (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
"""

_HISTORY_ADAPTER = TypeAdapter(list[SearchHistoryItem])
_LINKS_ADAPTER = TypeAdapter(list[str])


def init_store(path: str | Path) -> sqlite3.Connection:
    """Create the database and blobs table, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_BLOBS_TABLE)
    conn.commit()
    return conn


def get_blob(conn: sqlite3.Connection, key: str) -> str | None:
    """Return the raw value stored under key, or None."""
    row = conn.execute("SELECT value FROM blobs WHERE key = ?", (key,)).fetchone()
    if row is None:
        return None
    return row["value"]  # type: ignore[no-any-return]


def put_blob(conn: sqlite3.Connection, key: str, value: str) -> None:
    """Insert or overwrite the value stored under key."""
    conn.execute(
        """
        INSERT INTO blobs (key, value, updated_at)
        VALUES (?, ?, ?)
        ON CONFLICT(key)
        DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
        """,
        (key, value, datetime.now().isoformat()),
    )
    conn.commit()


def decode_history(raw: str) -> list[SearchHistoryItem]:
    """Decode a history blob. Raises PersistenceError if malformed."""
    try:
        history = _HISTORY_ADAPTER.validate_json(raw)
    except ValidationError as e:
        msg = f"Malformed search history record: {e}"
        raise PersistenceError(msg) from e
    return history[:HISTORY_LIMIT]


def decode_broken_links(raw: str) -> frozenset[str]:
    """Decode a broken-links blob. Raises PersistenceError if malformed."""
    try:
        links = _LINKS_ADAPTER.validate_json(raw)
    except ValidationError as e:
        msg = f"Malformed broken links record: {e}"
        raise PersistenceError(msg) from e
    return frozenset(links)


class PersistedState(BaseModel):
    """The two records that survive across sessions."""

    history: list[SearchHistoryItem] = Field(default_factory=list)
    broken_links: frozenset[str] = frozenset()


class PersistentStore:
    """Write-through persistence for search history and broken links.

    Usage::

        store = PersistentStore(init_store("data/careersync.db"))
        persisted = store.load()
        store.save_history(history)
        store.save_broken_links(links)
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def load(self) -> PersistedState:
        """Load both records; malformed or missing records become empty defaults."""
        return PersistedState(
            history=self._load(HISTORY_KEY, decode_history, []),
            broken_links=self._load(BROKEN_LINKS_KEY, decode_broken_links, frozenset()),
        )

    def save_history(self, history: Iterable[SearchHistoryItem]) -> None:
        items = list(history)[:HISTORY_LIMIT]
        raw = _HISTORY_ADAPTER.dump_json(items, by_alias=True).decode()
        put_blob(self._conn, HISTORY_KEY, raw)
        logger.debug("Saved %d history entries", len(items))

    def save_broken_links(self, links: Iterable[str]) -> None:
        urls = sorted(set(links))
        put_blob(self._conn, BROKEN_LINKS_KEY, json.dumps(urls))
        logger.debug("Saved %d broken links", len(urls))

    def close(self) -> None:
        self._conn.close()

    def _load(self, key: str, decode: Callable[[str], T], default: T) -> T:
        raw = get_blob(self._conn, key)
        if raw is None:
            return default
        try:
            return decode(raw)
        except PersistenceError:
            logger.warning("Failed to parse stored '%s', using empty default", key, exc_info=True)
            return default
