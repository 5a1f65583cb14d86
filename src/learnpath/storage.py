"""Storage port and its adapters.

The engine only needs ``get`` and ``set`` on JSON-compatible values. Both are
coroutines so an adapter is free to do real I/O; errors raised here are the
caller's to handle.
"""
import asyncio
import copy
import json
from datetime import datetime
from typing import Any, Optional, Protocol

from learnpath.db import get_connection, init_db
from learnpath.logging import storage_logger

log = storage_logger()


class Store(Protocol):
    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any) -> None: ...


class MemoryStore:
    """In-process store. Values are deep-copied in and out, like a real round trip."""

    def __init__(self, initial: dict | None = None):
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class SqliteStore:
    """Key/value store backed by the ``kv_store`` table, values kept as JSON."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        init_db(db_path)

    def _get(self, key: str) -> Optional[Any]:
        conn = get_connection(self.db_path)
        row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        conn.close()
        return json.loads(row["value"]) if row else None

    def _set(self, key: str, value: Any) -> None:
        payload = json.dumps(value)
        conn = get_connection(self.db_path)
        conn.execute(
            "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
            (key, payload, datetime.now().isoformat()),
        )
        conn.commit()
        conn.close()
        log.debug("kv_written", key=key, size=len(payload))

    async def get(self, key: str) -> Optional[Any]:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._set, key, value)
