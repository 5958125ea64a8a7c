"""Key-value storage backends: JSON file, SQLite, and in-memory."""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
import sqlite3
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from prompt_shelf.errors import BackendError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class KeyValueBackend(Protocol):
    """Async single-key get/set storage. Failures raise BackendError."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> None: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class MemoryBackend:
    """Holds values in a dict. Values are copied in and out like a real store."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def close(self) -> None:
        pass  # No resources to release


# ---------------------------------------------------------------------------
# JSON file backend (natively async)
# ---------------------------------------------------------------------------


class JsonFileBackend:
    """Persists all keys in one JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, Any]:
        if not self._path.is_file():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
            raise BackendError(f"Cannot read {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise BackendError(
                f"Cannot read {self._path}: expected a JSON object, got {type(data).__name__}"
            )
        return data

    def _write_key(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, self._path)
        except (OSError, TypeError, ValueError) as exc:
            raise BackendError(f"Cannot write {self._path}: {exc}") from exc

    async def get(self, key: str) -> Any | None:
        data = await asyncio.to_thread(self._read_all)
        return data.get(key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write_key, key, value)

    def close(self) -> None:
        pass  # No resources to release


# ---------------------------------------------------------------------------
# SQLite store (callback style)
# ---------------------------------------------------------------------------

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS kv (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

GetCallback = Callable[[dict[str, Any]], None]
SetCallback = Callable[[], None]


class SqliteCallbackStore:
    """Key-value table in SQLite with a callback API.

    Results are delivered to the callback. After a failed call the callback
    still runs and ``last_error`` holds the error message; it is reset at the
    start of every call.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self.last_error: str | None = None
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        try:
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA_SQL)
            self._conn.commit()
        except sqlite3.DatabaseError as exc:
            logger.warning("SQLite DB corrupt or unreadable: %s", exc)
            self._conn.close()
            raise

    def get(self, key: str, callback: GetCallback) -> None:
        self.last_error = None
        result: dict[str, Any] = {}
        try:
            row = self._conn.execute(
                "SELECT value FROM kv WHERE key = ?", (key,)
            ).fetchone()
            if row is not None:
                result[key] = json.loads(row[0])
        except (sqlite3.Error, json.JSONDecodeError) as exc:
            self.last_error = str(exc)
            result = {}
        callback(result)

    def set(self, key: str, value: Any, callback: SetCallback) -> None:
        self.last_error = None
        try:
            self._conn.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (key, json.dumps(value, ensure_ascii=False)),
            )
            self._conn.commit()
        except (sqlite3.Error, TypeError, ValueError) as exc:
            self.last_error = str(exc)
        callback()

    def close(self) -> None:
        if self._conn:
            self._conn.close()


# ---------------------------------------------------------------------------
# Callback adapter
# ---------------------------------------------------------------------------


def _settle(future: asyncio.Future[Any], result: Any, error: str | None) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(BackendError(error or "storage operation failed"))
    else:
        future.set_result(result)


class CallbackBackendAdapter:
    """Exposes a callback-style store through the async KeyValueBackend API."""

    def __init__(self, store: SqliteCallbackStore) -> None:
        self._store = store

    async def _call(self, method: Callable[..., None], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()

        def _done(*result: Any) -> None:
            error = self._store.last_error
            value = result[0] if result else None
            loop.call_soon_threadsafe(_settle, future, value, error)

        try:
            await asyncio.to_thread(method, *args, _done)
        except Exception as exc:
            raise BackendError(str(exc)) from exc
        return await future

    async def get(self, key: str) -> Any | None:
        result = await self._call(self._store.get, key)
        return (result or {}).get(key)

    async def set(self, key: str, value: Any) -> None:
        await self._call(self._store.set, key, value)

    def close(self) -> None:
        self._store.close()
