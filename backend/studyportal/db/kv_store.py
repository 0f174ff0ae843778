"""Key-value stores backing study schedules.

A schedule is persisted as one serialized blob under one key, so the
engine only needs ``get`` and ``set``.
"""
from __future__ import annotations

from typing import Protocol

from sqlalchemy.orm import Session

from studyportal.models.key_value_entry import KeyValueEntry


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryKeyValueStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def keys(self, prefix: str = "") -> list[str]:
        return [key for key in self._data if key.startswith(prefix)]


class SqlKeyValueStore:
    """Stores blobs in the ``key_value_entries`` table, committing on write."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, key: str) -> str | None:
        entry = self.db.get(KeyValueEntry, key)
        return entry.value if entry else None

    def set(self, key: str, value: str) -> None:
        entry = self.db.get(KeyValueEntry, key)
        if entry is None:
            entry = KeyValueEntry(key=key, value=value)
        else:
            entry.value = value
        self.db.add(entry)
        self.db.commit()

    def keys(self, prefix: str = "") -> list[str]:
        rows = (
            self.db.query(KeyValueEntry.key)
            .filter(KeyValueEntry.key.startswith(prefix, autoescape=True))
            .order_by(KeyValueEntry.key)
            .all()
        )
        return [row.key for row in rows]
