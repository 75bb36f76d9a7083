"""Local durable store: synchronous key-value persistence of the durable partition.

Three layers:

- :class:`KeyValueStorage`: the consumed interface (``get``/``set``/``delete``
  on string values), with a SQLite implementation and an in-memory one.
- :class:`LocalDurableStore`: serializes the durable partition under one key.
  A second key records the identity that owns the partition, so a
  restart can tell whether the next sign-in is the same person.
  Writes are best effort: storage failures are logged, never raised, so a
  full disk never blocks editing.
- :class:`LocalMirror`: the state-container listener that keeps the store
  current. It skips the very first notification (the initial render) so the
  just-restored value is never written back over existing storage.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Protocol

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from loopsync.domain.classification import mirrors_locally
from loopsync.domain.state import durable_partition
from loopsync.infrastructure.database.schema import kv_entries
from loopsync.services._helpers import now_iso

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from loopsync.domain.actions import Action

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "looops_app_state"


class KeyValueStorage(Protocol):
    """Synchronous string key-value storage."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStorage:
    """Dict-backed storage for tests and ephemeral runs."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self.write_count = 0

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self.write_count += 1
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class SqlKeyValueStorage:
    """SQLite-backed storage using the ``kv_entries`` table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def get(self, key: str) -> str | None:
        with self._engine.connect() as conn:
            return conn.execute(
                select(kv_entries.c.value).where(kv_entries.c.key == key)
            ).scalar_one_or_none()

    def set(self, key: str, value: str) -> None:
        with self._engine.begin() as conn:
            result = conn.execute(
                update(kv_entries)
                .where(kv_entries.c.key == key)
                .values(value=value, modified=now_iso())
            )
            if result.rowcount == 0:
                conn.execute(insert(kv_entries).values(key=key, value=value, modified=now_iso()))

    def delete(self, key: str) -> None:
        with self._engine.begin() as conn:
            conn.execute(delete(kv_entries).where(kv_entries.c.key == key))


class LocalDurableStore:
    """Persist the durable partition of the state tree under a single key."""

    def __init__(self, storage: KeyValueStorage, key: str = DEFAULT_STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    @property
    def owner_key(self) -> str:
        return f"{self._key}_owner"

    def write(self, state: dict[str, Any]) -> None:
        """Write the durable partition of *state* (best effort)."""
        try:
            payload = json.dumps(durable_partition(state), separators=(",", ":"))
            self._storage.set(self._key, payload)
        except (SQLAlchemyError, OSError, TypeError, ValueError):
            logger.error("Error persisting state to local storage", exc_info=True)

    def read_once(self) -> dict[str, Any] | None:
        """Read the stored partition, or None if absent or unreadable."""
        try:
            raw = self._storage.get(self._key)
        except (SQLAlchemyError, OSError):
            logger.error("Error reading state from local storage", exc_info=True)
            return None
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding corrupt local state under %s", self._key)
            return None
        if not isinstance(data, dict):
            logger.warning("Discarding non-object local state under %s", self._key)
            return None
        return data

    def read_owner(self) -> str | None:
        """Identity the stored partition belongs to, or None if unclaimed."""
        try:
            return self._storage.get(self.owner_key)
        except (SQLAlchemyError, OSError):
            logger.error("Error reading state owner from local storage", exc_info=True)
            return None

    def write_owner(self, identity_id: str) -> None:
        try:
            self._storage.set(self.owner_key, identity_id)
        except (SQLAlchemyError, OSError):
            logger.error("Error persisting state owner to local storage", exc_info=True)

    def clear(self) -> None:
        self._storage.delete(self._key)
        self._storage.delete(self.owner_key)


class LocalMirror:
    """State listener that mirrors durable changes into a LocalDurableStore.

    INVARIANT: the first notification is never written.
    """

    def __init__(self, store: LocalDurableStore) -> None:
        self._store = store
        self._skipped_first = False

    def __call__(self, state: dict[str, Any], action: Action | None) -> None:
        if not self._skipped_first:
            self._skipped_first = True
            return
        if action is None or not mirrors_locally(action.type):
            return
        self._store.write(state)
