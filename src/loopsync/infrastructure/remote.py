"""Remote document store: the multi-device replica the sync core talks to.

:class:`RemoteDocumentStore` is the consumed interface: one document per
identity holding the durable partition and its version. The store performs
no merge and no version arbitration; whole-document last-writer-wins.

:class:`SqlDocumentStore` is the reference adapter: documents live in the
``documents`` table and change notifications fan out in-process to every
subscriber of the written identity, including the writer itself (the echo
the session must suppress). Notifications are queued with
``loop.call_soon`` and so always arrive asynchronously relative to
``put``; a notification queued for a subscriber that has since unsubscribed
is dropped at delivery time.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

from sqlalchemy import insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from loopsync.domain.snapshot import Snapshot
from loopsync.infrastructure.database.schema import documents
from loopsync.services._helpers import now_iso

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

OnChange = Callable[[dict[str, Any], int], None]
Unsubscribe = Callable[[], None]


class RemoteDocumentStore(Protocol):
    """Consumed interface of the remote multi-device document store."""

    async def get(self, identity_id: str) -> Snapshot | None:
        """Return the stored snapshot, or None if the identity has none."""
        ...

    def subscribe(self, identity_id: str, on_change: OnChange) -> Unsubscribe:
        """Register *on_change* for every change to the identity's document."""
        ...

    async def put(self, identity_id: str, data: dict[str, Any], version: int) -> bool:
        """Replace the identity's document. Returns False on rejection."""
        ...


class SqlDocumentStore:
    """SQLite-backed document store with in-process change notifications.

    Parameters:
        engine: SQLAlchemy engine with the ``documents`` table.
        latency: Seconds to sleep before each ``get``/``put`` (simulated network).
    """

    def __init__(self, engine: Engine, *, latency: float = 0.0) -> None:
        self._engine = engine
        self._latency = latency
        self._subscribers: dict[str, dict[int, OnChange]] = {}
        self._tokens = itertools.count(1)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get(self, identity_id: str) -> Snapshot | None:
        await self._delay()
        return self.read(identity_id)

    def subscribe(self, identity_id: str, on_change: OnChange) -> Unsubscribe:
        """Subscribe to changes; the current document, if any, is delivered first."""
        loop = asyncio.get_running_loop()
        token = next(self._tokens)
        self._subscribers.setdefault(identity_id, {})[token] = on_change

        current = self._read_row(identity_id)
        if current is not None:
            payload, version, _ = current
            loop.call_soon(self._deliver, identity_id, token, payload, version)

        def unsubscribe() -> None:
            subs = self._subscribers.get(identity_id)
            if subs is not None:
                subs.pop(token, None)
                if not subs:
                    del self._subscribers[identity_id]

        return unsubscribe

    async def put(self, identity_id: str, data: dict[str, Any], version: int) -> bool:
        await self._delay()
        payload = json.dumps(data, separators=(",", ":"))
        try:
            self._write_row(identity_id, payload, version)
        except SQLAlchemyError:
            logger.warning("Error saving document for %s", identity_id, exc_info=True)
            return False
        self._notify(identity_id, payload, version)
        return True

    def read(self, identity_id: str) -> Snapshot | None:
        """Synchronous read of the stored snapshot (for inspection tooling)."""
        row = self._read_row(identity_id)
        if row is None:
            return None
        payload, version, updated_at = row
        return Snapshot(data=json.loads(payload), version=version, updated_at=updated_at)

    def subscriber_count(self, identity_id: str | None = None) -> int:
        """Number of live subscriptions, for one identity or overall."""
        if identity_id is not None:
            return len(self._subscribers.get(identity_id, {}))
        return sum(len(subs) for subs in self._subscribers.values())

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _delay(self) -> None:
        if self._latency > 0:
            await asyncio.sleep(self._latency)

    def _read_row(self, identity_id: str) -> tuple[str, int, str] | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(documents.c.payload, documents.c.version, documents.c.updated_at).where(
                    documents.c.identity_id == identity_id
                )
            ).first()
        if row is None:
            return None
        return row.payload, row.version, row.updated_at

    def _write_row(self, identity_id: str, payload: str, version: int) -> None:
        stamp = now_iso()
        with self._engine.begin() as conn:
            result = conn.execute(
                update(documents)
                .where(documents.c.identity_id == identity_id)
                .values(payload=payload, version=version, updated_at=stamp)
            )
            if result.rowcount == 0:
                conn.execute(
                    insert(documents).values(
                        identity_id=identity_id,
                        payload=payload,
                        version=version,
                        updated_at=stamp,
                    )
                )

    def _notify(self, identity_id: str, payload: str, version: int) -> None:
        loop = asyncio.get_running_loop()
        for token in list(self._subscribers.get(identity_id, {})):
            loop.call_soon(self._deliver, identity_id, token, payload, version)

    def _deliver(self, identity_id: str, token: int, payload: str, version: int) -> None:
        callback = self._subscribers.get(identity_id, {}).get(token)
        if callback is None:
            return
        callback(json.loads(payload), version)
