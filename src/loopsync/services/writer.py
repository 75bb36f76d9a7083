"""VersionStampedWriter: debounced, version-stamped remote writes.

Bursts of durable changes collapse into one ``put`` per debounce window.
Each write claims the next version number up front; a failed write gives
the number back so the next attempt reuses it instead of leaving a gap.
Writes never overlap: a window that elapses while a put is in flight marks
the writer dirty, and one follow-up write starts once that put settles.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from loopsync.domain.state import durable_partition
from loopsync.services.base import SyncComponent

if TYPE_CHECKING:
    from loopsync.infrastructure.remote import RemoteDocumentStore
    from loopsync.plugins.manager import PluginManager
    from loopsync.services.container import StateContainer
    from loopsync.services.session import SyncSession

logger = logging.getLogger(__name__)


class VersionStampedWriter(SyncComponent):
    """Per-session debounced writer of the durable partition."""

    def __init__(
        self,
        session: SyncSession,
        container: StateContainer,
        remote: RemoteDocumentStore,
        *,
        debounce_seconds: float = 1.0,
        plugins: PluginManager | None = None,
    ) -> None:
        super().__init__(plugins)
        self._session = session
        self._container = container
        self._remote = remote
        self._debounce = debounce_seconds
        self._handle: asyncio.TimerHandle | None = None
        self._inflight: set[asyncio.Task[None]] = set()
        self._dirty = False

    @property
    def pending(self) -> bool:
        """Whether a debounced write is waiting for its window to elapse."""
        return self._handle is not None

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def schedule_write(self) -> None:
        """(Re)start the debounce window; only the last call in a burst fires."""
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._debounce, self._fire)

    def cancel(self) -> None:
        """Drop the pending write, if any. In-flight writes keep running."""
        self._dirty = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def flush(self) -> None:
        """Fire the pending write now and wait for every in-flight write."""
        if self._handle is not None:
            self._handle.cancel()
            self._fire()
        await self.wait_idle()

    async def wait_idle(self) -> None:
        while self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _fire(self) -> None:
        self._handle = None
        if not self._session.is_active:
            return
        if self._inflight:
            self._dirty = True
            return
        self._start()

    def _start(self) -> None:
        self._dirty = False
        task = asyncio.get_running_loop().create_task(self._write())
        self._inflight.add(task)
        task.add_done_callback(self._settled)

    def _settled(self, task: asyncio.Task[None]) -> None:
        self._inflight.discard(task)
        if self._dirty and self._session.is_active:
            self._start()

    async def _write(self) -> None:
        session = self._session
        previous = session.local_version
        version = previous + 1
        session.local_version = version
        data = durable_partition(self._container.state)

        try:
            ok = await self._remote.put(session.identity_id, data, version)
        except Exception:
            logger.warning("Remote write v%d for %s raised", version, session.identity_id, exc_info=True)
            ok = False

        if not session.is_active:
            logger.debug("Discarding write result v%d for closed session %s", version, session.identity_id)
            return

        if not ok:
            if session.local_version == version:
                session.local_version = previous
            logger.warning("Remote write v%d for %s failed", version, session.identity_id)
        else:
            logger.debug("Remote write v%d for %s ok", version, session.identity_id)

        self._dispatch_event(
            "post_remote_write",
            {"identity_id": session.identity_id, "version": version, "ok": ok},
        )
