"""SyncSession: one identity's sync lifecycle.

A session owns everything that must not outlive the identity it was created
for: the version counter, the durable-change flag, the remote subscription,
the initial-load task, and the debounced writer. Closing a session releases
all of them synchronously; results of async work that completes after close
are discarded.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from loopsync.config.logging import session_context
from loopsync.domain.actions import hydrate
from loopsync.domain.errors import InvalidTransitionError
from loopsync.domain.lifecycle import LoadOutcome, SyncPhase, is_valid_transition
from loopsync.domain.state import durable_partition, has_user_data
from loopsync.services.base import SyncComponent
from loopsync.services.writer import VersionStampedWriter

if TYPE_CHECKING:
    from collections.abc import Callable

    from loopsync.domain.actions import Action
    from loopsync.infrastructure.remote import RemoteDocumentStore
    from loopsync.plugins.manager import PluginManager
    from loopsync.services.container import StateContainer

logger = logging.getLogger(__name__)

_ACTIVE_PHASES = frozenset({SyncPhase.LOADING, SyncPhase.SUBSCRIBED})


class SyncSession(SyncComponent):
    """Sync state for a single identity, from first load until close."""

    def __init__(
        self,
        identity_id: str,
        container: StateContainer,
        remote: RemoteDocumentStore,
        *,
        debounce_seconds: float = 1.0,
        upload_local_when_remote_empty: bool = True,
        plugins: PluginManager | None = None,
    ) -> None:
        super().__init__(plugins)
        self.identity_id = identity_id
        self.local_version = 0
        self.durable_change_observed = False
        self.load_outcome: LoadOutcome | None = None
        self.close_reason: str | None = None
        self._phase = SyncPhase.NO_IDENTITY
        self._container = container
        self._remote = remote
        self._upload_when_empty = upload_local_when_remote_empty
        self._unsubscribe: Callable[[], None] | None = None
        self._load_task: asyncio.Task[None] | None = None
        self.writer = VersionStampedWriter(
            self,
            container,
            remote,
            debounce_seconds=debounce_seconds,
            plugins=plugins,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def phase(self) -> SyncPhase:
        return self._phase

    @property
    def is_active(self) -> bool:
        return self._phase in _ACTIVE_PHASES

    @property
    def load_task(self) -> asyncio.Task[None] | None:
        return self._load_task

    def _transition(self, target: SyncPhase) -> None:
        if not is_valid_transition(self._phase, target):
            msg = f"Invalid session transition: {self._phase} -> {target}"
            raise InvalidTransitionError(msg)
        logger.debug("Session %s: %s -> %s", self.identity_id, self._phase, target)
        self._phase = target

    def mark_durable_change_observed(self) -> None:
        self.durable_change_observed = True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def begin(self) -> asyncio.Task[None]:
        """Enter ``loading`` and start the initial load on the running loop."""
        self._transition(SyncPhase.LOADING)
        self._dispatch_event("post_session_start", {"identity_id": self.identity_id})
        with session_context(self.identity_id):
            self._load_task = asyncio.get_running_loop().create_task(self._run())
        return self._load_task

    async def _run(self) -> None:
        outcome = await self._load()
        if not self.is_active:
            return
        self.load_outcome = outcome
        self.durable_change_observed = False
        self._transition(SyncPhase.SUBSCRIBED)
        self._unsubscribe = self._remote.subscribe(self.identity_id, self._on_remote_change)
        logger.info(
            "Session %s subscribed (load=%s, version=%d)",
            self.identity_id,
            outcome,
            self.local_version,
        )
        self._dispatch_event(
            "post_session_load",
            {"identity_id": self.identity_id, "outcome": str(outcome), "version": self.local_version},
        )

    async def _load(self) -> LoadOutcome:
        try:
            snapshot = await self._remote.get(self.identity_id)
        except Exception:
            logger.warning("Initial load for %s failed", self.identity_id, exc_info=True)
            return LoadOutcome.FAILED

        if not self.is_active:
            return LoadOutcome.FAILED

        if snapshot is not None:
            self.local_version = snapshot.version
            self._container.dispatch(hydrate(snapshot.data))
            self._dispatch_event(
                "post_hydrate",
                {"identity_id": self.identity_id, "version": snapshot.version, "source": "load"},
            )
            return LoadOutcome.LOADED

        if self._upload_when_empty and has_user_data(self._container.state):
            return await self._upload_initial()
        return LoadOutcome.NOT_FOUND

    async def _upload_initial(self) -> LoadOutcome:
        data = durable_partition(self._container.state)
        try:
            ok = await self._remote.put(self.identity_id, data, 1)
        except Exception:
            logger.warning("Initial upload for %s raised", self.identity_id, exc_info=True)
            ok = False
        if not ok:
            logger.warning("Initial upload for %s failed; version stays 0", self.identity_id)
            return LoadOutcome.NOT_FOUND
        if self.is_active:
            self.local_version = max(self.local_version, 1)
        return LoadOutcome.UPLOADED

    def close(self, reason: str = "closed") -> None:
        """Release the timer, the subscription, and the load task. Idempotent."""
        if self._phase is SyncPhase.CLOSED:
            return
        self._transition(SyncPhase.CLOSED)
        self.close_reason = reason
        self.writer.cancel()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()
        logger.info("Session %s closed (%s)", self.identity_id, reason)
        self._dispatch_event("post_session_close", {"identity_id": self.identity_id, "reason": reason})

    async def wait_closed(self) -> None:
        """Wait for the load task and in-flight writes to settle."""
        if self._load_task is not None:
            await asyncio.wait([self._load_task])
        await self.writer.wait_idle()

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def on_durable_change(self, action: Action) -> None:
        """Observer for durable dispatches routed here by the manager."""
        if not self.is_active:
            return
        self.mark_durable_change_observed()
        if self._phase is SyncPhase.SUBSCRIBED:
            self.writer.schedule_write()
        else:
            logger.debug("Durable %s during load; write deferred", action.type)

    def _on_remote_change(self, data: dict[str, Any], version: int) -> None:
        if self._phase is not SyncPhase.SUBSCRIBED:
            return
        if version <= self.local_version:
            logger.debug(
                "Discarding remote v%d for %s (local v%d)",
                version,
                self.identity_id,
                self.local_version,
            )
            return
        self.local_version = version
        self._container.dispatch(hydrate(data))
        self._dispatch_event(
            "post_hydrate",
            {"identity_id": self.identity_id, "version": version, "source": "remote"},
        )

    def status(self) -> dict[str, Any]:
        return {
            "identity_id": self.identity_id,
            "phase": str(self._phase),
            "local_version": self.local_version,
            "durable_change_observed": self.durable_change_observed,
            "pending_write": self.writer.pending,
            "load_outcome": str(self.load_outcome) if self.load_outcome else None,
        }
