"""SyncSessionManager: maps the identity stream onto sync sessions.

At most one session is active. Identity events are handled synchronously:
the old session is closed (timer cancelled, listener removed) before a
``RESET_STATE`` is dispatched and before the next session subscribes, so no
callback from the previous identity can touch the new identity's state.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from loopsync.domain.actions import reset_state
from loopsync.domain.lifecycle import SyncPhase
from loopsync.services.base import SyncComponent
from loopsync.services.session import SyncSession

if TYPE_CHECKING:
    from collections.abc import Callable

    from loopsync.domain.actions import Action
    from loopsync.infrastructure.identity import Identity, IdentityStream
    from loopsync.infrastructure.local_store import LocalDurableStore
    from loopsync.infrastructure.remote import RemoteDocumentStore
    from loopsync.plugins.manager import PluginManager
    from loopsync.services.container import StateContainer

logger = logging.getLogger(__name__)


class SyncSessionManager(SyncComponent):
    """Owns the active :class:`SyncSession` and its replacement on identity change.

    Parameters:
        container: The application's single state container.
        remote: Remote document store, or None when sync is disabled.
        identity_stream: Source of ``Identity | None`` events.
        debounce_seconds: Write coalescing window passed to each session.
        upload_local_when_remote_empty: Upload existing local data as
            version 1 when an identity has no remote document yet.
        local_store: Local durable store whose recorded owner seeds the
            reset decision, so a different first identity after a restart
            never inherits the previous identity's data.
        plugins: Optional plugin manager for lifecycle events.
    """

    def __init__(
        self,
        container: StateContainer,
        remote: RemoteDocumentStore | None,
        identity_stream: IdentityStream,
        *,
        debounce_seconds: float = 1.0,
        upload_local_when_remote_empty: bool = True,
        plugins: PluginManager | None = None,
        local_store: LocalDurableStore | None = None,
    ) -> None:
        super().__init__(plugins)
        self._container = container
        self._remote = remote
        self._identities = identity_stream
        self._debounce = debounce_seconds
        self._upload_when_empty = upload_local_when_remote_empty
        self._local_store = local_store
        self._session: SyncSession | None = None
        self._retired: list[SyncSession] = []
        self._state_owner: str | None = None
        self._unsubscribers: list[Callable[[], None]] = []
        self._started = False
        self._closed = False

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self._remote is not None

    @property
    def active_session(self) -> SyncSession | None:
        return self._session

    @property
    def phase(self) -> SyncPhase:
        if self._closed:
            return SyncPhase.CLOSED
        if self._session is None:
            return SyncPhase.NO_IDENTITY
        return self._session.phase

    @property
    def is_initial_load_complete(self) -> bool:
        """True once the active session is subscribed, or when nothing is loading."""
        if self._remote is None or self._session is None:
            return True
        return self._session.phase is SyncPhase.SUBSCRIBED

    def status(self) -> dict[str, Any]:
        info: dict[str, Any] = {
            "enabled": self.enabled,
            "phase": str(self.phase),
            "initial_load_complete": self.is_initial_load_complete,
        }
        if self._session is not None:
            info.update(self._session.status())
        return info

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Attach to the container and the identity stream.

        With sync disabled nothing is attached and the container runs purely
        locally.
        """
        if self._started:
            return
        self._started = True
        if self._remote is None:
            logger.info("Remote sync disabled; running local-only")
            return
        if self._local_store is not None:
            self._state_owner = self._local_store.read_owner()
        self._unsubscribers.append(self._container.on_durable_change(self._on_durable_change))
        self._unsubscribers.append(self._identities.subscribe(self.handle_identity))

    def handle_identity(self, identity: Identity | None) -> None:
        """React to an identity event. Must run on the event loop thread."""
        if self._closed or self._remote is None:
            return
        identity_id = identity.uid if identity is not None else None
        current = self._session

        if current is not None and current.identity_id == identity_id:
            return

        if current is not None:
            self._retire(current, "identity_changed" if identity_id else "signed_out")

        if identity_id is None:
            return

        if self._state_owner is not None and self._state_owner != identity_id:
            logger.info("Identity switched %s -> %s; resetting state", self._state_owner, identity_id)
            self._container.dispatch(reset_state())
        if self._state_owner != identity_id:
            self._state_owner = identity_id
            if self._local_store is not None:
                self._local_store.write_owner(identity_id)

        session = SyncSession(
            identity_id,
            self._container,
            self._remote,
            debounce_seconds=self._debounce,
            upload_local_when_remote_empty=self._upload_when_empty,
            plugins=self._plugins,
        )
        self._session = session
        session.begin()

    async def wait_until_ready(self) -> None:
        """Wait for the active session's initial load to finish."""
        while self._session is not None and self._session.phase is SyncPhase.LOADING:
            task = self._session.load_task
            if task is None:
                return
            await asyncio.wait([task])

    async def flush(self) -> None:
        """Send any pending debounced write now and wait for it."""
        if self._session is not None:
            await self._session.writer.flush()

    async def aclose(self) -> None:
        """Close the active session, detach everything, and drain tasks."""
        if self._closed:
            return
        self._closed = True
        if self._session is not None:
            self._retire(self._session, "shutdown")
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        retired, self._retired = self._retired, []
        for session in retired:
            await session.wait_closed()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _retire(self, session: SyncSession, reason: str) -> None:
        session.close(reason)
        self._retired.append(session)
        if self._session is session:
            self._session = None

    def _on_durable_change(self, action: Action) -> None:
        if self._session is not None:
            self._session.on_durable_change(action)
