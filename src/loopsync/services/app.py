"""LoopsyncApp: composition root.

Builds the one state container for the process, the stores it persists
to, and the session manager that replicates it. Startup restores the
container from the local durable store before any listener is attached, so
the restore itself is never written back.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from loopsync.domain.state import restore_state
from loopsync.infrastructure.database.engine import init_database
from loopsync.infrastructure.identity import IdentityStream
from loopsync.infrastructure.local_store import LocalDurableStore, SqlKeyValueStorage
from loopsync.infrastructure.remote import SqlDocumentStore
from loopsync.plugins.manager import PluginManager
from loopsync.services.container import StateContainer
from loopsync.services.manager import SyncSessionManager

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from loopsync.config.settings import LoopsyncSettings
    from loopsync.domain.actions import Action
    from loopsync.infrastructure.local_store import KeyValueStorage
    from loopsync.infrastructure.remote import RemoteDocumentStore

logger = logging.getLogger(__name__)


class LoopsyncApp:
    """Wires settings into a container, stores, plugins, and a session manager.

    Any collaborator may be injected; the rest are built from *settings*.
    A remote store is only built when ``sync.enabled`` is true.
    """

    def __init__(
        self,
        settings: LoopsyncSettings,
        *,
        storage: KeyValueStorage | None = None,
        remote: RemoteDocumentStore | None = None,
        identities: IdentityStream | None = None,
        plugins: PluginManager | None = None,
    ) -> None:
        self.settings = settings
        self._engines: list[Engine] = []

        if plugins is None:
            plugins = PluginManager()
            if settings.plugins.entry_points:
                names = plugins.discover_and_load()
                logger.debug("Loaded plugins: %s", ", ".join(names) or "none")
        self.plugins = plugins

        if storage is None:
            storage = SqlKeyValueStorage(self._engine(settings.local.path))
        self.local_store = LocalDurableStore(storage, settings.local.key)

        if remote is None and settings.sync.enabled:
            remote = SqlDocumentStore(
                self._engine(settings.remote.path),
                latency=settings.remote.latency,
            )
        self.remote = remote if settings.sync.enabled else None

        self.identities = identities if identities is not None else IdentityStream()
        self.container = StateContainer(
            restore_state(self.local_store.read_once()),
            local_store=self.local_store,
        )
        self.manager = SyncSessionManager(
            self.container,
            self.remote,
            self.identities,
            debounce_seconds=settings.sync.debounce_seconds,
            upload_local_when_remote_empty=settings.sync.upload_local_when_remote_empty,
            plugins=self.plugins,
            local_store=self.local_store,
        )

    @property
    def state(self) -> dict[str, Any]:
        return self.container.state

    def dispatch(self, action: Action) -> None:
        self.container.dispatch(action)

    async def start(self) -> None:
        await self.manager.start()

    async def aclose(self) -> None:
        await self.manager.aclose()
        for engine in self._engines:
            engine.dispose()
        self._engines.clear()

    async def __aenter__(self) -> LoopsyncApp:
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    def _engine(self, path: str) -> Engine:
        engine = init_database(self.settings.resolve(path))
        self._engines.append(engine)
        return engine
