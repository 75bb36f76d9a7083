"""SyncService: CLI-facing operations over a :class:`LoopsyncApp`.

Each operation returns a :class:`ServiceResult`; nothing here raises into
the command layer for an expected failure.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from loopsync.domain.actions import parse_action
from loopsync.domain.errors import LoopsyncError
from loopsync.domain.state import durable_partition
from loopsync.infrastructure.identity import Identity
from loopsync.services._helpers import summarize_domains
from loopsync.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from loopsync.domain.actions import Action
    from loopsync.services.app import LoopsyncApp

logger = logging.getLogger(__name__)


def _sync_disabled(op: str) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(
            code="SYNC_DISABLED",
            message="Remote sync is disabled ([sync] enabled = false)",
        ),
    )


class SyncService:
    """Inspect and drive the local store, the remote store, and sessions."""

    def __init__(self, app: LoopsyncApp) -> None:
        self._app = app

    # ------------------------------------------------------------------
    # Local store
    # ------------------------------------------------------------------

    def show_local(self) -> ServiceResult:
        op = "local_show"
        store = self._app.local_store
        saved = store.read_once()
        if saved is None:
            return ServiceResult(
                ok=True,
                op=op,
                data={"key": store.key, "present": False, "domains": {}},
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={"key": store.key, "present": True, "domains": summarize_domains(saved)},
        )

    def clear_local(self) -> ServiceResult:
        op = "local_clear"
        store = self._app.local_store
        existed = store.read_once() is not None
        store.clear()
        warnings = [] if existed else [f"Nothing stored under {store.key}"]
        return ServiceResult(ok=True, op=op, data={"key": store.key, "cleared": existed}, warnings=warnings)

    # ------------------------------------------------------------------
    # Remote store
    # ------------------------------------------------------------------

    async def show_remote(self, identity_id: str) -> ServiceResult:
        op = "remote_show"
        remote = self._app.remote
        if remote is None:
            return _sync_disabled(op)
        snapshot = await remote.get(identity_id)
        if snapshot is None:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="NOT_FOUND",
                    message=f"No remote document for identity: {identity_id}",
                ),
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "identity_id": identity_id,
                "version": snapshot.version,
                "updated_at": snapshot.updated_at,
                "domains": summarize_domains(snapshot.data),
            },
        )

    async def status(self, identity_id: str) -> ServiceResult:
        """Compare the local durable partition with the identity's remote document."""
        op = "status"
        remote = self._app.remote
        if remote is None:
            return _sync_disabled(op)
        saved = self._app.local_store.read_once()
        local = durable_partition(self._app.state)
        snapshot = await remote.get(identity_id)

        data: dict[str, Any] = {
            "identity_id": identity_id,
            "local_present": saved is not None,
            "remote_present": snapshot is not None,
            "remote_version": snapshot.version if snapshot else None,
            "remote_updated_at": snapshot.updated_at if snapshot else None,
            "in_sync": snapshot is not None and snapshot.data == local,
        }
        if snapshot is not None:
            data["differing_domains"] = sorted(
                name for name in set(local) | set(snapshot.data) if local.get(name) != snapshot.data.get(name)
            )
        return ServiceResult(ok=True, op=op, data=data)

    # ------------------------------------------------------------------
    # Headless session
    # ------------------------------------------------------------------

    async def dispatch(
        self,
        identity_id: str,
        action_specs: list[tuple[str, Any]],
    ) -> ServiceResult:
        """Run one session for *identity_id*: load, apply actions, flush, close.

        *action_specs* are ``(type_name, payload)`` pairs parsed with
        :func:`parse_action`. Parsing happens before the session starts so a
        bad action aborts without touching any store.
        """
        op = "dispatch"
        actions: list[Action] = []
        for type_name, payload in action_specs:
            try:
                actions.append(parse_action(type_name, payload))
            except ValueError as exc:
                return ServiceResult(
                    ok=False,
                    op=op,
                    error=ServiceError(
                        code="INVALID_ACTION",
                        message=str(exc),
                        detail={"action": type_name},
                    ),
                )

        app = self._app
        warnings: list[str] = []
        if app.remote is None:
            warnings.append("Remote sync is disabled; changes are stored locally only")

        await app.start()
        try:
            app.identities.emit(Identity(uid=identity_id))
            await app.manager.wait_until_ready()
            session = app.manager.active_session
            loaded_version = session.local_version if session else 0
            load_outcome = str(session.load_outcome) if session and session.load_outcome else None

            applied = 0
            for action in actions:
                try:
                    app.dispatch(action)
                except LoopsyncError as exc:
                    return ServiceResult(
                        ok=False,
                        op=op,
                        warnings=warnings,
                        error=ServiceError(
                            code="INVALID_ACTION",
                            message=str(exc),
                            detail={"action": str(action.type), "applied": applied},
                        ),
                    )
                applied += 1

            await app.manager.flush()
            version = session.local_version if session else 0
        finally:
            await app.aclose()

        written = session is not None and version > loaded_version
        if session is not None and session.durable_change_observed and not written:
            warnings.append(f"Remote write failed; version stays {version}")

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "identity_id": identity_id,
                "load_outcome": load_outcome,
                "applied": applied,
                "loaded_version": loaded_version,
                "version": version,
                "written": written,
            },
            warnings=warnings,
        )
