"""Pluggy hook specifications for sync lifecycle events.

Hooks are called synchronously on the event loop, after the state change
they describe has been applied.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("loopsync")


class LoopsyncHookSpec:
    """Hook specifications for the loopsync plugin system."""

    @hookspec
    def post_session_start(self, identity_id: str) -> None:
        """Called when a session for *identity_id* begins loading."""

    @hookspec
    def post_session_load(self, identity_id: str, outcome: str, version: int) -> None:
        """Called once the initial load settles (loaded, not_found, failed, uploaded)."""

    @hookspec
    def post_hydrate(self, identity_id: str, version: int, source: str) -> None:
        """Called after remote data was applied; *source* is ``load`` or ``remote``."""

    @hookspec
    def post_remote_write(self, identity_id: str, version: int, ok: bool) -> None:
        """Called after a version-stamped write completes for an active session."""

    @hookspec
    def post_session_close(self, identity_id: str, reason: str) -> None:
        """Called after a session is torn down.

        *reason* is ``identity_changed``, ``signed_out`` or ``shutdown``.
        """
