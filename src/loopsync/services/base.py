"""SyncComponent: shared base for session-level sync objects.

Gives every component the same way of reaching plugins: a lifecycle event
is dispatched synchronously through the plugin manager, and a failing
plugin is logged, never propagated into the sync path.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from loopsync.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class SyncComponent:
    """Base for the session manager, sessions, and writers."""

    def __init__(self, plugins: PluginManager | None = None) -> None:
        self._plugins = plugins

    def _dispatch_event(self, hook_name: str, payload: dict[str, Any]) -> None:
        """Dispatch a lifecycle event. No-op without a plugin manager.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        if self._plugins is None:
            return
        hook_fn = getattr(self._plugins.hook, hook_name, None)
        if hook_fn is None:
            return
        try:
            hook_fn(**payload)
        except Exception:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)
