"""Plugin registry for sync lifecycle hooks.

Plugins arrive two ways: ``loopsync.plugins`` entry points from installed
distributions, or instances handed to :meth:`PluginManager.register_plugin`.
Sync components only ever touch :attr:`PluginManager.hook`.
"""

from __future__ import annotations

import inspect
import logging

import pluggy

from loopsync.plugins.hookspecs import LoopsyncHookSpec

PROJECT_NAME = "loopsync"
ENTRY_POINT_GROUP = "loopsync.plugins"

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)

logger = logging.getLogger(__name__)


class PluginManager:
    """Thin wrapper over :class:`pluggy.PluginManager` with loopsync hookspecs."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(LoopsyncHookSpec)

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def discover_and_load(self) -> list[str]:
        """Load entry-point plugins and return every registered plugin name."""
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_classes()
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        resolved = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved)
        logger.debug("Registered plugin: %s", resolved)

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def _instantiate_classes(self) -> None:
        # Entry points may register a class; hooks on a class have no bound self.
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning("Skipping entry-point plugin %s: constructor failed", name, exc_info=True)
                continue
            self._pm.register(instance, name=name)
