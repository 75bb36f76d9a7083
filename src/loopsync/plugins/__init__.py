"""Extension layer: sync lifecycle hooks via pluggy.

Discovery: entry_points (pip-installed) in the ``loopsync.plugins`` group.
INVARIANT: Plugin failures are warnings, never errors.
"""

from loopsync.plugins.manager import PluginManager, hookimpl

__all__ = ["PluginManager", "hookimpl"]
