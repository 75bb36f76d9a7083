"""Subcommand modules for loopsync.

register_commands() uses deferred imports to keep ``loopsync --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register command groups and standalone commands on the root group."""
    # --- Groups ---
    from loopsync.commands.local import local
    from loopsync.commands.remote import remote

    cli.add_command(local)
    cli.add_command(remote)

    # --- Standalone commands ---
    from loopsync.commands.dispatch import dispatch
    from loopsync.commands.status import status

    cli.add_command(dispatch)
    cli.add_command(status)
