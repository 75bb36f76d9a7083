"""Command group: the remote document store."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from loopsync.commands._base import LoopsyncGroup

if TYPE_CHECKING:
    from loopsync.commands._context import AppContext


@click.group(cls=LoopsyncGroup, examples="  loopsync remote show alice")
def remote() -> None:
    """Inspect remote documents."""


@remote.command(examples="  loopsync remote show alice\n  loopsync --json remote show alice")
@click.argument("identity")
@click.pass_obj
def show(app: AppContext, identity: str) -> None:
    """Show the version, timestamp, and domains of IDENTITY's document."""
    from loopsync.services.store import SyncService

    app.emit(app.run(SyncService(app.app).show_remote(identity)))
