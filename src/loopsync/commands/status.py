"""Standalone command: compare local and remote snapshots."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from loopsync.commands._base import LoopsyncCommand

if TYPE_CHECKING:
    from loopsync.commands._context import AppContext


@click.command(cls=LoopsyncCommand, examples="  loopsync status alice\n  loopsync -v status alice")
@click.argument("identity")
@click.pass_obj
def status(app: AppContext, identity: str) -> None:
    """Compare the local snapshot with IDENTITY's remote document."""
    from loopsync.services.store import SyncService

    app.emit(app.run(SyncService(app.app).status(identity)))
