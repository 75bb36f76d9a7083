"""Command group: the local durable store."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from loopsync.commands._base import LoopsyncGroup

if TYPE_CHECKING:
    from loopsync.commands._context import AppContext

_LOCAL_EXAMPLES = """\
  loopsync local show
  loopsync --json local show
  loopsync local clear"""


@click.group(cls=LoopsyncGroup, examples=_LOCAL_EXAMPLES)
def local() -> None:
    """Inspect the locally stored snapshot."""


@local.command(examples="  loopsync local show\n  loopsync --json local show")
@click.pass_obj
def show(app: AppContext) -> None:
    """Summarize the stored durable snapshot by domain."""
    from loopsync.services.store import SyncService

    app.emit(SyncService(app.app).show_local())


@local.command(examples="  loopsync local clear")
@click.pass_obj
def clear(app: AppContext) -> None:
    """Remove the stored snapshot (the next start begins from defaults)."""
    from loopsync.services.store import SyncService

    app.emit(SyncService(app.app).clear_local())
