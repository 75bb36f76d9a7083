"""Standalone command: run a headless sync session and dispatch actions."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import click

from loopsync.commands._base import LoopsyncCommand

if TYPE_CHECKING:
    from loopsync.commands._context import AppContext

_DISPATCH_EXAMPLES = """\
  loopsync dispatch alice ADD_PROJECT -p '{"id": "p1", "name": "Garden"}'
  loopsync dispatch alice complete_task -p t1
  loopsync dispatch alice ADD_LABEL ADD_LABEL -p '{"id": "l1"}' -p '{"id": "l2"}'
  loopsync --json dispatch alice SET_TIMEZONE -p '"Europe/Berlin"'"""


def _parse_payload(raw: str) -> Any:
    """JSON when it parses, otherwise the raw string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


@click.command(cls=LoopsyncCommand, examples=_DISPATCH_EXAMPLES)
@click.argument("identity")
@click.argument("actions", nargs=-1, required=True)
@click.option(
    "-p",
    "--payload",
    "payloads",
    multiple=True,
    help="Payload for the action in the same position (JSON, or a bare string).",
)
@click.pass_obj
def dispatch(app: AppContext, identity: str, actions: tuple[str, ...], payloads: tuple[str, ...]) -> None:
    """Load IDENTITY's document, apply ACTIONS, write once, and close.

    Local storage is restored first, exactly as on application start.
    """
    if len(payloads) > len(actions):
        msg = f"Got {len(payloads)} payloads for {len(actions)} actions"
        raise click.UsageError(msg)

    from loopsync.services.store import SyncService

    specs = [
        (name, _parse_payload(payloads[i]) if i < len(payloads) else None)
        for i, name in enumerate(actions)
    ]
    app.emit(app.run(SyncService(app.app).dispatch(identity, specs)))
