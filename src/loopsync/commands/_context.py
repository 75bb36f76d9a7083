"""AppContext: shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. The :class:`LoopsyncApp` is built lazily so ``--help``
and ``--version`` never open a database.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import click

from loopsync.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from collections.abc import Coroutine

    from loopsync.config.settings import LoopsyncSettings
    from loopsync.services.app import LoopsyncApp
    from loopsync.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: LoopsyncSettings) -> None:
        self.settings = settings
        self._app: LoopsyncApp | None = None

        from loopsync.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def app(self) -> LoopsyncApp:
        """The application (created lazily on first access)."""
        if self._app is None:
            from loopsync.services.app import LoopsyncApp

            self._app = LoopsyncApp(self.settings)
        return self._app

    def run(self, coro: Coroutine[Any, Any, ServiceResult]) -> ServiceResult:
        """Drive an async service operation to completion on a fresh loop."""
        return asyncio.run(coro)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout; warnings go to stderr.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
