"""Allow ``python -m loopsync``."""

from loopsync.cli import cli

cli()
