"""loopsync: client-side state synchronization core for the Looops organizer."""

__version__ = "0.4.0"
