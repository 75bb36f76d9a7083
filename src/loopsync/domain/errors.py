"""Exception hierarchy for loopsync."""

from __future__ import annotations


class LoopsyncError(Exception):
    """Base class for all loopsync errors."""


class InvalidActionError(LoopsyncError, ValueError):
    """An action payload does not have the shape its tag requires."""


class DomainPolicyError(LoopsyncError):
    """The domain policy table and the default state tree disagree."""


class InvalidTransitionError(LoopsyncError):
    """A session was asked to move to a phase it cannot reach."""
