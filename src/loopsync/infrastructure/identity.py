"""Identity stream: the current signed-in identity, or none.

Fired on sign-in, sign-out, and identity switch. New subscribers receive
the current value immediately, the way auth-state observers do.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Identity(BaseModel):
    """A concrete signed-in identity."""

    model_config = {"frozen": True}

    uid: str
    display_name: str | None = None
    anonymous: bool = False


IdentityCallback = Callable[[Identity | None], None]


class IdentityStream:
    """Synchronous subscribable source of ``Identity | None``."""

    def __init__(self, initial: Identity | None = None) -> None:
        self._current = initial
        self._callbacks: dict[int, IdentityCallback] = {}
        self._tokens = itertools.count(1)

    @property
    def current(self) -> Identity | None:
        return self._current

    def subscribe(self, callback: IdentityCallback) -> Callable[[], None]:
        """Register *callback* and invoke it with the current identity."""
        token = next(self._tokens)
        self._callbacks[token] = callback
        callback(self._current)

        def unsubscribe() -> None:
            self._callbacks.pop(token, None)

        return unsubscribe

    def emit(self, identity: Identity | None) -> None:
        """Publish a new identity (or sign-out) to every subscriber."""
        self._current = identity
        logger.debug("Identity changed: %s", identity.uid if identity else None)
        for callback in list(self._callbacks.values()):
            callback(identity)

    def sign_in(self, uid: str, *, display_name: str | None = None) -> Identity:
        identity = Identity(uid=uid, display_name=display_name)
        self.emit(identity)
        return identity

    def sign_out(self) -> None:
        self.emit(None)
