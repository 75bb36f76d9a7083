"""StateContainer: the single in-memory state tree and its dispatch path.

Every change to the tree, local edit or remote hydration alike, goes through
:meth:`StateContainer.dispatch`. Dispatch is synchronous: reduce, store,
notify state listeners in registration order, then notify durable-change
observers when the action classifies as durable.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from loopsync.domain.classification import is_durable, validate_classification
from loopsync.domain.reducer import reduce
from loopsync.domain.state import build_default_state, validate_domain_policies
from loopsync.infrastructure.local_store import LocalMirror

if TYPE_CHECKING:
    from loopsync.domain.actions import Action
    from loopsync.infrastructure.local_store import LocalDurableStore

logger = logging.getLogger(__name__)

StateListener = Callable[[dict[str, Any], "Action | None"], None]
DurableObserver = Callable[["Action"], None]


class StateContainer:
    """Holds the state tree and applies actions through the reducer.

    Parameters:
        initial_state: Starting tree; defaults to :func:`build_default_state`.
        local_store: When given, a :class:`LocalMirror` is attached as the
            first listener so local persistence precedes any other observer.
    """

    def __init__(
        self,
        initial_state: dict[str, Any] | None = None,
        *,
        local_store: LocalDurableStore | None = None,
    ) -> None:
        validate_domain_policies()
        validate_classification()
        self._state = build_default_state() if initial_state is None else initial_state
        self._listeners: dict[int, StateListener] = {}
        self._observers: dict[int, DurableObserver] = {}
        self._tokens = itertools.count(1)
        self._dispatch_count = 0
        if local_store is not None:
            self.subscribe(LocalMirror(local_store))

    @property
    def state(self) -> dict[str, Any]:
        return self._state

    @property
    def dispatch_count(self) -> int:
        return self._dispatch_count

    def dispatch(self, action: Action) -> None:
        """Apply *action* synchronously and notify listeners.

        Raises:
            InvalidActionError: If the payload is malformed; state is unchanged.
        """
        self._state = reduce(self._state, action)
        self._dispatch_count += 1
        logger.debug("Dispatched %s", action.type)

        for listener in list(self._listeners.values()):
            listener(self._state, action)

        if is_durable(action.type):
            for observer in list(self._observers.values()):
                observer(action)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener; it is called at once with ``(state, None)``."""
        token = next(self._tokens)
        self._listeners[token] = listener
        listener(self._state, None)

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe

    def on_durable_change(self, observer: DurableObserver) -> Callable[[], None]:
        """Register an observer called after every durable action."""
        token = next(self._tokens)
        self._observers[token] = observer

        def unsubscribe() -> None:
            self._observers.pop(token, None)

        return unsubscribe
