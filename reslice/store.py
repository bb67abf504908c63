"""
Reslice Store - Unidirectional Dispatch Backend
===============================================

`Store` holds the current snapshot and replaces it once per dispatched
action with ``reducer(current, action)``. It is the only mutable object in a
reslice application: snapshots are immutable and shared freely, the store
merely moves its pointer.

```python
store = create_store(reducer)
unsubscribe = store.subscribe(lambda: print(store.get_current_state()))
store.dispatch(Action("increment_counter", 2))
unsubscribe()
```

Everything runs synchronously on the caller's thread: ``dispatch`` returns
after the reducer has run and every listener has been called. Reducers must
not dispatch; doing so raises `ReentrantDispatchError`.

Middleware
----------

A middleware wraps ``dispatch``. It is written as three nested callables,
receiving the store API, the next dispatch function and finally the action:

```python
def log_actions(api):
    def wrap(next_dispatch):
        def dispatch(action):
            print("before", api.get_current_state())
            result = next_dispatch(action)
            print("after", api.get_current_state())
            return result
        return dispatch
    return wrap

store = create_store(reducer, enhancer=apply_middleware(log_actions))
```
"""

import logging
from typing import Any, Callable, List, Optional

from .actions import INIT_ACTION_TYPE, Action
from .exceptions import ReentrantDispatchError

logger = logging.getLogger(__name__)

Reducer = Callable[[Any, Action], Any]
Listener = Callable[[], None]
Enhancer = Callable[[Callable[..., "Store"]], Callable[..., "Store"]]


class Store:
    """
    In-memory store for a single reducer.

    Attributes:
        reducer: The pure transition function ``(state, action) -> state``.
    """

    def __init__(self, reducer: Reducer, initial_state: Any = None):
        self.reducer = reducer
        self._state = initial_state
        self._listeners: List[Listener] = []
        self._dispatching = False
        self._reduce(Action(INIT_ACTION_TYPE))

    def get_current_state(self) -> Any:
        """The current snapshot."""
        return self._state

    def _reduce(self, action: Action) -> None:
        if self._dispatching:
            raise ReentrantDispatchError(
                f"Cannot dispatch {action.type!r} while a reducer is running"
            )
        self._dispatching = True
        try:
            self._state = self.reducer(self._state, action)
        finally:
            self._dispatching = False

    def dispatch(self, action: Any) -> Action:
        """Apply ``action`` to the current state and notify listeners."""
        action = Action.coerce(action)
        logger.debug("Dispatching %s", action.type)
        self._reduce(action)
        for listener in list(self._listeners):
            listener()
        return action

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener()`` after every dispatch. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            self.unsubscribe(listener)

        return unsubscribe

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def __repr__(self) -> str:
        return f"Store({self._state!r})"


def create_store(
    reducer: Reducer, initial_state: Any = None, enhancer: Optional[Enhancer] = None
) -> Store:
    """Create a `Store`, optionally through a store enhancer."""
    if enhancer is not None:
        return enhancer(create_store)(reducer, initial_state)
    return Store(reducer, initial_state)


class MiddlewareAPI:
    """The part of the store a middleware may use."""

    def __init__(self, store: Store):
        self._store = store

    def dispatch(self, action: Any) -> Any:
        return self._store.dispatch(action)

    def get_current_state(self) -> Any:
        return self._store.get_current_state()


def apply_middleware(*middlewares: Callable) -> Enhancer:
    """Return a store enhancer that routes ``dispatch`` through ``middlewares`` in order."""

    def enhancer(create: Callable[..., Store]) -> Callable[..., Store]:
        def create_with_middleware(reducer: Reducer, initial_state: Any = None) -> Store:
            store = create(reducer, initial_state)
            api = MiddlewareAPI(store)
            dispatch = store.dispatch
            for link in reversed([middleware(api) for middleware in middlewares]):
                dispatch = link(dispatch)
            store.dispatch = dispatch
            return store

        return create_with_middleware

    return enhancer


def compose_enhancers(enhancer: Optional[Enhancer], wrappers) -> Optional[Enhancer]:
    """Apply each wrapper to ``enhancer`` in order (``wrapper(enhancer) -> enhancer``)."""
    for wrapper in wrappers:
        enhancer = wrapper(enhancer)
    return enhancer
