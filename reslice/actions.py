"""
Reslice Actions - Actions, Descriptors, Creators and Dispatchers
================================================================

An `Action` names the mutator to run (``type``), carries its payload
(``data``) and optionally the key of the slice it is meant for (``slice``).
Untargeted actions reach every slice of a combined store; targeted actions
reach only their slice.

For every mutator the registries derive:

- an `ActionDescriptor` ``(name, arity)``,
- a *creator*: ``creator()`` or ``creator(data)`` returning an `Action`;
  ``data`` is required unless the mutator's argument has a default,
- a *dispatcher*: the creator followed by ``store.dispatch``.

Dispatchers are collected in an `ActionNamespace`, so they read like
methods:

```python
Counter.actions.increment_counter(2)
Counter.actions.clear()
```
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional

INIT_ACTION_TYPE = "@@reslice/INIT"


@dataclass(frozen=True)
class Action:
    type: str
    data: Any = None
    slice: Optional[str] = None

    @classmethod
    def coerce(cls, action: Any) -> "Action":
        """Accept an `Action` or a ``{"type": ..., "data": ...}`` mapping."""
        if isinstance(action, Action):
            return action
        if isinstance(action, Mapping) and "type" in action:
            return cls(action["type"], action.get("data"), action.get("slice"))
        raise TypeError(f"Actions must be Action instances or mappings with a 'type', got {action!r}")


@dataclass(frozen=True)
class ActionDescriptor:
    name: str
    arity: int
    variadic: bool = False
    optional: bool = False


def make_creator(descriptor: ActionDescriptor, target: Optional[str] = None) -> Callable[..., Action]:
    """Build the action creator for ``descriptor``; ``target`` is the slice key, if any."""
    name = descriptor.name

    if descriptor.variadic:

        def creator(*items):
            return Action(name, items, target)

    elif descriptor.arity and descriptor.optional:

        def creator(data=None):
            return Action(name, data, target)

    elif descriptor.arity:

        def creator(data):
            return Action(name, data, target)

    else:

        def creator():
            return Action(name, None, target)

    creator.__name__ = name
    creator.descriptor = descriptor
    return creator


def make_dispatcher(creator: Callable[..., Action], get_store: Callable[[], Any]) -> Callable[..., Any]:
    """Build a dispatcher that sends ``creator(...)`` to the store returned by ``get_store``."""

    def dispatcher(*args):
        return get_store().dispatch(creator(*args))

    dispatcher.__name__ = creator.__name__
    dispatcher.descriptor = creator.descriptor
    return dispatcher


class ActionNamespace:
    """Attribute-style access to a mapping of dispatchers."""

    def __init__(self, dispatchers: Dict[str, Callable[..., Any]], owner: str = ""):
        self._dispatchers = dispatchers
        self._owner = owner

    def __getattr__(self, name: str) -> Callable[..., Any]:
        try:
            return self._dispatchers[name]
        except KeyError:
            raise AttributeError(f"{self._owner or 'store'} has no action {name!r}") from None

    def __getitem__(self, name: str) -> Callable[..., Any]:
        return self._dispatchers[name]

    def __contains__(self, name: object) -> bool:
        return name in self._dispatchers

    def __iter__(self) -> Iterator[str]:
        return iter(self._dispatchers)

    def __len__(self) -> int:
        return len(self._dispatchers)

    def __dir__(self):
        return list(self._dispatchers)

    def __repr__(self) -> str:
        return f"ActionNamespace({self._owner}: {', '.join(self._dispatchers)})"
