"""
Reslice Immutable - Copy-on-Write Update Primitives
===================================================

`ImmutableState` is the base of every slice snapshot. All of its update
methods are pure: they never touch ``self`` or any container held by ``self``
and always return a new top-level object. Fields that an operation does not
change are shared by reference between the old and new snapshot.

Every default mutator and most user mutators are written in terms of these
primitives:

```python
class Todos(Slice):
    items = []
    done = 0

    def finish(self, todo_id):
        state = self.update_by_id({"items": {"id": todo_id, "finished": True}})
        return state.update(done=self.done + 1)
```

Array fields may hold mappings, dataclass instances or plain objects; see
`reslice.util.elements` for how element keys are read and how elements are
cloned.
"""

import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, Tuple, Type, TypeVar

from .exceptions import FrozenSliceError
from .util.elements import clone_element, matches_key, merge_element
from .util.equality import strictly_equal

logger = logging.getLogger(__name__)

S = TypeVar("S", bound="ImmutableState")

PRIVATE_PREFIX = "_"
DEFAULT_ID_KEY = "id"

_SEALED = "_sealed"


def _rebuild(original: Any, items: Iterable[Any]) -> Any:
    """Build a new sequence of the same flavour (tuple or list) as ``original``."""
    if isinstance(original, tuple):
        return tuple(items)
    return list(items)


def _patch_items(patch: Optional[Mapping], changes: Dict[str, Any]) -> Iterator[Tuple[str, Any]]:
    if patch is not None:
        yield from patch.items()
    yield from changes.items()


class ImmutableState:
    """
    Immutable value object with copy-on-write update operations.

    Attributes that do not start with ``_`` are the state's fields. Once an
    instance has been constructed it is sealed, and assigning to it raises
    `FrozenSliceError`. The primitives below write only to fresh copies and
    seal them before returning; `copy` alone hands back an unsealed copy.
    """

    def __setattr__(self, name: str, value: Any) -> None:
        if self.__dict__.get(_SEALED):
            raise FrozenSliceError(
                f"{type(self).__name__} snapshots are immutable; "
                f"use set_{name}() or update() to derive a new one"
            )
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        if self.__dict__.get(_SEALED):
            raise FrozenSliceError(f"{type(self).__name__} snapshots are immutable")
        object.__delattr__(self, name)

    def _seal(self: S) -> S:
        object.__setattr__(self, _SEALED, True)
        return self

    def _assign(self, name: str, value: Any) -> None:
        # Only ever called on a copy that has not been handed out yet.
        object.__setattr__(self, name, value)

    # ------------------------------------------------------------------
    # Field access
    # ------------------------------------------------------------------

    def field_names(self) -> Tuple[str, ...]:
        """Names of this snapshot's fields, in definition order."""
        return tuple(k for k in self.__dict__ if not k.startswith(PRIVATE_PREFIX))

    def to_dict(self) -> Dict[str, Any]:
        """Shallow mapping of field name to value."""
        return {name: self.__dict__[name] for name in self.field_names()}

    @classmethod
    def from_dict(cls: Type[S], obj: Mapping) -> S:
        """Build a default instance and copy over the keys of ``obj`` it already has."""
        state = cls()
        for name in state.field_names():
            if name in obj:
                state._assign(name, obj[name])
        return state

    def __eq__(self, other: Any) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.to_dict().items())
        return f"{type(self).__name__}({fields})"

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def __copy__(self: S) -> S:
        cls = type(self)
        output = cls.__new__(cls)
        output.__dict__.update(self.__dict__)
        output.__dict__.pop(_SEALED, None)
        return output

    def copy(self: S) -> S:
        """
        Field-for-field duplicate of this snapshot (same class, same field references).

        The copy is not sealed yet: a mutator may assign its fields before
        returning it. The store seals it when the new snapshot is published.
        """
        return self.__copy__()

    def clear(self: S) -> S:
        """A brand-new default-constructed instance."""
        return type(self)()

    def update(self: S, patch: Optional[Mapping] = None, **changes: Any) -> S:
        """
        Copy with the given fields overwritten.

        Keys that are not existing fields are ignored; ``update`` never adds a
        field to a snapshot.
        """
        output = self.copy()
        for key, value in _patch_items(patch, changes):
            if key in output.__dict__ and not key.startswith(PRIVATE_PREFIX):
                output._assign(key, value)
            else:
                logger.debug("%s.update ignored unknown field %r", type(self).__name__, key)
        return output._seal()

    def add(self: S, patch: Mapping) -> S:
        """Copy with each ``{field: value}`` appended to that array field."""
        output = self.copy()
        for key, value in patch.items():
            current = getattr(output, key)
            output._assign(key, _rebuild(current, [*current, value]))
        return output._seal()

    def remove(self: S, patch: Mapping) -> S:
        """Copy with every element strictly equal to ``value`` removed from each ``{field: value}``."""
        output = self.copy()
        for key, value in patch.items():
            current = getattr(output, key)
            output._assign(
                key, _rebuild(current, (e for e in current if not strictly_equal(e, value)))
            )
        return output._seal()

    def remove_by(self: S, id_key: str, patch: Mapping) -> S:
        """Copy without the elements whose ``id_key`` equals the given value."""
        output = self.copy()
        for key, value in patch.items():
            current = getattr(output, key)
            output._assign(
                key, _rebuild(current, (e for e in current if not matches_key(e, id_key, value)))
            )
        return output._seal()

    def remove_by_id(self: S, patch: Mapping) -> S:
        return self.remove_by(DEFAULT_ID_KEY, patch)

    def update_by(self: S, id_key: str, patch: Mapping) -> S:
        """
        Merge a partial element into the matching elements of an array field.

        For each ``{field: partial}``, elements whose ``id_key`` equals
        ``partial[id_key]`` are replaced by a shallow clone with the keys of
        ``partial`` applied. Other elements keep their identity.
        """
        output = self.copy()
        for key, partial in patch.items():
            wanted = partial[id_key] if isinstance(partial, Mapping) else getattr(partial, id_key)
            current = getattr(output, key)
            output._assign(
                key,
                _rebuild(
                    current,
                    (
                        merge_element(e, partial) if matches_key(e, id_key, wanted) else e
                        for e in current
                    ),
                ),
            )
        return output._seal()

    def update_by_id(self: S, patch: Mapping) -> S:
        return self.update_by(DEFAULT_ID_KEY, patch)

    def update_all(self: S, patch: Mapping[str, Callable[[Any], Any]]) -> S:
        """Copy with ``func`` applied to a shallow clone of every element of each field."""
        output = self.copy()
        for key, func in patch.items():
            current = getattr(output, key)
            output._assign(key, _rebuild(current, (func(clone_element(e)) for e in current)))
        return output._seal()
