"""
Reslice Derived - Dependency-Tracked Memoized Values
====================================================

A derived value is a zero-argument computation over a slice snapshot. It is
declared with the `derived` decorator and read like an attribute:

```python
class Cart(Slice):
    items = []
    tax_rate = 0.2
    note = ""

    @derived
    def total(self):
        return sum(i["price"] for i in self.items) * (1 + self.tax_rate)

state = Cart().add_to_items({"price": 10})
state.total              # computed: reads items and tax_rate
state.set_note("hi").total  # cached: note was never read
```

Inside the evaluator ``self`` is a `ReadTracker`, a view over the snapshot
that records every field read. The recorded read set (field name to the
value seen) is kept in the slice's `DerivedValue` memo together with the
result. On the next access the memo compares only the recorded fields with
the snapshot being read; if all match the cached result is returned,
otherwise the evaluator runs again and a fresh read set is recorded. A
derived value that reads different fields on different runs therefore
always invalidates on exactly the fields its last run used.

Memos belong to the slice class, are shared by all its snapshots and are
never part of the state itself.
"""

import functools
import inspect
import logging
import types
from typing import Any, Callable, Dict, Optional, Type

from .exceptions import CircularDependencyError, ComputationError
from .immutable import PRIVATE_PREFIX, ImmutableState
from .util.equality import same_value

logger = logging.getLogger(__name__)

_MISSING = object()


class ReadTracker:
    """
    Read-only view of a snapshot that records the fields it reads.

    Fields can be read as attributes or through `get`. Methods and properties
    of the slice are evaluated against the tracker, so reads they perform are
    recorded too. Reading another derived value evaluates it against the same
    snapshot and merges its read set into this one.
    """

    __slots__ = ("_snapshot", "reads")

    def __init__(self, snapshot: ImmutableState):
        object.__setattr__(self, "_snapshot", snapshot)
        object.__setattr__(self, "reads", {})

    def get(self, name: str, default: Any = None) -> Any:
        """Read a field by name, recording it."""
        fields = self._snapshot.__dict__
        if name not in fields or name.startswith(PRIVATE_PREFIX):
            return default
        value = fields[name]
        self.reads.setdefault(name, value)
        return value

    def __getattr__(self, name: str) -> Any:
        snapshot = self._snapshot
        if name in snapshot.__dict__ and not name.startswith(PRIVATE_PREFIX):
            return self.get(name)

        member = inspect.getattr_static(type(snapshot), name, _MISSING)
        if isinstance(member, derived):
            memo = derived_value(type(snapshot), name)
            value = memo.get(snapshot)
            for field, seen in memo.reads.items():
                self.reads.setdefault(field, seen)
            return value
        if isinstance(member, property) and member.fget is not None:
            return member.fget(self)
        if inspect.isfunction(member) and not hasattr(ImmutableState, name):
            return types.MethodType(member, self)
        return getattr(snapshot, name)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("derived values cannot assign to state")

    def __repr__(self) -> str:
        return f"ReadTracker({self._snapshot!r}, reads={sorted(self.reads)})"


class DerivedValue:
    """
    Memo entry for one derived value of one slice class.

    Attributes:
        name: The derived value's attribute name.
        reads: Field name to value observed during the last evaluation.
        recomputations: How many times the evaluator has run.
    """

    def __init__(self, owner: Type, name: str, evaluator: Callable[[ReadTracker], Any]):
        self.owner = owner
        self.name = name
        self.evaluator = evaluator
        self.reads: Dict[str, Any] = {}
        self.recomputations = 0
        self._value: Any = None
        self._valid = False
        self._evaluating = False

    def is_current(self, snapshot: ImmutableState) -> bool:
        """True when the cached result still holds for ``snapshot``."""
        if not self._valid:
            return False
        fields = snapshot.__dict__
        return all(same_value(seen, fields.get(name, _MISSING)) for name, seen in self.reads.items())

    def get(self, snapshot: ImmutableState) -> Any:
        if self.is_current(snapshot):
            return self._value
        return self.recompute(snapshot)

    def recompute(self, snapshot: ImmutableState) -> Any:
        if self._evaluating:
            raise CircularDependencyError(
                f"Derived value {self.owner.__name__}.{self.name} depends on itself"
            )

        tracker = ReadTracker(snapshot)
        self._evaluating = True
        try:
            value = self.evaluator(tracker)
        except (CircularDependencyError, ComputationError):
            self.invalidate()
            raise
        except Exception as e:
            self.invalidate()
            raise ComputationError(
                f"Error in derived value {self.owner.__name__}.{self.name}: {e}"
            ) from e
        finally:
            self._evaluating = False

        self._value = value
        self.reads = tracker.reads
        self._valid = True
        self.recomputations += 1
        logger.debug(
            "Recomputed %s.%s (reads: %s)", self.owner.__name__, self.name, ", ".join(self.reads)
        )
        return value

    def invalidate(self) -> None:
        self._valid = False
        self._value = None
        self.reads = {}

    def __repr__(self) -> str:
        state = "valid" if self._valid else "invalid"
        return f"DerivedValue({self.owner.__name__}.{self.name}, {state})"


class derived:
    """
    Decorator declaring a memoized derived value on a slice.

    The decorated function takes one argument, a `ReadTracker` over the
    snapshot being read, and returns the derived value.
    """

    def __init__(self, evaluator: Callable[[Any], Any]):
        self.evaluator = evaluator
        self.name = evaluator.__name__
        functools.update_wrapper(self, evaluator)

    def __set_name__(self, owner: Type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Optional[ImmutableState], owner: Type) -> Any:
        if instance is None:
            return self
        return derived_value(type(instance), self.name).get(instance)

    def __set__(self, instance: Any, value: Any) -> None:
        raise AttributeError(f"derived value {self.name!r} is read-only")


def derived_value(owner: Type, name: str) -> DerivedValue:
    """Return the memo entry for ``owner.name``, creating it on first use."""
    memos = owner.__dict__.get("_derived_values")
    if memos is None:
        memos = {}
        type.__setattr__(owner, "_derived_values", memos)
    memo = memos.get(name)
    if memo is None:
        member = inspect.getattr_static(owner, name)
        memo = memos[name] = DerivedValue(owner, name, member.evaluator)
    return memo
