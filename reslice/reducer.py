"""
Reslice Reducers - Slice and Combined Transition Functions
==========================================================

A slice reducer looks the action type up in the slice's mutator table and
applies it; anything it does not recognise leaves the state untouched, so the
very same snapshot object comes back and downstream code can detect "no
change" with ``is``.

A combined reducer runs every slice reducer on its own key and rebuilds the
top-level `CombinedState` only when at least one slice snapshot changed.
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterator, Optional

from .actions import Action
from .immutable import ImmutableState
from .mutators import MutatorTable

SliceReducer = Callable[[Optional[ImmutableState], Action], ImmutableState]


def make_slice_reducer(
    table: MutatorTable, initial_state: ImmutableState, key: Optional[str] = None
) -> SliceReducer:
    """
    Build the transition function of one slice.

    Actions targeted at another slice key are ignored. A mutator returning
    ``None`` leaves the state unchanged; any other snapshot it returns is
    sealed before it becomes the new state.
    """

    def reducer(state: Optional[ImmutableState], action: Action) -> ImmutableState:
        if state is None:
            state = initial_state
        if action.slice is not None and action.slice != key:
            return state
        mutator = table.get(action.type)
        if mutator is None:
            return state
        result = mutator.apply(state, action.data)
        if result is None:
            return state
        if isinstance(result, ImmutableState):
            result._seal()
        return result

    reducer.__name__ = f"{table.slice_cls.__name__}_reducer"
    return reducer


class CombinedState(Mapping):
    """Immutable mapping of slice key to slice snapshot; keys are also attributes."""

    __slots__ = ("_slices",)

    def __init__(self, slices: Dict[str, Any]):
        object.__setattr__(self, "_slices", dict(slices))

    def __getitem__(self, key: str) -> Any:
        return self._slices[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._slices)

    def __len__(self) -> int:
        return len(self._slices)

    def __getattr__(self, key: str) -> Any:
        try:
            return self._slices[key]
        except KeyError:
            raise AttributeError(key) from None

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError("combined state is immutable")

    def __repr__(self) -> str:
        return f"CombinedState({self._slices!r})"


def combine_reducers(reducers: Dict[str, SliceReducer]) -> Callable[[Optional[CombinedState], Action], CombinedState]:
    """Build one reducer that applies each slice reducer to its own key."""

    def combined(state: Optional[CombinedState], action: Action) -> CombinedState:
        changed = state is None
        slices = {}
        for key, reducer in reducers.items():
            previous = None if state is None else state.get(key)
            current = reducer(previous, action)
            changed = changed or current is not previous
            slices[key] = current
        return CombinedState(slices) if changed else state

    return combined
