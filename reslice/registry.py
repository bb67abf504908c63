"""
Reslice Registry - Action Descriptors, Creators and Dispatchers
===============================================================

`SliceRegistry` turns one slice's mutator table into descriptors, creators
and dispatchers bound to the store the slice is wired into. It also owns the
slice's reducer.

`TopLevelRegistry` merges several slice registries into the single namespace
of a combined store.

Conflict resolution
-------------------

Default mutator names are derived from field names alone, so two slices that
both have a ``data`` field would both produce ``set_data``. While combining:

- a default mutator name produced by exactly one slice is hoisted unchanged:
  the top-level creator and dispatcher are that slice's own;
- a name produced by two or more slices is disabled: its top-level creator is
  ``None`` and its top-level dispatcher raises `ActionConflictError`. Each
  slice's own dispatcher keeps working (``User.actions.set_data(...)``).

User-written mutators are not part of this rule. Their top-level dispatcher
sends an untargeted action, which every slice defining a mutator of that name
handles; no conflict is reported for them.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Type

from .actions import Action, ActionDescriptor, ActionNamespace, make_creator, make_dispatcher
from .exceptions import ActionConflictError, SliceNotInitializedError
from .immutable import ImmutableState
from .mutators import MutatorTable, synthesize
from .reducer import make_slice_reducer
from .reflection import SliceSchema, describe
from .store import Store

logger = logging.getLogger(__name__)


class SliceRegistry:
    """
    Descriptors, creators and dispatchers of one slice.

    Attributes:
        slice_cls: The slice class.
        key: Key of the slice in its store's state.
        schema: The slice's reflected schema.
        table: The slice's mutator table.
        initial_state: The default-constructed snapshot the store starts from.
        descriptors: Action name to `ActionDescriptor`.
        creators: Action name to creator.
        actions: Namespace of dispatchers.
    """

    def __init__(self, slice_cls: Type, key: str):
        self.slice_cls = slice_cls
        self.key = key
        self.schema: SliceSchema = describe(slice_cls)
        self.table: MutatorTable = synthesize(slice_cls)
        self.initial_state: ImmutableState = slice_cls()

        self.descriptors: Dict[str, ActionDescriptor] = {
            name: ActionDescriptor(name, mutator.arity, mutator.variadic, mutator.optional)
            for name, mutator in self.table.items()
        }
        self.creators: Dict[str, Callable[..., Action]] = {
            name: make_creator(descriptor, target=key)
            for name, descriptor in self.descriptors.items()
        }
        self.dispatchers: Dict[str, Callable[..., Any]] = {
            name: make_dispatcher(creator, self.require_store)
            for name, creator in self.creators.items()
        }
        self.actions = ActionNamespace(self.dispatchers, slice_cls.__name__)
        self.reducer = make_slice_reducer(self.table, self.initial_state, key)

        self.store: Optional[Store] = None
        self._select: Callable[[Any], Any] = lambda state: state
        self._subscriptions: Dict[Callable, Callable] = {}

    @property
    def default_names(self) -> List[str]:
        return [m.name for m in self.table.defaults]

    @property
    def user_names(self) -> List[str]:
        return [m.name for m in self.table.user]

    def bind(self, store: Store, select: Optional[Callable[[Any], Any]] = None) -> None:
        """Attach the store; ``select`` extracts this slice's snapshot from the store state."""
        self.store = store
        if select is not None:
            self._select = select

    def require_store(self) -> Store:
        if self.store is None:
            raise SliceNotInitializedError(
                f"{self.slice_cls.__name__} has not been wired; call init() or combine_slices() first"
            )
        return self.store

    def get_state(self) -> ImmutableState:
        return self._select(self.require_store().get_current_state())

    def subscribe(self, listener: Callable[[ImmutableState], None]) -> Callable[[], None]:
        """Call ``listener(snapshot)`` whenever this slice's snapshot changes."""
        last = [self.get_state()]

        def on_dispatch() -> None:
            current = self.get_state()
            if current is not last[0]:
                last[0] = current
                listener(current)

        self._subscriptions[listener] = on_dispatch
        self.require_store().subscribe(on_dispatch)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Callable) -> None:
        on_dispatch = self._subscriptions.pop(listener, None)
        if on_dispatch is not None and self.store is not None:
            self.store.unsubscribe(on_dispatch)

    def __repr__(self) -> str:
        return f"SliceRegistry({self.slice_cls.__name__}, key={self.key!r}, actions={len(self.table)})"


def _conflict_dispatcher(name: str, slice_keys: List[str]) -> Callable[..., Any]:
    def dispatcher(*args):
        raise ActionConflictError(name, slice_keys)

    dispatcher.__name__ = name
    return dispatcher


class TopLevelRegistry:
    """
    Merged action namespace of several slices.

    Attributes:
        slices: Slice key to `SliceRegistry`, in combination order.
        creators: Action name to creator, ``None`` for conflicting names.
        conflicts: Conflicting default action name to the slice keys producing it.
        actions: Namespace of top-level dispatchers.
        effects: Name to classmethod/staticmethod hoisted from the slices.
    """

    def __init__(self, slices: Dict[str, SliceRegistry]):
        self.slices = slices
        self.store: Optional[Store] = None
        self.descriptors: Dict[str, ActionDescriptor] = {}
        self.creators: Dict[str, Optional[Callable[..., Action]]] = {}
        self.dispatchers: Dict[str, Callable[..., Any]] = {}
        self.conflicts: Dict[str, List[str]] = {}
        self.effects: Dict[str, Any] = {}

        self._merge_defaults()
        self._merge_user_mutators()
        self._merge_effects()
        self.actions = ActionNamespace(self.dispatchers, "top-level store")

    def _merge_defaults(self) -> None:
        sources: Dict[str, List[str]] = defaultdict(list)
        for key, registry in self.slices.items():
            for name in registry.default_names:
                sources[name].append(key)

        for name, keys in sources.items():
            if len(keys) == 1:
                owner = self.slices[keys[0]]
                self.descriptors[name] = owner.descriptors[name]
                self.creators[name] = owner.creators[name]
                self.dispatchers[name] = owner.dispatchers[name]
            else:
                self.conflicts[name] = keys
                self.descriptors[name] = self.slices[keys[0]].descriptors[name]
                self.creators[name] = None
                self.dispatchers[name] = _conflict_dispatcher(name, keys)

        if self.conflicts:
            logger.warning(
                "Disabled top-level actions shared by several slices: %s",
                ", ".join(f"{name} ({', '.join(keys)})" for name, keys in self.conflicts.items()),
            )

    def _merge_user_mutators(self) -> None:
        owners: Dict[str, List[SliceRegistry]] = defaultdict(list)
        for registry in self.slices.values():
            for name in registry.user_names:
                owners[name].append(registry)

        for name, registries in owners.items():
            if name in self.conflicts:
                continue
            if len(registries) > 1:
                logger.warning(
                    "User mutator %r is defined on %s; the top-level dispatcher reaches all of them",
                    name,
                    ", ".join(r.slice_cls.__name__ for r in registries),
                )
            descriptors = [r.descriptors[name] for r in registries]
            descriptor = ActionDescriptor(
                name,
                max(d.arity for d in descriptors),
                any(d.variadic for d in descriptors),
                all(d.optional or not d.arity for d in descriptors),
            )
            creator = make_creator(descriptor)
            self.descriptors[name] = descriptor
            self.creators[name] = creator
            self.dispatchers[name] = make_dispatcher(creator, self.require_store)

    def _merge_effects(self) -> None:
        for registry in self.slices.values():
            for effect in registry.schema.effects:
                if effect.name in self.effects:
                    logger.debug("Effect %r from %s shadows an earlier slice", effect.name, registry.key)
                self.effects[effect.name] = effect.member

    def bind(self, store: Store) -> None:
        self.store = store
        for key, registry in self.slices.items():
            registry.bind(store, lambda state, key=key: state[key])

    def require_store(self) -> Store:
        if self.store is None:
            raise SliceNotInitializedError("The combined store has not been created yet")
        return self.store

    def __repr__(self) -> str:
        return f"TopLevelRegistry(slices={list(self.slices)}, conflicts={list(self.conflicts)})"
