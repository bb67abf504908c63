"""
Reslice Slices - State Containers Wired from Their Own Shape
============================================================

A slice is a class whose class attributes declare its fields and defaults.
Everything else is derived from that shape when the slice is wired:

```python
from reslice import Slice, derived

class Counter(Slice):
    counter = 0
    history = []

    def reset_history(self):
        return self.update(history=[])

    @derived
    def doubled(self):
        return self.counter * 2

store = Counter.init()
Counter.actions.increment_counter(2)
Counter.actions.add_to_history("+2")
Counter.get_state().counter   # 2
Counter.get_state().doubled   # 4
```

``Counter.init()`` reflects the class, synthesizes the default mutators
(``set_counter``, ``increment_counter``, ``add_to_history`` ...), registers
an action creator and a dispatcher for every mutator, and creates the store.
Snapshots are immutable; every mutator returns a new one.

Several slices share one store through `combine_slices`:

```python
class User(Slice):
    id = 0
    data = []

class Products(Slice):
    products = []
    data = []

app = combine_slices(User, Products)
app.actions.set_id(7)             # only User has `id`
app.get_current_state().user.id   # 7
app.actions.set_data([])          # ActionConflictError: both have `data`
User.actions.set_data([1])        # fine: targeted at the user slice
```

Configuration lives on the class: ``__slice_name__`` overrides the state key
(the snake_case class name by default) and `Slice.apply_middleware` /
`Slice.wrap_middleware` set up store enhancers before ``init``.
"""

import copy
import logging
import re
from typing import Any, Callable, Dict, Iterable, Optional, Type, TypeVar, Union

from .derived import DerivedValue, derived_value
from .exceptions import (
    AbstractSliceError,
    DuplicateSliceKeyError,
    SliceNotInitializedError,
    StoreAlreadyInitializedError,
)
from .immutable import PRIVATE_PREFIX, ImmutableState
from .mutators import MutatorTable, synthesize
from .reducer import combine_reducers
from .registry import SliceRegistry, TopLevelRegistry
from .store import Store, apply_middleware as middleware_enhancer, compose_enhancers, create_store

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="Slice")

_MUTABLE_DEFAULTS = (list, dict, set)


def snake_case(name: str) -> str:
    """``snake_case("ShoppingCart") == "shopping_cart"``"""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name).lower()


def _is_field_declaration(name: str, value: Any) -> bool:
    if name.startswith(PRIVATE_PREFIX) or isinstance(value, type):
        return False
    return not hasattr(value, "__get__")


class SliceMeta(type):
    """
    Metaclass for `Slice`.

    Collects the class-level field declarations (own and inherited, in
    definition order), seals every instance after construction, and exposes
    the wiring results (``actions``, ``creators``, ``descriptors``, ``store``)
    as class properties.
    """

    def __new__(mcs, name: str, bases: tuple, namespace: dict) -> Type:
        fields: Dict[str, Any] = {}
        for base in reversed(bases):
            fields.update(getattr(base, "__fields__", {}))
        for attr_name, value in namespace.items():
            if _is_field_declaration(attr_name, value):
                fields[attr_name] = value

        namespace = dict(namespace)
        namespace.setdefault("__abstract__", False)
        namespace["__fields__"] = fields
        namespace["_registry"] = None
        namespace["_mutators"] = None
        namespace["_derived_values"] = {}
        namespace["_middleware"] = ()
        namespace["_wrappers"] = ()
        return super().__new__(mcs, name, bases, namespace)

    def __call__(cls, *args: Any, **kwargs: Any) -> Any:
        instance = super().__call__(*args, **kwargs)
        return instance._seal()

    @property
    def registry(cls) -> SliceRegistry:
        registry = cls.__dict__.get("_registry")
        if registry is None:
            raise SliceNotInitializedError(
                f"{cls.__name__} has not been wired; call init() or combine_slices() first"
            )
        return registry

    @property
    def is_wired(cls) -> bool:
        return cls.__dict__.get("_registry") is not None

    @property
    def actions(cls):
        """The slice's dispatchers; ``Slice.actions.set_x(value)``."""
        return cls.registry.actions

    @property
    def creators(cls) -> Dict[str, Callable]:
        return cls.registry.creators

    @property
    def descriptors(cls) -> Dict[str, Any]:
        return cls.registry.descriptors

    @property
    def store(cls) -> Store:
        return cls.registry.require_store()

    @property
    def mutators(cls) -> MutatorTable:
        """The slice's mutator table (available before wiring)."""
        table = cls.__dict__.get("_mutators")
        if table is None:
            table = synthesize(cls)
            type.__setattr__(cls, "_mutators", table)
        return table

    @property
    def derived_values(cls) -> Dict[str, DerivedValue]:
        from .reflection import describe

        return {getter.name: derived_value(cls, getter.name) for getter in describe(cls).user_getters}


class Slice(ImmutableState, metaclass=SliceMeta):
    """
    Base class for slices.

    Subclasses declare fields as class attributes. Instances are immutable
    snapshots; mutable defaults (lists, dicts, sets) are copied into each
    default-constructed instance. Keyword arguments override defaults:
    ``Counter(counter=3)``.
    """

    __abstract__ = True
    __slice_root__ = True
    __slice_name__: Optional[str] = None

    def __init__(self, **values: Any):
        for name, default in type(self).__fields__.items():
            if name in values:
                value = values.pop(name)
            elif isinstance(default, _MUTABLE_DEFAULTS):
                value = copy.copy(default)
            else:
                value = default
            self._assign(name, value)
        if values:
            raise TypeError(
                f"{type(self).__name__} got unexpected fields: {', '.join(sorted(values))}"
            )

    def __getattr__(self, name: str) -> Any:
        cls = type(self)
        if name.startswith(PRIVATE_PREFIX) or cls.__dict__.get("__abstract__"):
            raise AttributeError(name)
        mutator = cls.mutators.get(name)
        if mutator is None or not mutator.is_default:
            raise AttributeError(f"{cls.__name__!r} object has no attribute {name!r}")
        return mutator.bind(self)

    def __dir__(self):
        return sorted(set(super().__dir__()) | set(type(self).mutators))

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    @classmethod
    def slice_key(cls) -> str:
        """Key of this slice in a combined state."""
        return cls.__dict__.get("__slice_name__") or snake_case(cls.__name__)

    @classmethod
    def apply_middleware(cls: Type[T], *middlewares: Callable) -> Type[T]:
        """Route this slice's dispatches through ``middlewares`` (call before ``init``)."""
        type.__setattr__(cls, "_middleware", tuple(middlewares))
        return cls

    @classmethod
    def wrap_middleware(cls: Type[T], *wrappers: Callable) -> Type[T]:
        """Wrap the store enhancer with ``wrappers`` (call before ``init``)."""
        type.__setattr__(cls, "_wrappers", tuple(wrappers))
        return cls

    @classmethod
    def _enhancer(cls):
        enhancer = middleware_enhancer(*cls._middleware) if cls._middleware else None
        return compose_enhancers(enhancer, cls._wrappers)

    @classmethod
    def _check_wirable(cls) -> None:
        if cls.__dict__.get("__abstract__"):
            raise AbstractSliceError(
                f"{cls.__name__} is abstract; subclass it and wire the subclass"
            )
        if cls.is_wired:
            raise StoreAlreadyInitializedError(
                f"{cls.__name__} has already been wired to a store. "
                f"A slice is wired once, either by init() or by combine_slices()."
            )

    @classmethod
    def init(cls) -> "StoreHandle":
        """Wire this slice into its own store and return the store handle."""
        cls._check_wirable()
        registry = SliceRegistry(cls, cls.slice_key())
        store = create_store(registry.reducer, enhancer=cls._enhancer())
        registry.bind(store)
        type.__setattr__(cls, "_registry", registry)
        logger.debug("Initialized %s with %d actions", cls.__name__, len(registry.descriptors))
        return StoreHandle(store, registry)

    @classmethod
    def get_state(cls: Type[T]) -> T:
        """The slice's current snapshot in the store it is wired to."""
        return cls.registry.get_state()

    @classmethod
    def subscribe(cls, listener: Callable[[Any], None]) -> Callable[[], None]:
        """Call ``listener(snapshot)`` whenever this slice's snapshot changes."""
        return cls.registry.subscribe(listener)

    @classmethod
    def unsubscribe(cls, listener: Callable[[Any], None]) -> None:
        cls.registry.unsubscribe(listener)


class StoreHandle:
    """
    What ``init`` and ``combine_slices`` hand back.

    Wraps the store and the registry it was wired with. Dispatchers are
    available under ``actions`` and, for brevity, as attributes of the handle
    itself; effects (classmethods and staticmethods of the slices) are
    available as attributes too.
    """

    def __init__(self, store: Store, registry: Union[SliceRegistry, TopLevelRegistry]):
        self.store = store
        self.registry = registry

    def dispatch(self, action: Any) -> Any:
        return self.store.dispatch(action)

    def get_current_state(self) -> Any:
        return self.store.get_current_state()

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        return self.store.subscribe(listener)

    def unsubscribe(self, listener: Callable[[], None]) -> None:
        self.store.unsubscribe(listener)

    @property
    def actions(self):
        return self.registry.actions

    @property
    def creators(self) -> Dict[str, Optional[Callable]]:
        return self.registry.creators

    @property
    def descriptors(self) -> Dict[str, Any]:
        return self.registry.descriptors

    @property
    def effects(self) -> Dict[str, Any]:
        if isinstance(self.registry, TopLevelRegistry):
            return self.registry.effects
        return {effect.name: effect.member for effect in self.registry.schema.effects}

    def __getattr__(self, name: str) -> Any:
        if name.startswith(PRIVATE_PREFIX):
            raise AttributeError(name)
        if name in self.registry.actions:
            return self.registry.actions[name]
        effects = self.effects
        if name in effects:
            return effects[name]
        raise AttributeError(f"store has no action or effect {name!r}")

    def __repr__(self) -> str:
        return f"StoreHandle({self.registry!r})"


def combine_slices(
    *slice_classes: Type[Slice],
    middleware: Iterable[Callable] = (),
    wrappers: Iterable[Callable] = (),
    **keyed_slices: Type[Slice],
) -> StoreHandle:
    """
    Wire several slices into one store and return the top-level store handle.

    Positional slices are keyed by `Slice.slice_key`; keyword arguments give
    explicit keys. The combined state maps each key to its slice snapshot.
    """
    keyed: Dict[str, Type[Slice]] = {}
    for key, slice_cls in [(cls.slice_key(), cls) for cls in slice_classes] + list(keyed_slices.items()):
        if key in keyed:
            raise DuplicateSliceKeyError(
                f"Slices {keyed[key].__name__} and {slice_cls.__name__} share the key {key!r}"
            )
        slice_cls._check_wirable()
        keyed[key] = slice_cls

    registries = {key: SliceRegistry(slice_cls, key) for key, slice_cls in keyed.items()}
    top = TopLevelRegistry(registries)

    middleware = tuple(middleware)
    enhancer = compose_enhancers(middleware_enhancer(*middleware) if middleware else None, wrappers)
    store = create_store(
        combine_reducers({key: registry.reducer for key, registry in registries.items()}),
        enhancer=enhancer,
    )
    top.bind(store)
    for key, slice_cls in keyed.items():
        type.__setattr__(slice_cls, "_registry", registries[key])

    logger.debug("Combined slices %s into one store", ", ".join(keyed))
    return StoreHandle(store, top)
