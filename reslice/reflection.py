"""
Reslice Reflection - Slice Schemas
==================================

`describe()` turns a slice class into an explicit `SliceSchema`: its fields
(classified by runtime kind), the mutators its author wrote, its derived
values and its effects. The schema is built once per slice class and cached;
the synthesizer and the registries only ever consume the schema.

Fields come from a default-constructed instance, so fields assigned in a
custom ``__init__`` are seen as well as class-level defaults. Members whose
name starts with ``_`` are private and never reflected.

```python
class Cart(Slice):
    items = []
    open = True

    def checkout(self):
        return self.update(open=False)

schema = describe(Cart)
[f.kind for f in schema.fields]         # [FieldKind.ARRAY, FieldKind.BOOLEAN]
[m.name for m in schema.user_mutators]  # ["checkout"]
```
"""

import inspect
import logging
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Type

from cachetools import LRUCache

from .exceptions import AbstractSliceError, MutatorArityError
from .immutable import DEFAULT_ID_KEY, PRIVATE_PREFIX, ImmutableState
from .util.elements import element_key

logger = logging.getLogger(__name__)

_MISSING = object()

_schema_cache: LRUCache = LRUCache(maxsize=512)


class FieldKind(Enum):
    """Runtime kind of a field, decided from its default value."""

    BOOLEAN = "boolean"
    NUMBER = "number"
    ARRAY = "array"
    IDENTIFIED_ARRAY = "identified-array"
    OBJECT = "object"

    @property
    def is_array(self) -> bool:
        return self in (FieldKind.ARRAY, FieldKind.IDENTIFIED_ARRAY)


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind
    default: Any


@dataclass(frozen=True)
class MutatorSpec:
    """A mutator written by the slice author."""

    name: str
    arity: int
    function: Callable
    variadic: bool = False
    optional: bool = False


@dataclass(frozen=True)
class GetterSpec:
    name: str
    evaluator: Callable


@dataclass(frozen=True)
class EffectSpec:
    """A classmethod or staticmethod; callable on the slice class, never reduced."""

    name: str
    member: Any


@dataclass(frozen=True)
class SliceSchema:
    slice_cls: Type
    fields: Tuple[FieldSpec, ...]
    user_mutators: Tuple[MutatorSpec, ...]
    user_getters: Tuple[GetterSpec, ...]
    effects: Tuple[EffectSpec, ...]

    def field(self, name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    @property
    def user_mutator_names(self) -> Tuple[str, ...]:
        return tuple(m.name for m in self.user_mutators)


def classify(value: Any) -> FieldKind:
    """Classify a field's default value."""
    if isinstance(value, bool):
        return FieldKind.BOOLEAN
    if isinstance(value, numbers.Real):
        return FieldKind.NUMBER
    if isinstance(value, (list, tuple)):
        if value and all(element_key(e, DEFAULT_ID_KEY, _MISSING) is not _MISSING for e in value):
            return FieldKind.IDENTIFIED_ARRAY
        return FieldKind.ARRAY
    return FieldKind.OBJECT


def mutator_arity(owner: Type, name: str, function: Callable) -> Tuple[int, bool, bool]:
    """
    Return ``(arity, variadic, optional)`` for a mutator function.

    ``optional`` is True when the single argument has a default value.

    Raises:
        MutatorArityError: when the function requires more than one argument
            besides ``self``.
    """
    params = list(inspect.signature(function).parameters.values())[1:]
    positional = [
        p
        for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    required = [p for p in positional if p.default is inspect.Parameter.empty]
    required += [
        p
        for p in params
        if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty
    ]
    variadic = any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params)
    if len(required) > 1:
        raise MutatorArityError(
            f"Mutator {owner.__name__}.{name} requires {len(required)} arguments; "
            f"mutators take at most one"
        )
    optional = bool(positional) and positional[0].default is not inspect.Parameter.empty
    return (1 if positional or variadic else 0), variadic, optional


def _own_members(slice_cls: Type) -> Dict[str, Any]:
    """Members declared on the slice class and its slice bases, most derived first."""
    members: Dict[str, Any] = {}
    for klass in slice_cls.__mro__:
        if klass.__dict__.get("__slice_root__") or not issubclass(klass, ImmutableState):
            break
        for name, member in klass.__dict__.items():
            members.setdefault(name, member)
    return members


def describe(slice_cls: Type) -> SliceSchema:
    """Build (or fetch from cache) the schema of a slice class."""
    try:
        return _schema_cache[slice_cls]
    except KeyError:
        pass

    if slice_cls.__dict__.get("__abstract__", False):
        raise AbstractSliceError(
            f"{slice_cls.__name__} is abstract; subclass it and wire the subclass"
        )

    from .derived import derived

    instance = slice_cls()
    fields = tuple(
        FieldSpec(name, classify(value), value) for name, value in instance.to_dict().items()
    )

    mutators = []
    getters = []
    effects = []
    for name, member in _own_members(slice_cls).items():
        if name.startswith(PRIVATE_PREFIX) or name in instance.__dict__:
            continue
        if isinstance(member, derived):
            getters.append(GetterSpec(name, member.evaluator))
        elif isinstance(member, (classmethod, staticmethod)):
            effects.append(EffectSpec(name, getattr(slice_cls, name)))
        elif inspect.isfunction(member):
            arity, variadic, optional = mutator_arity(slice_cls, name, member)
            mutators.append(MutatorSpec(name, arity, member, variadic, optional))

    schema = SliceSchema(
        slice_cls=slice_cls,
        fields=fields,
        user_mutators=tuple(mutators),
        user_getters=tuple(getters),
        effects=tuple(effects),
    )
    logger.debug(
        "Described slice %s: %d fields, %d user mutators, %d derived values",
        slice_cls.__name__,
        len(fields),
        len(mutators),
        len(getters),
    )
    _schema_cache[slice_cls] = schema
    return schema
