"""
Reslice Mutators - Default Mutator Synthesis
============================================

Every field of a slice gets a canonical set of mutators, chosen by the
field's runtime kind:

==========  ==============================================================
kind        mutators
==========  ==============================================================
any         ``set_<field>(value)``, ``clear_<field>()``
boolean     ``toggle_<field>()``
number      ``increment_<field>(amount)``
array       ``add_to_<field>(*items)``, ``update_<field>({"key", "data"})``,
            ``update_<field>_by_id(element)``, ``remove_from_<field>(item)``,
            ``remove_from_<field>_by_id(id)``
==========  ==============================================================

plus ``clear()`` for the whole slice. A default is only synthesized when the
slice does not already define a member of that name, so code written by the
slice author always wins.

The result is a static `MutatorTable`: action name to either a
`DefaultMutator` (a field and an operation) or a `UserMutator` (a function
written on the slice). Nothing is attached to the slice class; snapshots look
synthesized names up in the table.
"""

import enum
import inspect
import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Type

from .immutable import ImmutableState
from .reflection import FieldKind, FieldSpec, MutatorSpec, SliceSchema, describe

logger = logging.getLogger(__name__)

_MISSING = object()


class FieldOp(enum.Enum):
    """Operation performed by a default mutator."""

    SET = "set"
    CLEAR_FIELD = "clear_field"
    TOGGLE = "toggle"
    INCREMENT = "increment"
    ADD_TO = "add_to"
    UPDATE = "update"
    UPDATE_BY_ID = "update_by_id"
    REMOVE_FROM = "remove_from"
    REMOVE_FROM_BY_ID = "remove_from_by_id"
    CLEAR = "clear"

    @property
    def prefix(self) -> str:
        return _OP_SHAPES[self][0]

    @property
    def suffix(self) -> str:
        return _OP_SHAPES[self][1]

    @property
    def arity(self) -> int:
        return _OP_SHAPES[self][2]


# (method prefix, method suffix, arity)
_OP_SHAPES = {
    FieldOp.SET: ("set", "", 1),
    FieldOp.CLEAR_FIELD: ("clear", "", 0),
    FieldOp.TOGGLE: ("toggle", "", 0),
    FieldOp.INCREMENT: ("increment", "", 1),
    FieldOp.ADD_TO: ("add_to", "", 1),
    FieldOp.UPDATE: ("update", "", 1),
    FieldOp.UPDATE_BY_ID: ("update", "by_id", 1),
    FieldOp.REMOVE_FROM: ("remove_from", "", 1),
    FieldOp.REMOVE_FROM_BY_ID: ("remove_from", "by_id", 1),
    FieldOp.CLEAR: ("clear", "", 0),
}


FIELD_OPS = {
    FieldKind.BOOLEAN: (FieldOp.SET, FieldOp.CLEAR_FIELD, FieldOp.TOGGLE),
    FieldKind.NUMBER: (FieldOp.SET, FieldOp.CLEAR_FIELD, FieldOp.INCREMENT),
    FieldKind.OBJECT: (FieldOp.SET, FieldOp.CLEAR_FIELD),
}
FIELD_OPS[FieldKind.ARRAY] = FIELD_OPS[FieldKind.IDENTIFIED_ARRAY] = (
    FieldOp.SET,
    FieldOp.CLEAR_FIELD,
    FieldOp.ADD_TO,
    FieldOp.UPDATE,
    FieldOp.UPDATE_BY_ID,
    FieldOp.REMOVE_FROM,
    FieldOp.REMOVE_FROM_BY_ID,
)


def method_name(prefix: str, field: str = "", suffix: str = "") -> str:
    """``method_name("remove_from", "items", "by_id") == "remove_from_items_by_id"``"""
    return "_".join(part for part in (prefix, field, suffix) if part)


class Mutator:
    """A named, dispatchable state transition."""

    name: str
    arity: int
    variadic: bool
    optional: bool = False
    is_default: bool

    def apply(self, state: ImmutableState, data: Any = None) -> Optional[ImmutableState]:
        raise NotImplementedError

    def bind(self, state: ImmutableState) -> Callable[..., Any]:
        """Return a callable that applies this mutator to ``state`` with natural arguments."""
        if self.variadic:

            def bound(*items):
                return self.apply(state, items)

        elif self.arity and self.optional:

            def bound(data=None):
                return self.apply(state, data)

        elif self.arity:

            def bound(data):
                return self.apply(state, data)

        else:

            def bound():
                return self.apply(state, None)

        bound.__name__ = self.name
        return bound


class DefaultMutator(Mutator):
    """A mutator synthesized from a field (or the whole slice for ``clear``)."""

    is_default = True

    def __init__(self, op: FieldOp, field: Optional[FieldSpec] = None):
        self.op = op
        self.field = field
        self.name = method_name(op.prefix, field.name if field else "", op.suffix)
        self.arity = op.arity
        self.variadic = op is FieldOp.ADD_TO

    def apply(self, state: ImmutableState, data: Any = None) -> ImmutableState:
        op = self.op
        if op is FieldOp.CLEAR:
            return state.clear()

        name = self.field.name
        if op is FieldOp.SET:
            return state.update({name: data})
        if op is FieldOp.CLEAR_FIELD:
            return state.update({name: self.field.default})
        if op is FieldOp.TOGGLE:
            return state.update({name: not getattr(state, name)})
        if op is FieldOp.INCREMENT:
            return state.update({name: getattr(state, name) + data})
        if op is FieldOp.ADD_TO:
            current = getattr(state, name)
            return state.update({name: type(current)([*current, *data])})
        if op is FieldOp.UPDATE:
            if isinstance(data, Mapping):
                key, partial = data["key"], data["data"]
            else:
                key, partial = data
            return state.update_by(key, {name: partial})
        if op is FieldOp.UPDATE_BY_ID:
            return state.update_by_id({name: data})
        if op is FieldOp.REMOVE_FROM:
            return state.remove({name: data})
        if op is FieldOp.REMOVE_FROM_BY_ID:
            return state.remove_by_id({name: data})
        raise ValueError(f"unknown field operation {op!r}")

    def __repr__(self) -> str:
        target = self.field.name if self.field else "*"
        return f"DefaultMutator({self.name!r}, {self.op.name}, field={target!r})"


class UserMutator(Mutator):
    """A mutator written on the slice by its author."""

    is_default = False

    def __init__(self, spec: MutatorSpec):
        self.spec = spec
        self.name = spec.name
        self.arity = spec.arity
        self.variadic = spec.variadic
        self.optional = spec.optional

    def apply(self, state: ImmutableState, data: Any = None) -> Optional[ImmutableState]:
        function = self.spec.function
        if self.variadic:
            return function(state, *(data or ()))
        if self.arity and not (data is None and self.spec.optional):
            return function(state, data)
        return function(state)

    def __repr__(self) -> str:
        return f"UserMutator({self.name!r}, arity={self.arity})"


class MutatorTable(Mapping):
    """Read-only mapping of action name to `Mutator` for one slice class."""

    def __init__(self, slice_cls: Type, mutators: Dict[str, Mutator]):
        self.slice_cls = slice_cls
        self._mutators = mutators

    def __getitem__(self, name: str) -> Mutator:
        return self._mutators[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mutators)

    def __len__(self) -> int:
        return len(self._mutators)

    @property
    def defaults(self) -> Tuple[Mutator, ...]:
        return tuple(m for m in self._mutators.values() if m.is_default)

    @property
    def user(self) -> Tuple[Mutator, ...]:
        return tuple(m for m in self._mutators.values() if not m.is_default)

    def __repr__(self) -> str:
        return f"MutatorTable({self.slice_cls.__name__}, {list(self._mutators)})"


def _is_taken(slice_cls: Type, schema: SliceSchema, name: str) -> bool:
    """True when the slice (or the update core) already owns ``name``."""
    if schema.field(name) is not None:
        return True
    member = inspect.getattr_static(slice_cls, name, _MISSING)
    if member is _MISSING:
        return False
    # The core's clear() is the implementation of the default clear mutator.
    return not (name == "clear" and member is ImmutableState.__dict__["clear"])


def default_mutators(schema: SliceSchema) -> List[DefaultMutator]:
    """Every default mutator a slice's fields call for, before overrides."""
    mutators = [DefaultMutator(FieldOp.CLEAR)]
    for field in schema.fields:
        mutators.extend(DefaultMutator(op, field) for op in FIELD_OPS[field.kind])
    return mutators


def synthesize(slice_cls: Type) -> MutatorTable:
    """Build the mutator table of a slice class."""
    schema = describe(slice_cls)
    table: Dict[str, Mutator] = {spec.name: UserMutator(spec) for spec in schema.user_mutators}

    skipped = []
    for mutator in default_mutators(schema):
        if mutator.name in table or _is_taken(slice_cls, schema, mutator.name):
            skipped.append(mutator.name)
            continue
        table[mutator.name] = mutator

    logger.debug(
        "Synthesized %d default mutators for %s%s",
        len(table) - len(schema.user_mutators),
        slice_cls.__name__,
        f" (already defined: {', '.join(skipped)})" if skipped else "",
    )
    return MutatorTable(slice_cls, table)
