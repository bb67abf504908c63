"""
Reslice - Reflection-Driven Immutable State Slices

Declare a slice as a plain class of fields and defaults; reslice derives its
immutable update operations, wires them into actions and dispatchers, and
memoizes derived values against the fields they actually read.
"""

from .actions import Action, ActionDescriptor, ActionNamespace
from .derived import DerivedValue, ReadTracker, derived
from .exceptions import (
    AbstractSliceError,
    ActionConflictError,
    CircularDependencyError,
    ComputationError,
    ConfigurationError,
    DuplicateSliceKeyError,
    FrozenSliceError,
    MutatorArityError,
    ReentrantDispatchError,
    ResliceError,
    SliceNotInitializedError,
    StoreAlreadyInitializedError,
)
from .immutable import ImmutableState
from .mutators import DefaultMutator, FieldOp, MutatorTable, UserMutator
from .reducer import CombinedState, combine_reducers
from .reflection import FieldKind, SliceSchema, describe
from .registry import SliceRegistry, TopLevelRegistry
from .slice import Slice, StoreHandle, combine_slices
from .store import Store, apply_middleware, create_store

__version__ = "0.1.0"

__all__ = [
    # Slices and wiring
    "Slice",
    "StoreHandle",
    "combine_slices",
    "derived",
    # Update core
    "ImmutableState",
    # Reflection and synthesis
    "describe",
    "SliceSchema",
    "FieldKind",
    "FieldOp",
    "DefaultMutator",
    "UserMutator",
    "MutatorTable",
    # Actions and registries
    "Action",
    "ActionDescriptor",
    "ActionNamespace",
    "SliceRegistry",
    "TopLevelRegistry",
    # Store backend
    "Store",
    "create_store",
    "apply_middleware",
    "combine_reducers",
    "CombinedState",
    # Derived values
    "DerivedValue",
    "ReadTracker",
    # Exceptions
    "ResliceError",
    "ConfigurationError",
    "StoreAlreadyInitializedError",
    "MutatorArityError",
    "AbstractSliceError",
    "SliceNotInitializedError",
    "DuplicateSliceKeyError",
    "ActionConflictError",
    "ReentrantDispatchError",
    "CircularDependencyError",
    "ComputationError",
    "FrozenSliceError",
]
