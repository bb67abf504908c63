"""
Reslice Exceptions
==================

Every error raised by reslice derives from `ResliceError`.

Configuration errors are raised while a slice is being wired (``init`` or
``combine_slices``) and indicate a mistake in the slice definition. They are
never caught inside the package.

`ActionConflictError` is raised only when a disabled top-level dispatcher is
actually called, so unrelated actions keep working.
"""


class ResliceError(Exception):
    """Base class for all reslice errors."""

    pass


class ConfigurationError(ResliceError):
    """Raised at wiring time when a slice or store is set up incorrectly."""

    pass


class StoreAlreadyInitializedError(ConfigurationError):
    """Raised when a slice (or top-level registry) is wired a second time."""

    pass


class MutatorArityError(ConfigurationError):
    """Raised when a mutator requires more than one argument."""

    pass


class AbstractSliceError(ConfigurationError):
    """Raised when the abstract `Slice` base is wired directly."""

    pass


class SliceNotInitializedError(ConfigurationError):
    """Raised when a slice's store is used before ``init``/``combine_slices``."""

    pass


class DuplicateSliceKeyError(ConfigurationError):
    """Raised when two slices are combined under the same key."""

    pass


class ActionConflictError(ResliceError):
    """Raised when dispatching a top-level action produced by several slices."""

    def __init__(self, name: str, slice_keys):
        self.name = name
        self.slice_keys = tuple(slice_keys)
        super().__init__(
            f"The action type {name!r} could not be created automatically because "
            f"the slices {', '.join(self.slice_keys)} share the same field name. "
            f"Dispatch it from the owning slice instead, e.g. "
            f"{self.slice_keys[0]}.actions.{name}(...)."
        )


class ReentrantDispatchError(ResliceError):
    """Raised when an action is dispatched while a reducer is still running."""

    pass


class CircularDependencyError(ResliceError):
    """Raised when a derived value depends on itself."""

    pass


class ComputationError(ResliceError):
    """Raised when a derived value fails to evaluate."""

    pass


class FrozenSliceError(ResliceError, AttributeError):
    """Raised when assigning to an attribute of a published slice snapshot."""

    pass
