"""
Value comparison used by the update core and by derived-value revalidation.

`strictly_equal` decides which array elements a key or value matches. Values
of different types never match, so ``True``, ``1`` and ``1.0`` stay distinct.

`same_value` decides whether a memoized derived value still holds. Snapshots
are copy-on-write, so an unchanged container keeps its identity and identity
is enough for containers. Scalars may be rebuilt with an equal value
(``set_counter(3)`` twice) and are compared by value. Numpy arrays are
compared element-wise since ``==`` on them does not produce a bool.
"""

from typing import Any

import numpy as np

_SCALARS = (type(None), bool, int, float, complex, str, bytes)


def strictly_equal(a: Any, b: Any) -> bool:
    """Identity, or equality between values of exactly the same type."""
    if a is b:
        return True
    if type(a) is not type(b):
        return False
    if isinstance(a, np.ndarray):
        return bool(np.array_equal(a, b))
    return bool(a == b)


def same_value(old: Any, new: Any) -> bool:
    """Return True when ``new`` can stand in for ``old`` without recomputing."""
    if old is new:
        return True
    if type(old) is not type(new):
        return False
    if isinstance(old, np.ndarray):
        return bool(np.array_equal(old, new))
    if isinstance(old, _SCALARS):
        try:
            return bool(old == new)
        except (ValueError, TypeError):
            return False
    return False
