"""
Array element helpers.

Elements stored in slice array fields may be mappings, dataclass instances or
plain objects. These helpers read a key from any of them and produce shallow
clones without touching the original element.
"""

import copy
import dataclasses
from collections.abc import Mapping
from typing import Any, Dict

from .equality import strictly_equal

_MISSING = object()


def element_key(element: Any, key: str, default: Any = _MISSING) -> Any:
    """Read ``key`` from a mapping element or attribute from any other element."""
    if isinstance(element, Mapping):
        return element.get(key, default)
    return getattr(element, key, default)


def matches_key(element: Any, key: str, value: Any) -> bool:
    """True when ``element`` carries ``key`` and it strictly equals ``value``."""
    found = element_key(element, key)
    if found is _MISSING:
        return False
    return strictly_equal(found, value)


def as_patch(partial: Any) -> Dict[str, Any]:
    """Return the own keys of a partial element as a plain dict."""
    if isinstance(partial, Mapping):
        return dict(partial)
    if dataclasses.is_dataclass(partial) and not isinstance(partial, type):
        return {f.name: getattr(partial, f.name) for f in dataclasses.fields(partial)}
    return {k: v for k, v in vars(partial).items() if not k.startswith("_")}


def clone_element(element: Any) -> Any:
    """Shallow clone of an element."""
    if isinstance(element, Mapping):
        return dict(element)
    return copy.copy(element)


def merge_element(element: Any, partial: Any) -> Any:
    """Shallow-clone ``element`` and overwrite it with the keys of ``partial``."""
    patch = as_patch(partial)
    if isinstance(element, Mapping):
        return {**element, **patch}
    if dataclasses.is_dataclass(element) and not isinstance(element, type):
        return dataclasses.replace(element, **patch)
    clone = copy.copy(element)
    for name, value in patch.items():
        setattr(clone, name, value)
    return clone
