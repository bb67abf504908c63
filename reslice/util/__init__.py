"""Small helpers shared by the reslice core."""

from .elements import clone_element, element_key, matches_key, merge_element
from .equality import same_value, strictly_equal

__all__ = [
    "clone_element",
    "element_key",
    "matches_key",
    "merge_element",
    "same_value",
    "strictly_equal",
]
