"""
Boundary adapter for one-to-one join results.

Depending on how a relation is selected the store may hand back a nested
record as a single object or as a single-element list. Everything downstream
of this module sees "object or None".
"""
from typing import Any


def normalize_one(value: Any) -> Any:
    """
    Collapse a one-to-one join value to a single record or None.

    - None or an empty list/tuple -> None
    - a one-element list/tuple -> its element
    - anything else is returned unchanged
    """
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        if len(value) > 1:
            raise ValueError(f"Expected at most one related record, got {len(value)}")
        return value[0]
    return value
