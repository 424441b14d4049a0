"""Common utility functions."""

from typing import Any


def get_value(obj: Any, key: str) -> Any:
    """Get value from dict or object attribute."""
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def to_camel_case(name: str) -> str:
    """Convert a snake_case field name to the camelCase used in datasets."""
    head, *tail = name.split("_")
    return head + "".join(part.title() for part in tail)
