"""Serialization utilities."""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from common.utils import to_camel_case


def _serialize_value(value: Any) -> Any:
    if is_dataclass(value):
        return serialize_dataclass(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _serialize_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_serialize_value(item) for item in value]
    return value


def serialize_dataclass(obj) -> dict:
    """Serialize a dataclass to a dict with camelCase keys.

    A field named ``extra`` is merged into the result rather than nested.
    """
    data = {}
    extra = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if f.name == "extra" and isinstance(value, dict):
            extra = value
            continue
        data[to_camel_case(f.name)] = _serialize_value(value)
    for key, value in extra.items():
        data.setdefault(key, value)
    return data
