"""Shared field validators for config dataclasses."""
from __future__ import annotations


def validate_positive_int(value: int, name: str, min_val: int = 1) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < min_val:
        raise ValueError(f"{name} must be an integer >= {min_val}, got {value!r}")
    return value


def validate_nonnegative_int(value: int, name: str) -> int:
    return validate_positive_int(value, name, min_val=0)
