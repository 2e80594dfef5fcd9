"""Scalar kinds and hydration modes."""

from __future__ import annotations

from enum import Enum


class ScalarKind(Enum):
    """Scalar types a field can be coerced to."""

    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRING = "string"


class HydrationMode(Enum):
    """Which part of the input a hydration function receives."""

    VALUE = "value"  # raw value at the field's own key
    PARENT = "parent"  # mapping at the current nesting level
    FULL = "full"  # mapping passed to the outermost call
