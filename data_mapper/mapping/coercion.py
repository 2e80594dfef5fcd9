"""Raw value -> declared type coercion.

Scalar, enum and datetime coercion raise CoercionError. Array coercion
checks every element and raises ValidationError with one entry per
failing element.
Object descriptors are not handled here; the Mapper builds those.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time, timezone, tzinfo
from enum import Enum
from typing import Any
from zoneinfo import ZoneInfo

from data_mapper.core.enums import ScalarKind
from data_mapper.core.exceptions import CoercionError, FieldError, ValidationError
from data_mapper.mapping.descriptors import (
    ArrayOf,
    DateTimeType,
    EnumType,
    RawType,
    ScalarType,
    TypeDescriptor,
)

_INT_PATTERN = re.compile(r"[+-]?\d+")
_DECIMAL_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def _cast_error(path: str, kind: ScalarKind) -> CoercionError:
    return CoercionError(path, f"Cannot cast value of field '{path}' to {kind.value}")


def _to_int(value: Any, path: str) -> int:
    if isinstance(value, bool):
        raise _cast_error(path, ScalarKind.INT)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INT_PATTERN.fullmatch(value):
        return int(value)
    raise _cast_error(path, ScalarKind.INT)


def _to_float(value: Any, path: str) -> float:
    if isinstance(value, bool):
        raise _cast_error(path, ScalarKind.FLOAT)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str) and _DECIMAL_PATTERN.fullmatch(value):
        result = float(value)
        if math.isfinite(result):
            return result
    raise _cast_error(path, ScalarKind.FLOAT)


def _to_bool(value: Any, path: str) -> bool:
    if isinstance(value, bool):
        return value
    raise _cast_error(path, ScalarKind.BOOL)


def _to_string(value: Any, path: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise _cast_error(path, ScalarKind.STRING)


_SCALAR_CASTS = {
    ScalarKind.INT: _to_int,
    ScalarKind.FLOAT: _to_float,
    ScalarKind.BOOL: _to_bool,
    ScalarKind.STRING: _to_string,
}


def coerce_scalar(value: Any, kind: ScalarKind, path: str) -> Any:
    """Convert *value* to the scalar *kind*.

    Raises:
        CoercionError: If the value has no lossless conversion.
    """
    return _SCALAR_CASTS[kind](value, path)


def coerce_enum(value: Any, enum: type[Enum], path: str) -> Enum:
    """Look up the member of *enum* whose value is *value*."""
    if isinstance(value, enum):
        return value
    try:
        return enum(value)
    except ValueError:
        allowed = ", ".join(str(member.value) for member in enum)
        raise CoercionError(
            path,
            f"Invalid value '{value}' for field '{path}', allowed values: {allowed}",
        ) from None


def _zone(descriptor: DateTimeType) -> tzinfo | None:
    return ZoneInfo(descriptor.timezone) if descriptor.timezone else None


def _from_timestamp(seconds: int, zone: tzinfo | None) -> datetime | None:
    try:
        return datetime.fromtimestamp(seconds, tz=zone or timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _parse_datetime(text: str, descriptor: DateTimeType) -> datetime | None:
    """Custom format first, then a unix timestamp, then ISO-8601."""
    if descriptor.format is not None:
        try:
            return datetime.strptime(text, descriptor.format)
        except ValueError:
            pass

    text = text.strip()
    if _INT_PATTERN.fullmatch(text):
        return _from_timestamp(int(text), _zone(descriptor))
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def coerce_datetime(value: Any, descriptor: DateTimeType, path: str) -> datetime | date:
    """Convert *value* to a datetime (or date, per *descriptor.kind*).

    Accepts datetime and date instances, integer unix timestamps, and
    strings in the declared format, ISO-8601 (``Z`` suffix allowed), or
    digits-only timestamps. Naive results get the declared timezone.
    """
    if isinstance(value, datetime):
        result: datetime | None = value
    elif isinstance(value, date):
        result = datetime.combine(value, time())
    elif isinstance(value, int) and not isinstance(value, bool):
        result = _from_timestamp(value, _zone(descriptor))
    elif isinstance(value, str):
        result = _parse_datetime(value, descriptor)
    else:
        raise CoercionError(
            path,
            f"Field '{path}' must be a string or integer (timestamp), got: {type(value).__name__}",
        )

    if result is None:
        message = f"Field '{path}' has invalid datetime format. Value: '{value}'"
        if descriptor.format:
            message += f", expected format: '{descriptor.format}'"
        raise CoercionError(path, message)

    if result.tzinfo is None and descriptor.timezone:
        result = result.replace(tzinfo=_zone(descriptor))
    if descriptor.kind is date:
        return result.date()
    return result


def format_datetime(value: Any, descriptor: DateTimeType) -> Any:
    """Render a date or datetime for output; other values pass through."""
    if not isinstance(value, date):
        return value
    if descriptor.output_format:
        return value.strftime(descriptor.output_format)
    return value.isoformat()


def _coerce_element(value: Any, descriptor: TypeDescriptor, path: str) -> Any:
    if isinstance(descriptor, ScalarType):
        return coerce_scalar(value, descriptor.kind, path)
    if isinstance(descriptor, EnumType):
        return coerce_enum(value, descriptor.enum, path)
    if isinstance(descriptor, DateTimeType):
        return coerce_datetime(value, descriptor, path)
    raise TypeError(f"Cannot coerce to {descriptor!r}")


def coerce_array(value: Any, element: TypeDescriptor, path: str) -> list[Any]:
    """Coerce every element of a list independently.

    Raises:
        CoercionError: If *value* is not a list.
        ValidationError: With one entry per failing element (``path[i]``).
    """
    if not isinstance(value, (list, tuple)):
        raise CoercionError(
            path, f"Field '{path}' must be an array, got: {type(value).__name__}"
        )

    result: list[Any] = []
    errors: list[FieldError] = []
    for index, item in enumerate(value):
        item_path = f"{path}[{index}]"
        try:
            result.append(_coerce_element(item, element, item_path))
        except CoercionError as e:
            errors.append(e)
            result.append(None)

    if errors:
        raise ValidationError(errors)
    return result


def coerce(
    value: Any,
    descriptor: TypeDescriptor,
    path: str,
    nullable: bool = False,
) -> Any:
    """Convert a raw value to *descriptor*.

    Args:
        value: Raw input value.
        descriptor: Declared field shape (not ObjectType).
        path: Field path used in error messages.
        nullable: Whether None is an accepted value.
    """
    if value is None:
        if nullable or isinstance(descriptor, RawType):
            return None
        raise CoercionError(path, f"Field '{path}' does not accept null values")

    if isinstance(descriptor, RawType):
        return value
    if isinstance(descriptor, ArrayOf):
        return coerce_array(value, descriptor.element, path)
    return _coerce_element(value, descriptor, path)
