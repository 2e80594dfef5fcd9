"""Field and class metadata data classes.

Frozen dataclasses describing resolved target types. Built once per type
by MetadataResolver and read by Mapper at execution time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Union

from data_mapper.core.enums import ScalarKind

if TYPE_CHECKING:
    from data_mapper.mapping.hydration import HydrationBinding
    from data_mapper.mapping.protocol import Filter


@dataclass(frozen=True)
class ScalarType:
    """int, float, bool or str."""

    kind: ScalarKind


@dataclass(frozen=True)
class EnumType:
    """Enum class; values are looked up with ``enum(value)``."""

    enum: type[Enum]


@dataclass(frozen=True)
class DateTimeType:
    """datetime or date.

    *format* is a strptime pattern tried before the ISO-8601 and timestamp
    fallbacks; *timezone* is attached to naive values; *output_format* is a
    strftime pattern used when flattening instead of ``isoformat()``.
    """

    kind: type = datetime
    format: str | None = None
    timezone: str | None = None
    output_format: str | None = None


@dataclass(frozen=True)
class ObjectType:
    """Nested mapped class."""

    target: type


@dataclass(frozen=True)
class ArrayOf:
    """List whose elements share one descriptor."""

    element: ScalarType | EnumType | DateTimeType | ObjectType


@dataclass(frozen=True)
class RawType:
    """Untyped value, passed through unchanged in both directions."""


TypeDescriptor = Union[ScalarType, EnumType, DateTimeType, ObjectType, ArrayOf, RawType]


@dataclass(frozen=True)
class FieldMetadata:
    """Resolved mapping for a single field."""

    name: str
    source_key: str  # key in the raw mapping
    descriptor: TypeDescriptor
    filters: tuple[Filter, ...] = ()
    hydration: HydrationBinding | None = None
    required: bool = True
    nullable: bool = False


@dataclass(frozen=True)
class ClassMetadata:
    """Resolved mapping for a target type."""

    target: type
    kind: str  # "dataclass", "pydantic" or "plain"
    fields: tuple[FieldMetadata, ...] = ()
    strict_allowed_keys: frozenset[str] = field(default_factory=frozenset)

    def get_field(self, name: str) -> FieldMetadata:
        """Look up a field by attribute name."""
        for meta in self.fields:
            if meta.name == name:
                return meta
        raise KeyError(name)


@dataclass(frozen=True)
class MapProperty:
    """Per-field mapping declaration, used inside ``typing.Annotated``.

    Args:
        name: Key in the raw mapping; defaults to the field name.
        array_of: Element class of a list field, or its dotted import path
            (``"package.module:Class"``). Needed when the annotation is a
            bare ``list``.
    """

    name: str | None = None
    array_of: type | str | None = None


@dataclass(frozen=True)
class MapDateTime:
    """Parsing and output options for a ``datetime`` or ``date`` field.

    Args:
        format: strptime pattern tried first, e.g. ``"%d/%m/%Y %H:%M"``.
        timezone: IANA zone name attached to naive values, e.g. ``"UTC"``.
        output_format: strftime pattern for to_array; ISO-8601 when None.
    """

    format: str | None = None
    timezone: str | None = None
    output_format: str | None = None
