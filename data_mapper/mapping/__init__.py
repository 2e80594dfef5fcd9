"""Mapping layer - transform raw mappings into typed objects and back."""

from __future__ import annotations

from data_mapper.mapping.descriptors import (
    ArrayOf,
    ClassMetadata,
    DateTimeType,
    EnumType,
    FieldMetadata,
    MapDateTime,
    MapProperty,
    ObjectType,
    RawType,
    ScalarType,
    TypeDescriptor,
)
from data_mapper.mapping.filters import (
    ArrayCast,
    Each,
    FilterKeys,
    FlattenArray,
    LimitArray,
    ReverseArray,
    SliceArray,
    SortArray,
    SortArrayByKey,
    StringTrim,
    UniqueArray,
    apply_filters,
)
from data_mapper.mapping.hydration import HydrateWith, HydrationBinding
from data_mapper.mapping.mapper import Mapper
from data_mapper.mapping.protocol import Filter
from data_mapper.mapping.resolver import MetadataResolver, resolve_metadata

__all__ = [
    "Mapper",
    "MetadataResolver",
    "resolve_metadata",
    "MapProperty",
    "MapDateTime",
    "HydrateWith",
    "HydrationBinding",
    "ClassMetadata",
    "FieldMetadata",
    "TypeDescriptor",
    "ScalarType",
    "EnumType",
    "DateTimeType",
    "ObjectType",
    "ArrayOf",
    "RawType",
    "Filter",
    "apply_filters",
    "Each",
    "StringTrim",
    "UniqueArray",
    "SortArray",
    "SortArrayByKey",
    "ReverseArray",
    "FilterKeys",
    "SliceArray",
    "LimitArray",
    "FlattenArray",
    "ArrayCast",
]
