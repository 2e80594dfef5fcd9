"""data_mapper - bidirectional mapping between raw data and typed objects."""

from __future__ import annotations

from data_mapper.codecs import Codec, JsonCodec
from data_mapper.core.enums import HydrationMode, ScalarKind
from data_mapper.core.exceptions import (
    CircularReferenceError,
    CodecError,
    CoercionError,
    DataMapperError,
    FieldAccessError,
    FieldError,
    HydrationFunctionError,
    MappingError,
    MetadataError,
    MetadataResolutionError,
    MissingRequiredFieldError,
    NestedMappingError,
    PayloadDecodeError,
    PayloadEncodeError,
    UnknownKeyError,
    ValidationError,
)
from data_mapper.core.options import MapperOptions
from data_mapper.mapping.descriptors import MapDateTime, MapProperty
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
)
from data_mapper.mapping.hydration import HydrateWith
from data_mapper.mapping.mapper import Mapper
from data_mapper.mapping.protocol import Filter
from data_mapper.mapping.resolver import MetadataResolver, resolve_metadata

__all__ = [
    # Mapper
    "Mapper",
    "MapperOptions",
    # Metadata
    "MetadataResolver",
    "resolve_metadata",
    "MapProperty",
    "MapDateTime",
    # Hydration
    "HydrateWith",
    "HydrationMode",
    # Filters
    "Filter",
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
    # Codecs
    "Codec",
    "JsonCodec",
    # Enums
    "ScalarKind",
    # Exceptions
    "DataMapperError",
    "MetadataError",
    "MetadataResolutionError",
    "MappingError",
    "FieldError",
    "UnknownKeyError",
    "CoercionError",
    "MissingRequiredFieldError",
    "HydrationFunctionError",
    "NestedMappingError",
    "ValidationError",
    "CircularReferenceError",
    "FieldAccessError",
    "CodecError",
    "PayloadDecodeError",
    "PayloadEncodeError",
]
