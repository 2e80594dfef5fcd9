"""Metadata resolver - inspects a target type once and caches its fields.

Supports dataclasses, Pydantic models, and plain classes whose ``__init__``
parameters carry the field declarations. Per-field behaviour is declared
with ``typing.Annotated``::

    @dataclass
    class Product:
        sku: Annotated[str, MapProperty(name="product_sku")]
        price: float
        tags: Annotated[list[str], Each(StringTrim()), SortArray()] = field(default_factory=list)
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import threading
import types
import typing
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel

from data_mapper.core.enums import ScalarKind
from data_mapper.core.exceptions import MetadataResolutionError
from data_mapper.core.imports import import_object
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
from data_mapper.mapping.hydration import HydrateWith, HydrationBinding, bind
from data_mapper.mapping.protocol import Filter

logger = logging.getLogger(__name__)

_SCALARS: dict[Any, ScalarKind] = {
    int: ScalarKind.INT,
    float: ScalarKind.FLOAT,
    bool: ScalarKind.BOOL,
    str: ScalarKind.STRING,
}

_DATETIME_KINDS = (datetime, date)


def _is_class(obj: Any) -> bool:
    """True for real classes, false for parametrized generics like list[int]."""
    return isinstance(obj, type) and typing.get_origin(obj) is None


def _is_enum(obj: Any) -> bool:
    return _is_class(obj) and issubclass(obj, Enum)


def _is_pydantic_model(cls: Any) -> bool:
    """Check if a class is a Pydantic BaseModel."""
    return _is_class(cls) and issubclass(cls, BaseModel)


def _init_parameters(cls: type) -> list[inspect.Parameter]:
    """Named parameters of ``cls.__init__`` (no self, *args or **kwargs)."""
    sig = inspect.signature(cls.__init__)  # type: ignore[misc]
    return [
        param
        for name, param in sig.parameters.items()
        if name != "self"
        and param.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]


def is_mappable(cls: Any) -> bool:
    """Whether *cls* can be used as a nested object type.

    True for dataclasses, Pydantic models, and classes whose ``__init__``
    has at least one annotated parameter.
    """
    if not _is_class(cls) or cls in _SCALARS or cls in _DATETIME_KINDS or issubclass(cls, Enum):
        return False
    if dataclasses.is_dataclass(cls) or _is_pydantic_model(cls):
        return True
    if cls.__init__ is object.__init__:
        return False
    try:
        params = _init_parameters(cls)
    except (ValueError, TypeError):
        return False
    return any(param.annotation is not inspect.Parameter.empty for param in params)


def _split_annotated(annotation: Any) -> tuple[Any, tuple[Any, ...]]:
    """Separate ``Annotated[T, *markers]`` into ``T`` and the markers."""
    if typing.get_origin(annotation) is Annotated:
        base, *markers = typing.get_args(annotation)
        return base, tuple(markers)
    return annotation, ()


def _strip_optional(annotation: Any) -> tuple[Any, bool]:
    """Unwrap ``T | None``. Returns the remaining type and nullability."""
    if annotation is Any:
        return annotation, True
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = typing.get_args(annotation)
        rest = [arg for arg in args if arg is not type(None)]
        nullable = len(rest) != len(args)
        if len(rest) == 1:
            return rest[0], nullable
        return Union[tuple(rest)], nullable  # type: ignore[return-value]
    return annotation, annotation is type(None)


def _has_datetime(descriptor: TypeDescriptor) -> bool:
    if isinstance(descriptor, ArrayOf):
        return isinstance(descriptor.element, DateTimeType)
    return isinstance(descriptor, DateTimeType)


@dataclasses.dataclass
class _DeclaredField:
    """A field as found on the class, before interpretation."""

    name: str
    annotation: Any
    required: bool
    alias: str | None = None
    markers: tuple[Any, ...] = ()


class MetadataResolver:
    """Builds and caches ClassMetadata per target type.

    Metadata for a type is built at most once; concurrent first calls for
    the same type are serialized by a per-type lock. The cache is never
    invalidated, target types are assumed static.
    """

    def __init__(self) -> None:
        self._cache: dict[type, ClassMetadata] = {}
        self._locks: dict[type, threading.Lock] = {}
        self._guard = threading.Lock()

    def resolve(self, cls: type) -> ClassMetadata:
        """Return the metadata for *cls*, building it on first use.

        Raises:
            MetadataResolutionError: If a field declaration is invalid.
        """
        metadata = self._cache.get(cls)
        if metadata is not None:
            return metadata

        if not _is_class(cls):
            raise MetadataResolutionError(repr(cls), "target is not a class")

        with self._lock_for(cls):
            metadata = self._cache.get(cls)
            if metadata is None:
                metadata = self._build(cls)
                self._cache[cls] = metadata
        return metadata

    def has(self, cls: type) -> bool:
        """Check if metadata for *cls* has been built."""
        return cls in self._cache

    def __len__(self) -> int:
        """Number of resolved types."""
        return len(self._cache)

    def _lock_for(self, cls: type) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(cls, threading.Lock())

    # --- Building ---

    def _build(self, cls: type) -> ClassMetadata:
        kind, declared = self._declared_fields(cls)

        fields: list[FieldMetadata] = []
        for decl in declared:
            fields.append(self._build_field(cls, decl))

        metadata = ClassMetadata(
            target=cls,
            kind=kind,
            fields=tuple(fields),
            strict_allowed_keys=frozenset(f.source_key for f in fields),
        )
        logger.debug(
            "Resolved metadata for %s (%s, %d field(s))", cls.__qualname__, kind, len(fields)
        )
        return metadata

    def _declared_fields(self, cls: type) -> tuple[str, list[_DeclaredField]]:
        """Extract declared fields from a class (Pydantic, dataclass, or plain)."""
        # Pydantic model
        if _is_pydantic_model(cls):
            declared = []
            for name, info in cls.model_fields.items():  # type: ignore[attr-defined]
                declared.append(
                    _DeclaredField(
                        name=name,
                        annotation=info.annotation,
                        required=info.is_required(),
                        alias=info.alias,
                        markers=tuple(info.metadata),
                    )
                )
            return "pydantic", declared

        # Dataclass
        if dataclasses.is_dataclass(cls):
            hints = self._type_hints(cls, cls)
            declared = [
                _DeclaredField(
                    name=f.name,
                    annotation=hints.get(f.name, Any),
                    required=(
                        f.default is dataclasses.MISSING
                        and f.default_factory is dataclasses.MISSING
                    ),
                )
                for f in dataclasses.fields(cls)
                if f.init
            ]
            return "dataclass", declared

        # Plain class - use __init__ parameters
        try:
            params = _init_parameters(cls)
        except (ValueError, TypeError) as e:
            raise MetadataResolutionError(cls.__qualname__, f"cannot inspect __init__: {e}") from e
        hints = self._type_hints(cls, cls.__init__) if params else {}
        declared = [
            _DeclaredField(
                name=param.name,
                annotation=hints.get(param.name, Any),
                required=param.default is inspect.Parameter.empty,
            )
            for param in params
        ]
        return "plain", declared

    @staticmethod
    def _type_hints(cls: type, obj: Any) -> dict[str, Any]:
        try:
            return typing.get_type_hints(obj, include_extras=True)
        except (NameError, TypeError) as e:
            raise MetadataResolutionError(
                cls.__qualname__, f"cannot evaluate annotations: {e}"
            ) from e

    def _build_field(self, cls: type, decl: _DeclaredField) -> FieldMetadata:
        annotation, markers = _split_annotated(decl.annotation)
        annotation, nullable = _strip_optional(annotation)
        # Optional[Annotated[T, ...]]
        annotation, inner_markers = _split_annotated(annotation)
        markers = decl.markers + markers + inner_markers

        mapping: MapProperty | None = None
        datetime_options: MapDateTime | None = None
        hydrations: list[HydrateWith] = []
        filters: list[Filter] = []
        for marker in markers:
            if isinstance(marker, MapProperty):
                mapping = mapping or marker
            elif isinstance(marker, MapDateTime):
                datetime_options = datetime_options or marker
            elif isinstance(marker, HydrateWith):
                hydrations.append(marker)
            elif _is_class(marker) and hasattr(marker, "apply"):
                filters.append(self._instantiate_filter(cls, decl.name, marker))
            elif isinstance(marker, Filter):
                filters.append(marker)

        if len(hydrations) > 1:
            raise MetadataResolutionError(
                cls.__qualname__, f"field '{decl.name}' declares more than one HydrateWith"
            )

        descriptor = self._descriptor(cls, decl.name, annotation, mapping, datetime_options)
        source_key = (mapping.name if mapping else None) or decl.alias or decl.name

        return FieldMetadata(
            name=decl.name,
            source_key=source_key,
            descriptor=descriptor,
            filters=tuple(filters),
            hydration=self._bind(cls, decl.name, hydrations[0]) if hydrations else None,
            required=decl.required,
            nullable=nullable or isinstance(descriptor, RawType),
        )

    @staticmethod
    def _instantiate_filter(cls: type, field_name: str, filter_cls: type) -> Filter:
        try:
            return filter_cls()  # type: ignore[no-any-return]
        except TypeError as e:
            raise MetadataResolutionError(
                cls.__qualname__,
                f"field '{field_name}': filter {filter_cls.__name__} needs arguments ({e})",
            ) from e

    @staticmethod
    def _bind(cls: type, field_name: str, declaration: HydrateWith) -> HydrationBinding:
        try:
            return bind(declaration, cls)
        except (LookupError, ValueError) as e:
            raise MetadataResolutionError(cls.__qualname__, f"field '{field_name}': {e}") from e

    def _descriptor(
        self,
        cls: type,
        field_name: str,
        annotation: Any,
        mapping: MapProperty | None,
        datetime_options: MapDateTime | None = None,
    ) -> TypeDescriptor:
        if mapping is not None and mapping.array_of is not None:
            descriptor: TypeDescriptor = ArrayOf(
                self._element(cls, field_name, mapping.array_of, datetime_options)
            )
        else:
            descriptor = self._field_descriptor(cls, field_name, annotation, datetime_options)

        if datetime_options is not None and not _has_datetime(descriptor):
            raise MetadataResolutionError(
                cls.__qualname__, f"field '{field_name}': MapDateTime needs a datetime or date field"
            )
        return descriptor

    def _field_descriptor(
        self,
        cls: type,
        field_name: str,
        annotation: Any,
        datetime_options: MapDateTime | None,
    ) -> TypeDescriptor:
        if annotation in _SCALARS:
            return ScalarType(_SCALARS[annotation])
        if annotation in _DATETIME_KINDS:
            return self._datetime(cls, field_name, annotation, datetime_options)
        if _is_enum(annotation):
            return EnumType(annotation)

        if typing.get_origin(annotation) is list:
            args = typing.get_args(annotation)
            if len(args) != 1 or args[0] is Any:
                return RawType()
            return ArrayOf(self._element(cls, field_name, args[0], datetime_options))

        if is_mappable(annotation):
            return ObjectType(annotation)
        return RawType()

    def _element(
        self,
        cls: type,
        field_name: str,
        element: Any,
        datetime_options: MapDateTime | None = None,
    ) -> TypeDescriptor:
        """Resolve an array element type; fails if it is not scalar, enum or mappable."""
        if isinstance(element, str):
            try:
                element = import_object(element)
            except ImportError as e:
                raise MetadataResolutionError(
                    cls.__qualname__,
                    f"field '{field_name}': cannot import array element type '{element}' ({e})",
                ) from e

        element, _ = _split_annotated(element)
        element, _ = _strip_optional(element)

        if element in _SCALARS:
            return ScalarType(_SCALARS[element])
        if element in _DATETIME_KINDS:
            return self._datetime(cls, field_name, element, datetime_options)
        if _is_enum(element):
            return EnumType(element)
        if is_mappable(element):
            return ObjectType(element)
        raise MetadataResolutionError(
            cls.__qualname__,
            f"field '{field_name}': cannot resolve array element type {element!r}",
        )

    @staticmethod
    def _datetime(
        cls: type,
        field_name: str,
        kind: type,
        options: MapDateTime | None,
    ) -> DateTimeType:
        if options is None:
            return DateTimeType(kind)
        if options.timezone:
            try:
                ZoneInfo(options.timezone)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise MetadataResolutionError(
                    cls.__qualname__,
                    f"field '{field_name}': unknown timezone '{options.timezone}'",
                ) from e
        return DateTimeType(kind, options.format, options.timezone, options.output_format)


_default_resolver = MetadataResolver()


def default_resolver() -> MetadataResolver:
    """The process-wide resolver shared by Mappers created without one."""
    return _default_resolver


def resolve_metadata(cls: type) -> ClassMetadata:
    """Resolve *cls* with the process-wide resolver."""
    return _default_resolver.resolve(cls)
