"""Bidirectional mapper between raw mappings and typed objects.

from_array builds an object graph from a dict, collecting every problem
it finds and raising them together as one ValidationError. to_array
flattens an object graph back into plain data, running each field's
filter chain on the way out.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

import pydantic

from data_mapper.codecs.json_codec import JsonCodec
from data_mapper.codecs.protocol import Codec
from data_mapper.core.exceptions import (
    CircularReferenceError,
    CoercionError,
    FieldAccessError,
    FieldError,
    HydrationFunctionError,
    MissingRequiredFieldError,
    NestedMappingError,
    PayloadDecodeError,
    UnknownKeyError,
    ValidationError,
)
from data_mapper.core.options import MapperOptions
from data_mapper.mapping.coercion import coerce, format_datetime
from data_mapper.mapping.descriptors import (
    ArrayOf,
    ClassMetadata,
    DateTimeType,
    EnumType,
    FieldMetadata,
    ObjectType,
    TypeDescriptor,
)
from data_mapper.mapping.filters import apply_filters
from data_mapper.mapping.resolver import MetadataResolver, default_resolver

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def _validation_key(model: type, name: str) -> str:
    """Key under which pydantic expects *name* when validating a dict."""
    info = model.model_fields[name]  # type: ignore[attr-defined]
    if isinstance(info.validation_alias, str):
        return info.validation_alias
    return info.alias or name


def _loc_path(prefix: str, loc: tuple[Any, ...], source_keys: dict[str, str]) -> str:
    path = prefix
    for index, part in enumerate(loc):
        if isinstance(part, int):
            path = f"{path}[{part}]"
        elif index == 0:
            path = _join(path, source_keys.get(str(part), str(part)))
        else:
            path = _join(path, str(part))
    return path


@dataclass
class _Context:
    """State shared by one top-level construction call and its nested levels."""

    root: Mapping[str, Any]
    strict: bool
    max_depth: int
    errors: list[FieldError] = field(default_factory=list)


class Mapper:
    """Maps raw mappings onto typed objects and back.

    Args:
        options: Mapper configuration; defaults to MapperOptions().
        resolver: Metadata resolver; defaults to the process-wide one.
        codec: Text codec used by from_json/to_json; defaults to JsonCodec.
    """

    def __init__(
        self,
        options: MapperOptions | None = None,
        *,
        resolver: MetadataResolver | None = None,
        codec: Codec | None = None,
    ) -> None:
        self._options = options if options is not None else MapperOptions()
        self._resolver = resolver if resolver is not None else default_resolver()
        self._codec = codec if codec is not None else JsonCodec()
        self._strict_mode = self._options.strict_mode
        self._lock = threading.Lock()

    @property
    def options(self) -> MapperOptions:
        return self._options

    @property
    def resolver(self) -> MetadataResolver:
        return self._resolver

    def is_strict_mode(self) -> bool:
        with self._lock:
            return self._strict_mode

    def set_strict_mode(self, enabled: bool) -> None:
        """Enable or disable strict mode for subsequent calls."""
        with self._lock:
            self._strict_mode = enabled

    # --- Construction ---

    def from_array(
        self,
        data: Mapping[str, Any],
        target: type[T],
        *,
        strict: bool | None = None,
    ) -> T:
        """Build a *target* instance from a raw mapping.

        Args:
            data: Raw input, typically decoded JSON.
            target: Class to construct.
            strict: Override the mapper's strict mode for this call only.

        Raises:
            ValidationError: With every problem found in *data*.
            MetadataResolutionError: If *target* declares invalid fields.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"from_array expects a mapping, got {type(data).__name__}")

        self._resolver.resolve(target)
        context = self._context(data, strict)
        instance = self._construct(data, target, context, "", 1)
        self._raise_collected(context.errors, target)
        return instance  # type: ignore[return-value]

    def from_json(self, text: str, target: type[T], *, strict: bool | None = None) -> T:
        """Decode *text* with the codec and build a *target* instance.

        Raises:
            PayloadDecodeError: If the text is invalid or not an object.
            ValidationError: As from_array.
        """
        payload = self._codec.decode(text)
        if not isinstance(payload, Mapping):
            raise PayloadDecodeError(
                self._codec.name,
                f"document must decode to an object, got {type(payload).__name__}",
            )
        return self.from_array(payload, target, strict=strict)

    def from_array_collection(
        self,
        items: Iterable[Mapping[str, Any]],
        target: type[T],
        *,
        strict: bool | None = None,
    ) -> list[T]:
        """Build one *target* per mapping in *items*.

        Errors from every item are collected, each prefixed with its index
        (``[2].name``), and raised together.
        """
        self._resolver.resolve(target)
        errors: list[FieldError] = []
        results: list[Any] = []
        for index, item in enumerate(items):
            path = f"[{index}]"
            if not isinstance(item, Mapping):
                errors.append(
                    NestedMappingError(
                        path, f"Item '{path}' must be an object, got: {type(item).__name__}"
                    )
                )
                continue
            context = self._context(item, strict)
            results.append(self._construct(item, target, context, path, 1))
            errors.extend(context.errors)

        self._raise_collected(errors, target)
        return results

    def from_json_collection(
        self, text: str, target: type[T], *, strict: bool | None = None
    ) -> list[T]:
        """Decode a JSON array of objects and build one *target* per item."""
        payload = self._codec.decode(text)
        if not isinstance(payload, list):
            raise PayloadDecodeError(
                self._codec.name,
                f"document must decode to an array, got {type(payload).__name__}",
            )
        return self.from_array_collection(payload, target, strict=strict)

    def _context(self, data: Mapping[str, Any], strict: bool | None) -> _Context:
        if strict is None:
            strict = self.is_strict_mode()
        return _Context(root=data, strict=strict, max_depth=self._options.max_depth)

    @staticmethod
    def _raise_collected(errors: list[FieldError], target: type) -> None:
        if not errors:
            return
        logger.debug("Mapping to %s failed with %d error(s)", target.__qualname__, len(errors))
        raise ValidationError(errors)

    def _construct(
        self,
        data: Mapping[str, Any],
        target: type,
        context: _Context,
        path: str,
        depth: int,
    ) -> Any:
        """Build one level. Returns None when this level recorded errors."""
        metadata = self._resolver.resolve(target)
        error_count = len(context.errors)

        if context.strict:
            for key in data:
                if key not in metadata.strict_allowed_keys:
                    context.errors.append(UnknownKeyError(_join(path, str(key)), str(key)))

        values: dict[str, Any] = {}
        for meta in metadata.fields:
            field_path = _join(path, meta.source_key)

            if meta.hydration is not None:
                try:
                    values[meta.name] = meta.hydration(
                        data.get(meta.source_key), data, context.root
                    )
                except Exception as e:
                    context.errors.append(HydrationFunctionError(field_path, e))
                continue

            if meta.source_key not in data:
                if meta.required:
                    context.errors.append(MissingRequiredFieldError(field_path))
                continue

            try:
                values[meta.name] = self._construct_value(
                    data[meta.source_key], meta, context, field_path, depth
                )
            except FieldError as e:
                context.errors.append(e)
            except ValidationError as e:
                context.errors.extend(e.field_errors)

        if len(context.errors) > error_count:
            return None
        return self._instantiate(metadata, values, context, path)

    def _construct_value(
        self,
        raw: Any,
        meta: FieldMetadata,
        context: _Context,
        path: str,
        depth: int,
    ) -> Any:
        descriptor = meta.descriptor
        if isinstance(descriptor, ObjectType):
            return self._construct_nested(
                raw, descriptor.target, context, path, depth, meta.nullable
            )
        if isinstance(descriptor, ArrayOf) and isinstance(descriptor.element, ObjectType):
            return self._construct_list(
                raw, descriptor.element.target, context, path, depth, meta.nullable
            )
        return coerce(raw, descriptor, path, meta.nullable)

    def _construct_nested(
        self,
        raw: Any,
        target: type,
        context: _Context,
        path: str,
        depth: int,
        nullable: bool,
    ) -> Any:
        if raw is None:
            if nullable:
                return None
            raise CoercionError(path, f"Field '{path}' does not accept null values")
        if isinstance(raw, target):
            return raw
        if not isinstance(raw, Mapping):
            raise NestedMappingError(
                path, f"Field '{path}' must be an object, got: {type(raw).__name__}"
            )
        if depth >= context.max_depth:
            raise NestedMappingError(
                path, f"Maximum nesting depth of {context.max_depth} exceeded at path '{path}'"
            )
        return self._construct(raw, target, context, path, depth + 1)

    def _construct_list(
        self,
        raw: Any,
        target: type,
        context: _Context,
        path: str,
        depth: int,
        nullable: bool,
    ) -> list[Any] | None:
        if raw is None:
            if nullable:
                return None
            raise CoercionError(path, f"Field '{path}' does not accept null values")
        if not isinstance(raw, (list, tuple)):
            raise CoercionError(
                path, f"Field '{path}' must be an array, got: {type(raw).__name__}"
            )

        result: list[Any] = []
        for index, item in enumerate(raw):
            item_path = f"{path}[{index}]"
            try:
                result.append(
                    self._construct_nested(item, target, context, item_path, depth, True)
                )
            except FieldError as e:
                context.errors.append(e)
                result.append(None)
        return result

    def _instantiate(
        self,
        metadata: ClassMetadata,
        values: dict[str, Any],
        context: _Context,
        path: str,
    ) -> Any:
        if metadata.kind != "pydantic":
            return metadata.target(**values)

        model = metadata.target
        payload: dict[str, Any] = {}
        source_keys: dict[str, str] = {}
        for meta in metadata.fields:
            if meta.name not in values:
                continue
            key = _validation_key(model, meta.name)
            payload[key] = values[meta.name]
            source_keys[key] = meta.source_key

        try:
            return model.model_validate(payload)  # type: ignore[attr-defined]
        except pydantic.ValidationError as e:
            for error in e.errors():
                error_path = _loc_path(path, error["loc"], source_keys) or model.__name__
                context.errors.append(
                    CoercionError(
                        error_path, f"Invalid value for field '{error_path}': {error['msg']}"
                    )
                )
            return None

    # --- Flattening ---

    def to_array(self, instance: Any) -> dict[str, Any]:
        """Flatten *instance* into a dict keyed by source keys.

        Raises:
            CircularReferenceError: If the object graph contains a cycle.
            FieldAccessError: If an instance lacks a declared field attribute.
        """
        return self._flatten(instance, [])

    def to_json(self, instance: Any) -> str:
        """Flatten *instance* and encode it with the codec.

        Raises:
            PayloadEncodeError: If a flattened value has no representation in the codec.
        """
        return self._codec.encode(self.to_array(instance))

    def to_array_collection(self, instances: Iterable[Any]) -> list[dict[str, Any]]:
        """Flatten every instance in *instances*."""
        return [self.to_array(instance) for instance in instances]

    def _flatten(self, instance: Any, stack: list[int]) -> dict[str, Any]:
        marker = id(instance)
        if marker in stack:
            raise CircularReferenceError(type(instance).__qualname__)

        stack.append(marker)
        try:
            metadata = self._resolver.resolve(type(instance))
            data: dict[str, Any] = {}
            for meta in metadata.fields:
                if not hasattr(instance, meta.name):
                    raise FieldAccessError(type(instance).__qualname__, meta.name)
                value = getattr(instance, meta.name)
                value = self._flatten_value(value, meta.descriptor, stack)
                value = apply_filters(value, meta.filters)
                if value is None and self._options.skip_null_values:
                    continue
                data[meta.source_key] = value
            return data
        finally:
            stack.pop()

    def _flatten_value(self, value: Any, descriptor: TypeDescriptor, stack: list[int]) -> Any:
        if value is None:
            return None
        if isinstance(descriptor, ObjectType):
            return self._flatten(value, stack)
        if isinstance(descriptor, EnumType):
            return value.value if isinstance(value, Enum) else value
        if isinstance(descriptor, DateTimeType):
            return format_datetime(value, descriptor)
        if isinstance(descriptor, ArrayOf):
            return [
                self._flatten_value(item, descriptor.element, stack) for item in value
            ]
        return value
