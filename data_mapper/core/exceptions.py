"""data_mapper exception hierarchy.

All exceptions are data_mapper-specific. Codec exceptions are wrapped and
never exposed to callers as-is.
"""

from __future__ import annotations

from typing import Any


class DataMapperError(Exception):
    """Base exception for all data_mapper errors."""


# --- Metadata ---


class MetadataError(DataMapperError):
    """Base for metadata errors."""


class MetadataResolutionError(MetadataError):
    """Raised when a target type's field declarations cannot be resolved."""

    def __init__(self, target_class: str, detail: str) -> None:
        self.target_class = target_class
        super().__init__(f"Cannot resolve metadata for {target_class}: {detail}")


# --- Mapping ---


class MappingError(DataMapperError):
    """Base for mapping errors."""


class FieldError(MappingError):
    """A single problem found while constructing an object.

    Field errors are collected during ``from_array`` and surfaced through
    one ``ValidationError``; they are not raised to callers on their own.
    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(message)


class UnknownKeyError(FieldError):
    """Input key not declared by the target type (strict mode only)."""

    def __init__(self, path: str, key: str) -> None:
        self.key = key
        super().__init__(path, f"Unknown key '{key}'")


class CoercionError(FieldError):
    """A present value cannot be converted to the field's declared type."""


class MissingRequiredFieldError(FieldError):
    """A required field has neither an input value nor a default."""

    def __init__(self, path: str) -> None:
        super().__init__(path, f"Missing required field '{path}'")


class HydrationFunctionError(FieldError):
    """A bound hydration function raised."""

    def __init__(self, path: str, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(path, f"Hydrator function error at path '{path}': {cause}")


class NestedMappingError(FieldError):
    """A nested object field cannot be built from its input."""


class ValidationError(MappingError):
    """Raised once per top-level call with every collected field error.

    Attributes:
        errors: Ordered mapping of field path to message.
        field_errors: The typed FieldError instances, in collection order.
    """

    def __init__(self, field_errors: list[FieldError]) -> None:
        self.field_errors = list(field_errors)
        self.errors: dict[str, str] = {}
        for error in self.field_errors:
            self.errors[error.path] = error.message
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        if len(self.errors) == 1:
            return next(iter(self.errors.values()))
        lines = [f"Validation failed with {len(self.errors)} error(s):"]
        lines.extend(f"  - {path}: {message}" for path, message in self.errors.items())
        return "\n".join(lines)

    def get_error(self, path: str) -> str | None:
        """Return the message recorded for *path*, if any."""
        return self.errors.get(path)

    def has_error(self, path: str) -> bool:
        return path in self.errors

    def to_api_response(
        self, message: str = "Invalid request data", code: int = 422
    ) -> dict[str, Any]:
        """Shape the errors as an HTTP error body."""
        return {
            "message": message,
            "code": code,
            "context": {
                "validation": {path: [msg] for path, msg in self.errors.items()},
            },
        }


class CircularReferenceError(MappingError):
    """Raised by to_array when an object graph references itself."""

    def __init__(self, target_class: str) -> None:
        self.target_class = target_class
        super().__init__(f'Circular reference detected for object of class "{target_class}"')


class FieldAccessError(MappingError):
    """Raised by to_array when an instance lacks a declared field attribute."""

    def __init__(self, target_class: str, field_name: str) -> None:
        self.target_class = target_class
        self.field_name = field_name
        super().__init__(
            f"Cannot read field '{field_name}' of \"{target_class}\": no attribute with that name"
        )


# --- Codec ---


class CodecError(DataMapperError):
    """Base for codec errors."""


class PayloadDecodeError(CodecError):
    """Raised when text cannot be decoded into a mapping."""

    def __init__(self, codec: str, detail: str) -> None:
        self.codec = codec
        super().__init__(f"Cannot decode {codec} payload: {detail}")


class PayloadEncodeError(CodecError):
    """Raised when a value cannot be encoded into text."""

    def __init__(self, codec: str, detail: str) -> None:
        self.codec = codec
        super().__init__(f"Cannot encode {codec} payload: {detail}")
