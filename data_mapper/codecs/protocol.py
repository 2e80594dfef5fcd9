"""Codec protocol.

A codec turns text into a structured value and back. The Mapper only
depends on this interface.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Codec(Protocol):
    """Text <-> structured value codec protocol."""

    @property
    def name(self) -> str:
        """Short format name used in error messages."""
        ...

    def decode(self, text: str) -> Any:
        """Decode text into a structured value.

        Raises:
            PayloadDecodeError: If the text is not valid for this format.
        """
        ...

    def encode(self, value: Any) -> str:
        """Encode a structured value as text.

        Raises:
            PayloadEncodeError: If the value cannot be represented in this format.
        """
        ...
