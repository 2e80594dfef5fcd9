"""JSON codec backed by the stdlib json module."""

from __future__ import annotations

import json
from typing import Any

from data_mapper.core.exceptions import PayloadDecodeError, PayloadEncodeError


class JsonCodec:
    """JSON codec.

    Args:
        ensure_ascii: Escape non-ASCII characters when encoding.
        indent: Indentation passed to json.dumps; None for compact output.
    """

    def __init__(self, *, ensure_ascii: bool = False, indent: int | None = None) -> None:
        self._ensure_ascii = ensure_ascii
        self._indent = indent

    @property
    def name(self) -> str:
        return "json"

    def decode(self, text: str) -> Any:
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise PayloadDecodeError(self.name, str(e)) from e

    def encode(self, value: Any) -> str:
        try:
            return json.dumps(value, ensure_ascii=self._ensure_ascii, indent=self._indent)
        except (TypeError, ValueError) as e:
            raise PayloadEncodeError(self.name, str(e)) from e
