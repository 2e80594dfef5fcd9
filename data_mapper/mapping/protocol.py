"""Filter protocol.

All filters implement this interface. The Mapper calls apply for every
filter declared on a field, in declaration order, when flattening.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Filter(Protocol):
    """Output-direction value transform."""

    def apply(self, value: Any) -> Any:
        """Return the transformed value. Must not mutate the input."""
        ...
