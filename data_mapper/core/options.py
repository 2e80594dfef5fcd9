"""Mapper configuration.

MapperOptions is a Pydantic model for type-safe mapper configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class MapperOptions(BaseModel):
    """Configuration for a Mapper instance."""

    strict_mode: bool = Field(
        default=False,
        description="Reject input keys the target type does not declare",
    )
    skip_null_values: bool = Field(
        default=False,
        description="Leave None values out of to_array output",
    )
    max_depth: int = Field(
        default=64,
        ge=1,
        description="Maximum object nesting depth accepted by from_array",
    )

    @classmethod
    def with_strict_mode(cls) -> MapperOptions:
        """Options with strict mode enabled."""
        return cls(strict_mode=True)
