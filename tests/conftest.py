"""Shared test fixtures."""

from __future__ import annotations

import pytest

from data_mapper.core.options import MapperOptions
from data_mapper.mapping.mapper import Mapper
from data_mapper.mapping.resolver import MetadataResolver


@pytest.fixture
def resolver() -> MetadataResolver:
    """Fresh resolver with an empty cache."""
    return MetadataResolver()


@pytest.fixture
def mapper(resolver: MetadataResolver) -> Mapper:
    """Non-strict mapper with default options."""
    return Mapper(resolver=resolver)


@pytest.fixture
def strict_mapper(resolver: MetadataResolver) -> Mapper:
    """Mapper with strict mode enabled."""
    return Mapper(MapperOptions.with_strict_mode(), resolver=resolver)
