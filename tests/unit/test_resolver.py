"""Unit tests for MetadataResolver."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Optional

import pytest
from pydantic import BaseModel, Field

from data_mapper.core.enums import HydrationMode, ScalarKind
from data_mapper.core.exceptions import MetadataResolutionError
from data_mapper.mapping.descriptors import (
    ArrayOf,
    DateTimeType,
    EnumType,
    MapDateTime,
    MapProperty,
    ObjectType,
    RawType,
    ScalarType,
)
from data_mapper.mapping.filters import SliceArray, SortArray, StringTrim, UniqueArray
from data_mapper.mapping.hydration import HydrateWith
from data_mapper.mapping.resolver import MetadataResolver, is_mappable, resolve_metadata


class Color(Enum):
    RED = "red"
    BLUE = "blue"


@dataclass
class Address:
    street: str
    city: str


@dataclass
class Customer:
    id: int
    name: Annotated[str, MapProperty(name="full_name")]
    score: float
    active: bool
    color: Color
    address: Address
    previous: list[Address]
    tags: Annotated[list[str], UniqueArray, SortArray(reverse=True)] = field(default_factory=list)
    nickname: Optional[str] = None
    extra: dict = field(default_factory=dict)


class CustomerModel(BaseModel):
    id: int
    name: Annotated[str, StringTrim()] = Field(alias="displayName")
    email: Optional[str] = None


class PlainPoint:
    def __init__(self, x: int, y: int = 0) -> None:
        self.x = x
        self.y = y


@dataclass
class TreeNode:
    label: str
    children: list[TreeNode] = field(default_factory=list)


@dataclass
class ByPath:
    items: Annotated[list, MapProperty(array_of=f"{__name__}:Address")]


@dataclass
class BadPath:
    items: Annotated[list, MapProperty(array_of="data_mapper.nowhere:Address")]


@dataclass
class BadElement:
    items: list[object]


@dataclass
class TwoHydrators:
    value: Annotated[str, HydrateWith(str), HydrateWith(repr)]


@dataclass
class UnknownHydrator:
    value: Annotated[str, HydrateWith("no_such_method")]


@dataclass
class NeedsArgs:
    items: Annotated[list[int], SliceArray]


@dataclass
class Dangling:
    other: NotDefinedAnywhere  # noqa: F821


@dataclass
class Event:
    starts_at: datetime
    day: date
    local: Annotated[datetime, MapDateTime(format="%d/%m/%Y", timezone="UTC")]
    history: list[datetime] = field(default_factory=list)


@dataclass
class DateTimeOnString:
    label: Annotated[str, MapDateTime(format="%Y")]


@dataclass
class UnknownZone:
    at: Annotated[datetime, MapDateTime(timezone="Mars/Olympus_Mons")]


@dataclass
class WithHydration:
    first: str
    last: str
    full: Annotated[str, HydrateWith("join", HydrationMode.PARENT)] = ""

    @staticmethod
    def join(parent: dict[str, Any]) -> str:
        return f"{parent['first']} {parent['last']}"


class TestFieldDiscovery:
    def test_dataclass_field_order(self, resolver: MetadataResolver) -> None:
        meta = resolver.resolve(Customer)
        assert meta.kind == "dataclass"
        assert [f.name for f in meta.fields] == [
            "id",
            "name",
            "score",
            "active",
            "color",
            "address",
            "previous",
            "tags",
            "nickname",
            "extra",
        ]

    def test_descriptors(self, resolver: MetadataResolver) -> None:
        meta = resolver.resolve(Customer)
        assert meta.get_field("id").descriptor == ScalarType(ScalarKind.INT)
        assert meta.get_field("score").descriptor == ScalarType(ScalarKind.FLOAT)
        assert meta.get_field("active").descriptor == ScalarType(ScalarKind.BOOL)
        assert meta.get_field("color").descriptor == EnumType(Color)
        assert meta.get_field("address").descriptor == ObjectType(Address)
        assert meta.get_field("previous").descriptor == ArrayOf(ObjectType(Address))
        assert meta.get_field("tags").descriptor == ArrayOf(ScalarType(ScalarKind.STRING))
        assert meta.get_field("extra").descriptor == RawType()

    def test_alias_and_required(self, resolver: MetadataResolver) -> None:
        meta = resolver.resolve(Customer)
        name = meta.get_field("name")
        assert name.source_key == "full_name"
        assert name.required is True
        assert meta.get_field("tags").required is False
        assert "full_name" in meta.strict_allowed_keys
        assert "name" not in meta.strict_allowed_keys

    def test_optional_is_nullable(self, resolver: MetadataResolver) -> None:
        meta = resolver.resolve(Customer)
        nickname = meta.get_field("nickname")
        assert nickname.nullable is True
        assert nickname.descriptor == ScalarType(ScalarKind.STRING)
        assert meta.get_field("id").nullable is False

    def test_filters_in_declared_order(self, resolver: MetadataResolver) -> None:
        filters = resolver.resolve(Customer).get_field("tags").filters
        assert filters == (UniqueArray(), SortArray(reverse=True))

    def test_pydantic_model(self, resolver: MetadataResolver) -> None:
        meta = resolver.resolve(CustomerModel)
        assert meta.kind == "pydantic"
        name = meta.get_field("name")
        assert name.source_key == "displayName"
        assert name.filters == (StringTrim(),)
        assert meta.get_field("email").required is False

    def test_plain_class(self, resolver: MetadataResolver) -> None:
        meta = resolver.resolve(PlainPoint)
        assert meta.kind == "plain"
        assert [(f.name, f.required) for f in meta.fields] == [("x", True), ("y", False)]

    def test_self_reference(self, resolver: MetadataResolver) -> None:
        meta = resolver.resolve(TreeNode)
        assert meta.get_field("children").descriptor == ArrayOf(ObjectType(TreeNode))

    def test_array_of_import_path(self, resolver: MetadataResolver) -> None:
        meta = resolver.resolve(ByPath)
        assert meta.get_field("items").descriptor == ArrayOf(ObjectType(Address))

    def test_hydration_bound_to_static_method(self, resolver: MetadataResolver) -> None:
        binding = resolver.resolve(WithHydration).get_field("full").hydration
        assert binding is not None
        assert binding.mode is HydrationMode.PARENT
        assert binding(None, {"first": "Ada", "last": "Lovelace"}, {}) == "Ada Lovelace"

    def test_datetime_fields(self, resolver: MetadataResolver) -> None:
        meta = resolver.resolve(Event)
        assert meta.get_field("starts_at").descriptor == DateTimeType()
        assert meta.get_field("day").descriptor == DateTimeType(kind=date)
        assert meta.get_field("local").descriptor == DateTimeType(
            format="%d/%m/%Y", timezone="UTC"
        )
        assert meta.get_field("history").descriptor == ArrayOf(DateTimeType())

    def test_get_field_unknown(self, resolver: MetadataResolver) -> None:
        with pytest.raises(KeyError):
            resolver.resolve(Address).get_field("zip")


class TestCaching:
    def test_idempotent(self, resolver: MetadataResolver) -> None:
        first = resolver.resolve(Customer)
        second = resolver.resolve(Customer)
        assert first is second
        assert first.fields == second.fields

    def test_has_and_len(self, resolver: MetadataResolver) -> None:
        assert not resolver.has(Address)
        resolver.resolve(Address)
        assert resolver.has(Address)
        assert len(resolver) == 1

    def test_concurrent_first_resolution(self, resolver: MetadataResolver) -> None:
        results = []

        def worker() -> None:
            results.append(resolver.resolve(Customer))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert all(result is results[0] for result in results)

    def test_module_level_resolver(self) -> None:
        assert resolve_metadata(Address) is resolve_metadata(Address)


class TestResolutionErrors:
    def test_not_a_class(self, resolver: MetadataResolver) -> None:
        with pytest.raises(MetadataResolutionError, match="not a class"):
            resolver.resolve(list[int])  # type: ignore[arg-type]

    def test_unimportable_element_path(self, resolver: MetadataResolver) -> None:
        with pytest.raises(MetadataResolutionError, match="cannot import array element type"):
            resolver.resolve(BadPath)

    def test_unmappable_element(self, resolver: MetadataResolver) -> None:
        with pytest.raises(MetadataResolutionError, match="cannot resolve array element type"):
            resolver.resolve(BadElement)

    def test_two_hydrators(self, resolver: MetadataResolver) -> None:
        with pytest.raises(MetadataResolutionError, match="more than one HydrateWith"):
            resolver.resolve(TwoHydrators)

    def test_unknown_hydrator(self, resolver: MetadataResolver) -> None:
        with pytest.raises(MetadataResolutionError, match="no_such_method") as exc_info:
            resolver.resolve(UnknownHydrator)
        assert exc_info.value.target_class == "UnknownHydrator"

    def test_unresolvable_forward_reference(self, resolver: MetadataResolver) -> None:
        with pytest.raises(MetadataResolutionError, match="cannot evaluate annotations"):
            resolver.resolve(Dangling)

    def test_filter_class_needing_arguments(self, resolver: MetadataResolver) -> None:
        with pytest.raises(MetadataResolutionError, match="needs arguments"):
            resolver.resolve(NeedsArgs)

    def test_datetime_options_on_non_datetime_field(self, resolver: MetadataResolver) -> None:
        with pytest.raises(MetadataResolutionError, match="MapDateTime needs a datetime"):
            resolver.resolve(DateTimeOnString)

    def test_unknown_timezone(self, resolver: MetadataResolver) -> None:
        with pytest.raises(MetadataResolutionError, match="unknown timezone"):
            resolver.resolve(UnknownZone)

    def test_failed_resolution_not_cached(self, resolver: MetadataResolver) -> None:
        with pytest.raises(MetadataResolutionError):
            resolver.resolve(BadElement)
        assert not resolver.has(BadElement)


class TestIsMappable:
    def test_mappable_kinds(self) -> None:
        assert is_mappable(Address)
        assert is_mappable(CustomerModel)
        assert is_mappable(PlainPoint)

    def test_not_mappable(self) -> None:
        assert not is_mappable(int)
        assert not is_mappable(Color)
        assert not is_mappable(object)
        assert not is_mappable(datetime)
        assert not is_mappable(list[int])
