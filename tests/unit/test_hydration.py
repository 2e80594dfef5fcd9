"""Unit tests for hydration bindings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any

import pytest

from data_mapper.core.enums import HydrationMode
from data_mapper.core.exceptions import ValidationError
from data_mapper.mapping.hydration import HydrateWith, HydrationBinding, bind, resolve_function
from data_mapper.mapping.mapper import Mapper


def shout(value: Any) -> str:
    return str(value).upper()


def region_from_root(root: dict[str, Any]) -> str:
    return root["meta"]["region"]


def explode(value: Any) -> Any:
    raise RuntimeError("boom")


class Helpers:
    @staticmethod
    def double(value: int) -> int:
        return value * 2


@dataclass
class Person:
    first: str
    last: str
    full_name: Annotated[str, HydrateWith("join_names", HydrationMode.PARENT)] = ""

    @staticmethod
    def join_names(parent: dict[str, Any]) -> str:
        return f"{parent['first']} {parent['last']}"


@dataclass
class Leaf:
    code: str
    region: Annotated[str, HydrateWith(region_from_root, HydrationMode.FULL)] = ""


@dataclass
class Branch:
    leaf: Leaf


@dataclass
class Trunk:
    branch: Branch


@dataclass
class Shouting:
    word: Annotated[str, HydrateWith(shout)]


@dataclass
class Doubling:
    amount: Annotated[int, HydrateWith((Helpers, "double"))]


@dataclass
class ByImportPath:
    word: Annotated[str, HydrateWith(f"{__name__}:shout")]


@dataclass
class Exploding:
    name: str
    value: Annotated[Any, HydrateWith(explode)] = None


@dataclass
class Untouched:
    raw: Annotated[Any, HydrateWith(lambda value: value)] = None


class TestHydrationModes:
    def test_parent_mode_populates_absent_field(self, mapper: Mapper) -> None:
        person = mapper.from_array({"first": "Ada", "last": "Lovelace"}, Person)
        assert person.full_name == "Ada Lovelace"

    def test_full_mode_reads_outermost_input(self, mapper: Mapper) -> None:
        data = {"meta": {"region": "eu"}, "branch": {"leaf": {"code": "x1"}}}
        trunk = mapper.from_array(data, Trunk)
        assert trunk.branch.leaf.region == "eu"
        assert trunk.branch.leaf.code == "x1"

    def test_value_mode(self, mapper: Mapper) -> None:
        assert mapper.from_array({"word": "hi"}, Shouting).word == "HI"

    def test_value_mode_absent_key_passes_none(self, mapper: Mapper) -> None:
        assert mapper.from_array({}, Untouched).raw is None

    def test_result_used_without_coercion(self, mapper: Mapper) -> None:
        # "4" * 2 would be "44"; the declared int type is not applied
        assert mapper.from_array({"amount": "4"}, Doubling).amount == "44"

    def test_import_path_reference(self, mapper: Mapper) -> None:
        assert mapper.from_array({"word": "ok"}, ByImportPath).word == "OK"


class TestHydrationErrors:
    def test_function_error_is_collected(self, mapper: Mapper) -> None:
        with pytest.raises(ValidationError) as exc_info:
            mapper.from_array({"name": "n", "value": 1}, Exploding)
        assert exc_info.value.errors == {
            "value": "Hydrator function error at path 'value': boom",
        }
        cause = exc_info.value.field_errors[0].cause  # type: ignore[attr-defined]
        assert isinstance(cause, RuntimeError)

    def test_function_error_aggregated_with_other_errors(self, mapper: Mapper) -> None:
        with pytest.raises(ValidationError) as exc_info:
            mapper.from_array({"value": 1}, Exploding)
        assert set(exc_info.value.errors) == {"name", "value"}


class TestBinding:
    def test_payload_selection(self) -> None:
        parent = {"a": 1}
        root = {"parent": parent}
        assert HydrationBinding(shout, HydrationMode.VALUE).payload(5, parent, root) == 5
        assert HydrationBinding(shout, HydrationMode.PARENT).payload(5, parent, root) is parent
        assert HydrationBinding(shout, HydrationMode.FULL).payload(5, parent, root) is root

    def test_bind_accepts_mode_value(self) -> None:
        binding = bind(HydrateWith(shout, "parent"), Person)  # type: ignore[arg-type]
        assert binding.mode is HydrationMode.PARENT

    def test_bind_rejects_unknown_mode(self) -> None:
        with pytest.raises(ValueError):
            bind(HydrateWith(shout, "sideways"), Person)  # type: ignore[arg-type]

    def test_resolve_tuple_with_import_path(self) -> None:
        func = resolve_function((__name__ + ":Helpers", "double"), Person)
        assert func(3) == 6

    def test_resolve_missing_attribute(self) -> None:
        with pytest.raises(LookupError, match="cannot be resolved"):
            resolve_function((Helpers, "triple"), Person)

    def test_resolve_not_callable(self) -> None:
        with pytest.raises(LookupError, match="is not callable"):
            resolve_function(f"{__name__}:Helpers.__doc__", Person)
