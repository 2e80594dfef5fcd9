"""Array filters applied when flattening objects.

Every filter is a frozen dataclass: the class is the filter kind and its
fields are the parameters. Filters never mutate their input and pass
values they do not understand through unchanged.

Declare filters on a field with ``typing.Annotated``; they run left to
right in declaration order::

    tags: Annotated[list[str], Each(StringTrim()), UniqueArray(), SortArray()]
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from data_mapper.core.enums import ScalarKind
from data_mapper.core.exceptions import CoercionError
from data_mapper.mapping.coercion import coerce_scalar
from data_mapper.mapping.protocol import Filter

_TRUTHY_STRINGS = frozenset({"1", "true", "yes", "y", "on"})


def apply_filters(value: Any, filters: Iterable[Filter]) -> Any:
    """Run *value* through *filters* left to right."""
    for flt in filters:
        value = flt.apply(value)
    return value


def _identity(value: Any) -> Any:
    return value


def _first(pair: tuple[Any, Any]) -> Any:
    return pair[0]


def _second(pair: tuple[Any, Any]) -> Any:
    return pair[1]


def _rank(value: Any) -> tuple[Any, ...]:
    """Sort key ordering any mix of types: None, numbers, strings, then the rest."""
    if value is None:
        return (0,)
    if isinstance(value, (int, float)):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    return (3, type(value).__name__, repr(value))


def _sorted(items: Iterable[Any], key: Callable[[Any], Any], reverse: bool) -> list[Any]:
    items = list(items)
    try:
        return sorted(items, key=key, reverse=reverse)
    except TypeError:
        # mixed types
        return sorted(items, key=lambda item: _rank(key(item)), reverse=reverse)


def _slice_bounds(size: int, offset: int, length: int | None) -> tuple[int, int]:
    """Start/stop indices; negative offset or length count from the end."""
    start = offset if offset >= 0 else max(size + offset, 0)
    start = min(start, size)
    if length is None:
        stop = size
    elif length < 0:
        stop = max(size + length, start)
    else:
        stop = min(start + length, size)
    return start, stop


def _slice(value: Any, offset: int, length: int | None, preserve_keys: bool) -> Any:
    if isinstance(value, list):
        start, stop = _slice_bounds(len(value), offset, length)
        if preserve_keys:
            return {index: value[index] for index in range(start, stop)}
        return value[start:stop]

    if isinstance(value, dict):
        items = list(value.items())
        start, stop = _slice_bounds(len(items), offset, length)
        result: dict[Any, Any] = {}
        next_index = 0
        for key, item in items[start:stop]:
            # integer keys are renumbered unless preserved, string keys always kept
            if isinstance(key, int) and not preserve_keys:
                result[next_index] = item
                next_index += 1
            else:
                result[key] = item
        return result

    return value


@dataclass(frozen=True, init=False)
class Each:
    """Apply one filter to every list element or dict value.

    Args:
        filter: A filter instance, or a filter class instantiated with *args*.
    """

    filter: Filter
    args: tuple[Any, ...] = ()

    def __init__(self, filter: Filter | type, *args: Any) -> None:  # noqa: A002
        if isinstance(filter, type):
            filter = filter(*args)
        if not isinstance(filter, Filter):
            raise TypeError(f"Each expects a filter, got {type(filter).__name__}")
        object.__setattr__(self, "filter", filter)
        object.__setattr__(self, "args", args)

    def apply(self, value: Any) -> Any:
        if isinstance(value, list):
            return [self.filter.apply(item) for item in value]
        if isinstance(value, dict):
            return {key: self.filter.apply(item) for key, item in value.items()}
        return value


@dataclass(frozen=True)
class StringTrim:
    """Strip whitespace (or *characters*) from both ends of a string."""

    characters: str | None = None

    def apply(self, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        return value.strip(self.characters)


@dataclass(frozen=True)
class UniqueArray:
    """Drop repeated values, keeping first-seen order."""

    def apply(self, value: Any) -> Any:
        if isinstance(value, dict):
            items = list(value.values())
        elif isinstance(value, list):
            items = value
        else:
            return value

        result: list[Any] = []
        seen: set[Any] = set()
        for item in items:
            try:
                if item in seen:
                    continue
                seen.add(item)
            except TypeError:
                # unhashable (list, dict): fall back to equality
                if item in result:
                    continue
            result.append(item)
        return result


@dataclass(frozen=True)
class SortArray:
    """Sort by value, ascending unless *reverse*. Stable for equal values.

    Values of mixed types never fail to sort: None comes first, then
    numbers, then strings, then anything else grouped by type name.

    Dict input yields the sorted values, or a re-ordered dict when
    *preserve_keys* is set.
    """

    reverse: bool = False
    preserve_keys: bool = False

    def apply(self, value: Any) -> Any:
        if isinstance(value, list):
            return _sorted(value, _identity, self.reverse)
        if isinstance(value, dict):
            ordered = _sorted(value.items(), _second, self.reverse)
            if self.preserve_keys:
                return dict(ordered)
            return [item for _, item in ordered]
        return value


@dataclass(frozen=True)
class SortArrayByKey:
    """Re-order a dict by key, ascending unless *reverse*. Lists pass through.

    Mixed key types (``{"b": 1, 2: 3}``) sort like SortArray values.
    """

    reverse: bool = False

    def apply(self, value: Any) -> Any:
        if isinstance(value, dict):
            return dict(_sorted(value.items(), _first, self.reverse))
        return value


@dataclass(frozen=True)
class ReverseArray:
    """Reverse element order; dict keys always stay with their values.

    With *preserve_keys* a reversed list keeps its original indices and is
    returned as a dict. Keys of a list are not preserved by default, so the
    result stays a plain list unless *preserve_keys* is passed.
    """

    preserve_keys: bool = False

    def apply(self, value: Any) -> Any:
        if isinstance(value, dict):
            return dict(reversed(list(value.items())))
        if isinstance(value, list):
            if self.preserve_keys:
                return {index: value[index] for index in reversed(range(len(value)))}
            return list(reversed(value))
        return value


@dataclass(frozen=True)
class FilterKeys:
    """Keep only *allow* keys and/or drop *deny* keys.

    List input is filtered by index and stays a list.
    """

    allow: tuple[Any, ...] = ()
    deny: tuple[Any, ...] = ()

    def _keep(self, key: Any) -> bool:
        if self.allow and key not in self.allow:
            return False
        return key not in self.deny

    def apply(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {key: item for key, item in value.items() if self._keep(key)}
        if isinstance(value, list):
            return [item for index, item in enumerate(value) if self._keep(index)]
        return value


@dataclass(frozen=True)
class SliceArray:
    """Take *length* items starting at *offset*.

    Negative *offset* or *length* count from the end. Without
    *preserve_keys* the result is renumbered from zero.
    """

    offset: int
    length: int | None = None
    preserve_keys: bool = False

    def apply(self, value: Any) -> Any:
        return _slice(value, self.offset, self.length, self.preserve_keys)


@dataclass(frozen=True)
class LimitArray:
    """Keep the first *count* items. A negative count keeps everything."""

    count: int
    preserve_keys: bool = False

    def apply(self, value: Any) -> Any:
        if self.count < 0:
            return value
        return _slice(value, 0, self.count, self.preserve_keys)


@dataclass(frozen=True)
class FlattenArray:
    """Concatenate nested lists into one list.

    *depth* limits how many levels are unpacked; -1 means unbounded.
    """

    depth: int = -1

    def _flatten(self, items: Iterable[Any], depth: int) -> list[Any]:
        result: list[Any] = []
        for item in items:
            if isinstance(item, (list, dict)) and depth != 0:
                nested = item.values() if isinstance(item, dict) else item
                result.extend(self._flatten(nested, depth - 1 if depth > 0 else -1))
            else:
                result.append(item)
        return result

    def apply(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self._flatten(value.values(), self.depth)
        if isinstance(value, list):
            return self._flatten(value, self.depth)
        return value


@dataclass(frozen=True)
class ArrayCast:
    """Best-effort cast of every element to a scalar kind.

    int, float and string use the same rules as field coercion; elements
    that cannot be cast are left unchanged. bool maps numbers by
    truthiness and strings by a small truthy vocabulary. With *recursive*,
    nested lists and dicts are cast element-wise and keep their shape.
    """

    kind: ScalarKind
    recursive: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.kind, ScalarKind):
            return
        try:
            object.__setattr__(self, "kind", ScalarKind(self.kind))
        except ValueError:
            allowed = ", ".join(kind.value for kind in ScalarKind)
            raise ValueError(f"ArrayCast kind must be one of: {allowed}") from None

    def _cast(self, item: Any) -> Any:
        if self.recursive and isinstance(item, (list, dict)):
            return self.apply(item)
        if self.kind is ScalarKind.BOOL:
            if isinstance(item, bool):
                return item
            if isinstance(item, (int, float)):
                return item != 0
            if isinstance(item, str):
                return item.strip().lower() in _TRUTHY_STRINGS
            return item
        try:
            return coerce_scalar(item, self.kind, "")
        except CoercionError:
            return item

    def apply(self, value: Any) -> Any:
        if isinstance(value, list):
            return [self._cast(item) for item in value]
        if isinstance(value, dict):
            return {key: self._cast(item) for key, item in value.items()}
        return value
