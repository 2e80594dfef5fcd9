"""Hydration bindings - compute a field from a chosen scope of the input.

A field annotated with ``HydrateWith`` is not looked up and coerced.
Instead its function is called with a payload picked by the binding mode
and the return value becomes the field value as-is::

    @dataclass
    class Person:
        first: str
        last: str
        full_name: Annotated[str, HydrateWith(join_names, HydrationMode.PARENT)]
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from data_mapper.core.enums import HydrationMode
from data_mapper.core.imports import import_object

FunctionRef = Callable[[Any], Any] | str | tuple[Any, str]


@dataclass(frozen=True)
class HydrateWith:
    """Hydration declaration, used inside ``typing.Annotated``.

    Args:
        function: A callable; a dotted import path (``"pkg.mod:func"``); the
            name of a static or class method on the target class; or a
            ``(owner, "attribute")`` pair.
        mode: Which payload the function receives.
    """

    function: FunctionRef
    mode: HydrationMode = HydrationMode.VALUE


@dataclass(frozen=True)
class HydrationBinding:
    """A resolved hydration function and its payload mode."""

    function: Callable[[Any], Any]
    mode: HydrationMode

    def payload(
        self,
        value: Any,
        parent: Mapping[str, Any],
        root: Mapping[str, Any],
    ) -> Any:
        """Select the payload for this binding's mode.

        Args:
            value: Raw value at the field's own key, or None when absent.
            parent: Raw mapping at the current nesting level.
            root: Raw mapping passed to the outermost from_array call.
        """
        if self.mode is HydrationMode.VALUE:
            return value
        if self.mode is HydrationMode.PARENT:
            return parent
        return root

    def __call__(self, value: Any, parent: Mapping[str, Any], root: Mapping[str, Any]) -> Any:
        return self.function(self.payload(value, parent, root))


def _describe(ref: Any) -> str:
    if isinstance(ref, tuple):
        return "::".join(getattr(part, "__name__", str(part)) for part in ref)
    return getattr(ref, "__qualname__", str(ref))


def resolve_function(ref: FunctionRef, owner: type) -> Callable[[Any], Any]:
    """Turn a function reference into a callable.

    Bare names are looked up on *owner* first.

    Raises:
        LookupError: If the reference does not name a callable.
    """
    func: Any = ref
    try:
        if isinstance(ref, tuple):
            target, attr = ref
            if isinstance(target, str):
                target = import_object(target)
            func = getattr(target, attr)
        elif isinstance(ref, str):
            if "." not in ref and ":" not in ref:
                func = getattr(owner, ref)
            else:
                func = import_object(ref)
    except (ImportError, AttributeError, ValueError) as e:
        raise LookupError(f"Hydrator function '{_describe(ref)}' cannot be resolved: {e}") from e

    if not callable(func):
        raise LookupError(f"Hydrator function '{_describe(ref)}' is not callable")
    return func  # type: ignore[no-any-return]


def bind(declaration: HydrateWith, owner: type) -> HydrationBinding:
    """Resolve a HydrateWith declaration for *owner*."""
    mode = declaration.mode
    if not isinstance(mode, HydrationMode):
        mode = HydrationMode(mode)
    return HydrationBinding(function=resolve_function(declaration.function, owner), mode=mode)
