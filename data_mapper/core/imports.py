"""Dotted-path object loading."""

from __future__ import annotations

import importlib
from typing import Any


def import_object(path: str) -> Any:
    """Import an object from ``"package.module:attr"`` or ``"package.module.attr"``.

    Raises:
        ImportError: If the module cannot be imported or has no such attribute.
    """
    if ":" in path:
        module_path, _, attr_path = path.partition(":")
    else:
        module_path, _, attr_path = path.rpartition(".")
    if not module_path or not attr_path:
        raise ImportError(f"'{path}' is not a dotted import path")

    module = importlib.import_module(module_path)
    obj: Any = module
    try:
        for part in attr_path.split("."):
            obj = getattr(obj, part)
    except AttributeError as e:
        raise ImportError(f"'{module_path}' has no attribute '{attr_path}'") from e
    return obj
