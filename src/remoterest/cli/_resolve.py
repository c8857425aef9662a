"""Locate the ``Rest`` app named on the command line.

Used by both ``remoterest routes`` and ``remoterest run``.
"""

import importlib

from remoterest.app import Rest


def resolve_rest(import_string: str) -> Rest:
    """Import ``"package.module:name"`` and return the ``Rest`` it names.

    ``name`` defaults to ``rest``, so ``"myapp"`` means ``myapp:rest``.
    A zero-argument factory returning a ``Rest`` is accepted too.

    Raises:
        ModuleNotFoundError: The module part does not import.
        AttributeError: The module has no such name.
        TypeError: The name is neither a ``Rest`` nor a factory that builds one.
    """
    module_name, _, name = import_string.partition(":")
    target = getattr(importlib.import_module(module_name), name or "rest")

    if not isinstance(target, Rest) and callable(target):
        try:
            target = target()
        except Exception as exc:
            msg = f"Calling {import_string!r} to build the app failed: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(target, Rest):
        kind = type(target).__name__
        msg = f"{import_string!r} resolved to {kind}, not a remoterest.Rest instance"
        raise TypeError(msg)
    return target
