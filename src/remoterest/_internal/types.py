"""Shared type aliases used across remoterest modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Remote method handler: user-defined function with variable signature
Handler: TypeAlias = Callable[..., Any]

# Before/after hook: receives (scope, ctx), may return an error value
Hook: TypeAlias = Callable[..., Any]
