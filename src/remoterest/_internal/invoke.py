"""Invoke helpers — call sync or async callables uniformly.

Remote method handlers and before/after hooks can be ``def`` or
``async def``. Any code that calls a user-provided callable must handle
both cases. This module provides a single helper so the sync/async check
lives in exactly one place.

Usage::

    from remoterest._internal.invoke import invoke

    result = await invoke(hook, scope, ctx)
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's awaitable."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
