"""Per-request dispatch context.

A ``RestContext`` is created for every routed request and handed to the
before/after hooks and the response encoder. It is also published
through a ``ContextVar`` for the duration of the dispatch, so code deep
inside a remote method can reach it with ``get_context()``.

Thread safety:
    A context belongs to one request and is never shared.
    ``ContextVar`` is task-local under asyncio and thread-local under
    free-threading (3.14t). No locks needed.
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from remoterest.http.request import Request
from remoterest.remotes import SharedMethod
from remoterest.routing.model import RestMethod

if TYPE_CHECKING:
    from remoterest.app import Rest
    from remoterest.server.dispatch import DispatchState


@dataclass(slots=True)
class RestContext:
    """Everything known about one routed request.

    ``result`` holds the invocation result once it completes; hooks may
    replace it. ``set_header`` adds headers to the eventual response.
    """

    request: Request
    method: SharedMethod
    rest_method: RestMethod
    app: Rest | None = None
    params: dict[str, str] = field(default_factory=dict)
    result: Any = None
    state: DispatchState | None = None
    headers: list[tuple[str, str]] = field(default_factory=list)

    @property
    def method_string(self) -> str:
        return self.method.string_name

    def set_header(self, name: str, value: str) -> None:
        """Add a header to the response sent for this request."""
        self.headers.append((name, value))


context_var: ContextVar[RestContext] = ContextVar("remoterest_context")
"""The current dispatch context. Set by the dispatcher."""


def get_context() -> RestContext:
    """Return the context of the request being dispatched.

    Raises ``LookupError`` if called outside a dispatch.
    """
    return context_var.get()
