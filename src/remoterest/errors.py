"""remoterest exception hierarchy.

Shared across the routing model, dispatcher, registry, and middleware so
every module raises and catches the same types.
"""

from typing import Any


class RestError(Exception):
    """Base for all remoterest-specific errors."""


class ConfigurationError(RestError):
    """Raised when routing metadata or app configuration is invalid.

    Typically caught during ``Rest._freeze()`` at startup.
    """


class RemoteError(RestError):
    """An error that carries an HTTP status and extra wire fields.

    Raised by remote methods, hooks, middleware, and the router. Every
    keyword in *details* becomes an attribute and is copied into the
    ``{"error": {...}}`` payload, so domain-specific fields survive::

        raise RemoteError("Invalid widget", status=422, code="WIDGET_INVALID")
    """

    def __init__(
        self,
        message: str = "",
        *,
        status: int = 500,
        name: str | None = None,
        **details: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        if name is not None:
            self.name = name
        for key, value in details.items():
            setattr(self, key, value)

    def __str__(self) -> str:
        if self.message:
            return f"{self.status}: {self.message}"
        return str(self.status)


class NotFound(RemoteError):  # noqa: N818
    """404 — no class mount or method route matched the request."""

    def __init__(self, message: str = "Not Found", **details: Any) -> None:
        super().__init__(message, status=404, **details)


class RequestCanceled(RestError):  # noqa: N818
    """The client disconnected before the invocation completed.

    Never rendered: the ASGI handler sends no response at all.
    """
