"""The middleware contract.

Middleware wraps routing and dispatch::

    async def audit(request: Request, next: Next) -> Response:
        response = await next(request)
        log.info("%s %s -> %d", request.method, request.path, response.status)
        return response

Plain functions and objects with an async ``__call__`` both qualify; no
registration base class exists. The chain runs before any class mount is
consulted, so middleware observes 404s and preflights as well.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from remoterest.http.request import Request
from remoterest.http.response import Response

Next: TypeAlias = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Shape of a middleware: take the request and the rest of the chain.

    A class-based example::

        class RequireApiKey:
            def __init__(self, key: str) -> None:
                self.key = key

            async def __call__(self, request: Request, next: Next) -> Response:
                if request.headers.get("x-api-key") != self.key:
                    raise RemoteError("Invalid API key", status=401)
                return await next(request)
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...
