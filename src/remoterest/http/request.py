"""Incoming HTTP request.

Connection metadata is fixed when the request is built from the ASGI
scope; the body is read lazily. Body parsing does not mutate the request:
``BodyParserMiddleware`` hands a copy made with ``with_payload()`` down
the chain.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from remoterest._internal.asgi import Receive
from remoterest.http.accept import best_match
from remoterest.http.headers import Headers
from remoterest.http.query import QueryParams

_BODY = "body"
_GONE = "disconnected"


@dataclass(frozen=True, slots=True)
class Request:
    """One HTTP request as seen by middleware and remote invocations.

    ``payload`` stays ``None`` until the body parser has run; remote
    methods receive it as ``props["body"]``.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    path_params: dict[str, str]
    http_version: str
    server: tuple[str, int] | None
    client: tuple[str, int] | None
    _receive: Receive
    payload: Any = None

    # Raw body and disconnect flag, shared by every copy of this request
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """Content-Length as an int; ``None`` when absent or malformed."""
        raw = self.headers.get("content-length")
        if raw is not None and raw.strip().isdigit():
            return int(raw)
        return None

    @property
    def url(self) -> str:
        """Path plus the query string, if there is one."""
        return f"{self.path}?{self.query.raw}" if self.query.raw else self.path

    def is_content_type(self, mime: str) -> bool:
        """Compare the media type of the body, ignoring parameters like charset."""
        media_type = (self.content_type or "").partition(";")[0].strip()
        return bool(media_type) and media_type.lower() == mime.lower()

    def accepts(self, offers: Sequence[str]) -> str | None:
        """Pick the offer the ``Accept`` header prefers, if any is acceptable."""
        return best_match(self.headers.get("accept"), offers)

    def with_payload(self, payload: Any) -> Request:
        return replace(self, payload=payload)

    def with_path_params(self, params: dict[str, str]) -> Request:
        return replace(self, path_params=params)

    def props(self, *, extended_query: bool = True) -> dict[str, Any]:
        """The request as a plain dict for a remote invocation.

        Socket addresses and the receive channel are left out.
        """
        return {
            "method": self.method,
            "path": self.path,
            "url": self.url,
            "http_version": self.http_version,
            "headers": self.headers.to_dict(),
            "query": self.query.parsed(extended=extended_query),
            "params": dict(self.path_params),
            "body": self.payload,
        }

    async def body(self) -> bytes:
        """The whole body. Later calls return the bytes read the first time."""
        cached = self._cache.get(_BODY)
        if cached is None:
            cached = b"".join([chunk async for chunk in self.stream()])
            self._cache[_BODY] = cached
        return cached

    async def stream(self) -> AsyncGenerator[bytes]:
        """Yield body chunks as they arrive from the server."""
        more = True
        while more:
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                self._cache[_GONE] = True
                return
            if chunk := message.get("body", b""):
                yield chunk
            more = message.get("more_body", False)

    async def json(self) -> Any:
        return json_module.loads(await self.body())

    async def text(self) -> str:
        return (await self.body()).decode("utf-8")

    async def wait_disconnect(self) -> None:
        """Return once the client has gone away.

        Any unread body is consumed (and cached) first.
        """
        await self.body()
        while not self._cache.get(_GONE):
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                self._cache[_GONE] = True

    @classmethod
    def from_asgi(
        cls,
        scope: dict[str, Any],
        receive: Receive,
        path_params: dict[str, str] | None = None,
    ) -> Request:
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            path_params=path_params or {},
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            _receive=receive,
        )
