"""Body parser middleware — JSON and URL-encoded request bodies.

Reads the body once, parses it by Content-Type, and hands the next
handler a request whose ``payload`` holds the result. Requests with any
other (or no) Content-Type get an empty ``{}`` payload.

A zero-length ``application/json`` body is an empty object, not a
parse error.
"""

import json as json_module
from typing import Any

from remoterest.errors import RemoteError
from remoterest.http.forms import parse_urlencoded
from remoterest.http.request import Request
from remoterest.http.response import Response
from remoterest.middleware.protocol import Next


class BodyParserMiddleware:
    """Parse JSON and URL-encoded bodies into ``request.payload``.

    Args:
        json_strict: Only accept JSON objects and arrays at the top level.
        extended: Parse bracket keys (``a[b]=c``) into nested structures.
        max_content_length: Largest accepted body, in bytes (413 above it).
    """

    __slots__ = ("extended", "json_strict", "max_content_length")

    def __init__(
        self,
        *,
        json_strict: bool = False,
        extended: bool = True,
        max_content_length: int = 100 * 1024,
    ) -> None:
        self.json_strict = json_strict
        self.extended = extended
        self.max_content_length = max_content_length

    async def __call__(self, request: Request, next: Next) -> Response:
        if request.is_content_type("application/json"):
            # Content-Length: 0 covers the common case without touching receive
            if request.content_length == 0:
                return await next(request.with_payload({}))
            payload = self._parse_json(await self._read(request))
        elif request.is_content_type("application/x-www-form-urlencoded"):
            text = _decode(await self._read(request))
            payload = parse_urlencoded(text, extended=self.extended)
        else:
            payload = {}
        return await next(request.with_payload(payload))

    async def _read(self, request: Request) -> bytes:
        declared = request.content_length
        if declared is not None and declared > self.max_content_length:
            raise _too_large(declared, self.max_content_length)
        raw = await request.body()
        if len(raw) > self.max_content_length:
            raise _too_large(len(raw), self.max_content_length)
        return raw

    def _parse_json(self, raw: bytes) -> Any:
        text = _decode(raw)
        if not text.strip():
            return {}
        if self.json_strict and text.lstrip()[0] not in "{[":
            msg = "JSON body must be an object or an array"
            raise RemoteError(
                msg, status=400, name="SyntaxError", type="entity.parse.failed"
            )
        try:
            return json_module.loads(text)
        except json_module.JSONDecodeError as exc:
            msg = f"Invalid JSON body: {exc.msg} (line {exc.lineno} column {exc.colno})"
            raise RemoteError(
                msg, status=400, name="SyntaxError", type="entity.parse.failed"
            ) from exc


def _decode(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        msg = "Request body is not valid UTF-8"
        raise RemoteError(
            msg, status=400, name="SyntaxError", type="entity.parse.failed"
        ) from exc


def _too_large(length: int, limit: int) -> RemoteError:
    return RemoteError(
        "request entity too large",
        status=413,
        name="PayloadTooLargeError",
        type="entity.too.large",
        length=length,
        limit=limit,
    )
