"""In-process ASGI client for testing Rest applications.

Requests go straight into ``Rest.__call__``; no sockets, no server. The
captured reply comes back as the production ``Response`` type.
"""

from __future__ import annotations

import asyncio
import contextlib
import json as json_module
from dataclasses import dataclass, field
from typing import Any

from remoterest.app import Rest
from remoterest.http.response import Response

# How long a request may run past its simulated disconnect
_GRACE_SECONDS = 5.0


@dataclass(slots=True)
class _Exchange:
    """One request/response pair on the fake ASGI channel.

    After the request body is delivered, ``receive`` parks until the
    response is complete or the simulated client hangs up.
    """

    body: bytes
    status: int | None = None
    raw_headers: list[tuple[bytes, bytes]] = field(default_factory=list)
    chunks: list[bytes] = field(default_factory=list)
    closed: asyncio.Event = field(default_factory=asyncio.Event)
    delivered: bool = False

    async def receive(self) -> dict[str, Any]:
        if not self.delivered:
            self.delivered = True
            return {"type": "http.request", "body": self.body, "more_body": False}
        await self.closed.wait()
        return {"type": "http.disconnect"}

    async def send(self, message: dict[str, Any]) -> None:
        match message["type"]:
            case "http.response.start":
                self.status = message["status"]
                self.raw_headers = list(message.get("headers", []))
            case "http.response.body":
                self.chunks.append(message.get("body", b""))
                if not message.get("more_body", False):
                    self.closed.set()

    def response(self) -> Response | None:
        if self.status is None:
            return None
        content_type = ""
        headers: list[tuple[str, str]] = []
        for raw_name, raw_value in self.raw_headers:
            name = raw_name.decode("latin-1")
            value = raw_value.decode("latin-1")
            if name == "content-type":
                content_type = value
            elif name != "content-length":
                headers.append((name, value))
        return Response(
            body=b"".join(self.chunks),
            status=self.status,
            content_type=content_type,
            headers=tuple(headers),
        )


class TestClient:
    """Drive a Rest app through ASGI from async tests.

    Usage::

        async with TestClient(rest) as client:
            response = await client.get("/widgets/1")
            assert response.status == 200

    ``disconnect_after=`` hangs up after that many seconds if the app is
    still working; the call then returns ``None`` when nothing was sent.
    """

    __test__ = False  # not a pytest test class
    __slots__ = ("app",)

    def __init__(self, app: Rest) -> None:
        self.app = app

    async def __aenter__(self) -> TestClient:
        self.app._ensure_frozen()
        return self

    async def __aexit__(self, *args: object) -> None:
        pass

    async def get(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        disconnect_after: float | None = None,
    ) -> Response | None:
        return await self.request("GET", path, headers=headers, disconnect_after=disconnect_after)

    async def post(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
        disconnect_after: float | None = None,
    ) -> Response | None:
        return await self.request(
            "POST",
            path,
            headers=headers,
            body=body,
            json=json,
            disconnect_after=disconnect_after,
        )

    async def put(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> Response | None:
        return await self.request("PUT", path, headers=headers, body=body, json=json)

    async def delete(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
    ) -> Response | None:
        return await self.request("DELETE", path, headers=headers)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
        disconnect_after: float | None = None,
    ) -> Response | None:
        """Send one request; ``None`` if the app sent no response."""
        payload = body or b""
        merged: dict[str, str] = {}
        if json is not None:
            payload = json_module.dumps(json).encode("utf-8")
            merged["content-type"] = "application/json"
        merged.update(headers or {})

        exchange = _Exchange(payload)
        scope = _build_scope(method, path, merged, len(payload))
        task = asyncio.create_task(self.app(scope, exchange.receive, exchange.send))

        try:
            if disconnect_after is not None:
                done, _ = await asyncio.wait({task}, timeout=disconnect_after)
                if not done:
                    exchange.closed.set()
            await asyncio.wait_for(task, timeout=(disconnect_after or 0) + _GRACE_SECONDS)
        except TimeoutError:
            exchange.closed.set()
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            raise

        return exchange.response()


def _build_scope(
    method: str,
    path: str,
    headers: dict[str, str],
    content_length: int,
) -> dict[str, Any]:
    path_part, _, query_string = path.partition("?")
    raw_headers = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in headers.items()
    ]
    raw_headers.append((b"content-length", str(content_length).encode("latin-1")))
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method.upper(),
        "path": path_part,
        "raw_path": path_part.encode("latin-1"),
        "query_string": query_string.encode("latin-1"),
        "root_path": "",
        "headers": raw_headers,
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 0),
    }
