"""Outgoing HTTP response.

A frozen value: the encoder, the error normalizer, and middleware each
derive a new ``Response`` rather than mutating one in place.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass(frozen=True, slots=True)
class Response:
    """Status, content type, extra headers, and body.

    JSON is the default content type. An empty ``content_type`` means the
    Content-Type header is left out altogether (406 and preflight replies).
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = JSON_CONTENT_TYPE
    headers: tuple[tuple[str, str], ...] = ()

    def with_status(self, status: int) -> Response:
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Copy with ``name: value`` appended; existing values are kept."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        return replace(self, headers=(*self.headers, *headers.items()))

    @property
    def body_bytes(self) -> bytes:
        body = self.body
        return body.encode("utf-8") if isinstance(body, str) else body

    @property
    def text(self) -> str:
        body = self.body
        return body.decode("utf-8") if isinstance(body, bytes) else body

    def json(self) -> Any:
        """Parse the body as JSON (handy in tests)."""
        return json_module.loads(self.body_bytes)

    def header(self, name: str) -> str | None:
        """First value of header *name*, compared case-insensitively."""
        wanted = name.lower()
        return next((value for key, value in self.headers if key.lower() == wanted), None)
