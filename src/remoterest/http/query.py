"""Query string access.

Two views of the same string: ``QueryParams`` is a flat, read-only
``Mapping`` (first value per key, ``get_list`` for repeats) used for
things like the JSONP callback; ``parsed()`` builds the nested structure
remote methods see as ``props["query"]``.
"""

from collections.abc import Iterator, Mapping
from typing import Any
from urllib.parse import parse_qs

from remoterest.http.forms import parse_urlencoded


class QueryParams(Mapping[str, str]):
    """Read-only view of a raw ASGI ``query_string``."""

    __slots__ = ("_raw", "_values")

    def __init__(self, query_string: bytes = b"") -> None:
        self._raw = query_string.decode("latin-1")
        self._values: dict[str, list[str]] = parse_qs(self._raw, keep_blank_values=True)

    def __getitem__(self, key: str) -> str:
        return self._values[key][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"QueryParams({self._raw!r})"

    @property
    def raw(self) -> str:
        """The query string as received, without the ``?``."""
        return self._raw

    def get_list(self, key: str) -> list[str]:
        """Every value given for *key*, in order."""
        return list(self._values.get(key, ()))

    def parsed(self, *, extended: bool = True) -> dict[str, Any]:
        """Nested form: ``filter[where][id]=1`` -> ``{"filter": {"where": {"id": "1"}}}``."""
        return parse_urlencoded(self._raw, extended=extended)
