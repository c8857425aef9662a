"""URL-encoded body and query string parsing.

Two modes, selected by ``RestConfig.urlencoded_extended``:

- **simple**: ``a=1&a=2&b=3`` -> ``{"a": ["1", "2"], "b": "3"}``
- **extended** (default): bracket keys build nested structures::

      user[name]=ann&user[tags][]=x&user[tags][]=y
      -> {"user": {"name": "ann", "tags": ["x", "y"]}}

  Objects whose keys are all indices (``a[0]=x&a[1]=y``) collapse to lists.
"""

import re
from typing import Any
from urllib.parse import parse_qsl

_BRACKET = re.compile(r"\[([^\[\]]*)\]")


def parse_urlencoded(text: str, *, extended: bool = True) -> dict[str, Any]:
    """Parse an ``application/x-www-form-urlencoded`` string."""
    result: dict[str, Any] = {}
    nested = False
    for key, value in parse_qsl(text, keep_blank_values=True):
        parts = _split_key(key) if extended else None
        if parts is None:
            _assign(result, key, value)
        else:
            nested = True
            _assign_nested(result, parts, value)
    if not nested:
        return result
    return {key: _finalize(value) for key, value in result.items()}


def _split_key(key: str) -> list[str] | None:
    """Split ``a[b][]`` into ``["a", "b", ""]``; ``None`` for flat keys."""
    base, bracket, rest = key.partition("[")
    if not bracket or not base or not key.endswith("]"):
        return None
    tail = bracket + rest
    parts = _BRACKET.findall(tail)
    # Reject keys like ``a[b]junk[c]`` rather than guessing
    if "".join(f"[{p}]" for p in parts) != tail:
        return None
    return [base, *parts]


def _assign(target: dict[str, Any], key: str, value: Any) -> None:
    """Store *value*, turning repeated keys into lists."""
    if key not in target:
        target[key] = value
        return
    existing = target[key]
    if isinstance(existing, list):
        existing.append(value)
    else:
        target[key] = [existing, value]


def _assign_nested(target: dict[str, Any], parts: list[str], value: str) -> None:
    node = target
    for part in parts[:-1]:
        key = str(len(node)) if part == "" else part
        child = node.get(key)
        if not isinstance(child, dict):
            child = _as_indexed(child)
            node[key] = child
        node = child
    last = parts[-1]
    if last == "":
        node[str(len(node))] = value
    else:
        _assign(node, last, value)


def _as_indexed(value: Any) -> dict[str, Any]:
    """Promote a scalar or list already stored under a key to an indexed dict."""
    if value is None:
        return {}
    if isinstance(value, list):
        return {str(i): item for i, item in enumerate(value)}
    return {"0": value}


def _finalize(value: Any) -> Any:
    if not isinstance(value, dict):
        return value
    value = {key: _finalize(item) for key, item in value.items()}
    if value and all(key.isdigit() for key in value):
        return [value[key] for key in sorted(value, key=int)]
    return value
