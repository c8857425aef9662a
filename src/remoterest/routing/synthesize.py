"""Route synthesis — method and class metadata to HTTP routes.

``build_routes`` honors explicit ``http`` overrides and defaults
everything else; ``join_paths`` glues a constructor prefix onto a
method path with exactly one ``/``.

Examples::

    build_routes(find)           # name "find", no override
    -> (Route("all", "/find"),)

    build_routes(shared_ctor)    # the constructor placeholder
    -> (Route("all", "/prototype"),)

    build_routes(save)           # http={"verb": "put"}
    -> (Route("put", "/save"),)
"""

from collections.abc import Mapping
from typing import Any, Protocol

from remoterest.errors import ConfigurationError
from remoterest.routing.route import Route

SHARED_CTOR_NAME = "sharedCtor"
SHARED_CTOR_PATH = "/prototype"


class Routable(Protocol):
    """Anything with a name and an optional ``http`` override.

    Shared classes, shared methods, and the shared constructor all qualify.
    """

    @property
    def name(self) -> str: ...

    @property
    def http(self) -> Any: ...


def build_routes(obj: Routable) -> tuple[Route, ...]:
    """Resolve the routes for a class, method, or shared constructor.

    - ``http`` present: each override keeps its verb and path; a missing
      verb becomes ``all``, a missing path becomes ``/<name>``.
    - no ``http``, shared constructor: ``all /prototype``.
    - no ``http`` otherwise: ``all /<name>``, or an empty path when the
      name is empty (a class mounted at the root).

    Pure: the same input always yields the same routes.
    """
    name = obj.name or ""
    overrides = obj.http

    if overrides:
        if isinstance(overrides, Mapping) or not isinstance(overrides, (list, tuple)):
            overrides = [overrides]
        return tuple(_route_from_override(override, name) for override in overrides)

    if getattr(obj, "is_shared_ctor", False) or name == SHARED_CTOR_NAME:
        return (Route("all", SHARED_CTOR_PATH),)

    return (Route("all", f"/{name}" if name else ""),)


def _route_from_override(override: Any, name: str) -> Route:
    if isinstance(override, Mapping):
        verb = override.get("verb")
        path = override.get("path")
    elif hasattr(override, "verb") or hasattr(override, "path"):
        verb = getattr(override, "verb", None)
        path = getattr(override, "path", None)
    else:
        msg = f"Invalid http override for {name!r}: {override!r}"
        raise ConfigurationError(msg)

    return Route(
        verb=str(verb or "all").lower(),
        path=path or f"/{name}",
    )


def join_paths(left: str, right: str) -> str:
    """Join two path fragments with exactly one ``/`` between them.

    ``join_paths("/a/", "/b")`` and ``join_paths("/a", "b")`` give ``"/a/b"``;
    an empty or ``"/"`` right side leaves *left* unchanged.
    """
    if not left:
        return right
    if not right or right == "/":
        return left

    if left.endswith("/") and right.startswith("/"):
        return left + right[1:]
    if left.endswith("/") or right.startswith("/"):
        return left + right
    return f"{left}/{right}"
