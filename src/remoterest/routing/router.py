"""Compiled routing table — class mounts and ordered method routers.

Routes are matched the way the remoting clients expect:

- Path patterns use ``:name`` segments (``:name?`` is optional, ``*``
  matches anything). Literal segments match case-insensitively and a
  trailing slash is tolerated.
- ``all`` matches every HTTP method, ``get`` also answers ``HEAD``,
  ``del`` is ``delete``.
- A class is mounted at each of its routes. Mount paths match as a
  prefix on a segment boundary; the method router sees the rest of the
  URL. The first mount that matches owns the URL: when none of its
  routes match, the request is a 404 for that class.
- Within a class, routes are tried in precedence order and the first
  match wins.
- Paths arrive percent-decoded from the ASGI scope, so parameter
  values are used as-is.

Built once when the app freezes; immutable afterwards.
"""

import re
from dataclasses import dataclass

from remoterest.errors import NotFound
from remoterest.routing.model import RestClass
from remoterest.routing.precedence import normalize_verb
from remoterest.routing.route import RouteEntry, RouteMatch

_TOKEN_RE = re.compile(r"(\\.)|(/)?:(\w+)(\?)?|(\*)")


def compile_path(path: str, *, end: bool = True) -> tuple[re.Pattern[str], tuple[str, ...]]:
    """Compile a ``:name`` path pattern into a regex and its parameter names.

    With ``end=False`` the pattern matches a prefix ending on a segment
    boundary (used for class mounts).

    Examples::

        compile_path("/:id")       # matches "/42", "/42/"
        compile_path("/files/*")   # matches "/files/a/b"
        compile_path("/widgets", end=False)  # matches "/widgets/x"
    """
    names: list[str] = []
    parts: list[str] = []
    pos = 0
    wildcards = 0

    for m in _TOKEN_RE.finditer(path):
        parts.append(re.escape(path[pos : m.start()]))
        pos = m.end()
        escaped, slash, name, optional, star = m.groups()
        if escaped:
            parts.append(re.escape(escaped[1]))
        elif star:
            names.append(str(wildcards))
            wildcards += 1
            parts.append("(.*)")
        else:
            names.append(name)
            prefix = re.escape(slash or "")
            if optional:
                parts.append(f"(?:{prefix}([^/]+?))?")
            else:
                parts.append(f"{prefix}([^/]+?)")
    parts.append(re.escape(path[pos:]))

    pattern = "".join(parts).rstrip("/")
    if end:
        pattern = f"^{pattern}/?$"
    else:
        pattern = f"^{pattern}(?=/|$)"
    return re.compile(pattern, re.IGNORECASE), tuple(names)


def _verb_matches(verb: str, method: str) -> bool:
    verb = normalize_verb(verb)
    if verb == "all":
        return True
    method = method.lower()
    if verb == method:
        return True
    return verb == "get" and method == "head"


@dataclass(frozen=True, slots=True)
class _CompiledRoute:
    entry: RouteEntry
    regex: re.Pattern[str]
    param_names: tuple[str, ...]


class MethodRouter:
    """Ordered method routes of one class. First match wins.

    Usage::

        router = MethodRouter(rest_class.entries())
        match = router.match("GET", "/prototype/save")
    """

    __slots__ = ("_routes",)

    def __init__(self, entries: list[RouteEntry]) -> None:
        compiled = []
        for entry in entries:
            regex, names = compile_path(entry.route.path)
            compiled.append(_CompiledRoute(entry, regex, names))
        self._routes = tuple(compiled)

    @property
    def entries(self) -> list[RouteEntry]:
        return [r.entry for r in self._routes]

    def match(self, method: str, path: str) -> RouteMatch | None:
        for compiled in self._routes:
            if not _verb_matches(compiled.entry.route.verb, method):
                continue
            m = compiled.regex.match(path)
            if m is None:
                continue
            params = {
                name: value
                for name, value in zip(compiled.param_names, m.groups())
                if value is not None
            }
            return RouteMatch(compiled.entry, params)
        return None


@dataclass(frozen=True, slots=True)
class ClassMount:
    """One class mounted at one path, with its compiled method router."""

    path: str
    rest_class: RestClass
    router: MethodRouter
    regex: re.Pattern[str]
    param_names: tuple[str, ...]

    def strip(self, path: str) -> tuple[str, dict[str, str]] | None:
        """Return the path below the mount and the mount params, or None."""
        m = self.regex.match(path)
        if m is None:
            return None
        params = {
            name: value
            for name, value in zip(self.param_names, m.groups())
            if value is not None
        }
        return path[m.end() :] or "/", params


class RoutingTable:
    """All class mounts, in class and mount order.

    ``resolve`` raises ``NotFound`` with the messages the remoting
    clients display: a class-scoped message when a mount matched but no
    method did, a generic one when no mount matched.
    """

    __slots__ = ("_mounts",)

    def __init__(self, classes: list[RestClass]) -> None:
        mounts: list[ClassMount] = []
        for rest_class in classes:
            router = MethodRouter(rest_class.entries())
            for route in rest_class.routes:
                regex, names = compile_path(route.path, end=False)
                mounts.append(ClassMount(route.path, rest_class, router, regex, names))
        self._mounts = tuple(mounts)

    @property
    def mounts(self) -> tuple[ClassMount, ...]:
        return self._mounts

    def resolve(self, method: str, path: str, query_string: str = "") -> RouteMatch:
        """Find the method route for a request.

        Raises ``NotFound`` when no mount or no method route matches.
        """
        for mount in self._mounts:
            stripped = mount.strip(path)
            if stripped is None:
                continue
            sub_path, mount_params = stripped
            match = mount.router.match(method, sub_path)
            if match is None:
                url = _with_query(sub_path, query_string)
                msg = (
                    f'Shared class "{mount.rest_class.name or "(unknown)"}"'
                    f" has no method handling {method} {url}"
                )
                raise NotFound(msg)
            if mount_params:
                return RouteMatch(match.entry, {**mount_params, **match.path_params})
            return match

        msg = f"There is no method to handle {method} {_with_query(path, query_string)}"
        raise NotFound(msg)


def _with_query(path: str, query_string: str) -> str:
    return f"{path}?{query_string}" if query_string else path
