"""REST view of shared classes and methods.

``build_classes`` turns the classes a ``Remotes`` object exposes into
``RestClass`` / ``RestMethod`` descriptors with fully resolved routes.
Prototype methods of a class with a shared constructor are reachable
under every constructor route::

    Widget (http path "/widgets")
      ctor   all /prototype
      save   all /save         ->  all /prototype/save

Descriptors are built once and expose read-only properties only.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from remoterest.remotes import (
    ParamSpec,
    Remotes,
    SharedClassLike,
    SharedMethod,
    get_type_string,
)
from remoterest.routing.precedence import sort_routes
from remoterest.routing.route import Route, RouteEntry
from remoterest.routing.synthesize import build_routes, join_paths


class RestClass:
    """A shared class with its mount routes, constructor, and methods."""

    __slots__ = ("_ctor", "_methods", "_name", "_routes", "_shared_class")

    def __init__(self, shared_class: SharedClassLike) -> None:
        self._shared_class = shared_class
        self._name: str = shared_class.name
        self._routes = build_routes(shared_class)

        # RestMethod reads rest_class.ctor, so it must be set first
        self._ctor: RestMethod | None = None
        shared_ctor = getattr(shared_class, "ctor", None)
        if shared_ctor is not None:
            self._ctor = RestMethod(self, shared_ctor)
        self._methods = tuple(
            RestMethod(self, sm) for sm in shared_class.methods() if not sm.is_shared_ctor
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def routes(self) -> tuple[Route, ...]:
        return self._routes

    @property
    def ctor(self) -> RestMethod | None:
        return self._ctor

    @property
    def methods(self) -> tuple[RestMethod, ...]:
        return self._methods

    @property
    def shared_class(self) -> SharedClassLike:
        return self._shared_class

    @property
    def path(self) -> str:
        """Path of the first mount route."""
        return self._routes[0].path

    def entries(self) -> list[RouteEntry]:
        """Every ``(route, method)`` pair of this class, in try-order."""
        return sort_routes(
            RouteEntry(route, method) for method in self._methods for route in method.routes
        )

    def __repr__(self) -> str:
        return f"RestClass({self._name!r}, path={self.path!r}, methods={len(self._methods)})"


class RestMethod:
    """A shared method with its resolved routes.

    ``full_name`` is ``Class.method`` or ``Class.prototype.method``;
    ``name`` drops the class prefix.
    """

    __slots__ = ("_full_name", "_rest_class", "_routes", "_shared_method")

    def __init__(self, rest_class: RestClass, shared_method: SharedMethod) -> None:
        self._rest_class = rest_class
        self._shared_method = shared_method
        self._full_name = shared_method.string_name

        method_routes = build_routes(shared_method)
        ctor = rest_class.ctor
        if shared_method.is_static or ctor is None:
            self._routes = method_routes
        else:
            self._routes = tuple(
                Route(route.verb, join_paths(ctor_route.path, route.path))
                for route in method_routes
                for ctor_route in ctor.routes
            )

    @property
    def full_name(self) -> str:
        return self._full_name

    @property
    def name(self) -> str:
        return ".".join(self._full_name.split(".")[1:])

    @property
    def accepts(self) -> tuple[ParamSpec, ...]:
        return self._shared_method.accepts

    @property
    def returns(self) -> tuple[ParamSpec, ...]:
        return self._shared_method.returns

    @property
    def description(self) -> str:
        return self._shared_method.description

    @property
    def routes(self) -> tuple[Route, ...]:
        return self._routes

    @property
    def rest_class(self) -> RestClass:
        return self._rest_class

    @property
    def shared_method(self) -> SharedMethod:
        return self._shared_method

    def is_returning_array(self) -> bool:
        """True when the method returns a single root array."""
        returns = self.returns
        return (
            len(returns) == 1
            and returns[0].root
            and get_type_string(returns[0].type) == "array"
        )

    def accepts_single_body_argument(self) -> bool:
        """True when the only argument is an object read from the body."""
        if len(self.accepts) != 1:
            return False
        spec = self.accepts[0]
        return spec.source == "body" and get_type_string(spec.type) == "object"

    @property
    def http_method(self) -> str:
        """Upper-case verb of the first route; ``all`` reads as ``POST``."""
        verb = self._routes[0].verb
        if verb == "all":
            return "POST"
        if verb == "del":
            return "DELETE"
        return verb.upper()

    @property
    def path(self) -> str:
        return self._routes[0].path

    @property
    def full_path(self) -> str:
        return join_paths(self._rest_class.path, self.path)

    def __repr__(self) -> str:
        return f"RestMethod({self._full_name!r}, routes={list(self._routes)!r})"


def build_classes(source: Remotes | Sequence[SharedClassLike] | Any) -> list[RestClass]:
    """Build ``RestClass`` descriptors from a ``Remotes`` object or a class list."""
    if isinstance(source, (list, tuple)):
        classes = source
    else:
        classes = getattr(source, "remotes", source).classes()
    return [RestClass(shared_class) for shared_class in classes]
