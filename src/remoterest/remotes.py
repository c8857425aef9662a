"""Shared classes — the RPC side of the REST adapter.

``Rest`` routes HTTP requests onto *shared methods* grouped in *shared
classes*. Anything implementing the ``Remotes`` protocol can provide
them; ``Registry`` is the in-memory implementation used by applications
and tests::

    registry = Registry()
    widgets = registry.shared_class("Widget", http={"path": "/widgets"})

    @widgets.static(accepts=[ParamSpec("id", "number", required=True)])
    def find(id):
        return store[id]

    @widgets.constructor(accepts=[ParamSpec("id", "number", source="path")],
                         http={"path": "/:id"})
    def load(id):
        return store[id]

    @widgets.prototype(http={"verb": "put"})
    def save(widget, data=None):
        ...

Free-threading safety:
    - ParamSpec, HttpOverride and SharedMethod are frozen dataclasses
    - A Registry is only mutated during setup, before ``Rest`` freezes
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from remoterest._internal.invoke import invoke
from remoterest._internal.types import Handler, Hook
from remoterest.cancellation import CancellationToken
from remoterest.errors import ConfigurationError, RemoteError
from remoterest.routing.synthesize import SHARED_CTOR_NAME

logger = logging.getLogger("remoterest.rest")

_PYTHON_TYPE_NAMES: dict[type, str] = {
    dict: "object",
    list: "array",
    tuple: "array",
    str: "string",
    int: "number",
    float: "number",
    bool: "boolean",
}

_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off", ""})


def get_type_string(type_: Any) -> str:
    """Canonical lowercase name of a parameter type.

    A list (``[str]``) marks an array, Python types map to their JSON
    names, anything else is its lowercased string form.
    """
    if isinstance(type_, list):
        return "array"
    if isinstance(type_, type):
        return _PYTHON_TYPE_NAMES.get(type_, type_.__name__.lower())
    return str(type_).lower()


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParamSpec:
    """One accepted argument or returned value of a shared method.

    ``source`` selects where an argument comes from: ``"body"`` (the whole
    parsed body), ``"query"``, ``"path"``, ``"header"``, or ``"req"`` (the
    request properties). Without a source, path parameters, then the query
    string, then the body's field of the same name are tried.
    """

    name: str
    type: Any = "any"
    source: str | None = None
    root: bool = False
    required: bool = False
    description: str = ""

    @classmethod
    def coerce(cls, value: ParamSpec | Mapping[str, Any] | str) -> ParamSpec:
        """Build a ParamSpec from a mapping or a bare name.

        Mappings may use the remoting keys ``arg`` and ``http.source``.
        """
        if isinstance(value, ParamSpec):
            return value
        if isinstance(value, str):
            return cls(value)
        if isinstance(value, Mapping):
            http = value.get("http") or {}
            name = value.get("name") or value.get("arg")
            if not name:
                msg = f"Parameter spec has no name: {dict(value)!r}"
                raise ConfigurationError(msg)
            return cls(
                name=name,
                type=value.get("type", "any"),
                source=value.get("source") or http.get("source"),
                root=bool(value.get("root", False)),
                required=bool(value.get("required", False)),
                description=value.get("description", ""),
            )
        msg = f"Invalid parameter spec: {value!r}"
        raise ConfigurationError(msg)


@dataclass(frozen=True, slots=True)
class HttpOverride:
    """An explicit ``{verb, path}`` route; either part may be left out."""

    verb: str | None = None
    path: str | None = None


@dataclass(frozen=True, slots=True)
class SharedMethod:
    """A remotely callable function and its routing metadata."""

    name: str
    handler: Handler
    class_name: str
    is_static: bool = True
    is_shared_ctor: bool = False
    accepts: tuple[ParamSpec, ...] = ()
    returns: tuple[ParamSpec, ...] = ()
    description: str = ""
    http: Any = None
    before: Hook | None = None
    after: Hook | None = None

    @property
    def string_name(self) -> str:
        """``Class.method`` for static methods, ``Class.prototype.method`` otherwise."""
        if self.is_static or self.is_shared_ctor:
            return f"{self.class_name}.{self.name}"
        return f"{self.class_name}.prototype.{self.name}"


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class SharedClassLike(Protocol):
    """What the route model reads from a shared class."""

    @property
    def name(self) -> str: ...

    @property
    def http(self) -> Any: ...

    @property
    def ctor(self) -> SharedMethod | None: ...

    def methods(self) -> Sequence[SharedMethod]: ...


class Remotes(Protocol):
    """The RPC layer ``Rest`` adapts to HTTP.

    ``invoke`` receives the request properties, the parsed body, and a
    ``CancellationToken`` that is cancelled when the client goes away.
    """

    def classes(self) -> Sequence[SharedClassLike]: ...

    def get_scope(self, ctx: Any, method: SharedMethod) -> Any: ...

    async def invoke(
        self,
        method: SharedMethod,
        *,
        props: Mapping[str, Any],
        payload: Any,
        token: CancellationToken,
    ) -> Any: ...


# ---------------------------------------------------------------------------
# In-memory registry
# ---------------------------------------------------------------------------


class SharedClass:
    """A named group of shared methods registered through decorators.

    ``constructor`` registers the shared constructor used to build the
    instance prototype methods run against; ``static`` and ``prototype``
    register methods.
    """

    __slots__ = ("_ctor", "_http", "_methods", "_name")

    def __init__(self, name: str, *, http: Any = None) -> None:
        self._name = name
        self._http = http
        self._ctor: SharedMethod | None = None
        self._methods: list[SharedMethod] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def http(self) -> Any:
        return self._http

    @property
    def ctor(self) -> SharedMethod | None:
        return self._ctor

    def methods(self) -> list[SharedMethod]:
        """Registered methods, constructor excluded, in registration order."""
        return list(self._methods)

    def find(self, name: str, *, is_static: bool = True) -> SharedMethod | None:
        """Look up a method by name and kind."""
        for method in self._methods:
            if method.name == name and method.is_static == is_static:
                return method
        return None

    # -- Registration decorators --

    def constructor(
        self,
        func: Handler | None = None,
        /,
        *,
        accepts: Sequence[Any] = (),
        description: str = "",
        http: Any = None,
    ) -> Any:
        """Register the shared constructor.

        Its result is passed as the first argument of every prototype method.
        """

        def decorator(handler: Handler) -> Handler:
            if self._ctor is not None:
                msg = f"Shared class {self._name!r} already has a constructor"
                raise ConfigurationError(msg)
            self._ctor = SharedMethod(
                name=SHARED_CTOR_NAME,
                handler=handler,
                class_name=self._name,
                is_static=False,
                is_shared_ctor=True,
                accepts=_param_specs(accepts),
                description=description,
                http=http,
            )
            return handler

        if func is not None:
            return decorator(func)
        return decorator

    def static(self, func: Handler | None = None, /, **options: Any) -> Any:
        """Register a static method: ``Class.name``."""
        return self._register(func, is_static=True, **options)

    def prototype(self, func: Handler | None = None, /, **options: Any) -> Any:
        """Register a prototype method: ``Class.prototype.name``."""
        return self._register(func, is_static=False, **options)

    def _register(
        self,
        func: Handler | None,
        *,
        is_static: bool,
        name: str | None = None,
        accepts: Sequence[Any] = (),
        returns: Sequence[Any] = (),
        description: str = "",
        http: Any = None,
        before: Hook | None = None,
        after: Hook | None = None,
    ) -> Any:
        def decorator(handler: Handler) -> Handler:
            method_name = name or handler.__name__
            if self.find(method_name, is_static=is_static) is not None:
                msg = f"Duplicate shared method {self._name}.{method_name}"
                raise ConfigurationError(msg)
            self._methods.append(
                SharedMethod(
                    name=method_name,
                    handler=handler,
                    class_name=self._name,
                    is_static=is_static,
                    accepts=_param_specs(accepts),
                    returns=_param_specs(returns),
                    description=description or inspect.getdoc(handler) or "",
                    http=http,
                    before=before,
                    after=after,
                )
            )
            return handler

        if func is not None:
            return decorator(func)
        return decorator

    def __repr__(self) -> str:
        return f"SharedClass({self._name!r}, methods={len(self._methods)})"


class Registry:
    """In-memory ``Remotes`` implementation.

    Resolves arguments from the request properties and the parsed body,
    builds instances through the shared constructor, and calls handlers.
    """

    __slots__ = ("_classes",)

    def __init__(self) -> None:
        self._classes: dict[str, SharedClass] = {}

    def shared_class(self, name: str, *, http: Any = None) -> SharedClass:
        """Create and register a shared class."""
        if name in self._classes:
            msg = f"Shared class {name!r} is already registered"
            raise ConfigurationError(msg)
        shared = SharedClass(name, http=http)
        self._classes[name] = shared
        return shared

    def classes(self) -> list[SharedClass]:
        """Registered classes in registration order."""
        return list(self._classes.values())

    def get_scope(self, ctx: Any, method: SharedMethod) -> SharedClass:
        """The shared class *method* belongs to (hooks run against it)."""
        return self._classes[method.class_name]

    async def invoke(
        self,
        method: SharedMethod,
        *,
        props: Mapping[str, Any],
        payload: Any,
        token: CancellationToken,
    ) -> Any:
        """Resolve arguments and call *method*'s handler."""
        token.raise_if_cancelled()
        kwargs = resolve_arguments(method.accepts, props, payload)
        args: list[Any] = []

        if not method.is_static and not method.is_shared_ctor:
            ctor = self._classes[method.class_name].ctor
            instance = None
            if ctor is not None:
                ctor_kwargs = resolve_arguments(ctor.accepts, props, payload)
                _inject_token(ctor.handler, ctor_kwargs, token)
                instance = await invoke(ctor.handler, **ctor_kwargs)
                token.raise_if_cancelled()
            args.append(instance)

        _inject_token(method.handler, kwargs, token)
        logger.debug("Invoking %s", method.string_name)
        return await invoke(method.handler, *args, **kwargs)


# ---------------------------------------------------------------------------
# Argument resolution
# ---------------------------------------------------------------------------


_MISSING = object()


def resolve_arguments(
    accepts: Sequence[ParamSpec],
    props: Mapping[str, Any],
    payload: Any,
) -> dict[str, Any]:
    """Map each accepted parameter to a value from the request.

    Missing optional parameters are left out so handler defaults apply.
    Raises ``RemoteError`` (400) for a missing required parameter or a
    value that cannot be coerced to its declared type.
    """
    kwargs: dict[str, Any] = {}
    for spec in accepts:
        value = _lookup(spec, props, payload)
        if value is _MISSING or value is None:
            if spec.required:
                msg = f"{spec.name} is a required argument"
                raise RemoteError(msg, status=400, name="ValidationError", arg=spec.name)
            continue
        kwargs[spec.name] = _coerce(spec, value)
    return kwargs


def _lookup(spec: ParamSpec, props: Mapping[str, Any], payload: Any) -> Any:
    params = props.get("params") or {}
    query = props.get("query") or {}
    headers = props.get("headers") or {}

    match spec.source:
        case "body":
            return payload
        case "query":
            return query.get(spec.name, _MISSING)
        case "path":
            return params.get(spec.name, _MISSING)
        case "header":
            return headers.get(spec.name.lower(), _MISSING)
        case "req":
            return props
        case None:
            for source in (params, query):
                if spec.name in source:
                    return source[spec.name]
            if isinstance(payload, Mapping) and spec.name in payload:
                return payload[spec.name]
            return _MISSING
        case other:
            msg = f"Unknown argument source {other!r} for {spec.name!r}"
            raise ConfigurationError(msg)


def _coerce(spec: ParamSpec, value: Any) -> Any:
    if not isinstance(value, str):
        return value

    match get_type_string(spec.type):
        case "number":
            try:
                return int(value)
            except ValueError:
                pass
            try:
                return float(value)
            except ValueError:
                msg = f"{spec.name} must be a number"
                raise RemoteError(
                    msg, status=400, name="ValidationError", arg=spec.name
                ) from None
        case "boolean":
            lowered = value.lower()
            if lowered in _TRUE:
                return True
            if lowered in _FALSE:
                return False
            msg = f"{spec.name} must be a boolean"
            raise RemoteError(msg, status=400, name="ValidationError", arg=spec.name)
        case _:
            return value


def _param_specs(values: Sequence[Any]) -> tuple[ParamSpec, ...]:
    if isinstance(values, (ParamSpec, Mapping, str)):
        values = [values]
    return tuple(ParamSpec.coerce(v) for v in values)


def _inject_token(
    handler: Callable[..., Any],
    kwargs: dict[str, Any],
    token: CancellationToken,
) -> None:
    """Pass *token* to the parameter annotated ``CancellationToken``, if any."""
    try:
        sig = inspect.signature(handler)
    except (TypeError, ValueError):
        return
    for param in sig.parameters.values():
        annotation = param.annotation
        if annotation is CancellationToken or annotation == "CancellationToken":
            kwargs[param.name] = token
            return
