"""remoterest — REST routing for introspectable remote methods.

Maps shared classes and their static/prototype methods onto HTTP routes,
dispatches requests through before/after hooks, and answers in JSON or
JSON-with-padding.

Basic usage::

    from remoterest import Registry, Rest

    registry = Registry()
    widgets = registry.shared_class("Widget", http={"path": "/widgets"})

    @widgets.static(http={"verb": "get", "path": "/"})
    def find():
        return [{"id": 1}]

    rest = Rest(registry)   # an ASGI application
    rest.run()
"""

__version__ = "0.1.0-dev"
__all__ = [
    "CORSConfig",
    "CancellationToken",
    "ConfigurationError",
    "HttpOverride",
    "NotFound",
    "ParamSpec",
    "Registry",
    "RemoteError",
    "RequestCanceled",
    "Rest",
    "RestClass",
    "RestConfig",
    "RestContext",
    "RestError",
    "RestMethod",
    "Route",
    "get_context",
    "sort_routes",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import remoterest`` fast while providing a clean top-level API.
    """
    if name == "Rest":
        from remoterest.app import Rest

        return Rest

    if name == "RestConfig":
        from remoterest.config import RestConfig

        return RestConfig

    if name == "CORSConfig":
        from remoterest.middleware.cors import CORSConfig

        return CORSConfig

    if name == "CancellationToken":
        from remoterest.cancellation import CancellationToken

        return CancellationToken

    if name in ("RestContext", "get_context"):
        from remoterest import context as _ctx

        return getattr(_ctx, name)

    if name in ("HttpOverride", "ParamSpec", "Registry"):
        from remoterest import remotes as _remotes

        return getattr(_remotes, name)

    if name == "Route":
        from remoterest.routing.route import Route

        return Route

    if name in ("RestClass", "RestMethod"):
        from remoterest.routing import model as _model

        return getattr(_model, name)

    if name == "sort_routes":
        from remoterest.routing.precedence import sort_routes

        return sort_routes

    if name in (
        "ConfigurationError",
        "NotFound",
        "RemoteError",
        "RequestCanceled",
        "RestError",
    ):
        from remoterest import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
