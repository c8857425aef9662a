"""Rest application class.

Mutable during setup (configuration, middleware).
Frozen at runtime when rest.run() or __call__() is first invoked: the
shared classes are read once, their routes sorted and compiled into an
immutable routing table.
"""

import logging
import re
import threading
from collections.abc import Callable
from typing import Any

from remoterest._internal.asgi import Receive, Scope, Send
from remoterest.config import RestConfig
from remoterest.errors import ConfigurationError
from remoterest.middleware.body import BodyParserMiddleware
from remoterest.middleware.cors import CORSMiddleware
from remoterest.middleware.protocol import Middleware
from remoterest.remotes import Remotes
from remoterest.routing.model import RestClass, build_classes
from remoterest.routing.router import RoutingTable
from remoterest.server.dispatch import RequestDispatcher
from remoterest.server.handler import handle_request

logger = logging.getLogger("remoterest.rest")

_MULTI_SLASH = re.compile(r"/{2,}")


class Rest:
    """REST adapter for a ``Remotes`` object. An ASGI application.

    Mutable during setup (middleware). Frozen at runtime when
    ``rest.run()`` or ``__call__()`` is first invoked.

    Configuration happens at import time on one thread. Several server
    threads may race into ``__call__()`` on the first request; only one of
    them builds the route table, the others wait on ``_freeze_lock``.
    """

    __slots__ = (
        "_classes",
        "_dispatcher",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_table",
        "config",
        "remotes",
    )

    def __init__(self, remotes: Remotes, config: RestConfig | None = None) -> None:
        self.remotes = remotes
        self.config: RestConfig = config or RestConfig()
        self._middleware_list: list[Middleware] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._classes: list[RestClass] = []
        self._table: RoutingTable | None = None
        self._dispatcher: RequestDispatcher | None = None
        self._middleware: tuple[Callable[..., Any], ...] = ()

    # -- Setup --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware that runs after body parsing and CORS."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Introspection --

    def build_classes(self) -> list[RestClass]:
        """REST descriptors for every shared class, built fresh."""
        return build_classes(self.remotes)

    @property
    def classes(self) -> list[RestClass]:
        """The descriptors the frozen routing table was compiled from."""
        self._ensure_frozen()
        return list(self._classes)

    @property
    def routing_table(self) -> RoutingTable:
        self._ensure_frozen()
        assert self._table is not None
        return self._table

    def all_routes(self) -> list[dict[str, Any]]:
        """Every method route with its full path, for docs and client generators.

        Each item is ``{verb, path, description, method, accepts, returns}``;
        ``accepts`` and ``returns`` are ``None`` when empty. Paths have no
        double or trailing slashes, and a method mounted at ``/`` takes the
        class path itself.
        """
        routes: list[dict[str, Any]] = []
        for rest_class in self.build_classes():
            for class_route in rest_class.routes:
                root = class_route.path
                for method in rest_class.methods:
                    for route in method.routes:
                        routes.append(
                            {
                                "verb": route.verb,
                                "path": _full_path(root, route.path),
                                "description": method.description,
                                "method": method.full_name,
                                "accepts": method.accepts or None,
                                "returns": method.returns or None,
                            }
                        )
        return routes

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Serve the app with pounce (``pip install remoterest[server]``).

        Reloading needs an import string; use ``remoterest run`` for that.

        Args:
            host: Override bind host.
            port: Override bind port.
        """
        self._ensure_frozen()

        from remoterest.server.serve import run_server

        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            log_level=self.config.log_level,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles the lifespan scope directly, then delegates HTTP scopes
        to the request handler pipeline.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()

        assert self._table is not None
        assert self._dispatcher is not None

        await handle_request(
            scope,
            receive,
            send,
            table=self._table,
            dispatcher=self._dispatcher,
            middleware=self._middleware,
            app=self,
        )

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup so a broken remote model is
        reported as a startup failure instead of on a request.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                except Exception as exc:
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Freeze once; cheap after the first call."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        Caller holds ``_freeze_lock``.
        """
        # 1. Build class descriptors and the routing table
        classes = self.build_classes()
        for rest_class in classes:
            logger.debug("registering REST handler for class %r", rest_class.name)
            for entry in rest_class.entries():
                logger.debug(
                    "    %s %s %s",
                    entry.route.verb,
                    entry.route.path,
                    entry.method.full_name,
                )
            for route in rest_class.routes:
                logger.debug("    at %s", route.path or "/")
        self._classes = classes
        self._table = RoutingTable(classes)

        # 2. Built-in middleware first: body parsing, then CORS
        middleware_list: list[Callable[..., Any]] = [
            BodyParserMiddleware(
                json_strict=self.config.json_strict,
                extended=self.config.urlencoded_extended,
                max_content_length=self.config.max_content_length,
            )
        ]
        if self.config.cors is not None:
            middleware_list.append(CORSMiddleware(self.config.cors))
        middleware_list.extend(self._middleware_list)
        self._middleware = tuple(middleware_list)

        # 3. Dispatcher
        self._dispatcher = RequestDispatcher(self.remotes, self.config)

        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Middleware must be added before the app handles its first "
                "request (or before rest.run())."
            )
            raise ConfigurationError(msg)


def _full_path(root: str, path: str) -> str:
    full = root if path in ("/", "//") else root + path
    full = _MULTI_SLASH.sub("/", full)
    if full.endswith("/"):
        full = full[:-1]
    return full or "/"
