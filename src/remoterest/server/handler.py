"""ASGI handler — translates ASGI scope/messages to remoterest types.

The only component that touches raw ASGI directly. Converts scope dicts
to typed Request objects, runs the middleware chain around routing and
dispatch, and sends the Response back through ASGI send().

Errors raised inside the chain become ``{"error": {...}}`` responses at
the innermost layer, so middleware (CORS) still decorates them. A
cancelled request sends nothing at all.
"""

import logging
from collections.abc import Callable
from typing import Any

from remoterest._internal.asgi import Receive, Scope, Send
from remoterest.context import RestContext
from remoterest.errors import RequestCanceled
from remoterest.http.request import Request
from remoterest.http.response import Response
from remoterest.middleware.protocol import Next
from remoterest.routing.router import RoutingTable
from remoterest.server.dispatch import RequestDispatcher
from remoterest.server.errors import error_response
from remoterest.server.sender import send_response

logger = logging.getLogger("remoterest.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    table: RoutingTable,
    dispatcher: RequestDispatcher,
    middleware: tuple[Callable[..., Any], ...],
    app: Any = None,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    try:
        # Innermost handler: routing + dispatch
        async def dispatch(req: Request) -> Response:
            try:
                match = table.resolve(req.method, req.path, req.query.raw)
                rest_method = match.entry.method
                req = req.with_path_params(match.path_params)
                ctx = RestContext(
                    request=req,
                    method=rest_method.shared_method,
                    rest_method=rest_method,
                    app=app,
                    params=match.path_params,
                )
                return await dispatcher.dispatch(ctx)
            except RequestCanceled:
                raise
            except Exception as exc:
                return error_response(exc, req)

        # Wrap middleware around the dispatch
        handler = dispatch
        for mw in reversed(middleware):
            outer = handler
            mw_ref = mw

            async def make_next(req: Request, _mw: Any = mw_ref, _next: Next = outer) -> Response:
                return await _mw(req, _next)

            handler = make_next

        response = await handler(request)

    except RequestCanceled:
        logger.debug("Client went away: %s %s, no response sent", request.method, request.url)
        return
    except Exception as exc:
        response = error_response(exc, request)

    await send_response(response, send, head=request.method == "HEAD")
