"""Response encoding — invocation result to HTTP response.

Dispatch order:

1. ``Response``          -> pass through (hooks may build their own)
2. ``None``              -> 204, empty body, ``application/json``
3. ``Accept`` negotiation among ``json``, ``application/javascript`` and
   ``text/javascript``:

   - ``json``            -> 200, JSON body
   - a script type       -> 200, JSONP when the request names a callback,
                            plain JSON otherwise
   - nothing acceptable  -> 406, empty body

Headers hooks added with ``ctx.set_header`` are appended last.
"""

import json as json_module
import re
from typing import Any

from remoterest.config import RestConfig
from remoterest.context import RestContext
from remoterest.http.response import JSON_CONTENT_TYPE, Response

SUPPORTED_TYPES = ("json", "application/javascript", "text/javascript")

_CALLBACK_UNSAFE = re.compile(r"[^\[\]\w$.]")


def encode_result(ctx: RestContext, config: RestConfig | None = None) -> Response:
    """Build the response for ``ctx.result``."""
    config = config or RestConfig()
    response = _encode(ctx, config)
    if ctx.headers:
        response = response.with_headers(dict(ctx.headers))
    return response


def _encode(ctx: RestContext, config: RestConfig) -> Response:
    result = ctx.result

    if isinstance(result, Response):
        return result

    if result is None:
        return Response(body="", status=204, content_type="application/json")

    match ctx.request.accepts(SUPPORTED_TYPES):
        case "json":
            return json_response(result)
        case "application/javascript" | "text/javascript":
            return jsonp_response(result, _callback_name(ctx, config))
        case _:
            return Response(body="", status=406, content_type="")


def json_response(value: Any, status: int = 200) -> Response:
    """Serialize *value* as a JSON response."""
    return Response(body=json_module.dumps(value, default=str), status=status)


def jsonp_response(value: Any, callback: str | None) -> Response:
    """Wrap *value* in a call to *callback*; plain JSON without one.

    The callback name is reduced to ``[\\[\\]\\w$.]`` and the payload has
    U+2028/U+2029 escaped so it is valid JavaScript.
    """
    if callback:
        callback = _CALLBACK_UNSAFE.sub("", callback)
    if not callback:
        return json_response(value)

    body = (
        json_module.dumps(value, default=str)
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )
    return Response(
        body=f"/**/ typeof {callback} === 'function' && {callback}({body});",
        content_type="text/javascript; charset=utf-8",
    ).with_header("X-Content-Type-Options", "nosniff")


def _callback_name(ctx: RestContext, config: RestConfig) -> str | None:
    values = ctx.request.query.get_list(config.jsonp_callback)
    return values[0] if values else None
