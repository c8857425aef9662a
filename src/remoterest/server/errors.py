"""Error normalization — any failure to a JSON error response.

Every error leaves the adapter in the same shape the remoting clients
parse::

    {"error": {"name": "Error", "status": 404, "message": "...", ...}}

The status comes from ``status_code``, then ``status``, then 500. Public
attributes of the exception are copied into the payload so custom
fields (``code``, ``details``) reach the client. Tracebacks never do.
"""

import json as json_module
import logging
from typing import Any

from remoterest.http.request import Request
from remoterest.http.response import Response

logger = logging.getLogger("remoterest.server")

DEFAULT_MESSAGE = "An unknown error occurred"


def error_status(err: BaseException | str) -> int:
    """HTTP status for *err*: ``status_code``, then ``status``, else 500."""
    if isinstance(err, str):
        return 500
    for attr in ("status_code", "status"):
        value = getattr(err, attr, None)
        if isinstance(value, int) and not isinstance(value, bool) and value:
            return value
    return 500


def normalize_error(err: BaseException | str) -> tuple[int, dict[str, Any]]:
    """Return ``(status, payload)`` for *err*.

    A bare string is treated as the message of a generic 500 error.
    """
    if isinstance(err, str):
        return 500, {"name": "Error", "status": 500, "message": err or DEFAULT_MESSAGE}

    status = error_status(err)
    message = getattr(err, "message", None)
    if not isinstance(message, str):
        message = str(err)

    data: dict[str, Any] = {
        "name": getattr(err, "name", None) or type(err).__name__,
        "status": status,
        "message": message or DEFAULT_MESSAGE,
    }
    for key, value in vars(err).items() if hasattr(err, "__dict__") else ():
        if key.startswith("_") or key in ("status", "status_code", "message"):
            continue
        data[key] = value
    return status, data


def error_response(err: BaseException | str, request: Request | None = None) -> Response:
    """Render *err* as a ``{"error": {...}}`` JSON response and log it."""
    status, data = normalize_error(err)

    where = f"{request.method} {request.url}" if request is not None else "request"
    if status >= 500:
        logger.error(
            "Error in %s: %s",
            where,
            data["message"],
            exc_info=err if isinstance(err, BaseException) else None,
        )
    else:
        logger.debug("Error in %s: %s %s", where, status, data["message"])

    body = json_module.dumps({"error": data}, default=str)
    return Response(body=body, status=status)
