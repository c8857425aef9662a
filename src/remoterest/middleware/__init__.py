"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware (installed by ``Rest`` from ``RestConfig``):
    BodyParserMiddleware -- JSON and URL-encoded request bodies
    CORSMiddleware -- Cross-Origin Resource Sharing
"""

from remoterest.middleware.body import BodyParserMiddleware
from remoterest.middleware.cors import CORSConfig, CORSMiddleware
from remoterest.middleware.protocol import Middleware, Next

__all__ = [
    "BodyParserMiddleware",
    "CORSConfig",
    "CORSMiddleware",
    "Middleware",
    "Next",
]
