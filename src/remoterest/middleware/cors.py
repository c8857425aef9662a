"""CORS middleware.

Runs ahead of routing, so preflights are answered for any URL and error
responses (404s included) carry the same ``Access-Control-*`` headers as
successful ones.
"""

from dataclasses import dataclass

from remoterest.http.request import Request
from remoterest.http.response import Response
from remoterest.middleware.protocol import Next


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """Cross-origin policy.

    The bare defaults allow nothing; ``RestConfig`` installs a permissive
    policy (every origin, every REST verb)::

        CORSConfig(
            allow_origins=("https://example.com",),
            allow_methods=("GET", "POST"),
        )

    Leave ``allow_headers`` empty to echo whatever the client lists in
    ``Access-Control-Request-Headers``. OPTIONS requests are answered here
    and never reach a remote method unless ``preflight_continue`` is set.
    """

    allow_origins: tuple[str, ...] = ()
    allow_methods: tuple[str, ...] = ("GET", "HEAD", "OPTIONS")
    allow_headers: tuple[str, ...] = ()
    expose_headers: tuple[str, ...] = ()
    allow_credentials: bool = False
    max_age: int = 600  # seconds
    preflight_continue: bool = False

    def allows(self, origin: str) -> bool:
        return "*" in self.allow_origins or origin in self.allow_origins


class CORSMiddleware:
    """Answer preflights and decorate responses for allowed origins.

    Other requests without an ``Origin`` header, or from an origin outside
    the policy, pass through untouched.
    """

    __slots__ = ("config",)

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()

    async def __call__(self, request: Request, next: Next) -> Response:
        origin = request.headers.get("origin")
        allowed = origin is not None and self.config.allows(origin)

        if request.method == "OPTIONS" and not self.config.preflight_continue:
            return self._preflight(request, origin if allowed else None)
        if not allowed:
            return await next(request)

        response = await next(request)
        return response.with_headers(dict(self._origin_headers(origin)))

    def _origin_headers(self, origin: str) -> list[tuple[str, str]]:
        cfg = self.config
        headers: list[tuple[str, str]] = []
        if "*" in cfg.allow_origins and not cfg.allow_credentials:
            headers.append(("Access-Control-Allow-Origin", "*"))
        else:
            # Credentialed responses may not use the wildcard
            headers.append(("Access-Control-Allow-Origin", origin))
            headers.append(("Vary", "Origin"))
        if cfg.allow_credentials:
            headers.append(("Access-Control-Allow-Credentials", "true"))
        if cfg.expose_headers:
            headers.append(("Access-Control-Expose-Headers", ", ".join(cfg.expose_headers)))
        return headers

    def _preflight(self, request: Request, origin: str | None) -> Response:
        if origin is None:
            return Response(body="", status=204, content_type="")

        cfg = self.config
        headers = self._origin_headers(origin)

        if "access-control-request-method" in request.headers:
            headers.append(("Access-Control-Allow-Methods", ", ".join(cfg.allow_methods)))

        requested = request.headers.get("access-control-request-headers")
        if cfg.allow_headers:
            headers.append(("Access-Control-Allow-Headers", ", ".join(cfg.allow_headers)))
        elif requested:
            headers.append(("Access-Control-Allow-Headers", requested))
            headers.append(("Vary", "Access-Control-Request-Headers"))

        headers.append(("Access-Control-Max-Age", str(cfg.max_age)))
        return Response(body="", status=204, content_type="", headers=tuple(headers))
