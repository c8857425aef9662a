"""REST adapter configuration.

RestConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass, field

from remoterest.middleware.cors import CORSConfig


def _open_cors() -> CORSConfig:
    return CORSConfig(
        allow_origins=("*",),
        allow_methods=("GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"),
    )


@dataclass(frozen=True, slots=True)
class RestConfig:
    """REST adapter configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RestConfig(port=8080, json_strict=True, cors=None)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False
    log_level: str = "info"

    # Body parsing
    json_strict: bool = False  # Only accept objects and arrays when True
    urlencoded_extended: bool = True  # Nested a[b]=c syntax
    max_content_length: int = 100 * 1024  # 100 KB

    # CORS (None disables the middleware)
    cors: CORSConfig | None = field(default_factory=_open_cors)

    # JSON-with-padding
    jsonp_callback: str = "callback"
