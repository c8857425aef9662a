"""Serve a Rest app with pounce.

Pounce's ``run()`` takes an import string (e.g., ``"myapp:rest"``), but
``Rest.run()`` has a live app object, so ``pounce.Server`` is used
directly with the ASGI callable. Pounce is an optional dependency
(``pip install remoterest[server]``) and is imported only here.
"""

from __future__ import annotations


def run_server(
    app: object,
    host: str,
    port: int,
    *,
    reload: bool = False,
    workers: int = 1,
    log_level: str = "info",
    app_path: str | None = None,
) -> None:
    """Start a pounce server for the given ASGI app.

    Args:
        app: The ``Rest`` instance to serve.
        host: Interface to listen on.
        port: TCP port to listen on.
        reload: Watch source files and restart when they change.
        workers: Number of worker processes; 0 lets pounce pick one per CPU.
        log_level: Name of the server log level, e.g. ``"info"``.
        app_path: ``"module:attribute"`` for the app. With ``reload`` pounce
            needs it to import a fresh copy after each restart.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=workers,
        reload=reload,
        log_level=log_level,
    )
    server = Server(config, app, app_path=app_path)
    server.run()
