"""``remoterest run`` — serve a Rest app with pounce."""

import argparse
import sys

from remoterest.cli._resolve import resolve_rest


def run_server(args: argparse.Namespace) -> None:
    """Resolve ``args.app`` and serve it.

    ``--host`` and ``--port`` override the app's ``RestConfig``; with
    ``debug=True`` in the config the server reloads on file changes.
    """
    try:
        rest = resolve_rest(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    from remoterest.server.serve import run_server as serve

    rest._ensure_frozen()
    serve(
        rest,
        args.host or rest.config.host,
        args.port or rest.config.port,
        reload=rest.config.debug,
        log_level=rest.config.log_level,
        app_path=args.app if rest.config.debug else None,
    )
