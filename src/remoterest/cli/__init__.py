"""remoterest CLI — route listing and server.

Entry point registered as ``remoterest`` in ``pyproject.toml``::

    [project.scripts]
    remoterest = "remoterest.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``remoterest`` command."""
    parser = argparse.ArgumentParser(
        prog="remoterest",
        description="remoterest — REST routing for introspectable remote methods.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- remoterest routes ------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List REST routes")
    routes_parser.add_argument(
        "app",
        help="Import string (e.g. myapp:rest)",
    )

    # -- remoterest run ---------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Start the server")
    run_parser.add_argument(
        "app",
        help="Import string (e.g. myapp:rest)",
    )
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from remoterest.cli._routes import run_routes

        run_routes(args)
    elif args.command == "run":
        from remoterest.cli._run import run_server

        run_server(args)
