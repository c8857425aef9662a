"""``remoterest routes`` — list REST routes.

Resolves an import string to a Rest app and prints every method route
with verb, full path, and method name.
"""

import argparse
import sys

from remoterest.cli._resolve import resolve_rest


def run_routes(args: argparse.Namespace) -> None:
    """Print a VERB / PATH / METHOD table for ``args.app``."""
    try:
        rest = resolve_rest(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    routes = rest.all_routes()
    if not routes:
        print("No routes registered.")
        return

    rows = [(r["verb"].upper(), r["path"], r["method"]) for r in routes]

    # Column widths
    max_verb = max(max(len(r[0]) for r in rows), 4)  # "VERB" header
    max_path = max(max(len(r[1]) for r in rows), 4)  # "PATH" header

    fmt = f"{{:<{max_verb}}}  {{:<{max_path}}}  {{}}"
    print(fmt.format("VERB", "PATH", "METHOD"))
    sep_len = max_verb + max_path + 4 + max(len(r[2]) for r in rows)
    print("-" * min(sep_len, 80))
    for verb, path, method in rows:
        print(fmt.format(verb, path, method))
