"""Route precedence — the order routes are tried in.

More specific routes must win over general ones regardless of the order
methods were registered in. Two tiers:

1. **Verb.** ``del`` is read as ``delete``; verbs compare as lowercase
   strings and the one that sorts *later* goes first, so
   ``put`` < ``post`` < ``patch`` < ``get`` < ``delete`` < ``all``
   in try-order. Existing route tables depend on this reverse-alphabetical
   rule.
2. **Path**, on a verb tie. Paths are split on ``/`` and compared segment
   by segment: an empty segment loses to a non-empty one, a ``:wildcard``
   loses to a literal, otherwise plain string order decides. When every
   shared segment ties, the path with more segments goes first.

The path tier is a lexicographic order in which "no more segments" sorts
after every segment, so the comparison is a strict total order.
"""

from collections.abc import Iterable
from functools import cmp_to_key

from remoterest.routing.route import Route, RouteEntry


def normalize_verb(verb: str) -> str:
    """Lowercase *verb* and read the legacy ``del`` as ``delete``."""
    verb = verb.lower()
    return "delete" if verb == "del" else verb


def compare_routes(a: Route, b: Route) -> int:
    """Negative if *a* is tried before *b*, positive if after, 0 if equal."""
    verb_a = normalize_verb(a.verb)
    verb_b = normalize_verb(b.verb)
    if verb_a > verb_b:
        return -1
    if verb_a < verb_b:
        return 1

    parts_a = a.path.split("/")
    parts_b = b.path.split("/")
    for seg_a, seg_b in zip(parts_a, parts_b):
        # Empty part has lower weight
        if not seg_a and seg_b:
            return 1
        if seg_a and not seg_b:
            return -1
        # Wildcard has lower weight
        wild_a = seg_a.startswith(":")
        wild_b = seg_b.startswith(":")
        if wild_a and not wild_b:
            return 1
        if wild_b and not wild_a:
            return -1
        if seg_a > seg_b:
            return 1
        if seg_a < seg_b:
            return -1

    # Common prefix: the longer path goes first
    return len(parts_b) - len(parts_a)


def compare_entries(a: RouteEntry, b: RouteEntry) -> int:
    """``compare_routes`` lifted to ``(route, method)`` entries."""
    return compare_routes(a.route, b.route)


def sort_routes(entries: Iterable[RouteEntry]) -> list[RouteEntry]:
    """Return *entries* in try-order. Stable for equal routes."""
    return sorted(entries, key=cmp_to_key(compare_entries))
