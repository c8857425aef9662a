"""Accept header negotiation.

Picks the best of a server's offered types for a request's ``Accept``
header. Offers are ranked by the client's quality value, then by how
specifically a media range matched (type, subtype, parameters), then by
the position of the range in the header, then by the order of the offers.

Short offers expand to their media type (``json`` -> ``application/json``),
and the original offer string is returned, so callers can switch on the
exact names they passed in::

    best_match("text/javascript, */*;q=0.1", ["json", "text/javascript"])
    # -> "text/javascript"
"""

from collections.abc import Sequence
from dataclasses import dataclass

_SHORTHANDS: dict[str, str] = {
    "json": "application/json",
    "html": "text/html",
    "text": "text/plain",
    "js": "application/javascript",
    "xml": "application/xml",
}


@dataclass(frozen=True, slots=True)
class MediaRange:
    """One comma-separated entry of an ``Accept`` header."""

    type: str
    subtype: str
    params: tuple[tuple[str, str], ...]
    q: float
    index: int


@dataclass(frozen=True, slots=True)
class _Priority:
    offer: str
    q: float
    specificity: int
    range_index: int
    offer_index: int


def parse_accept(header: str) -> list[MediaRange]:
    """Parse an ``Accept`` header into media ranges (q=0 entries included)."""
    ranges: list[MediaRange] = []
    for index, entry in enumerate(header.split(",")):
        media, *raw_params = (piece.strip() for piece in entry.split(";"))
        if not media:
            continue
        if media == "*":
            media = "*/*"
        type_, slash, subtype = media.partition("/")
        if not slash:
            continue

        q = 1.0
        params: list[tuple[str, str]] = []
        for raw in raw_params:
            key, _, value = raw.partition("=")
            key = key.strip().lower()
            value = value.strip().strip('"')
            if key == "q":
                try:
                    q = float(value)
                except ValueError:
                    q = 0.0
                # Anything after q is an accept-extension, not a media parameter
                break
            params.append((key, value))

        ranges.append(
            MediaRange(type_.lower(), subtype.lower(), tuple(params), q, index)
        )
    return ranges


def best_match(header: str | None, offers: Sequence[str]) -> str | None:
    """Return the preferred offer for *header*, or ``None`` if none is acceptable.

    A missing header accepts anything, so the first offer wins.
    """
    if not offers:
        return None
    if header is None:
        return offers[0]

    ranges = parse_accept(header)
    candidates: list[_Priority] = []
    for offer_index, offer in enumerate(offers):
        priority = _offer_priority(offer, offer_index, ranges)
        if priority is not None and priority.q > 0:
            candidates.append(priority)

    if not candidates:
        return None
    candidates.sort(
        key=lambda p: (-p.q, -p.specificity, p.range_index, p.offer_index)
    )
    return candidates[0].offer


def _offer_priority(
    offer: str,
    offer_index: int,
    ranges: list[MediaRange],
) -> _Priority | None:
    media = _SHORTHANDS.get(offer, offer).lower()
    type_, _, subtype = media.partition("/")

    best: tuple[int, float, int] | None = None
    for media_range in ranges:
        specificity = _specificity(type_, subtype, media_range)
        if specificity is None:
            continue
        candidate = (specificity, media_range.q, media_range.index)
        if best is None or candidate[:2] > best[:2]:
            best = candidate

    if best is None:
        return None
    specificity, q, range_index = best
    return _Priority(offer, q, specificity, range_index, offer_index)


def _specificity(type_: str, subtype: str, media_range: MediaRange) -> int | None:
    """Score how exactly *media_range* matches; ``None`` when it doesn't."""
    score = 0
    if media_range.type == type_:
        score |= 4
    elif media_range.type != "*":
        return None

    if media_range.subtype == subtype:
        score |= 2
    elif media_range.subtype != "*":
        return None

    # Offers never carry parameters, so only wildcard parameters can match
    if media_range.params:
        if all(value == "*" for _, value in media_range.params):
            score |= 1
        else:
            return None
    return score
