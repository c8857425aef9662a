"""Route, RouteEntry, and RouteMatch frozen dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from remoterest.routing.model import RestMethod


@dataclass(frozen=True, slots=True)
class Route:
    """An HTTP verb and a path pattern.

    Verbs are lowercase (``get``, ``post``, ``put``, ``patch``, ``delete``,
    the legacy ``del``, or ``all`` for any method). Path segments starting
    with ``:`` are wildcards: ``/:id/save``.
    """

    verb: str
    path: str


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """A resolved route paired with the method it dispatches to."""

    route: Route
    method: RestMethod


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    entry: RouteEntry
    path_params: dict[str, str]
