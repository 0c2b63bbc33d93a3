from __future__ import annotations

from collections.abc import Reversible, Sequence
from typing import Any

from .constants import INNER, OUTER
from .exceptions import MalformedShape


def signed_area(
    coords: Sequence[Any],
    fast: bool = False,
) -> float:
    """Return the signed area enclosed by a ring using the shoelace
    formula. A value >= 0 indicates a counter-clockwise oriented ring.
    The ring may be given closed or open, and rings of fewer than three
    points have no area.
    A faster version is possible by setting 'fast' to True, which returns
    2x the area, e.g. if you're only interested in the sign of the area.
    """
    if len(coords) < 3:
        return 0.0
    xs, ys = map(list, list(zip(*coords))[:2])  # ignore any z or m values
    xs.append(xs[0])
    ys.append(ys[0])
    area2: float = sum(
        xs[i] * ys[i + 1] - xs[i + 1] * ys[i] for i in range(len(coords))
    )
    if fast:
        return area2

    return area2 / 2.0


def is_cw(coords: Sequence[Any]) -> bool:
    """Returns True if a polygon ring has clockwise orientation, determined
    by a negatively signed area.
    """
    area2 = signed_area(coords, fast=True)
    return area2 < 0


def rewind(coords: Reversible[Any]) -> list[Any]:
    """Returns the input coords in reversed order."""
    return list(reversed(coords))


def is_closed(coords: Sequence[Any]) -> bool:
    return len(coords) > 0 and coords[0] == coords[-1]


def close_ring(coords: Sequence[Any]) -> list[Any]:
    """Returns the ring's points, with the first point repeated at the
    end if it was not already."""
    ring = list(coords)
    if ring and not is_closed(ring):
        ring.append(ring[0])
    return ring


def ring_type(coords: Sequence[Any]) -> str:
    """Classifies a ring: clockwise rings are exterior (OUTER) rings and
    counter-clockwise rings are holes (INNER). Rings without area count
    as exterior rings."""
    if signed_area(coords, fast=True) > 0:
        return INNER
    return OUTER


def orient_ring(coords: Sequence[Any], ringType: str) -> list[Any]:
    """Returns the ring's points in the order required for its type:
    clockwise for OUTER rings, counter-clockwise for INNER rings."""
    if ringType not in (OUTER, INNER):
        raise MalformedShape(f"Unknown ring type: {ringType!r}")
    if ring_type(coords) != ringType:
        return rewind(coords)
    return list(coords)
