from __future__ import annotations

from collections.abc import Iterable, Sequence
from itertools import chain
from typing import Any

from .constants import NODATA
from .helpers import is_no_data, m_max, m_min
from .types import BBox, MBox, ZBox


class GenericBBox:
    """The bounding box of a shape, as a min and a max point of the
    shape's point class (Point, PointM or PointZ).

    The z range is only available when the point class has z values,
    and the m range only when it has measures: a box of plain Points
    has neither attribute. Nodata measures never widen the box, and
    a box that has not seen any measure reports an m range of (0, 0).
    """

    __slots__ = ("min", "max")

    def __init__(self, min: Any, max: Any):
        self.min = min
        self.max = max

    @classmethod
    def from_points(cls, points: Sequence[Any], pointClass: Any) -> GenericBBox:
        """Folds the points into a box. Without any points the box is
        degenerate, collapsed on the origin."""
        if not points:
            origin = pointClass._make(0.0 for _ in pointClass._fields)
            if pointClass.kind.has_m:
                origin = origin._replace(m=NODATA)
            return cls(origin, origin)

        columns = list(zip(*points))
        lo = [min(column) for column in columns]
        hi = [max(column) for column in columns]
        if pointClass.kind.has_m:
            ms = [m for m in columns[-1] if not is_no_data(m)]
            lo[-1], hi[-1] = (min(ms), max(ms)) if ms else (NODATA, NODATA)
        return cls(pointClass._make(lo), pointClass._make(hi))

    @classmethod
    def from_parts(
        cls, parts: Iterable[Iterable[Any]], pointClass: Any
    ) -> GenericBBox:
        return cls.from_points(list(chain.from_iterable(parts)), pointClass)

    @classmethod
    def empty(cls, pointClass: Any) -> GenericBBox:
        """A box that any point or shape grows, for aggregating."""
        inf = float("inf")
        lo = pointClass._make(inf for _ in pointClass._fields)
        hi = pointClass._make(-inf for _ in pointClass._fields)
        if pointClass.kind.has_m:
            lo = lo._replace(m=NODATA)
            hi = hi._replace(m=NODATA)
        return cls(lo, hi)

    def grow_from_points(self, points: Iterable[Any]) -> None:
        for point in points:
            self.min = self.min.shrink(point)
            self.max = self.max.grow(point)

    def grow_from_shape(self, shape: Any) -> None:
        """Widens the box by a shape's own box. Only the dimensions that
        both this box and the shape carry are widened."""
        other = shape.bbox
        if other is None:
            # Null shapes
            return
        kind = self.kind
        otherKind = other.kind
        lo = {"x": min(self.min.x, other.min.x), "y": min(self.min.y, other.min.y)}
        hi = {"x": max(self.max.x, other.max.x), "y": max(self.max.y, other.max.y)}
        if kind.has_z and otherKind.has_z:
            lo["z"] = min(self.min.z, other.min.z)
            hi["z"] = max(self.max.z, other.max.z)
        if kind.has_m and otherKind.has_m:
            lo["m"] = m_min(self.min.m, other.min.m)
            hi["m"] = m_max(self.max.m, other.max.m)
        self.min = self.min._replace(**lo)
        self.max = self.max._replace(**hi)

    @property
    def kind(self) -> Any:
        return self.min.kind

    @property
    def xmin(self) -> float:
        return self.min.x

    @property
    def ymin(self) -> float:
        return self.min.y

    @property
    def xmax(self) -> float:
        return self.max.x

    @property
    def ymax(self) -> float:
        return self.max.y

    @property
    def bounds(self) -> BBox:
        """(xmin, ymin, xmax, ymax)"""
        return (self.min.x, self.min.y, self.max.x, self.max.y)

    @property
    def x_range(self) -> tuple[float, float]:
        return (self.min.x, self.max.x)

    @property
    def y_range(self) -> tuple[float, float]:
        return (self.min.y, self.max.y)

    @property
    def z_range(self) -> ZBox:
        if not self.kind.has_z:
            raise AttributeError(
                f"A bounding box of {type(self.min).__name__} has no z range"
            )
        return (self.min.z, self.max.z)

    @property
    def m_range(self) -> MBox:
        if not self.kind.has_m:
            raise AttributeError(
                f"A bounding box of {type(self.min).__name__} has no m range"
            )
        if is_no_data(self.min.m) or is_no_data(self.max.m):
            return (0.0, 0.0)
        return (self.min.m, self.max.m)

    @property
    def has_measures(self) -> bool:
        return self.kind.has_m and not is_no_data(self.min.m)

    def _ranges(self) -> tuple[tuple[float, float], ...]:
        ranges = [self.x_range, self.y_range]
        if self.kind.has_z:
            ranges.append(self.z_range)
        if self.kind.has_m:
            ranges.append(self.m_range)
        return tuple(ranges)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GenericBBox):
            return NotImplemented
        return self.kind == other.kind and self._ranges() == other._ranges()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"GenericBBox(min={self.min!r}, max={self.max!r})"
