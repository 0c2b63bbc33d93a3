"""The Point family: immutable coordinate tuples which are also the
single point shapes of a shapefile.
"""

from __future__ import annotations

from struct import Struct, error
from typing import Any, NamedTuple

from .bbox import GenericBBox
from .constants import NODATA, POINT, POINTM, POINTZ
from .exceptions import InvalidShapeRecordSize, MalformedShape
from .geojson import GeoJSONPoint, point_geo_interface
from .helpers import m_max, m_min, read_exact
from .types import ReadableBinStream, WriteableBinStream

_xy = Struct("<2d")
_xym = Struct("<3d")
_xyz = Struct("<3d")
_xyzm = Struct("<4d")


class PointKind(NamedTuple):
    """The optional dimensions carried by a point class."""

    has_z: bool
    has_m: bool


def _measure(value: Any) -> float:
    return NODATA if value is None else value


class Point(NamedTuple):
    x: float
    y: float

    kind = PointKind(has_z=False, has_m=False)
    shapeType = POINT

    @classmethod
    def coerce(cls, coords: Any) -> Point:
        """Creates a Point from any sequence of at least two coordinates."""
        if type(coords) is cls:
            return coords
        return cls(coords[0], coords[1])

    def grow(self, other: Any) -> Point:
        return Point(max(self.x, other.x), max(self.y, other.y))

    def shrink(self, other: Any) -> Point:
        return Point(min(self.x, other.x), min(self.y, other.y))

    @property
    def bbox(self) -> GenericBBox:
        return GenericBBox(self, self)

    @classmethod
    def from_byte_stream(cls, b_io: ReadableBinStream, recordSize: int) -> Point:
        if recordSize != _xy.size:
            raise InvalidShapeRecordSize(recordSize, (_xy.size,))
        return cls._make(_xy.unpack(read_exact(b_io, _xy.size)))

    def size_in_bytes(self) -> int:
        return _xy.size

    def write_to_byte_stream(self, b_io: WriteableBinStream) -> int:
        try:
            return b_io.write(_xy.pack(*self))
        except error:
            raise MalformedShape(f"Failed to write point {self!r}. Expected floats.")

    @property
    def __geo_interface__(self) -> GeoJSONPoint:
        return point_geo_interface(self)


class PointM(NamedTuple):
    x: float
    y: float
    m: float = NODATA

    kind = PointKind(has_z=False, has_m=True)
    shapeType = POINTM

    @classmethod
    def coerce(cls, coords: Any) -> PointM:
        """Creates a PointM from (x, y) or (x, y, m) coordinates, or from
        a PointZ, dropping its z value. A missing or None measure becomes
        NODATA."""
        if type(coords) is cls:
            return coords
        if isinstance(coords, PointZ):
            return cls(coords.x, coords.y, coords.m)
        m = coords[2] if len(coords) > 2 else None
        return cls(coords[0], coords[1], _measure(m))

    def grow(self, other: Any) -> PointM:
        return PointM(max(self.x, other.x), max(self.y, other.y), m_max(self.m, other.m))

    def shrink(self, other: Any) -> PointM:
        return PointM(min(self.x, other.x), min(self.y, other.y), m_min(self.m, other.m))

    @property
    def bbox(self) -> GenericBBox:
        return GenericBBox(self, self)

    @classmethod
    def from_byte_stream(cls, b_io: ReadableBinStream, recordSize: int) -> PointM:
        # The measure is optional
        if recordSize == _xym.size:
            return cls._make(_xym.unpack(read_exact(b_io, _xym.size)))
        if recordSize == _xy.size:
            return cls(*_xy.unpack(read_exact(b_io, _xy.size)))
        raise InvalidShapeRecordSize(recordSize, (_xy.size, _xym.size))

    def size_in_bytes(self) -> int:
        return _xym.size

    def write_to_byte_stream(self, b_io: WriteableBinStream) -> int:
        try:
            return b_io.write(_xym.pack(*self))
        except error:
            raise MalformedShape(f"Failed to write point {self!r}. Expected floats.")

    @property
    def __geo_interface__(self) -> GeoJSONPoint:
        return point_geo_interface(self)


class PointZ(NamedTuple):
    x: float
    y: float
    z: float = 0.0
    m: float = NODATA

    kind = PointKind(has_z=True, has_m=True)
    shapeType = POINTZ

    @classmethod
    def coerce(cls, coords: Any) -> PointZ:
        """Creates a PointZ from (x, y), (x, y, z) or (x, y, z, m)
        coordinates, or from a PointM. A missing z becomes 0 and a missing
        or None measure becomes NODATA."""
        if type(coords) is cls:
            return coords
        if isinstance(coords, PointM):
            return cls(coords.x, coords.y, 0.0, coords.m)
        z = coords[2] if len(coords) > 2 and coords[2] is not None else 0.0
        m = coords[3] if len(coords) > 3 else None
        return cls(coords[0], coords[1], z, _measure(m))

    def grow(self, other: Any) -> PointZ:
        return PointZ(
            max(self.x, other.x),
            max(self.y, other.y),
            max(self.z, other.z),
            m_max(self.m, other.m),
        )

    def shrink(self, other: Any) -> PointZ:
        return PointZ(
            min(self.x, other.x),
            min(self.y, other.y),
            min(self.z, other.z),
            m_min(self.m, other.m),
        )

    @property
    def bbox(self) -> GenericBBox:
        return GenericBBox(self, self)

    @classmethod
    def from_byte_stream(cls, b_io: ReadableBinStream, recordSize: int) -> PointZ:
        if recordSize == _xyzm.size:
            return cls._make(_xyzm.unpack(read_exact(b_io, _xyzm.size)))
        if recordSize == _xyz.size:
            return cls(*_xyz.unpack(read_exact(b_io, _xyz.size)))
        raise InvalidShapeRecordSize(recordSize, (_xyz.size, _xyzm.size))

    def size_in_bytes(self) -> int:
        return _xyzm.size

    def write_to_byte_stream(self, b_io: WriteableBinStream) -> int:
        try:
            return b_io.write(_xyzm.pack(*self))
        except error:
            raise MalformedShape(f"Failed to write point {self!r}. Expected floats.")

    @property
    def __geo_interface__(self) -> GeoJSONPoint:
        return point_geo_interface(self)
