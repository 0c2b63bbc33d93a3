from __future__ import annotations

from collections.abc import Iterable, Sequence
from struct import Struct, error, pack, unpack
from typing import Any, ClassVar, NamedTuple, Optional, Union

from .bbox import GenericBBox
from .constants import (
    FIRST_RING,
    INNER,
    INNER_RING,
    MULTIPATCH,
    MULTIPOINT,
    MULTIPOINTM,
    MULTIPOINTZ,
    NODATA,
    NULL,
    OUTER,
    OUTER_RING,
    POINT,
    POINTM,
    POINTZ,
    POLYGON,
    POLYGONM,
    POLYGONZ,
    POLYLINE,
    POLYLINEM,
    POLYLINEZ,
    RING,
    SHAPETYPE_CODE_SIZE,
    SHAPETYPE_LOOKUP,
)
from .exceptions import (
    GeoJSON_Error,
    InvalidShapeRecordSize,
    MalformedShape,
    MismatchShapeType,
    ShapefileException,
)
from .geojson import (
    GeoJSONLineString,
    GeoJSONMultiLineString,
    GeoJSONMultiPoint,
    GeoJSONMultiPolygon,
    GeoJSONPolygon,
    multipoint_geo_interface,
    polygon_geo_interface,
    polyline_geo_interface,
)
from .geometric_calculations import close_ring, orient_ring, ring_type
from .helpers import is_no_data, read_exact
from .points import Point, PointM, PointZ
from .shapetypes import patch_type_from_code, read_shape_type, write_shape_type
from .types import PointsT, ReadableBinStream, WriteableBinStream

_bbox_struct = Struct("<4d")
_range_struct = Struct("<2d")
_int_struct = Struct("<i")

# Patch types whose parts are rings, and so get closed
RING_PATCH_TYPES = frozenset([OUTER_RING, INNER_RING, FIRST_RING, RING])


def _read_int(b_io: ReadableBinStream) -> int:
    (value,) = _int_struct.unpack(read_exact(b_io, _int_struct.size))
    return value


def _read_doubles(b_io: ReadableBinStream, n: int) -> tuple[float, ...]:
    return unpack(f"<{n}d", read_exact(b_io, 8 * n))


def _split(points: Sequence[Any], parts: Sequence[int]) -> list[list[Any]]:
    """Splits a flat list of points into one list per part."""
    bounds = list(parts) + [len(points)]
    return [list(points[start:end]) for start, end in zip(bounds, bounds[1:])]


def _points_and_parts_indexes_from_lines(
    lines: Iterable[Sequence[Any]],
) -> tuple[list[Any], list[int]]:
    """Flattens lines into a list of points and the index of each line's
    first point."""
    points: list[Any] = []
    parts: list[int] = []
    for line in lines:
        parts.append(len(points))
        points.extend(line)
    return points, parts


class NullShape:
    """A record without geometry. Its content is only the shape type."""

    shapeType = NULL
    bbox = None
    points: tuple[()] = ()

    @classmethod
    def from_byte_stream(cls, b_io: ReadableBinStream, recordSize: int) -> NullShape:
        return cls()

    def size_in_bytes(self) -> int:
        return 0

    def write_to_byte_stream(self, b_io: WriteableBinStream) -> int:
        return 0

    @property
    def shapeTypeName(self) -> str:
        return SHAPETYPE_LOOKUP[self.shapeType]

    @property
    def __geo_interface__(self) -> Any:
        raise GeoJSON_Error("A NULL shape cannot be represented as GeoJSON.")

    def __eq__(self, other: object) -> bool:
        return isinstance(other, NullShape)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return "NullShape()"


class _CanHaveBBox:
    """Shapes made of a list of points with a bounding box: multipoints,
    and through _CanHaveParts, polylines, polygons and multipatches.

    One codec serves every shape type. The class's pointClass decides
    whether a z block is encoded and whether an m block may be, and
    _partArrays how many int arrays with one entry per part follow the
    counts (none for multipoints, the part indexes for polylines and
    polygons, plus the patch types for multipatches).
    """

    shapeType: ClassVar[int]
    pointClass: ClassVar[Any] = Point
    _partArrays: ClassVar[int] = 0

    points: list[Any]
    bbox: GenericBBox

    def __init__(
        self,
        points: Optional[Iterable[Any]] = None,
        *,
        z: Optional[Iterable[float]] = None,
        m: Optional[Iterable[Optional[float]]] = None,
    ):
        self.points = self._coerce_points(points or [], z, m)
        self.bbox = GenericBBox.from_points(self.points, self.pointClass)

    @classmethod
    def _coerce_points(
        cls,
        points: Iterable[Any],
        z: Optional[Iterable[float]] = None,
        m: Optional[Iterable[Optional[float]]] = None,
    ) -> list[Any]:
        """Converts coordinate tuples to the shape's point class, merging
        in z and m values given as separate sequences."""
        coerce = cls.pointClass.coerce
        coerced = [coerce(point) for point in points]
        kind = cls.pointClass.kind
        if z is not None:
            if not kind.has_z:
                raise MalformedShape(f"{cls.__name__} shapes have no z values.")
            zs = list(z)
            if len(zs) != len(coerced):
                raise MalformedShape(
                    f"Got {len(zs)} z values for {len(coerced)} points."
                )
            coerced = [point._replace(z=zi) for point, zi in zip(coerced, zs)]
        if m is not None:
            if not kind.has_m:
                raise MalformedShape(f"{cls.__name__} shapes have no m values.")
            ms = list(m)
            if len(ms) != len(coerced):
                raise MalformedShape(
                    f"Got {len(ms)} m values for {len(coerced)} points."
                )
            coerced = [
                point._replace(m=NODATA if mi is None else mi)
                for point, mi in zip(coerced, ms)
            ]
        return coerced

    @classmethod
    def _from_decoded(
        cls,
        points: list[Any],
        bbox: GenericBBox,
        parts: list[int],
        partTypes: list[int],
    ) -> Any:
        shape = cls.__new__(cls)
        shape.points = points
        shape.bbox = bbox
        return shape

    @property
    def shapeTypeName(self) -> str:
        return SHAPETYPE_LOOKUP[self.shapeType]

    @property
    def z(self) -> list[float]:
        if not self.pointClass.kind.has_z:
            raise AttributeError(f"{type(self).__name__} shapes have no z values")
        return [point.z for point in self.points]

    @property
    def m(self) -> list[Optional[float]]:
        """The measures, with None for nodata values."""
        if not self.pointClass.kind.has_m:
            raise AttributeError(f"{type(self).__name__} shapes have no m values")
        return [None if is_no_data(point.m) else point.m for point in self.points]

    def _part_count(self) -> int:
        return 0

    @classmethod
    def _content_size(cls, nParts: int, nPoints: int, withM: bool) -> int:
        """Size of the record content after the shape type code."""
        # Bounding box, number of points, x and y values
        size = 32 + 4 + 16 * nPoints
        if cls._partArrays:
            # Number of parts, and the per part int arrays
            size += 4 + 4 * cls._partArrays * nParts
        if cls.pointClass.kind.has_z:
            size += 16 + 8 * nPoints
        if withM:
            size += 16 + 8 * nPoints
        return size

    def size_in_bytes(self) -> int:
        return self._content_size(
            self._part_count(), len(self.points), self.pointClass.kind.has_m
        )

    @classmethod
    def _has_m_block(cls, recordSize: int, nParts: int, nPoints: int) -> bool:
        """The m block is optional in shapes that can have measures, so
        whether it was written is inferred from the record size."""
        if nParts < 0 or nPoints < 0:
            raise InvalidShapeRecordSize(recordSize, ())
        without = cls._content_size(nParts, nPoints, withM=False)
        if recordSize == without:
            return False
        if not cls.pointClass.kind.has_m:
            raise InvalidShapeRecordSize(recordSize, (without,))
        withM = cls._content_size(nParts, nPoints, withM=True)
        if recordSize == withM:
            return True
        raise InvalidShapeRecordSize(recordSize, (without, withM))

    @classmethod
    def from_byte_stream(cls, b_io: ReadableBinStream, recordSize: int) -> Any:
        """Decodes the record content following the shape type code."""
        xmin, ymin, xmax, ymax = _bbox_struct.unpack(read_exact(b_io, 32))
        nParts = _read_int(b_io) if cls._partArrays else 0
        nPoints = _read_int(b_io)
        withM = cls._has_m_block(recordSize, nParts, nPoints)

        parts: list[int] = []
        partTypes: list[int] = []
        if cls._partArrays:
            parts = list(unpack(f"<{nParts}i", read_exact(b_io, 4 * nParts)))
        if cls._partArrays == 2:
            partTypes = [
                patch_type_from_code(code)
                for code in unpack(f"<{nParts}i", read_exact(b_io, 4 * nParts))
            ]

        flat = _read_doubles(b_io, 2 * nPoints)
        columns = [flat[0::2], flat[1::2]]
        lo = [xmin, ymin]
        hi = [xmax, ymax]
        kind = cls.pointClass.kind
        if kind.has_z:
            zmin, zmax = _range_struct.unpack(read_exact(b_io, 16))
            columns.append(_read_doubles(b_io, nPoints))
            lo.append(zmin)
            hi.append(zmax)
        if kind.has_m:
            if withM:
                mmin, mmax = _range_struct.unpack(read_exact(b_io, 16))
                ms = _read_doubles(b_io, nPoints)
                if all(is_no_data(value) for value in ms):
                    mmin = mmax = NODATA
            else:
                mmin = mmax = NODATA
                ms = (NODATA,) * nPoints
            columns.append(ms)
            lo.append(mmin)
            hi.append(mmax)

        make = cls.pointClass._make
        points = [make(values) for values in zip(*columns)]
        bbox = GenericBBox(make(lo), make(hi))
        return cls._from_decoded(points, bbox, parts, partTypes)

    def _validate(self) -> None:
        pass

    def _write_part_count(self, b_io: WriteableBinStream) -> int:
        return 0

    def _write_part_arrays(self, b_io: WriteableBinStream) -> int:
        return 0

    def write_to_byte_stream(self, b_io: WriteableBinStream) -> int:
        """Encodes the record content following the shape type code.
        Shapes with measures always get an m block."""
        self._validate()
        kind = self.pointClass.kind
        points = self.points
        nPoints = len(points)
        n = 0
        try:
            n += b_io.write(_bbox_struct.pack(*self.bbox.bounds))
            n += self._write_part_count(b_io)
            n += b_io.write(_int_struct.pack(nPoints))
            n += self._write_part_arrays(b_io)
            x_ys: list[float] = []
            for point in points:
                x_ys.extend(point[:2])
            n += b_io.write(pack(f"<{2 * nPoints}d", *x_ys))
            if kind.has_z:
                n += b_io.write(_range_struct.pack(*self.bbox.z_range))
                n += b_io.write(pack(f"<{nPoints}d", *(point.z for point in points)))
            if kind.has_m:
                n += b_io.write(_range_struct.pack(*self.bbox.m_range))
                n += b_io.write(pack(f"<{nPoints}d", *(point.m for point in points)))
        except error:
            raise MalformedShape(
                f"Failed to write {self.shapeTypeName} shape. Expected floats."
            )
        return n

    def _key(self) -> tuple[Any, ...]:
        return (self.points, self.bbox)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._key() == other._key()  # type: ignore[attr-defined]

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self.points)} points)"


class _CanHaveParts(_CanHaveBBox):
    """Shapes whose points are split into parts. The parts attribute holds
    the index of the first point of each part in the flat points list."""

    _partArrays = 1

    parts: list[int]

    def __init__(
        self,
        *args: PointsT,
        lines: Optional[list[PointsT]] = None,
        points: Optional[PointsT] = None,
        parts: Optional[Sequence[int]] = None,
        z: Optional[Iterable[float]] = None,
        m: Optional[Iterable[Optional[float]]] = None,
    ):
        if args:
            if lines:
                raise ShapefileException(
                    "Specify Either: a) positional args, or: b) the keyword arg lines. "
                    f"Not both. Got both: {args} and {lines}"
                )
            lines = list(args)
        if lines is not None:
            if points is not None or parts is not None:
                raise ShapefileException(
                    "Specify either lines, or points and parts. Not both."
                )
            points, parts = _points_and_parts_indexes_from_lines(lines)
        super().__init__(points, z=z, m=m)
        if parts is None:
            parts = [0] if self.points else []
        self.parts = list(parts)

    @classmethod
    def _coerce_lines(
        cls,
        lines: Iterable[Sequence[Any]],
        z: Optional[Iterable[float]] = None,
        m: Optional[Iterable[Optional[float]]] = None,
    ) -> list[list[Any]]:
        """Coerces the points of each line, with z and m values given
        for the flattened points."""
        lines = [list(line) for line in lines]
        points, parts = _points_and_parts_indexes_from_lines(lines)
        return _split(cls._coerce_points(points, z, m), parts)

    def _init_from_lines(self, lines: list[list[Any]]) -> None:
        self.points, self.parts = _points_and_parts_indexes_from_lines(lines)
        self.bbox = GenericBBox.from_points(self.points, self.pointClass)

    @classmethod
    def _from_decoded(
        cls,
        points: list[Any],
        bbox: GenericBBox,
        parts: list[int],
        partTypes: list[int],
    ) -> Any:
        shape = super()._from_decoded(points, bbox, parts, partTypes)
        shape.parts = parts
        return shape

    @property
    def lines(self) -> list[list[Any]]:
        """The points of each part."""
        return _split(self.points, self.parts)

    def _part_count(self) -> int:
        return len(self.parts)

    def _validate(self) -> None:
        parts = self.parts
        nPoints = len(self.points)
        if nPoints and (not parts or parts[0] != 0):
            raise MalformedShape(
                f"The first part of a {self.shapeTypeName} shape must start "
                f"at point 0, got parts {parts}"
            )
        if any(b < a for a, b in zip(parts, parts[1:])) or (
            parts and parts[-1] >= nPoints
        ):
            raise MalformedShape(
                f"The parts {parts} are not ordered indexes into "
                f"the {nPoints} points of the shape."
            )

    def _write_part_count(self, b_io: WriteableBinStream) -> int:
        return b_io.write(_int_struct.pack(len(self.parts)))

    def _write_part_arrays(self, b_io: WriteableBinStream) -> int:
        return b_io.write(pack(f"<{len(self.parts)}i", *self.parts))

    def _key(self) -> tuple[Any, ...]:
        return (self.points, self.parts, self.bbox)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({len(self.parts)} parts, "
            f"{len(self.points)} points)"
        )


class Polyline(_CanHaveParts):
    shapeType = POLYLINE

    @property
    def __geo_interface__(self) -> GeoJSONLineString | GeoJSONMultiLineString:
        return polyline_geo_interface(self)


class PolygonRing(NamedTuple):
    """A ring of a polygon with its type: OUTER for an exterior ring,
    INNER for a hole."""

    ringType: str
    points: list[Any]

    @classmethod
    def outer(cls, points: Iterable[Any]) -> PolygonRing:
        return cls(OUTER, list(points))

    @classmethod
    def inner(cls, points: Iterable[Any]) -> PolygonRing:
        return cls(INNER, list(points))


class Polygon(_CanHaveParts):
    """A polygon made of rings.

    Rings are given as PolygonRing values, whose points are stored in the
    order their type requires (clockwise for exterior rings,
    counter-clockwise for holes), or as plain lines of points, whose
    orientation decides their type. Unclosed rings are closed.
    """

    shapeType = POLYGON

    def __init__(
        self,
        *args: Union[PolygonRing, PointsT],
        lines: Optional[list[PointsT]] = None,
        rings: Optional[list[PolygonRing]] = None,
        points: Optional[PointsT] = None,
        parts: Optional[Sequence[int]] = None,
        z: Optional[Iterable[float]] = None,
        m: Optional[Iterable[Optional[float]]] = None,
    ):
        items = list(args) + list(lines or []) + list(rings or [])
        if items:
            if points is not None or parts is not None:
                raise ShapefileException(
                    "Specify either rings or lines, or points and parts. Not both."
                )
        else:
            flat = self._coerce_points(points or [], z, m)
            if parts is None:
                parts = [0] if flat else []
            items = _split(flat, parts)
            z = m = None

        ringTypes = [
            item.ringType if isinstance(item, PolygonRing) else None for item in items
        ]
        lines_ = self._coerce_lines(
            [item.points if isinstance(item, PolygonRing) else item for item in items],
            z,
            m,
        )
        ringsOut = []
        for declared, line in zip(ringTypes, lines_):
            ring = close_ring(line)
            if declared is not None:
                ring = orient_ring(ring, declared)
            ringsOut.append(ring)
        self._init_from_lines(ringsOut)

    @classmethod
    def from_polyline(cls, polyline: Polyline) -> Polygon:
        """Reads the parts of a polyline as the rings of a polygon, sharing
        its points and parts. The rings are neither closed nor reordered."""
        if polyline.pointClass is not cls.pointClass:
            raise MismatchShapeType(cls.shapeType, polyline.shapeType)
        polygon = cls.__new__(cls)
        polygon.points = polyline.points
        polygon.parts = polyline.parts
        polygon.bbox = polyline.bbox
        return polygon

    @property
    def ringTypes(self) -> list[str]:
        return [ring_type(line) for line in self.lines]

    @property
    def rings(self) -> list[PolygonRing]:
        return [PolygonRing(ring_type(line), line) for line in self.lines]

    @property
    def __geo_interface__(self) -> GeoJSONPolygon | GeoJSONMultiPolygon:
        return polygon_geo_interface(self)


class MultiPoint(_CanHaveBBox):
    shapeType = MULTIPOINT

    def __init__(
        self,
        *args: Any,
        points: Optional[PointsT] = None,
        z: Optional[Iterable[float]] = None,
        m: Optional[Iterable[Optional[float]]] = None,
    ):
        if args:
            if points:
                raise ShapefileException(
                    "Specify Either: a) positional args, or: b) the keyword arg points. "
                    f"Not both. Got both: {args} and {points}"
                )
            points = list(args)
        super().__init__(points, z=z, m=m)

    @property
    def __geo_interface__(self) -> GeoJSONMultiPoint:
        return multipoint_geo_interface(self)


class Patch(NamedTuple):
    """A part of a MultiPatch with its patch type, e.g. TRIANGLE_STRIP."""

    patchType: int
    points: list[Any]


class MultiPatch(_CanHaveParts):
    """Surface patches of a 3D object, each part with a patch type.

    Patches are given as Patch values, or as lines along with the
    partTypes keyword arg. Parts of the ring patch types are closed;
    triangle strips and fans are kept as given.
    """

    shapeType = MULTIPATCH
    pointClass = PointZ
    _partArrays = 2

    partTypes: list[int]

    def __init__(
        self,
        *args: Union[Patch, PointsT],
        lines: Optional[list[PointsT]] = None,
        partTypes: Optional[Sequence[int]] = None,
        patches: Optional[list[Patch]] = None,
        points: Optional[PointsT] = None,
        parts: Optional[Sequence[int]] = None,
        z: Optional[Iterable[float]] = None,
        m: Optional[Iterable[Optional[float]]] = None,
    ):
        items = list(args) + list(lines or []) + list(patches or [])
        if not items:
            flat = self._coerce_points(points or [], z, m)
            if parts is None:
                parts = [0] if flat else []
            items = _split(flat, parts)
            z = m = None
        elif points is not None or parts is not None:
            raise ShapefileException(
                "Specify either patches or lines, or points and parts. Not both."
            )

        plainLines = [item for item in items if not isinstance(item, Patch)]
        typesIter = iter(partTypes or [])
        if plainLines and (partTypes is None or len(partTypes) != len(plainLines)):
            raise MalformedShape(
                f"Got {0 if partTypes is None else len(partTypes)} part types "
                f"for {len(plainLines)} parts."
            )
        patchTypes = [
            item.patchType if isinstance(item, Patch) else next(typesIter)
            for item in items
        ]
        patchTypes = [patch_type_from_code(code) for code in patchTypes]
        lines_ = self._coerce_lines(
            [item.points if isinstance(item, Patch) else item for item in items],
            z,
            m,
        )
        self._init_from_lines(
            [
                close_ring(line) if patchType in RING_PATCH_TYPES else line
                for patchType, line in zip(patchTypes, lines_)
            ]
        )
        self.partTypes = patchTypes

    @classmethod
    def _from_decoded(
        cls,
        points: list[Any],
        bbox: GenericBBox,
        parts: list[int],
        partTypes: list[int],
    ) -> Any:
        shape = super()._from_decoded(points, bbox, parts, partTypes)
        shape.partTypes = partTypes
        return shape

    @property
    def patches(self) -> list[Patch]:
        return [
            Patch(patchType, line)
            for patchType, line in zip(self.partTypes, self.lines)
        ]

    def _validate(self) -> None:
        super()._validate()
        if len(self.partTypes) != len(self.parts):
            raise MalformedShape(
                f"Got {len(self.partTypes)} part types for {len(self.parts)} parts."
            )
        for code in self.partTypes:
            patch_type_from_code(code)

    def _write_part_arrays(self, b_io: WriteableBinStream) -> int:
        n = super()._write_part_arrays(b_io)
        n += b_io.write(pack(f"<{len(self.partTypes)}i", *self.partTypes))
        return n

    def _key(self) -> tuple[Any, ...]:
        return (self.points, self.parts, self.partTypes, self.bbox)

    @property
    def __geo_interface__(self) -> Any:
        raise GeoJSON_Error(
            f'Shape type "{self.shapeTypeName}" cannot be represented as GeoJSON.'
        )


class PolylineM(Polyline):
    shapeType = POLYLINEM
    pointClass = PointM


class PolygonM(Polygon):
    shapeType = POLYGONM
    pointClass = PointM


class MultiPointM(MultiPoint):
    shapeType = MULTIPOINTM
    pointClass = PointM


class PolylineZ(Polyline):
    shapeType = POLYLINEZ
    pointClass = PointZ


class PolygonZ(Polygon):
    shapeType = POLYGONZ
    pointClass = PointZ


class MultiPointZ(MultiPoint):
    shapeType = MULTIPOINTZ
    pointClass = PointZ


Shape = Union[
    NullShape,
    Point,
    PointM,
    PointZ,
    Polyline,
    PolylineM,
    PolylineZ,
    Polygon,
    PolygonM,
    PolygonZ,
    MultiPoint,
    MultiPointM,
    MultiPointZ,
    MultiPatch,
]

SHAPE_CLASS_FROM_SHAPETYPE: dict[int, Any] = {
    NULL: NullShape,
    POINT: Point,
    POLYLINE: Polyline,
    POLYGON: Polygon,
    MULTIPOINT: MultiPoint,
    POINTZ: PointZ,
    POLYLINEZ: PolylineZ,
    POLYGONZ: PolygonZ,
    MULTIPOINTZ: MultiPointZ,
    POINTM: PointM,
    POLYLINEM: PolylineM,
    POLYGONM: PolygonM,
    MULTIPOINTM: MultiPointM,
    MULTIPATCH: MultiPatch,
}


def read_shape(
    b_io: ReadableBinStream, recordSize: int, shapeClass: Any = None
) -> Shape:
    """Decodes the content of one record: the shape type code followed
    by the payload, recordSize bytes in all. If shapeClass is given the
    record must be of that type."""
    shapeType = read_shape_type(b_io)
    if shapeClass is not None and shapeType != shapeClass.shapeType:
        raise MismatchShapeType(shapeClass.shapeType, shapeType)
    ShapeClass = SHAPE_CLASS_FROM_SHAPETYPE[shapeType]
    return ShapeClass.from_byte_stream(b_io, recordSize - SHAPETYPE_CODE_SIZE)


def write_shape(b_io: WriteableBinStream, s: Shape) -> int:
    """Encodes the content of one record, returning the number of bytes
    written."""
    n = write_shape_type(b_io, s.shapeType)
    n += s.write_to_byte_stream(b_io)
    return n


def shape_content_size(s: Shape) -> int:
    """The size in bytes of a record's content, shape type code included."""
    return SHAPETYPE_CODE_SIZE + s.size_in_bytes()


def shapes_as(shapes: Iterable[Shape], shapeClass: Any) -> list[Any]:
    """Checks that every shape is of the requested class's shape type."""
    converted = []
    for s in shapes:
        if s.shapeType != shapeClass.shapeType:
            raise MismatchShapeType(shapeClass.shapeType, s.shapeType)
        converted.append(s)
    return converted
