from __future__ import annotations

import io
import logging
import os
from collections.abc import Iterable
from os import PathLike
from types import TracebackType
from typing import Any, NoReturn, Optional, overload

from . import constants
from .bbox import GenericBBox
from .constants import HEADER_SIZE, NULL, RECORD_HEADER_SIZE, SHAPETYPE_LOOKUP
from .exceptions import MixedShapeType, ShapefileException, ShapefileSizeError
from .header import Header
from .helpers import fsdecode_if_pathlike
from .points import Point, PointM, PointZ
from .records import RecordHeader, ShapeIndex, index_file_length
from .shapes import (
    MultiPatch,
    MultiPoint,
    MultiPointM,
    MultiPointZ,
    NullShape,
    Polygon,
    PolygonM,
    PolygonZ,
    Polyline,
    PolylineM,
    PolylineZ,
    Shape,
    shape_content_size,
    write_shape,
)
from .shapetypes import shape_type_to_code
from .types import (
    AttributeWriter,
    BBox,
    BinaryFileStreamT,
    MBox,
    PointsT,
    RecordT,
    WriteSeekableBinStream,
    ZBox,
)

logger = logging.getLogger(__name__)


def _record_length(s: Shape) -> int:
    """The number of 16-bit words a shape takes in the .shp file, its
    record header included."""
    return (RECORD_HEADER_SIZE + shape_content_size(s)) // 2


class Writer:
    """Provides write support for ESRI Shapefiles.

    Shapes are written to the .shp file as they are given, and their
    offsets kept in memory. The .shp header and the whole .shx file are
    written when the Writer is closed, so a Writer must be closed, or
    used as a context manager, for the shapefile to be readable.
    """

    def __init__(
        self,
        target: str | PathLike[Any] | None = None,
        shapeType: int | str | None = None,
        *,
        shp: WriteSeekableBinStream | None = None,
        shx: WriteSeekableBinStream | None = None,
        dbf: AttributeWriter | None = None,
    ):
        self.target = target
        self.shapeType = None if shapeType is None else shape_type_to_code(shapeType)
        self.shp: WriteSeekableBinStream | None = None
        self.shx: WriteSeekableBinStream | None = None
        self.dbf = dbf
        self._files_to_close: list[BinaryFileStreamT] = []
        if target:
            target = fsdecode_if_pathlike(target)
            if not isinstance(target, str):
                raise TypeError(
                    f"The target filepath {target!r} must be of type str or path-like, not {type(target)}."
                )
            self.shp = self.__getFileObj(os.path.splitext(target)[0] + ".shp")
            self.shx = self.__getFileObj(os.path.splitext(target)[0] + ".shx")
        elif shp:
            self.shp = self.__getFileObj(shp)
            if shx:
                self.shx = self.__getFileObj(shx)
        else:
            raise TypeError(
                "Either the target filepath, or shp must be set to create a shapefile."
            )
        # Geometry record offsets and lengths for writing shx file.
        self._index: list[ShapeIndex] = []
        self._fileLength = HEADER_SIZE // 2
        self.recNum = 0
        self.shpNum = 0
        # Grown by every non null shape
        self._bbox: GenericBBox | None = None
        # Nothing reaches the .shp file until a first shape is accepted
        self._headerReserved = False
        self._closed = False

    def __len__(self) -> int:
        """Returns the current number of features written to the shapefile.
        If shapes and records are unbalanced, the length is considered the highest
        of the two."""
        return max(self.recNum, self.shpNum)

    def __enter__(self) -> Writer:
        """
        Enter phase of context manager.
        """
        return self

    def __exit__(
        self,
        exc_type: BaseException | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool | None:
        """
        Exit phase of context manager, finish writing and close the files.
        """
        self.close()
        return None

    def __del__(self) -> None:
        # Only release what this Writer opened. An unclosed shapefile is
        # left without its headers.
        for attribute in getattr(self, "_files_to_close", []):
            try:
                attribute.close()
            except OSError:
                pass

    def close(self) -> None:
        """
        Write the final shp header and the shx file, close opened files.
        """
        if self._closed:
            return
        if self.dbf is not None and self.recNum != self.shpNum:
            raise ShapefileException(
                "When saving both the attributes and shp file, "
                f"the number of records ({self.recNum}) must correspond "
                f"with the number of shapes ({self.shpNum})"
            )
        shp = self.__getFileObj(self.shp)
        header = self.__header(self._fileLength)
        shp.seek(0)
        header.write_to(shp)
        if self.shx is not None:
            header.fileLength = index_file_length(len(self._index))
            self.shx.write(
                header.to_bytes() + b"".join(entry.to_bytes() for entry in self._index)
            )

        # Flush files
        for attribute in (self.shp, self.shx):
            if attribute is None:
                continue
            if hasattr(attribute, "flush") and not getattr(attribute, "closed", False):
                attribute.flush()

        # Close any files that the writer opened (but not those given by user)
        for attribute in self._files_to_close:
            attribute.close()
        self._files_to_close = []
        self._closed = True
        logger.debug(
            "Wrote %d %s shapes (%d words)",
            self.shpNum,
            self.shapeTypeName,
            self._fileLength,
        )

    @overload
    def __getFileObj(self, f: str) -> WriteSeekableBinStream: ...
    @overload
    def __getFileObj(self, f: None) -> NoReturn: ...
    @overload
    def __getFileObj(self, f: WriteSeekableBinStream) -> WriteSeekableBinStream: ...
    def __getFileObj(
        self, f: str | None | WriteSeekableBinStream
    ) -> WriteSeekableBinStream:
        """Safety handler to verify file-like objects"""
        if not f:
            raise ShapefileException("No file-like object available.")
        if isinstance(f, str):
            pth = os.path.split(f)[0]
            if pth and not os.path.exists(pth):
                os.makedirs(pth)
            fp = open(f, "wb+")
            self._files_to_close.append(fp)
            return fp

        if hasattr(f, "write"):
            return f
        raise ShapefileException(f"Unsupported file-like object: {f}")

    def __header(self, fileLength: int) -> Header:
        """The header of both files, from the shapes written so far.
        Dimensions that no shape carried are set to 0s."""
        shapeType = NULL if self.shapeType is None else self.shapeType
        if self._bbox is None:
            # An empty shapefile, or only null shapes
            return Header(shapeType, fileLength)
        lo, hi = self._bbox.min, self._bbox.max
        zmin, zmax = self._bbox.z_range
        if zmin > zmax:
            # No shape had z values
            zmin = zmax = 0.0
        mmin, mmax = self._bbox.m_range
        bbox = GenericBBox(
            PointZ(lo.x, lo.y, zmin, mmin), PointZ(hi.x, hi.y, zmax, mmax)
        )
        return Header(shapeType, fileLength, bbox)

    @property
    def shapeTypeName(self) -> str:
        return SHAPETYPE_LOOKUP[self.shapeType or NULL]

    def bbox(self) -> BBox | None:
        """Returns the current bounding box for the shapefile which is
        the lower-left and upper-right corners. It does not contain the
        elevation or measure extremes."""
        if self._bbox is None:
            return None
        return self._bbox.bounds

    def zbox(self) -> ZBox | None:
        """Returns the current z extremes for the shapefile."""
        if self._bbox is None or self._bbox.min.z > self._bbox.max.z:
            return None
        return self._bbox.z_range

    def mbox(self) -> MBox | None:
        """Returns the current m extremes for the shapefile, ignoring
        nodata values."""
        if self._bbox is None or not self._bbox.has_measures:
            return None
        return self._bbox.m_range

    def __checkShapeType(self, s: Shape, shapeType: int | None) -> int | None:
        """Returns the shapefile's shape type once s is written."""
        if s.shapeType == NULL:
            return shapeType
        if shapeType is None:
            return s.shapeType
        if s.shapeType != shapeType:
            raise MixedShapeType(shapeType, s.shapeType)
        return shapeType

    def __checkFileLength(self, fileLength: int) -> None:
        if fileLength > constants.MAX_FILE_LENGTH:
            raise ShapefileSizeError(
                f"The .shp file would be {2 * fileLength} bytes long, more than "
                f"the {2 * constants.MAX_FILE_LENGTH} bytes a shapefile can hold. "
                "To fix this, break up your file into multiple smaller ones."
            )

    def shape(self, s: Shape) -> None:
        """Writes a shape as the next record of the .shp file."""
        shapeType = self.__checkShapeType(s, self.shapeType)
        length = _record_length(s)
        self.__checkFileLength(self._fileLength + length)
        f = self.__getFileObj(self.shp)

        # Create an in-memory binary buffer to avoid
        # unnecessary seeks to files on disk
        b_io = io.BytesIO()
        contentLength = length - RECORD_HEADER_SIZE // 2
        RecordHeader(self.shpNum + 1, contentLength).write_to(b_io)
        n = write_shape(b_io, s)
        if n != 2 * contentLength:
            raise ShapefileException(
                f"Shape #{self.shpNum + 1} was encoded in {n} bytes, "
                f"expected {2 * contentLength}."
            )
        if not self._headerReserved:
            # An empty header, to be finalized upon closing
            f.write(b"9" * HEADER_SIZE)
            self._headerReserved = True
        f.write(b_io.getvalue())

        self._index.append(ShapeIndex(self._fileLength, contentLength))
        self._fileLength += length
        self.shpNum += 1
        self.shapeType = shapeType
        if s.shapeType != NULL:
            if self._bbox is None:
                self._bbox = GenericBBox.empty(PointZ)
            self._bbox.grow_from_shape(s)

    def write_shapes(self, shapes: Iterable[Shape]) -> None:
        """Writes several shapes. They are all checked before any of
        them is written."""
        shapes = list(shapes)
        shapeType = self.shapeType
        fileLength = self._fileLength
        for s in shapes:
            shapeType = self.__checkShapeType(s, shapeType)
            fileLength += _record_length(s)
        self.__checkFileLength(fileLength)
        for s in shapes:
            self.shape(s)

    def record(self, record: RecordT) -> None:
        """Passes an attribute record on to the attribute writer."""
        if self.dbf is None:
            raise ShapefileException(
                "Shapefile Writer has no attribute writer (no dbf given)."
            )
        self.dbf.write_record(record)
        self.recNum += 1

    def write_shape_and_record(self, s: Shape, record: RecordT) -> None:
        self.shape(s)
        self.record(record)

    def write_shapes_and_records(self, pairs: Iterable[tuple[Shape, RecordT]]) -> None:
        for s, record in pairs:
            self.write_shape_and_record(s, record)

    def null(self) -> None:
        """Creates a null shape."""
        self.shape(NullShape())

    def point(self, x: float, y: float) -> None:
        """Creates a POINT shape."""
        pointShape = Point(x, y)
        self.shape(pointShape)

    def pointm(self, x: float, y: float, m: Optional[float] = None) -> None:
        """Creates a POINTM shape.
        If the m (measure) value is not set, it defaults to NoData."""
        pointShape = PointM.coerce((x, y, m))
        self.shape(pointShape)

    def pointz(
        self, x: float, y: float, z: float = 0.0, m: Optional[float] = None
    ) -> None:
        """Creates a POINTZ shape.
        If the z (elevation) value is not set, it defaults to 0.
        If the m (measure) value is not set, it defaults to NoData."""
        pointShape = PointZ.coerce((x, y, z, m))
        self.shape(pointShape)

    def multipoint(self, points: PointsT) -> None:
        """Creates a MULTIPOINT shape.
        Points is a list of xy values."""
        shape = MultiPoint(points=points)
        self.shape(shape)

    def multipointm(self, points: PointsT) -> None:
        """Creates a MULTIPOINTM shape.
        Points is a list of xym values.
        If the m (measure) value is not included, it defaults to None (NoData)."""
        shape = MultiPointM(points=points)
        self.shape(shape)

    def multipointz(self, points: PointsT) -> None:
        """Creates a MULTIPOINTZ shape.
        Points is a list of xyzm values.
        If the z (elevation) value is not included, it defaults to 0.
        If the m (measure) value is not included, it defaults to None (NoData)."""
        shape = MultiPointZ(points=points)
        self.shape(shape)

    def line(self, lines: list[PointsT]) -> None:
        """Creates a POLYLINE shape.
        Lines is a collection of lines, each made up of a list of xy values."""
        shape = Polyline(lines=lines)
        self.shape(shape)

    def linem(self, lines: list[PointsT]) -> None:
        """Creates a POLYLINEM shape.
        Lines is a collection of lines, each made up of a list of xym values.
        If the m (measure) value is not included, it defaults to None (NoData)."""
        shape = PolylineM(lines=lines)
        self.shape(shape)

    def linez(self, lines: list[PointsT]) -> None:
        """Creates a POLYLINEZ shape.
        Lines is a collection of lines, each made up of a list of xyzm values.
        If the z (elevation) value is not included, it defaults to 0.
        If the m (measure) value is not included, it defaults to None (NoData)."""
        shape = PolylineZ(lines=lines)
        self.shape(shape)

    def poly(self, polys: list[PointsT]) -> None:
        """Creates a POLYGON shape.
        Polys is a collection of rings, each made up of a list of xy values.
        Clockwise rings are exterior rings and counterclockwise rings are
        holes. Rings that are not closed are closed."""
        shape = Polygon(lines=polys)
        self.shape(shape)

    def polym(self, polys: list[PointsT]) -> None:
        """Creates a POLYGONM shape.
        Polys is a collection of rings, each made up of a list of xym values.
        If the m (measure) value is not included, it defaults to None (NoData)."""
        shape = PolygonM(lines=polys)
        self.shape(shape)

    def polyz(self, polys: list[PointsT]) -> None:
        """Creates a POLYGONZ shape.
        Polys is a collection of rings, each made up of a list of xyzm values.
        If the z (elevation) value is not included, it defaults to 0.
        If the m (measure) value is not included, it defaults to None (NoData)."""
        shape = PolygonZ(lines=polys)
        self.shape(shape)

    def multipatch(self, parts: list[PointsT], partTypes: list[int]) -> None:
        """Creates a MULTIPATCH shape.
        Parts is a collection of 3D surface patches, each made up of a list of xyzm values.
        PartTypes is a list of types that define each of the surface patches.
        The types can be any of the following module constants: TRIANGLE_STRIP,
        TRIANGLE_FAN, OUTER_RING, INNER_RING, FIRST_RING, or RING.
        If the z (elevation) value is not included, it defaults to 0.
        If the m (measure) value is not included, it defaults to None (NoData)."""
        shape = MultiPatch(lines=parts, partTypes=partTypes)
        self.shape(shape)
