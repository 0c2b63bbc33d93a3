from __future__ import annotations

from struct import Struct

from .bbox import GenericBBox
from .constants import FILE_CODE, HEADER_SIZE, NULL, SHAPETYPE_LOOKUP, VERSION
from .exceptions import InvalidFileCode
from .helpers import read_exact
from .points import PointZ
from .shapetypes import shape_type_from_code
from .types import ReadableBinStream, WriteableBinStream

_file_code = Struct(">i")
# File code, 5 unused ints, file length
_big_endian_part = Struct(">7i")
# Version, shape type, xmin, ymin, xmax, ymax, zmin, zmax, mmin, mmax
_little_endian_part = Struct("<2i8d")


class Header:
    """The 100 byte header of both the .shp and the .shx file.

    The file length is counted in 16-bit words. The bounding box is a
    GenericBBox of PointZ holding the x, y, z and m extremes exactly as
    they are stored; nothing here checks them against the records.
    """

    __slots__ = ("shapeType", "fileLength", "bbox", "version")

    def __init__(
        self,
        shapeType: int = NULL,
        fileLength: int = HEADER_SIZE // 2,
        bbox: GenericBBox | None = None,
        version: int = VERSION,
    ):
        self.shapeType = shapeType
        self.fileLength = fileLength
        if bbox is None:
            origin = PointZ(0.0, 0.0, 0.0, 0.0)
            bbox = GenericBBox(origin, origin)
        self.bbox = bbox
        self.version = version

    @property
    def fileLengthBytes(self) -> int:
        return self.fileLength * 2

    @property
    def shapeTypeName(self) -> str:
        return SHAPETYPE_LOOKUP[self.shapeType]

    @classmethod
    def read_from(cls, b_io: ReadableBinStream) -> Header:
        """Reads a header, failing with InvalidFileCode before reading
        any further if the stream does not start with the file code."""
        (fileCode,) = _file_code.unpack(read_exact(b_io, _file_code.size))
        if fileCode != FILE_CODE:
            raise InvalidFileCode(fileCode)
        rest = read_exact(b_io, HEADER_SIZE - _file_code.size)
        # The 20 unused bytes come first
        (fileLength,) = _file_code.unpack_from(rest, 20)
        (
            version,
            shapeType,
            xmin,
            ymin,
            xmax,
            ymax,
            zmin,
            zmax,
            mmin,
            mmax,
        ) = _little_endian_part.unpack_from(rest, 24)
        bbox = GenericBBox(PointZ(xmin, ymin, zmin, mmin), PointZ(xmax, ymax, zmax, mmax))
        return cls(shape_type_from_code(shapeType), fileLength, bbox, version)

    def to_bytes(self) -> bytes:
        lo, hi = self.bbox.min, self.bbox.max
        return _big_endian_part.pack(
            FILE_CODE, 0, 0, 0, 0, 0, self.fileLength
        ) + _little_endian_part.pack(
            self.version,
            self.shapeType,
            lo.x,
            lo.y,
            hi.x,
            hi.y,
            lo.z,
            hi.z,
            lo.m,
            hi.m,
        )

    def write_to(self, b_io: WriteableBinStream) -> int:
        return b_io.write(self.to_bytes())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Header):
            return NotImplemented
        return (
            self.shapeType == other.shapeType
            and self.fileLength == other.fileLength
            and self.version == other.version
            and self.bbox == other.bbox
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"Header(shapeType={self.shapeTypeName}, fileLength={self.fileLength}, "
            f"bbox={self.bbox!r}, version={self.version})"
        )
