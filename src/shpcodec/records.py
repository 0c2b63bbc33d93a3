from __future__ import annotations

from struct import unpack
from typing import NamedTuple

from .constants import (
    HEADER_SIZE,
    INDEX_RECORD_SIZE,
    RECORD_HEADER_SIZE,
    SHAPETYPE_CODE_SIZE,
)
from .exceptions import InvalidShapeRecordSize
from .header import Header
from .helpers import pack_2_int32_be, read_exact, unpack_2_int32_be
from .types import ReadableBinStream, WriteableBinStream


class RecordHeader(NamedTuple):
    """Precedes each record of the .shp file. The content length is in
    16-bit words and includes the 4 byte shape type code. Record numbers
    start at 1."""

    recordNumber: int
    contentLength: int

    @property
    def contentBytes(self) -> int:
        return 2 * self.contentLength

    @classmethod
    def read_from(cls, b_io: ReadableBinStream) -> RecordHeader:
        header = cls._make(unpack_2_int32_be(read_exact(b_io, RECORD_HEADER_SIZE)))
        # Every record holds at least its shape type code
        if header.contentBytes < SHAPETYPE_CODE_SIZE:
            raise InvalidShapeRecordSize(header.contentBytes, (SHAPETYPE_CODE_SIZE,))
        return header

    def to_bytes(self) -> bytes:
        return pack_2_int32_be(self.recordNumber, self.contentLength)

    def write_to(self, b_io: WriteableBinStream) -> int:
        return b_io.write(self.to_bytes())


class ShapeIndex(NamedTuple):
    """An entry of the .shx file: where a record starts in the .shp file
    and its content length, both in 16-bit words."""

    offset: int
    contentLength: int

    @property
    def byteOffset(self) -> int:
        return 2 * self.offset

    def to_bytes(self) -> bytes:
        return pack_2_int32_be(self.offset, self.contentLength)


def index_file_length(numShapes: int) -> int:
    """The length in 16-bit words of a .shx file with numShapes entries."""
    return (HEADER_SIZE + numShapes * INDEX_RECORD_SIZE) // 2


def read_index(b_io: ReadableBinStream) -> tuple[Header, list[ShapeIndex]]:
    """Reads a whole .shx file: its header and one entry per record."""
    header = Header.read_from(b_io)
    numShapes = max(0, (header.fileLengthBytes - HEADER_SIZE) // INDEX_RECORD_SIZE)
    flat = unpack(
        f">{2 * numShapes}i", read_exact(b_io, numShapes * INDEX_RECORD_SIZE)
    )
    index = [ShapeIndex(offset, length) for offset, length in zip(flat[::2], flat[1::2])]
    return header, index
