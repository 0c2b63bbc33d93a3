from __future__ import annotations

import io
from collections.abc import Iterator
from os import PathLike
from typing import (
    IO,
    Any,
    Optional,
    Protocol,
    TypeVar,
    Union,
)

## Custom type variables

T = TypeVar("T")
Point2D = tuple[float, float]
PointMT = tuple[float, float, Optional[float]]
PointZT = tuple[float, float, float, Optional[float]]

PointT = Union[Point2D, PointMT, PointZT]
PointsT = list[PointT]

BBox = tuple[float, float, float, float]
MBox = tuple[float, float]
ZBox = tuple[float, float]


class WriteableBinStream(Protocol):
    def write(self, b: bytes) -> int: ...


class ReadableBinStream(Protocol):
    def read(self, size: int = -1) -> bytes: ...


class WriteSeekableBinStream(Protocol):
    def write(self, b: bytes) -> int: ...
    def seek(self, offset: int, whence: int = 0) -> int: ...
    def tell(self) -> int: ...


class ReadSeekableBinStream(Protocol):
    def seek(self, offset: int, whence: int = 0) -> int: ...
    def tell(self) -> int: ...
    def read(self, size: int = -1) -> bytes: ...


# File name, file object or anything with a read() method that returns bytes.
BinaryFileT = Union[str, PathLike[Any], IO[bytes]]
BinaryFileStreamT = Union[IO[bytes], io.BytesIO, WriteSeekableBinStream]


# The attribute table is not part of this package. Records are opaque
# and matched to shapes by their position in the file.
RecordT = Any


class AttributeReader(Protocol):
    def __iter__(self) -> Iterator[RecordT]: ...


class AttributeWriter(Protocol):
    def write_record(self, record: RecordT) -> Any: ...
