from __future__ import annotations

import os
from struct import Struct
from typing import overload

from .constants import NODATA_LIMIT
from .exceptions import ShapefileIOError
from .types import ReadableBinStream, T

unpack_2_int32_be = Struct(">2i").unpack
pack_2_int32_be = Struct(">2i").pack
unpack_int32_le = Struct("<i").unpack
pack_int32_le = Struct("<i").pack


@overload
def fsdecode_if_pathlike(path: os.PathLike[str]) -> str: ...
@overload
def fsdecode_if_pathlike(path: T) -> T: ...
def fsdecode_if_pathlike(path):
    if isinstance(path, os.PathLike):
        return os.fsdecode(path)  # str

    return path


def read_exact(b_io: ReadableBinStream, size: int) -> bytes:
    """Reads exactly size bytes, raising ShapefileIOError if the stream
    ends first."""
    data = b_io.read(size)
    if len(data) != size:
        raise ShapefileIOError(
            f"Unexpected end of stream: needed {size} bytes, got {len(data)}"
        )
    return data


def is_no_data(value: float) -> bool:
    """Measures at or below -10e37 mean 'no data' in a shapefile."""
    return value <= NODATA_LIMIT


def m_min(a: float, b: float) -> float:
    """min() of two measures, ignoring nodata values."""
    if is_no_data(a):
        return b
    if is_no_data(b):
        return a
    return min(a, b)


def m_max(a: float, b: float) -> float:
    """max() of two measures, ignoring nodata values."""
    if is_no_data(a):
        return b
    if is_no_data(b):
        return a
    return max(a, b)
