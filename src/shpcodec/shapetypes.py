"""Lookup of shape type and patch type codes.

The shape type constants and frozensets here are the only place where
the dimensions carried by each shape type are decided.
"""

from __future__ import annotations

from .constants import (
    MULTIPATCH,
    MULTIPOINTM,
    MULTIPOINTZ,
    PATCHTYPE_LOOKUP,
    POINTM,
    POINTZ,
    POLYGON,
    POLYGONM,
    POLYGONZ,
    POLYLINE,
    POLYLINEM,
    POLYLINEZ,
    SHAPETYPE_LOOKUP,
    SHAPETYPENUM_LOOKUP,
)
from .exceptions import InvalidPatchType, InvalidShapeType
from .helpers import pack_int32_le, read_exact, unpack_int32_le
from .types import ReadableBinStream, WriteableBinStream

Polyline_shapeTypes = frozenset([POLYLINE, POLYLINEM, POLYLINEZ])

Polygon_shapeTypes = frozenset([POLYGON, POLYGONM, POLYGONZ])

_CanHaveParts_shapeTypes = Polyline_shapeTypes | Polygon_shapeTypes | {MULTIPATCH}

_HasZ_shapeTypes = frozenset([POINTZ, POLYLINEZ, POLYGONZ, MULTIPOINTZ, MULTIPATCH])

# Z types may carry measures too
_HasM_shapeTypes = _HasZ_shapeTypes | {POINTM, POLYLINEM, POLYGONM, MULTIPOINTM}


def shape_type_from_code(code: int) -> int:
    """Validates a shape type code read from a file."""
    if code not in SHAPETYPE_LOOKUP:
        raise InvalidShapeType(code)
    return code


def shape_type_to_code(shapeType: int | str) -> int:
    """Returns the code of a shape type given as a code or by its name,
    e.g. "POLYGONZ"."""
    if isinstance(shapeType, str):
        try:
            return SHAPETYPENUM_LOOKUP[shapeType.upper()]
        except KeyError:
            raise InvalidShapeType(shapeType)  # type: ignore[arg-type]
    return shape_type_from_code(shapeType)


def shape_type_name(shapeType: int) -> str:
    return SHAPETYPE_LOOKUP[shape_type_from_code(shapeType)]


def has_z(shapeType: int) -> bool:
    return shapeType in _HasZ_shapeTypes


def has_m(shapeType: int) -> bool:
    return shapeType in _HasM_shapeTypes


def is_multipart(shapeType: int) -> bool:
    return shapeType in _CanHaveParts_shapeTypes


def patch_type_from_code(code: int) -> int:
    if code not in PATCHTYPE_LOOKUP:
        raise InvalidPatchType(code)
    return code


def read_shape_type(b_io: ReadableBinStream) -> int:
    (code,) = unpack_int32_le(read_exact(b_io, 4))
    return shape_type_from_code(code)


def write_shape_type(b_io: WriteableBinStream, shapeType: int) -> int:
    return b_io.write(pack_int32_le(shapeType))
