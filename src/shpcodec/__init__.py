"""
shpcodec
Provides read and write support for the geometry of ESRI Shapefiles,
the .shp file and its .shx index.
Compatible with Python versions >=3.9
"""

from __future__ import annotations

import logging
import sys

from .__version__ import __version__
from ._doctest_runner import _test
from .bbox import GenericBBox
from .classes import ShapeRecord, ShapeRecords, Shapes
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
    PATCHTYPE_LOOKUP,
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
    SHAPETYPE_LOOKUP,
    TRIANGLE_FAN,
    TRIANGLE_STRIP,
)
from .exceptions import (
    GeoJSON_Error,
    InvalidFileCode,
    InvalidPatchType,
    InvalidShapeRecordSize,
    InvalidShapeType,
    MalformedShape,
    MismatchShapeType,
    MixedShapeType,
    ShapefileException,
    ShapefileIOError,
    ShapefileSizeError,
)
from .geometric_calculations import is_cw, ring_type, signed_area
from .header import Header
from .helpers import fsdecode_if_pathlike, is_no_data
from .points import Point, PointKind, PointM, PointZ
from .reader import Reader, read, read_as
from .records import RecordHeader, ShapeIndex
from .shapes import (
    SHAPE_CLASS_FROM_SHAPETYPE,
    MultiPatch,
    MultiPoint,
    MultiPointM,
    MultiPointZ,
    NullShape,
    Patch,
    Polygon,
    PolygonM,
    PolygonRing,
    PolygonZ,
    Polyline,
    PolylineM,
    PolylineZ,
    Shape,
    read_shape,
    shapes_as,
    write_shape,
)
from .shapetypes import has_m, has_z, is_multipart, shape_type_name
from .types import (
    BBox,
    BinaryFileStreamT,
    BinaryFileT,
    MBox,
    Point2D,
    PointMT,
    PointsT,
    PointT,
    PointZT,
    ReadableBinStream,
    ReadSeekableBinStream,
    WriteableBinStream,
    WriteSeekableBinStream,
    ZBox,
)
from .writer import Writer

__all__ = [
    "__version__",
    "NULL",
    "POINT",
    "POLYLINE",
    "POLYGON",
    "MULTIPOINT",
    "POINTZ",
    "POLYLINEZ",
    "POLYGONZ",
    "MULTIPOINTZ",
    "POINTM",
    "POLYLINEM",
    "POLYGONM",
    "MULTIPOINTM",
    "MULTIPATCH",
    "SHAPETYPE_LOOKUP",
    "TRIANGLE_STRIP",
    "TRIANGLE_FAN",
    "OUTER_RING",
    "INNER_RING",
    "FIRST_RING",
    "RING",
    "PATCHTYPE_LOOKUP",
    "OUTER",
    "INNER",
    "NODATA",
    "Reader",
    "Writer",
    "read",
    "read_as",
    "read_shape",
    "write_shape",
    "shapes_as",
    "fsdecode_if_pathlike",
    "is_no_data",
    "has_z",
    "has_m",
    "is_multipart",
    "shape_type_name",
    "signed_area",
    "is_cw",
    "ring_type",
    "Header",
    "RecordHeader",
    "ShapeIndex",
    "GenericBBox",
    "Shape",
    "NullShape",
    "Point",
    "PointKind",
    "Polyline",
    "Polygon",
    "PolygonRing",
    "MultiPoint",
    "MultiPointM",
    "MultiPointZ",
    "PolygonM",
    "PolygonZ",
    "PolylineM",
    "PolylineZ",
    "MultiPatch",
    "Patch",
    "PointM",
    "PointZ",
    "SHAPE_CLASS_FROM_SHAPETYPE",
    "Point2D",
    "PointMT",
    "PointZT",
    "PointT",
    "PointsT",
    "BBox",
    "MBox",
    "ZBox",
    "WriteableBinStream",
    "ReadableBinStream",
    "WriteSeekableBinStream",
    "ReadSeekableBinStream",
    "BinaryFileT",
    "BinaryFileStreamT",
    "ShapefileException",
    "ShapefileIOError",
    "InvalidFileCode",
    "InvalidShapeType",
    "InvalidPatchType",
    "InvalidShapeRecordSize",
    "MixedShapeType",
    "MalformedShape",
    "MismatchShapeType",
    "ShapefileSizeError",
    "GeoJSON_Error",
    "Shapes",
    "ShapeRecord",
    "ShapeRecords",
]

logger = logging.getLogger(__name__)


def main() -> None:
    """
    Doctests are contained in the file 'README.md', and are tested using the built-in
    testing libraries.
    """
    failure_count = _test()
    sys.exit(failure_count)
