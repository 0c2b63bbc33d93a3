from __future__ import annotations

# Module settings
VERBOSE = True

# Constants for shape types
NULL = 0
POINT = 1
POLYLINE = 3
POLYGON = 5
MULTIPOINT = 8
POINTZ = 11
POLYLINEZ = 13
POLYGONZ = 15
MULTIPOINTZ = 18
POINTM = 21
POLYLINEM = 23
POLYGONM = 25
MULTIPOINTM = 28
MULTIPATCH = 31

SHAPETYPE_LOOKUP = {
    NULL: "NULL",
    POINT: "POINT",
    POLYLINE: "POLYLINE",
    POLYGON: "POLYGON",
    MULTIPOINT: "MULTIPOINT",
    POINTZ: "POINTZ",
    POLYLINEZ: "POLYLINEZ",
    POLYGONZ: "POLYGONZ",
    MULTIPOINTZ: "MULTIPOINTZ",
    POINTM: "POINTM",
    POLYLINEM: "POLYLINEM",
    POLYGONM: "POLYGONM",
    MULTIPOINTM: "MULTIPOINTM",
    MULTIPATCH: "MULTIPATCH",
}

SHAPETYPENUM_LOOKUP = {name: code for code, name in SHAPETYPE_LOOKUP.items()}

# Patch types of MultiPatch parts
TRIANGLE_STRIP = 0
TRIANGLE_FAN = 1
OUTER_RING = 2
INNER_RING = 3
FIRST_RING = 4
RING = 5

PATCHTYPE_LOOKUP = {
    TRIANGLE_STRIP: "TRIANGLE_STRIP",
    TRIANGLE_FAN: "TRIANGLE_FAN",
    OUTER_RING: "OUTER_RING",
    INNER_RING: "INNER_RING",
    FIRST_RING: "FIRST_RING",
    RING: "RING",
}

# Polygon ring classification
OUTER = "Outer"
INNER = "Inner"

NODATA = -10e38  # as per the ESRI shapefile format, only used for m-values.
# Measure values less than -10e37 (ie -1e38) are nodata values
NODATA_LIMIT = -1e38

# File layout
FILE_CODE = 9994
VERSION = 1000
HEADER_SIZE = 100  # bytes, for both the .shp and the .shx file
RECORD_HEADER_SIZE = 8
INDEX_RECORD_SIZE = 8
SHAPETYPE_CODE_SIZE = 4
# File lengths are stored as a signed 32 bit count of 16-bit words
MAX_FILE_LENGTH = 2**31 - 1
