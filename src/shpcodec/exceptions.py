from __future__ import annotations

from .constants import PATCHTYPE_LOOKUP, SHAPETYPE_LOOKUP


def _name(shapeType: int) -> str:
    return SHAPETYPE_LOOKUP.get(shapeType, str(shapeType))


class GeoJSON_Error(Exception):
    pass


class ShapefileException(Exception):
    """An exception to handle shapefile specific problems."""


class ShapefileIOError(ShapefileException):
    """The stream ended before a header or record was complete."""


class InvalidFileCode(ShapefileException):
    def __init__(self, code: int):
        self.code = code
        super().__init__(
            f"Invalid file code {code} (expected 9994). Is this a shapefile?"
        )


class InvalidShapeType(ShapefileException):
    def __init__(self, code: int):
        self.code = code
        super().__init__(f"Unknown shape type code: {code}")


class InvalidPatchType(ShapefileException):
    def __init__(self, code: int):
        self.code = code
        super().__init__(
            f"Unknown patch type code: {code}. "
            f"Valid codes are {sorted(PATCHTYPE_LOOKUP)}"
        )


class InvalidShapeRecordSize(ShapefileException):
    def __init__(self, size: int, expected: tuple[int, ...]):
        self.size = size
        self.expected = expected
        super().__init__(
            f"The record content is {size} bytes, "
            f"which matches none of the expected sizes {expected}"
        )


class MixedShapeType(ShapefileException):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"The shape's type ({_name(actual)}) must match "
            f"the type of the shapefile ({_name(expected)})."
        )


class MalformedShape(ShapefileException):
    """A shape whose points, parts or per point values disagree."""


class MismatchShapeType(ShapefileException):
    def __init__(self, requested: int, actual: int):
        self.requested = requested
        self.actual = actual
        super().__init__(
            f"Requested to read shapes of type {_name(requested)}, "
            f"but the shape is of type {_name(actual)}"
        )


class ShapefileSizeError(ShapefileException):
    pass
