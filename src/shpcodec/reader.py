from __future__ import annotations

import io
import logging
import os
from collections.abc import Iterator
from os import PathLike
from types import TracebackType
from typing import IO, Any, Optional

from . import constants
from .classes import ShapeRecord, ShapeRecords, Shapes
from .constants import HEADER_SIZE, NULL, RECORD_HEADER_SIZE, SHAPETYPE_LOOKUP
from .exceptions import MismatchShapeType, ShapefileException
from .geojson import GeoJSONFeatureCollectionWithBBox
from .header import Header
from .helpers import fsdecode_if_pathlike, is_no_data, read_exact
from .records import RecordHeader, ShapeIndex, read_index
from .shapes import Shape, read_shape
from .types import (
    AttributeReader,
    BBox,
    BinaryFileStreamT,
    BinaryFileT,
    RecordT,
    ZBox,
)

logger = logging.getLogger(__name__)


class Reader:
    """Reads the geometry of a shapefile, from the .shp file and, when
    there is one, its .shx index file.

    The "shapefile_path" argument in the constructor is the path to the
    shapefile, with or without an extension. File-like objects can be
    given instead with the shp and shx keyword args. The headers (and
    the index, if any) are read upon loading. Records are only read when
    required, so large shapefiles can be iterated without loading them
    whole.

    The attributes of each record are kept elsewhere: any sequence or
    iterable of records can be passed as dbf, and is matched to the
    shapes by position.
    """

    CONSTITUENT_FILE_EXTS = ["shp", "shx"]

    def __init__(
        self,
        shapefile_path: str | PathLike[Any] | None = None,
        *,
        shp: BinaryFileT | None = None,
        shx: BinaryFileT | None = None,
        dbf: AttributeReader | None = None,
    ):
        self.shp: IO[bytes] | None = None
        self.shx: IO[bytes] | None = None
        self.dbf = dbf
        self._files_to_close: list[BinaryFileStreamT] = []
        self._shapeIndex: list[ShapeIndex] | None = None
        self.shapeName = "Not specified"
        try:
            if shapefile_path:
                path = fsdecode_if_pathlike(shapefile_path)
                if not isinstance(path, str):
                    raise TypeError(
                        f"The shapefile path {path!r} must be of type str or path-like, not {type(path)}."
                    )
                self.load(path)
            else:
                self.shp = self.__seek_0_on_file_obj_wrap_or_open_from_name("shp", shp)
                self.shx = self.__seek_0_on_file_obj_wrap_or_open_from_name("shx", shx)
            if self.shp is None:
                raise ShapefileException(
                    "Shapefile Reader requires a shapefile or file-like object."
                )
            self.header = Header.read_from(self.shp)
            if self.shx is not None:
                self.shxHeader, self._shapeIndex = read_index(self.shx)
        except Exception:
            self.close()
            raise

    def load(self, shapefile: str) -> None:
        """Opens the .shp and .shx files of a shapefile path. Normally this
        method would be called by the constructor with the file name as
        an argument."""
        shapeName, __ext = os.path.splitext(shapefile)
        self.shapeName = shapeName
        self.shp = self._load_constituent_file(shapeName, "shp")
        self.shx = self._load_constituent_file(shapeName, "shx")
        if self.shp is None:
            raise ShapefileException(f"Unable to open {shapeName}.shp")

    def _try_get_open_constituent_file(
        self,
        shapefile_name: str,
        ext: str,
    ) -> IO[bytes] | None:
        """
        Attempts to open a .shp or .shx file, with both lower case and
        upper case file extensions, and return it. If it was not possible
        to open the file, None is returned.
        """
        try:
            return open(f"{shapefile_name}.{ext}", "rb")
        except OSError:
            try:
                return open(f"{shapefile_name}.{ext.upper()}", "rb")
            except OSError:
                return None

    def _load_constituent_file(
        self,
        shapefile_name: str,
        ext: str,
    ) -> IO[bytes] | None:
        """
        Attempts to open a .shp or .shx file, and if successful append it
        to self._files_to_close.
        """
        shp_or_shx_file = self._try_get_open_constituent_file(shapefile_name, ext)
        if shp_or_shx_file is not None:
            self._files_to_close.append(shp_or_shx_file)
        return shp_or_shx_file

    def __seek_0_on_file_obj_wrap_or_open_from_name(
        self,
        ext: str,
        file_: BinaryFileT | None,
    ) -> IO[bytes] | None:
        if file_ is None:
            return None

        if isinstance(file_, (str, PathLike)):
            baseName, __ = os.path.splitext(fsdecode_if_pathlike(file_))
            return self._load_constituent_file(baseName, ext)

        if hasattr(file_, "read"):
            # Copy if required
            try:
                file_.seek(0)
                return file_
            except (AttributeError, io.UnsupportedOperation):
                return io.BytesIO(file_.read())

        raise ShapefileException(
            f"Could not load shapefile constituent file from: {file_}"
        )

    def __str__(self) -> str:
        """
        Use some general info on the shapefile as __str__
        """
        info = ["shapefile Reader"]
        info.append(f"    {len(self)} shapes (type '{self.shapeTypeName}')")
        if self.shx is None:
            info.append("    no index file")
        return "\n".join(info)

    def __enter__(self) -> Reader:
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
        Exit phase of context manager, close opened files.
        """
        self.close()
        return None

    def __del__(self) -> None:
        self.close()

    def close(self) -> None:
        # Close any files that the reader opened (but not those given by user)
        for attribute in self._files_to_close:
            if hasattr(attribute, "close"):
                try:
                    attribute.close()
                except OSError:
                    pass
        self._files_to_close = []

    @property
    def shapeType(self) -> int:
        return self.header.shapeType

    @property
    def shapeTypeName(self) -> str:
        return SHAPETYPE_LOOKUP[self.shapeType]

    @property
    def bbox(self) -> BBox:
        """The shapefile's bounding box (lower left, upper right), as
        stored in its header."""
        return self.header.bbox.bounds

    @property
    def zbox(self) -> ZBox:
        return self.header.bbox.z_range

    @property
    def mbox(self) -> tuple[Optional[float], Optional[float]]:
        """The measure extremes of the header, None for nodata values."""
        lo, hi = self.header.bbox.min.m, self.header.bbox.max.m
        return (None if is_no_data(lo) else lo, None if is_no_data(hi) else hi)

    @property
    def shapeIndex(self) -> list[ShapeIndex]:
        """The offset and content length of each record. Read from the
        .shx file, or built by scanning the record headers of the .shp
        file the first time it is needed."""
        if self._shapeIndex is None:
            self._shapeIndex = self.__scanIndex()
        return self._shapeIndex

    def __scanIndex(self) -> list[ShapeIndex]:
        shp = self.__getFileObj(self.shp)
        checkpoint = shp.tell()
        index = []
        pos = HEADER_SIZE
        end = self.header.fileLengthBytes
        try:
            while pos < end:
                shp.seek(pos)
                # Unpack the shape header only
                recordHeader = RecordHeader.read_from(shp)
                index.append(ShapeIndex(pos // 2, recordHeader.contentLength))
                # Jump to next shape position
                pos += RECORD_HEADER_SIZE + recordHeader.contentBytes
        finally:
            # Return to previous file position
            shp.seek(checkpoint)
        return index

    def __len__(self) -> int:
        """Returns the number of shapes in the shapefile."""
        return len(self.shapeIndex)

    def __iter__(self) -> Iterator[ShapeRecord]:
        """Iterates through the shapes in the shapefile, along with their
        attributes if there are any."""
        if self.dbf is None:
            for shape in self.iterShapes():
                yield ShapeRecord(shape=shape)
        else:
            yield from self.iterShapeRecords()

    @property
    def __geo_interface__(self) -> GeoJSONFeatureCollectionWithBBox:
        shaperecords = ShapeRecords(self)
        fcollection = GeoJSONFeatureCollectionWithBBox(
            bbox=list(self.bbox),
            **shaperecords.__geo_interface__,
        )
        return fcollection

    def __getFileObj(self, f: IO[bytes] | None) -> IO[bytes]:
        """Checks to see if the requested shapefile file object is
        available. If not a ShapefileException is raised."""
        if f is None:
            raise ShapefileException(
                "Shapefile Reader requires a shapefile or file-like object."
            )
        return f

    def __restrictIndex(self, i: int) -> int:
        """Provides list-like handling of a record index with a clearer
        error message if the index is out of bounds."""
        numShapes = len(self)
        if not -numShapes <= i < numShapes:
            raise IndexError(
                f"Shape index: {i} out of range.  Number of shapes: {numShapes}"
            )
        if i < 0:
            i = range(numShapes)[i]
        return i

    def __shape(self, shapeClass: Any = None) -> Shape:
        """Reads the record at the file position, returning its shape."""
        f = self.__getFileObj(self.shp)
        recordHeader = RecordHeader.read_from(f)
        recLength_bytes = recordHeader.contentBytes
        # Read entire record into memory to avoid having to call
        # seek on the file afterwards
        b_io = io.BytesIO(read_exact(f, recLength_bytes))
        shape = read_shape(b_io, recLength_bytes, shapeClass)
        if shape.shapeType not in (NULL, self.shapeType) and constants.VERBOSE:
            logger.warning(
                "Record %d is of shape type %s but the shapefile is of type %s.",
                recordHeader.recordNumber,
                SHAPETYPE_LOOKUP[shape.shapeType],
                self.shapeTypeName,
            )
        return shape

    def __checkShapeClass(self, shapeClass: Any) -> None:
        if shapeClass is not None and self.shapeType not in (
            NULL,
            shapeClass.shapeType,
        ):
            raise MismatchShapeType(shapeClass.shapeType, self.shapeType)

    def shape(self, i: int = 0, shapeClass: Any = None) -> Shape:
        """Returns the shape of the i-th record. Negative indexes count
        from the end. The file position is left where it was, so this can
        be called while iterating."""
        shp = self.__getFileObj(self.shp)
        i = self.__restrictIndex(i)
        offset = self.shapeIndex[i].byteOffset
        checkpoint = shp.tell()
        try:
            # Seek to the offset and read the shape
            shp.seek(offset)
            return self.__shape(shapeClass)
        finally:
            shp.seek(checkpoint)

    def shapes(self, shapeClass: Any = None) -> Shapes:
        """Returns all shapes in a shapefile. If shapeClass is given, e.g.
        PolylineM, every shape must be of that class."""
        shapes = Shapes()
        shapes.extend(self.iterShapes(shapeClass))
        return shapes

    def iterShapes(self, shapeClass: Any = None) -> Iterator[Shape]:
        """Returns a generator of shapes in a shapefile. Useful
        for handling large shapefiles."""
        shp = self.__getFileObj(self.shp)
        self.__checkShapeClass(shapeClass)
        # The records end where the header says the file does
        shpLength = self.header.fileLengthBytes
        pos = HEADER_SIZE
        while pos < shpLength:
            shp.seek(pos)
            shape = self.__shape(shapeClass)
            pos = shp.tell()
            yield shape

    def __getAttributes(self) -> AttributeReader:
        if self.dbf is None:
            raise ShapefileException(
                "Shapefile Reader has no attribute records (no dbf given)."
            )
        return self.dbf

    def record(self, i: int = 0) -> RecordT:
        """Returns the attribute record of the i-th shape."""
        dbf = self.__getAttributes()
        if not hasattr(dbf, "__getitem__"):
            raise ShapefileException(
                "The attribute records can only be iterated, not indexed."
            )
        return dbf[i]

    def records(self) -> list[RecordT]:
        """Returns all attribute records."""
        return list(self.iterRecords())

    def iterRecords(self) -> Iterator[RecordT]:
        return iter(self.__getAttributes())

    def shapeRecord(self, i: int = 0, shapeClass: Any = None) -> ShapeRecord:
        """Returns a combination geometry and attribute record for the
        supplied record index."""
        record = self.record(i)
        return ShapeRecord(shape=self.shape(i, shapeClass), record=record)

    def shapeRecords(self, shapeClass: Any = None) -> ShapeRecords:
        """Returns a list of combination geometry/attribute records for
        all records in a shapefile."""
        return ShapeRecords(self.iterShapeRecords(shapeClass))

    def iterShapeRecords(self, shapeClass: Any = None) -> Iterator[ShapeRecord]:
        """Returns a generator of combination geometry/attribute records for
        all records in a shapefile. Shapes and records must come in equal
        numbers."""
        records = self.iterRecords()
        missing = object()
        for shape in self.iterShapes(shapeClass):
            record = next(records, missing)
            if record is missing:
                raise ShapefileException(
                    "There are more shapes than attribute records."
                )
            yield ShapeRecord(shape=shape, record=record)
        if next(records, missing) is not missing:
            raise ShapefileException("There are more attribute records than shapes.")


def read(shapefile_path: str | PathLike[Any]) -> Shapes:
    """Reads all the shapes of a shapefile."""
    with Reader(shapefile_path) as r:
        return r.shapes()


def read_as(shapefile_path: str | PathLike[Any], shapeClass: Any) -> Shapes:
    """Reads all the shapes of a shapefile, which must be of the shape type
    of shapeClass, e.g. PolygonZ."""
    with Reader(shapefile_path) as r:
        return r.shapes(shapeClass)
