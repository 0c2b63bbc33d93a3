"""
This module tests reading and writing shapefiles with shpcodec.
"""

# std lib imports
import io
import logging
import os
from pathlib import Path
from struct import pack_into, unpack_from

# third party imports
import pytest

# our imports
import shpcodec
from shpcodec.constants import NODATA, OUTER_RING, TRIANGLE_STRIP
from shpcodec.header import Header
from shpcodec.records import read_index


class RecordList(list):
    """A stand-in for an attribute table writer."""

    def write_record(self, record):
        self.append(record)


class ReadOnlyStream:
    """A stream that can be read but not seeked."""

    def __init__(self, data):
        self._b_io = io.BytesIO(data)

    def read(self, size=-1):
        return self._b_io.read(size)


def write_shapefile(shapes, **kwargs):
    shp, shx = io.BytesIO(), io.BytesIO()
    with shpcodec.Writer(shp=shp, shx=shx, **kwargs) as w:
        w.write_shapes(shapes)
    return shp, shx


def write_and_read(shapes):
    shp, shx = write_shapefile(shapes)
    with shpcodec.Reader(shp=shp, shx=shx) as r:
        return r.shapes()


SCENARIO_POINTS = [(1, 5), (5, 5), (5, 1), (3, 3), (1, 1), (3, 2), (2, 6)]

roundtrip_tests = [
    [shpcodec.NullShape(), shpcodec.NullShape()],
    [shpcodec.Point(1, 2), shpcodec.Point(-3.5, 4.25)],
    [shpcodec.PointM(1, 2, 3), shpcodec.PointM(1, 2)],
    [shpcodec.PointZ(1, 2, 3, 4), shpcodec.PointZ(1, 2, 3)],
    [shpcodec.Polyline(SCENARIO_POINTS), shpcodec.Polyline([(0, 0), (1, 1)], [(2, 2), (3, 3)])],
    [shpcodec.PolylineM([(0, 0, 1), (1, 1, None)]), shpcodec.PolylineM([(2, 2), (3, 3)])],
    [shpcodec.PolylineZ([(0, 0, 1, 2), (1, 1, 3)], [(5, 5, -1), (6, 6, -2, 7)])],
    [
        shpcodec.Polygon(
            [(0, 0), (0, 10), (10, 10), (10, 0)], [(2, 2), (4, 2), (4, 4), (2, 4)]
        ),
        shpcodec.Polygon(),
    ],
    [shpcodec.PolygonM([(0, 0, 1), (0, 1, 2), (1, 1, 3)])],
    [shpcodec.PolygonZ([(0, 0, 1), (0, 1, 2), (1, 1, 3)], m=[None, 4, 5])],
    [shpcodec.MultiPoint((0, 0), (1, 1)), shpcodec.NullShape(), shpcodec.MultiPoint()],
    [shpcodec.MultiPointM((0, 0, 5), (1, 1))],
    [shpcodec.MultiPointZ((0, 0, 5), (1, 1, 6, 7))],
    [
        shpcodec.MultiPatch(
            shpcodec.Patch(TRIANGLE_STRIP, [(0, 0, 0), (0, 1, 0), (1, 0, 1)]),
            shpcodec.Patch(OUTER_RING, [(0, 0, 2), (0, 1, 2), (1, 1, 2)]),
        )
    ],
]


@pytest.mark.parametrize("shapes", roundtrip_tests)
def test_roundtrip(shapes):
    """
    Assert that the shapes read back from a written
    shapefile are equal to the shapes written.
    """
    assert write_and_read(shapes) == shapes


def test_roundtrip_polygon_rings():
    poly = roundtrip_tests[7][0]
    (read_poly, __empty) = write_and_read(roundtrip_tests[7])
    assert read_poly.ringTypes == poly.ringTypes == [shpcodec.OUTER, shpcodec.INNER]


def test_roundtrip_polyline_scenario():
    """
    Assert that a single part polyline keeps
    its bounding box and parts through a file.
    """
    (line,) = write_and_read([shpcodec.Polyline(points=SCENARIO_POINTS)])
    assert line.bbox.bounds == (1, 1, 5, 6)
    assert line.parts == [0]
    assert line.points == SCENARIO_POINTS


def test_file_length():
    """
    Assert that the file length of the header
    is the length of the written .shp file.
    """
    shp, shx = write_shapefile(
        [shpcodec.Polyline(SCENARIO_POINTS), shpcodec.NullShape()]
    )
    data = shp.getvalue()
    shp.seek(0)
    header = Header.read_from(shp)
    assert header.fileLengthBytes == len(data)
    # Header, 2 record headers, a polyline with a type code and a null shape
    assert len(data) == 100 + 8 + (4 + 156) + 8 + 4


def test_shx_structure():
    """
    Assert that the .shx file holds a header and
    the offset and length of each record.
    """
    shapes = [shpcodec.Point(0, 0), shpcodec.NullShape(), shpcodec.Point(1, 1)]
    shp, shx = write_shapefile(shapes)
    data = shx.getvalue()
    assert len(data) == 100 + 8 * 3
    shx.seek(0)
    header, index = read_index(shx)
    assert header.fileLength == 50 + 4 * 3
    assert header.shapeType == shpcodec.POINT
    assert index == [
        shpcodec.ShapeIndex(50, 10),
        shpcodec.ShapeIndex(64, 2),
        shpcodec.ShapeIndex(70, 10),
    ]
    # The index points at the record headers of the .shp file
    for recordNumber, entry in enumerate(index, 1):
        assert unpack_from(">2i", shp.getvalue(), entry.byteOffset) == (
            recordNumber,
            entry.contentLength,
        )


def test_header_aggregate():
    """
    Assert that the header's bounding box spans all shapes,
    with 0s for dimensions without values.
    """
    shp, shx = write_shapefile(
        [
            shpcodec.PolylineZ([(1, 5, 3), (5, 5, -2)]),
            shpcodec.NullShape(),
            shpcodec.PolylineZ([(0, 1, 8, 4), (2, 9, 0, 6)]),
        ]
    )
    with shpcodec.Reader(shp=shp, shx=shx) as r:
        assert r.bbox == (0, 1, 5, 9)
        assert r.zbox == (-2, 8)
        assert r.mbox == (4, 6)

    shp, shx = write_shapefile([shpcodec.PolylineM([(0, 0), (1, 1)])])
    with shpcodec.Reader(shp=shp, shx=shx) as r:
        assert r.bbox == (0, 0, 1, 1)
        assert r.zbox == (0, 0)
        assert r.mbox == (0, 0)


def test_header_roundtrip():
    bbox = shpcodec.GenericBBox(
        shpcodec.PointZ(0, 1, 2, NODATA), shpcodec.PointZ(3, 4, 5, NODATA)
    )
    header = Header(shpcodec.POLYGONZ, 1234, bbox)
    data = header.to_bytes()
    assert len(data) == 100
    assert Header.read_from(io.BytesIO(data)) == header


def test_invalid_file_code():
    """
    Assert that a stream not starting with the file code
    raises InvalidFileCode before anything else is read.
    """
    stream = io.BytesIO(b"\x00\x00\x00\x2a")
    with pytest.raises(shpcodec.InvalidFileCode) as excinfo:
        Header.read_from(stream)
    assert excinfo.value.code == 42
    assert stream.tell() == 4

    with pytest.raises(shpcodec.InvalidFileCode):
        shpcodec.Reader(shp=io.BytesIO(b"\x00\x00\x00\x2a" + b"\x00" * 96))


def test_invalid_header_shape_type():
    data = bytearray(Header(shpcodec.POINT).to_bytes())
    pack_into("<i", data, 32, 7)
    with pytest.raises(shpcodec.InvalidShapeType):
        shpcodec.Reader(shp=io.BytesIO(bytes(data)))


def test_empty_shapefile():
    """
    Assert that a shapefile without shapes
    has a null shape type and an all zero bounding box.
    """
    shp, shx = write_shapefile([])
    assert len(shp.getvalue()) == 100
    with shpcodec.Reader(shp=shp, shx=shx) as r:
        assert len(r) == 0
        assert r.shapeType == shpcodec.NULL
        assert r.bbox == (0, 0, 0, 0)
        assert r.shapes() == []


def test_reader_mismatch_shape_type():
    """
    Assert that reading the shapes of a POINT shapefile
    as PointM raises MismatchShapeType.
    """
    shp, shx = write_shapefile([shpcodec.Point(0, 0)])
    with shpcodec.Reader(shp=shp, shx=shx) as r:
        with pytest.raises(shpcodec.MismatchShapeType) as excinfo:
            r.shapes(shpcodec.PointM)
        assert excinfo.value.requested == shpcodec.POINTM
        assert excinfo.value.actual == shpcodec.POINT
        with pytest.raises(shpcodec.MismatchShapeType):
            r.shape(0, shpcodec.PointM)
        assert r.shapes(shpcodec.Point) == [shpcodec.Point(0, 0)]


def test_reader_mixed_shape_types_logged(caplog):
    """
    Assert that a record of another shape type than
    the shapefile's is logged and still read.
    """
    shp, shx = write_shapefile([shpcodec.PointM(1, 2, 3)])
    data = bytearray(shp.getvalue())
    # Declare the shapefile as POINT
    pack_into("<i", data, 32, shpcodec.POINT)
    with caplog.at_level(logging.WARNING, logger="shpcodec.reader"):
        with shpcodec.Reader(shp=io.BytesIO(bytes(data))) as r:
            shapes = r.shapes()
    assert shapes == [shpcodec.PointM(1, 2, 3)]
    assert "POINTM" in caplog.text


def test_reader_mixed_shape_types_not_verbose(caplog, monkeypatch):
    monkeypatch.setattr(shpcodec.constants, "VERBOSE", False)
    shp, shx = write_shapefile([shpcodec.PointM(1, 2, 3)])
    data = bytearray(shp.getvalue())
    pack_into("<i", data, 32, shpcodec.POINT)
    with caplog.at_level(logging.WARNING, logger="shpcodec.reader"):
        with shpcodec.Reader(shp=io.BytesIO(bytes(data))) as r:
            r.shapes()
    assert caplog.text == ""


@pytest.mark.parametrize("with_shx", [True, False])
def test_random_access(with_shx):
    """
    Assert that shapes read by index are the shapes
    read by iterating, with or without an index file.
    """
    shapes = [
        shpcodec.Polygon([(i, 0), (i, 1), (i + 1, 1), (i + 1, 0)]) for i in range(5)
    ]
    shapes.insert(2, shpcodec.NullShape())
    shp, shx = write_shapefile(shapes)
    with shpcodec.Reader(shp=shp, shx=shx if with_shx else None) as r:
        assert len(r) == 6
        iterated = list(r.iterShapes())
        assert [r.shape(i) for i in range(len(r))] == iterated == shapes
        assert r.shape(-1) == shapes[-1]
        assert [entry.offset for entry in r.shapeIndex][0] == 50
        with pytest.raises(IndexError):
            r.shape(6)
        with pytest.raises(IndexError):
            r.shape(-7)


def test_random_access_while_iterating():
    """
    Assert that reading a shape by index does not
    move the position of an ongoing iteration.
    """
    shapes = [shpcodec.Point(i, i) for i in range(4)]
    shp, shx = write_shapefile(shapes)
    with shpcodec.Reader(shp=shp, shx=shx) as r:
        it = r.iterShapes()
        assert next(it) == shapes[0]
        assert r.shape(3) == shapes[3]
        assert next(it) == shapes[1]
        assert list(it) == shapes[2:]


def test_reader_truncated_file():
    """
    Assert that a file ending inside a record or inside
    its header raises ShapefileIOError.
    """
    shp, shx = write_shapefile([shpcodec.Point(0, 0), shpcodec.Point(1, 1)])
    data = shp.getvalue()
    with shpcodec.Reader(shp=io.BytesIO(data[:-10])) as r:
        shapes = r.iterShapes()
        assert next(shapes) == shpcodec.Point(0, 0)
        with pytest.raises(shpcodec.ShapefileIOError):
            next(shapes)

    with pytest.raises(shpcodec.ShapefileIOError):
        shpcodec.Reader(shp=io.BytesIO(data[:50]))


@pytest.mark.parametrize("contentLength", [-4, -100, 0, 1])
def test_reader_invalid_record_length(contentLength):
    """
    Assert that a record header whose content length
    cannot hold a shape type code raises InvalidShapeRecordSize,
    both when scanning for the index and when iterating.
    """
    shp, shx = write_shapefile([shpcodec.Point(0, 0), shpcodec.Point(1, 1)])
    data = bytearray(shp.getvalue())
    # Content length of the first record
    pack_into(">i", data, 104, contentLength)
    with shpcodec.Reader(shp=io.BytesIO(bytes(data))) as r:
        with pytest.raises(shpcodec.InvalidShapeRecordSize):
            len(r)
        with pytest.raises(shpcodec.InvalidShapeRecordSize):
            r.shapes()


def test_reader_junk_after_records(tmpdir):
    """
    Assert that the reader strictly goes by the
    file length of the header and ignores trailing bytes.
    """
    basename = tmpdir.join("corrupt_too_long").strpath
    with shpcodec.Writer(basename) as w:
        for _ in range(10):
            w.line([[(1, 1), (1, 2), (2, 2)]])
        # add junk byte data to end of the shp file
        w.shp.write(b"12345")

    with shpcodec.Reader(basename) as sf:
        assert len(sf) == 10
        assert len(sf.shapes()) == 10


def test_reader_non_seekable_stream():
    """
    Assert that a stream which cannot be seeked
    is copied into memory and read.
    """
    shapes = [shpcodec.MultiPoint((0, 0), (1, 1)), shpcodec.MultiPoint((2, 2))]
    shp, shx = write_shapefile(shapes)
    with shpcodec.Reader(shp=ReadOnlyStream(shp.getvalue())) as r:
        assert r.shapes() == shapes
        assert r.shape(1) == shapes[1]


def test_reader_requires_shp():
    with pytest.raises(shpcodec.ShapefileException):
        shpcodec.Reader()


def test_write_path(tmpdir):
    """
    Assert that a Writer given a path creates the
    .shp and .shx files, and closes them on exit.
    """
    filename = tmpdir.join("test").strpath
    with shpcodec.Writer(filename) as w:
        w.point(1, 2)
        w.null()

    assert w.shp.closed is True
    assert w.shx.closed is True
    assert os.path.exists(filename + ".shp")
    assert os.path.exists(filename + ".shx")

    with shpcodec.Reader(filename + ".shp") as r:
        assert len(r) == 2
        assert r.shape(0) == shpcodec.Point(1, 2)
        assert r.shape(1).shapeType == shpcodec.NULL
    assert r.shp.closed is True
    assert r.shx.closed is True


def test_write_pathlike(tmpdir):
    target = Path(tmpdir.strpath) / "nested" / "test"
    with shpcodec.Writer(target) as w:
        w.pointz(1, 2, 3)

    assert shpcodec.read(target) == [shpcodec.PointZ(1, 2, 3)]


def test_reader_upper_case_extensions(tmpdir):
    filename = tmpdir.join("upper").strpath
    with shpcodec.Writer(filename) as w:
        w.multipoint([(1, 2), (3, 4)])
    os.rename(filename + ".shp", filename + ".SHP")
    os.rename(filename + ".shx", filename + ".SHX")

    with shpcodec.Reader(filename) as r:
        assert r.shx is not None
        assert r.shape(0).points == [(1, 2), (3, 4)]


def test_reader_shp_only(tmpdir):
    filename = tmpdir.join("test").strpath
    with shpcodec.Writer(filename) as w:
        w.poly([[(0, 0), (0, 1), (1, 1), (0, 0)]])
    os.remove(filename + ".shx")

    with shpcodec.Reader(filename) as r:
        assert r.shx is None
        assert len(r) == 1
        assert r.shape(0).ringTypes == [shpcodec.OUTER]


def test_reader_close_filelike(tmpdir):
    """
    Assert that closing a Reader leaves the
    files it was given open.
    """
    filename = tmpdir.join("test").strpath
    with shpcodec.Writer(filename) as w:
        w.null()
    shp = open(filename + ".shp", mode="rb")
    shx = open(filename + ".shx", mode="rb")
    with shpcodec.Reader(shp=shp, shx=shx) as r:
        assert len(r) == 1
    assert shp.closed is False
    assert shx.closed is False
    shp.close()
    shx.close()


def test_write_close_filelike(tmpdir):
    """
    Assert that the Writer close() method
    leaves the shp and shx files open
    on exit, if given filelike objects.
    """
    shp = open(tmpdir.join("test.shp").strpath, mode="wb+")
    shx = open(tmpdir.join("test.shx").strpath, mode="wb+")
    w = shpcodec.Writer(shp=shp, shx=shx)
    w.null()
    w.close()

    assert w.shp.closed is False
    assert w.shx.closed is False

    # test that opens and reads correctly after
    with shpcodec.Reader(shp=shp, shx=shx) as reader:
        assert len(reader) == 1
        assert reader.shape(0).shapeType == shpcodec.NULL
    shp.close()
    shx.close()


def test_read_as(tmpdir):
    filename = tmpdir.join("lines").strpath
    with shpcodec.Writer(filename) as w:
        w.linem([[(0, 0, 1), (1, 1, 2)]])
    (line,) = shpcodec.read_as(filename, shpcodec.PolylineM)
    assert line.m == [1, 2]
    with pytest.raises(shpcodec.MismatchShapeType):
        shpcodec.read_as(filename, shpcodec.PolylineZ)


def test_writer_mixed_shape_types():
    """
    Assert that a shape of another type than the shapefile's
    raises MixedShapeType, while null shapes fit any shapefile.
    """
    shp = io.BytesIO()
    w = shpcodec.Writer(shp=shp, shapeType=shpcodec.POINT)
    w.null()
    w.point(0, 0)
    with pytest.raises(shpcodec.MixedShapeType) as excinfo:
        w.pointm(0, 0, 1)
    assert excinfo.value.expected == shpcodec.POINT
    assert excinfo.value.actual == shpcodec.POINTM
    assert len(w) == 2
    w.close()


def test_writer_batch_checked_before_writing():
    """
    Assert that a heterogeneous batch of shapes
    is rejected before any of them is written.
    """
    shp = io.BytesIO()
    w = shpcodec.Writer(shp=shp)
    with pytest.raises(shpcodec.MixedShapeType):
        w.write_shapes([shpcodec.Point(0, 0), shpcodec.Polyline([(0, 0), (1, 1)])])
    assert shp.getvalue() == b""
    assert w.shpNum == 0
    w.close()


def test_writer_shape_type_by_name():
    w = shpcodec.Writer(shp=io.BytesIO(), shapeType="polylinez")
    assert w.shapeType == shpcodec.POLYLINEZ
    with pytest.raises(shpcodec.InvalidShapeType):
        shpcodec.Writer(shp=io.BytesIO(), shapeType="CIRCLE")
    w.close()


def test_writer_requires_target():
    with pytest.raises(TypeError):
        shpcodec.Writer()


def test_writer_size_limit(monkeypatch):
    """
    Assert that a shape that would take the file past
    the maximum file length is rejected before any
    of its bytes are written.
    """
    # The header, and one point record of 14 words
    monkeypatch.setattr(shpcodec.constants, "MAX_FILE_LENGTH", 50 + 14)
    shp = io.BytesIO()
    w = shpcodec.Writer(shp=shp)
    w.point(0, 0)
    written = shp.getvalue()
    with pytest.raises(shpcodec.ShapefileSizeError):
        w.point(1, 1)
    assert shp.getvalue() == written
    assert w.shpNum == 1

    shp = io.BytesIO()
    w = shpcodec.Writer(shp=shp)
    with pytest.raises(shpcodec.ShapefileSizeError):
        w.write_shapes([shpcodec.Point(0, 0), shpcodec.Point(1, 1)])
    assert shp.getvalue() == b""
    assert w.shpNum == 0


def test_writer_rejected_first_shape_leaves_file_empty(tmpdir, monkeypatch):
    """
    Assert that a file whose first shape is rejected
    is left without a single byte.
    """
    monkeypatch.setattr(shpcodec.constants, "MAX_FILE_LENGTH", 50 + 10)
    basename = tmpdir.join("too_big").strpath
    w = shpcodec.Writer(basename)
    with pytest.raises(shpcodec.ShapefileSizeError):
        w.point(0, 0)
    w.shp.flush()
    assert os.path.getsize(basename + ".shp") == 0
    w.close()


def test_writer_malformed_shape():
    """
    Assert that a shape which cannot be encoded
    leaves the file as it was.
    """
    shp = io.BytesIO()
    w = shpcodec.Writer(shp=shp)
    with pytest.raises(shpcodec.MalformedShape):
        w.shape(shpcodec.Point("a", 1))
    assert shp.getvalue() == b""
    assert w.shpNum == 0
    w.close()


def test_writer_running_boxes():
    w = shpcodec.Writer(shp=io.BytesIO())
    assert w.bbox() is None
    w.pointm(1, 2)
    assert w.bbox() == (1, 2, 1, 2)
    assert w.zbox() is None
    assert w.mbox() is None
    w.pointm(3, 0, 7)
    assert w.bbox() == (1, 0, 3, 2)
    assert w.mbox() == (7, 7)
    w.close()


def test_attribute_records():
    """
    Assert that attribute records are passed to the
    attribute writer, and matched to shapes by position
    when reading.
    """
    shp, shx, dbf = io.BytesIO(), io.BytesIO(), RecordList()
    with shpcodec.Writer(shp=shp, shx=shx, dbf=dbf) as w:
        w.write_shape_and_record(shpcodec.Point(0, 0), {"name": "origin"})
        w.write_shapes_and_records(
            [(shpcodec.Point(1, 1), {"name": "one"}), (shpcodec.NullShape(), {})]
        )
    assert dbf == [{"name": "origin"}, {"name": "one"}, {}]

    with shpcodec.Reader(shp=shp, shx=shx, dbf=dbf) as r:
        assert r.record(1) == {"name": "one"}
        assert r.records() == dbf
        shapeRec = r.shapeRecord(0)
        assert shapeRec.shape == shpcodec.Point(0, 0)
        assert shapeRec.record == {"name": "origin"}
        shapeRecs = r.shapeRecords()
        assert [sr.record for sr in shapeRecs] == dbf
        features = r.__geo_interface__["features"]
        assert features[0]["properties"] == {"name": "origin"}
        assert features[2]["geometry"] is None


def test_attribute_records_unbalanced():
    """
    Assert that closing a Writer with more shapes
    than records raises a ShapefileException.
    """
    shp, dbf = io.BytesIO(), RecordList()
    w = shpcodec.Writer(shp=shp, dbf=dbf)
    w.point(0, 0)
    with pytest.raises(shpcodec.ShapefileException):
        w.close()
    w.record({"name": "origin"})
    w.close()

    with shpcodec.Reader(shp=shp, dbf=[]) as r:
        with pytest.raises(shpcodec.ShapefileException):
            r.shapeRecords()


def test_attributes_required():
    shp, shx = write_shapefile([shpcodec.Point(0, 0)])
    with shpcodec.Reader(shp=shp, shx=shx) as r:
        with pytest.raises(shpcodec.ShapefileException):
            r.records()
        with pytest.raises(shpcodec.ShapefileException):
            r.shapeRecord(0)
        assert [sr.shape for sr in r] == [shpcodec.Point(0, 0)]
    with shpcodec.Reader(shp=shp, shx=shx, dbf=iter([{"a": 1}])) as r:
        with pytest.raises(shpcodec.ShapefileException):
            r.record(0)
    with pytest.raises(shpcodec.ShapefileException):
        shpcodec.Writer(shp=io.BytesIO()).record({"a": 1})


def test_reader_geo_interface():
    shp, shx = write_shapefile(
        [shpcodec.Polyline([(0, 0), (1, 1)]), shpcodec.Polyline([(2, 2), (3, 5)])]
    )
    with shpcodec.Reader(shp=shp, shx=shx) as r:
        geoj = r.__geo_interface__
    assert geoj["type"] == "FeatureCollection"
    assert geoj["bbox"] == [0, 0, 3, 5]
    assert len(geoj["features"]) == 2
    assert geoj["features"][1]["geometry"] == {
        "type": "LineString",
        "coordinates": [(2, 2), (3, 5)],
    }


def test_reader_str():
    shp, shx = write_shapefile([shpcodec.Point(0, 0)])
    with shpcodec.Reader(shp=shp, shx=shx) as r:
        assert "1 shapes (type 'POINT')" in str(r)
