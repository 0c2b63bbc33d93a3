from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from .constants import NULL
from .geojson import (
    GeoJSONFeature,
    GeoJSONFeatureCollection,
    GeoJSONGeometryCollection,
)
from .shapes import Shape
from .types import RecordT


def _properties(record: RecordT) -> dict[str, Any] | None:
    """Attribute records are opaque. Those that can be read as a dict
    become the Feature's properties."""
    if record is None:
        return None
    if hasattr(record, "as_dict"):
        return dict(record.as_dict())
    if isinstance(record, Mapping):
        return dict(record)
    return None


class ShapeRecord:
    """A ShapeRecord object containing a shape along with its attributes.
    Provides the GeoJSON __geo_interface__ to return a Feature dictionary."""

    def __init__(self, shape: Shape | None = None, record: RecordT = None):
        self.shape = shape
        self.record = record

    @property
    def __geo_interface__(self) -> GeoJSONFeature:
        return {
            "type": "Feature",
            "properties": _properties(self.record),
            "geometry": None
            if self.shape is None or self.shape.shapeType == NULL
            else self.shape.__geo_interface__,
        }

    def __repr__(self) -> str:
        return f"ShapeRecord(shape={self.shape!r}, record={self.record!r})"


class Shapes(list[Optional[Shape]]):
    """A class to hold a list of Shape objects. Subclasses list to reuse all
    the optimizations of the builtin list.
    In addition to the list interface, this also provides the GeoJSON __geo_interface__
    to return a GeometryCollection dictionary."""

    def __repr__(self) -> str:
        return f"Shapes: {list(self)}"

    @property
    def __geo_interface__(self) -> GeoJSONGeometryCollection:
        # Null shapes have no geometry to contribute
        return GeoJSONGeometryCollection(
            type="GeometryCollection",
            geometries=[
                shape.__geo_interface__
                for shape in self
                if shape is not None and shape.shapeType != NULL
            ],
        )


class ShapeRecords(list[ShapeRecord]):
    """A class to hold a list of ShapeRecord objects. Subclasses list to reuse
    all the optimizations of the builtin list.
    In addition to the list interface, this also provides the GeoJSON __geo_interface__
    to return a FeatureCollection dictionary."""

    def __repr__(self) -> str:
        return f"ShapeRecords: {list(self)}"

    @property
    def __geo_interface__(self) -> GeoJSONFeatureCollection:
        return GeoJSONFeatureCollection(
            type="FeatureCollection",
            features=[shaperec.__geo_interface__ for shaperec in self],
        )
