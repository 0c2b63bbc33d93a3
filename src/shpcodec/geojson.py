"""Read-only GeoJSON views of shapes, through the __geo_interface__
protocol. Positions are (x, y), or (x, y, z) for shapes with z values.
GeoJSON has no place for measures so they are left out.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, TypedDict, Union

from . import constants
from .constants import OUTER

logger = logging.getLogger(__name__)

Position = Union[tuple[float, float], tuple[float, float, float]]
Positions = list[Position]


class GeoJSONPoint(TypedDict):
    type: Literal["Point"]
    coordinates: Position


class GeoJSONMultiPoint(TypedDict):
    type: Literal["MultiPoint"]
    coordinates: Positions


class GeoJSONLineString(TypedDict):
    type: Literal["LineString"]
    # "Two or more positions" not enforced by type checker
    # https://datatracker.ietf.org/doc/html/rfc7946#section-3.1.4
    coordinates: Positions


class GeoJSONMultiLineString(TypedDict):
    type: Literal["MultiLineString"]
    coordinates: list[Positions]


class GeoJSONPolygon(TypedDict):
    type: Literal["Polygon"]
    # Other requirements for Polygon not enforced by type checker
    # https://datatracker.ietf.org/doc/html/rfc7946#section-3.1.6
    coordinates: list[Positions]


class GeoJSONMultiPolygon(TypedDict):
    type: Literal["MultiPolygon"]
    coordinates: list[list[Positions]]


GeoJSONHomogeneousGeometryObject = Union[
    GeoJSONPoint,
    GeoJSONMultiPoint,
    GeoJSONLineString,
    GeoJSONMultiLineString,
    GeoJSONPolygon,
    GeoJSONMultiPolygon,
]


class GeoJSONGeometryCollection(TypedDict):
    type: Literal["GeometryCollection"]
    geometries: list[GeoJSONHomogeneousGeometryObject]


class GeoJSONFeature(TypedDict):
    type: Literal["Feature"]
    properties: (
        dict[str, Any] | None
    )  # RFC7946 3.2 "(any JSON object or a JSON null value)"
    geometry: GeoJSONHomogeneousGeometryObject | None


class GeoJSONFeatureCollection(TypedDict):
    type: Literal["FeatureCollection"]
    features: list[GeoJSONFeature]


class GeoJSONFeatureCollectionWithBBox(GeoJSONFeatureCollection):
    bbox: list[float]


def _position(point: Any) -> Position:
    if point.kind.has_z:
        return (point.x, point.y, point.z)
    return (point.x, point.y)


def _positions(points: Any) -> Positions:
    return [_position(point) for point in points]


def point_geo_interface(point: Any) -> GeoJSONPoint:
    return {"type": "Point", "coordinates": _position(point)}


def multipoint_geo_interface(shape: Any) -> GeoJSONMultiPoint:
    # An empty multipoint gives empty coordinates, which GeoJSON
    # allows to be read as a null geometry
    return {"type": "MultiPoint", "coordinates": _positions(shape.points)}


def polyline_geo_interface(
    shape: Any,
) -> GeoJSONLineString | GeoJSONMultiLineString:
    lines = shape.lines
    if len(lines) == 0:
        return {"type": "LineString", "coordinates": []}

    if len(lines) == 1:
        return {"type": "LineString", "coordinates": _positions(lines[0])}

    return {
        "type": "MultiLineString",
        "coordinates": [_positions(line) for line in lines],
    }


def polygon_geo_interface(shape: Any) -> GeoJSONPolygon | GeoJSONMultiPolygon:
    """Each exterior ring starts a polygon and the holes that follow it
    belong to it, the order in which shapefiles store them."""
    rings = shape.rings
    if len(rings) == 0:
        return {"type": "Polygon", "coordinates": []}

    polys: list[list[Positions]] = []
    orphans = 0
    for ring in rings:
        if ring.ringType == OUTER:
            polys.append([_positions(ring.points)])
        elif polys:
            polys[-1].append(_positions(ring.points))
        else:
            orphans += 1
            polys.append([_positions(ring.points)])

    if orphans and constants.VERBOSE:
        logger.warning(
            "Shapefile format requires that polygon holes follow an exterior "
            "ring, but %d hole(s) came before any exterior ring. They were "
            "encoded as GeoJSON exterior rings instead of holes.",
            orphans,
        )

    if len(polys) == 1:
        return {"type": "Polygon", "coordinates": polys[0]}

    return {"type": "MultiPolygon", "coordinates": polys}
