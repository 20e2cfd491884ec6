"""Common geometry manipulation utilities."""

from typing import Iterable, List
import numpy as np
from shapely.geometry import Polygon, MultiPolygon, GeometryCollection
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union


def to_multipolygon(geometry: BaseGeometry) -> MultiPolygon:
    """Coerce a polygonal geometry to a MultiPolygon.

    Polygons are wrapped, MultiPolygons are returned unchanged and the
    polygonal members of a GeometryCollection are collected. Anything else
    yields an empty MultiPolygon.

    Examples:
        >>> poly = Polygon([(0, 0), (1, 0), (1, 1), (0, 1)])
        >>> to_multipolygon(poly).geom_type
        'MultiPolygon'
    """
    if isinstance(geometry, MultiPolygon):
        return geometry
    if isinstance(geometry, Polygon):
        if geometry.is_empty:
            return MultiPolygon()
        return MultiPolygon([geometry])
    if isinstance(geometry, GeometryCollection):
        polygons: List[Polygon] = []
        for part in geometry.geoms:
            if isinstance(part, Polygon) and not part.is_empty:
                polygons.append(part)
            elif isinstance(part, MultiPolygon):
                polygons.extend(part.geoms)
        return MultiPolygon(polygons)
    return MultiPolygon()


def polygon_rings(polygon: Polygon) -> List[np.ndarray]:
    """Return the 2D coordinate arrays of a polygon, exterior first."""
    rings = [np.asarray(polygon.exterior.coords, dtype=float)[:, :2]]
    rings.extend(
        np.asarray(interior.coords, dtype=float)[:, :2]
        for interior in polygon.interiors
    )
    return rings


def polygonal_area(geometry: BaseGeometry) -> float:
    """Sum the area of every part of a (possibly multi-part) geometry.

    Intersections frequently come back as GeometryCollections mixing
    polygons with shared lines or points; only the polygons contribute.
    """
    if geometry.is_empty:
        return 0.0
    if hasattr(geometry, 'geoms'):
        return sum(polygonal_area(part) for part in geometry.geoms)
    return geometry.area


def dissolve(geometries: Iterable[BaseGeometry]) -> MultiPolygon:
    """Union polygons into a single MultiPolygon, removing shared borders."""
    return to_multipolygon(unary_union(list(geometries)))


__all__ = [
    'to_multipolygon',
    'polygon_rings',
    'polygonal_area',
    'dissolve',
]
