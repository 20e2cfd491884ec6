"""Binary geometry codec for region polygons.

Geometries travel to and from the store as (E)WKB. Decoding accepts WKB,
EWKB or their hex forms and always yields a MultiPolygon; encoding writes
2D EWKB tagged with the store's SRID.
"""

from typing import Optional, Union

import shapely
from shapely import wkb
from shapely.errors import ShapelyError
from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry

from .core.errors import InvalidGeometryError
from .core.geometry_utils import to_multipolygon

DEFAULT_SRID = 4283  # GDA94, used by the ABS boundary releases


def decode_multipolygon(
    data: Union[bytes, bytearray, memoryview, str],
    code: Optional[str] = None,
) -> MultiPolygon:
    """Decode a WKB/EWKB polygon or multipolygon.

    Args:
        data: Binary geometry, or its hex string
        code: Region code used in error messages

    Returns:
        MultiPolygon (Polygons are promoted)

    Raises:
        InvalidGeometryError: If the data cannot be decoded or is not polygonal
    """
    if isinstance(data, memoryview):
        data = data.tobytes()
    elif isinstance(data, bytearray):
        data = bytes(data)

    try:
        geometry = wkb.loads(data)
    except (ShapelyError, ValueError, TypeError) as exc:
        raise InvalidGeometryError(f"{code or 'geometry'}: cannot decode WKB: {exc}", code=code) from exc

    if not isinstance(geometry, (Polygon, MultiPolygon)):
        raise InvalidGeometryError(
            f"{code or 'geometry'}: expected Polygon or MultiPolygon, got {geometry.geom_type}",
            code=code,
        )

    return to_multipolygon(geometry)


def encode_multipolygon(geometry: BaseGeometry, srid: int = DEFAULT_SRID) -> bytes:
    """Encode a polygonal geometry as 2D EWKB with an SRID.

    Polygons are promoted to MultiPolygon so the column type stays uniform.
    """
    multipolygon = to_multipolygon(geometry)
    if srid:
        multipolygon = shapely.set_srid(multipolygon, srid)
    return wkb.dumps(multipolygon, output_dimension=2, include_srid=bool(srid))


__all__ = [
    'DEFAULT_SRID',
    'decode_multipolygon',
    'encode_multipolygon',
]
