"""PostGIS-backed geometry store.

The store reads published boundary tables (as loaded by external GIS tooling)
and writes simplified display geometry and the derived postcode table. Table
and column identifiers are composed with :mod:`psycopg2.sql`; geometry moves
as EWKB.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Mapping, Optional, Tuple

import psycopg2
from psycopg2 import sql
from shapely.geometry.base import BaseGeometry

from .core.errors import StoreError
from .wkb import DEFAULT_SRID, encode_multipolygon

logger = logging.getLogger(__name__)

# Columns of the derived postcode table, besides poa_code
ASSIGNMENT_COLUMNS = ('lga', 'ste', 'sed', 'ced')

RegionRow = Tuple[str, Optional[str], Optional[str], bytes]


class GeometryStore:
    """Read and write region geometry through a DB-API connection.

    Args:
        connection: An open psycopg2 connection (or compatible object)
        srid: SRID written into EWKB and expected in the display tables
    """

    def __init__(self, connection, srid: int = DEFAULT_SRID):
        self.connection = connection
        self.srid = srid

    @classmethod
    def connect(cls, config) -> "GeometryStore":
        """Open a psycopg2 connection described by a RunConfig."""
        try:
            connection = psycopg2.connect(
                config.db_url,
                user=config.db_user,
                password=config.db_password,
            )
        except psycopg2.Error as exc:
            raise StoreError(f"Cannot connect to {config.db_url}: {exc}") from exc
        return cls(connection, srid=config.srid)

    @contextmanager
    def _cursor(self):
        try:
            with self.connection.cursor() as cursor:
                yield cursor
        except psycopg2.Error as exc:
            raise StoreError(f"Store operation failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_regions(self, layer) -> Iterator[RegionRow]:
        """Yield ``(code, name, extra, ewkb)`` for every row with a geometry.

        Args:
            layer: A :class:`topothin.layers.RegionLayer`
        """
        descriptor = layer.descriptor
        if descriptor.extra_field:
            extra = sql.Identifier(layer.source_column(descriptor.extra_field, 'code'))
        else:
            extra = sql.SQL('NULL')

        code = sql.Identifier(layer.source_column(descriptor.dataset, 'code'))
        query = sql.SQL(
            "SELECT {code}, {name}, {extra}, ST_AsEWKB(geom) FROM {table} "
            "WHERE geom IS NOT NULL ORDER BY {code}"
        ).format(
            code=code,
            name=sql.Identifier(layer.source_column(descriptor.dataset, 'name')),
            extra=extra,
            table=sql.Identifier(layer.source_table),
        )

        with self._cursor() as cursor:
            cursor.execute(query)
            for row_code, name, extra_value, data in cursor:
                yield row_code, name, extra_value, bytes(data)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def update_display_geometry(self, descriptor, code: str, geometry: BaseGeometry) -> None:
        """Replace a display row's geometry and derive its GeoJSON text."""
        query = sql.SQL(
            "UPDATE {table} SET geom = g.geom, geojson = ST_AsGeoJSON(g.geom, 6, 0) "
            "FROM (SELECT ST_GeomFromEWKB(%s) AS geom) AS g WHERE {code} = %s"
        ).format(
            table=sql.Identifier(descriptor.display_table),
            code=sql.Identifier(descriptor.code_column),
        )
        data = encode_multipolygon(geometry, srid=self.srid)
        with self._cursor() as cursor:
            cursor.execute(query, (psycopg2.Binary(data), code))
            if cursor.rowcount == 0:
                logger.warning("No %s row for code %s", descriptor.display_table, code)

    def insert_assignment(self, code: str, parents: Mapping[str, Optional[str]]) -> None:
        """Insert one row of the derived postcode table."""
        columns = ['poa_code'] + [f"{layer}_code" for layer in ASSIGNMENT_COLUMNS]
        query = sql.SQL("INSERT INTO postcode ({columns}) VALUES ({values})").format(
            columns=sql.SQL(', ').join(sql.Identifier(column) for column in columns),
            values=sql.SQL(', ').join(sql.Placeholder() * len(columns)),
        )
        values = [code] + [parents.get(layer) for layer in ASSIGNMENT_COLUMNS]
        with self._cursor() as cursor:
            cursor.execute(query, values)

    def commit(self) -> None:
        try:
            self.connection.commit()
        except psycopg2.Error as exc:
            raise StoreError(f"Commit failed: {exc}") from exc

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> "GeometryStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.connection.rollback()
        self.close()


__all__ = [
    'ASSIGNMENT_COLUMNS',
    'GeometryStore',
]
