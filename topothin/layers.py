"""Region layers: typed sources and sinks of region rows.

A layer is described by a small :class:`LayerDescriptor` (dataset identity,
code width, optional extra attribute) rather than by subclassing; a
:class:`RegionLayer` binds a descriptor to a release year and a store.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from shapely.geometry.base import BaseGeometry

from .core.errors import DuplicateRegionError
from .core.types import Region
from .wkb import decode_multipolygon

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayerDescriptor:
    """Static description of an administrative dataset.

    Attributes:
        dataset: Short dataset name, used as the table and column prefix
        code_width: Maximum length of a region code
        extra_field: Prefix of an additional attribute column loaded into
            ``Region.extra`` (e.g. ``'ste'`` for the state of an LGA)
        label: Human readable name for messages
    """
    dataset: str
    code_width: int
    extra_field: Optional[str] = None
    label: str = ''

    @property
    def code_column(self) -> str:
        return f"{self.dataset}_code"

    @property
    def display_table(self) -> str:
        return f"{self.dataset}_disp"


POA = LayerDescriptor('poa', 4, label='Postal Area')
LGA = LayerDescriptor('lga', 5, extra_field='ste', label='Local Government Area')
SED = LayerDescriptor('sed', 5, label='State Electoral Division')
CED = LayerDescriptor('ced', 3, label='Commonwealth Electoral Division')
STE = LayerDescriptor('ste', 1, label='State')


class RegionLayer:
    """One release of a dataset, loadable from and savable to a store.

    Args:
        descriptor: Dataset description
        release_year: Release identifier appended to source table and
            column names (e.g. ``'2016'`` -> ``poa2016.poa_code2016``)
        store: A :class:`topothin.store.GeometryStore` or compatible object
    """

    def __init__(self, descriptor: LayerDescriptor, release_year: str, store):
        self.descriptor = descriptor
        self.release_year = str(release_year)
        self.store = store

    @property
    def name(self) -> str:
        return self.descriptor.dataset

    @property
    def source_table(self) -> str:
        return f"{self.descriptor.dataset}{self.release_year}"

    def source_column(self, prefix: str, suffix: str) -> str:
        """Column name in the published table, e.g. ``lga_name2016``."""
        return f"{prefix}_{suffix}{self.release_year}"

    def load(self) -> List[Region]:
        """Read every region with a geometry, in store order.

        Raises:
            DuplicateRegionError: If a code occurs twice
            ValueError: If a code is wider than the descriptor allows
            InvalidGeometryError: If a geometry cannot be decoded
        """
        regions: List[Region] = []
        seen = set()
        for code, name, extra, data in self.store.fetch_regions(self):
            if code in seen:
                raise DuplicateRegionError(self.name, code)
            if len(code) > self.descriptor.code_width:
                raise ValueError(
                    f"{self.name} code {code!r} exceeds width {self.descriptor.code_width}"
                )
            seen.add(code)
            regions.append(Region(
                code=code,
                name=name,
                geometry=decode_multipolygon(data, code=code),
                extra=extra,
            ))

        logger.info("Loaded %d regions from %s", len(regions), self.source_table)
        return regions

    def save(self, region: Region, geometry: BaseGeometry) -> None:
        """Replace the display geometry of one region."""
        self.store.update_display_geometry(self.descriptor, region.code, geometry)

    def save_all(self, regions: Iterable[Region]) -> int:
        """Save the simplified geometry of every region that has one."""
        count = 0
        for region in regions:
            if region.simplified is None:
                continue
            self.save(region, region.simplified)
            count += 1
        logger.info("Saved %d regions to %s", count, self.descriptor.display_table)
        return count

    def __repr__(self) -> str:
        return f"RegionLayer({self.source_table})"


__all__ = [
    'LayerDescriptor',
    'RegionLayer',
    'POA',
    'LGA',
    'SED',
    'CED',
    'STE',
]
