"""Type definitions for topothin operations.

This module defines the enums used to configure simplification and to track
the topology builder's progress, and the :class:`Region` record shared by
every component.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from shapely.geometry import MultiPolygon


class SimplifyAlgorithm(Enum):
    """Algorithm applied to each edge during simplification.

    Attributes:
        RDP: Ramer-Douglas-Peucker (fast, good general purpose, default)
        VW: Visvalingam-Whyatt (tolerance is an area threshold)
        VWP: Topology-preserving Visvalingam-Whyatt (slowest)

    Examples:
        >>> from topothin import TopologyBuilder, SimplifyAlgorithm
        >>> builder = TopologyBuilder(tolerance=0.001, algorithm=SimplifyAlgorithm.VW)
    """
    RDP = 'rdp'
    VW = 'vw'
    VWP = 'vwp'


class BuildStage(Enum):
    """Stages of a topology simplification run, in the order they occur.

    Each stage is reached by exactly one call on the builder:
    ``add_region`` -> LOADED, ``find_nodes`` -> NODES_FOUND,
    ``create_edges`` -> EDGES_BUILT, ``simplify_edges`` -> SIMPLIFIED,
    ``reassemble`` -> REASSEMBLED.
    """
    EMPTY = 0
    LOADED = 1
    NODES_FOUND = 2
    EDGES_BUILT = 3
    SIMPLIFIED = 4
    REASSEMBLED = 5


@dataclass
class Region:
    """A single administrative area.

    Attributes:
        code: Identifier, unique within the region's layer
        name: Display name
        geometry: Source polygons
        extra: Optional layer-specific attribute (e.g. parent state code)
        simplified: Replacement geometry produced by the topology builder
    """
    code: str
    name: Optional[str]
    geometry: MultiPolygon
    extra: Optional[str] = None
    simplified: Optional[MultiPolygon] = None


__all__ = [
    'SimplifyAlgorithm',
    'BuildStage',
    'Region',
]
