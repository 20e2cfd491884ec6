"""Topothin - seamless boundary thinning for administrative region layers.

This library simplifies polygon layers so that borders shared between
regions, within and across layers, stay identical after simplification, and
assigns fine regions to their best-matching coarse regions.
"""


# Topology-preserving simplification
from .topology import TopologyBuilder
from .simplify import simplify_edge

# Overlay assignment
from .overlay import OverlayMatcher, attribute_of, layer_assignments

# Layers and geometry codec
from .layers import LayerDescriptor, RegionLayer, POA, LGA, SED, CED, STE
from .wkb import decode_multipolygon, encode_multipolygon

# Runs
from .config import RunConfig
from .pipeline import dissolve_states, relate_regions, run_relate, run_thin

# Core types
from .core import (
    SimplifyAlgorithm,
    BuildStage,
    Region,
)

# Core exceptions
from .core import (
    TopothinError,
    InvalidGeometryError,
    InvalidStateError,
    SimplificationError,
    DuplicateRegionError,
    StoreError,
    UnmatchedRegionWarning,
)

__all__ = [

    # Simplification
    'TopologyBuilder',
    'simplify_edge',

    # Overlay
    'OverlayMatcher',
    'attribute_of',
    'layer_assignments',

    # Layers and codec
    'LayerDescriptor',
    'RegionLayer',
    'POA',
    'LGA',
    'SED',
    'CED',
    'STE',
    'decode_multipolygon',
    'encode_multipolygon',

    # Runs
    'RunConfig',
    'dissolve_states',
    'relate_regions',
    'run_relate',
    'run_thin',

    # Core types
    'SimplifyAlgorithm',
    'BuildStage',
    'Region',

    # Core exceptions
    'TopothinError',
    'InvalidGeometryError',
    'InvalidStateError',
    'SimplificationError',
    'DuplicateRegionError',
    'StoreError',
    'UnmatchedRegionWarning',
]
