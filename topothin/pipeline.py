"""End-to-end runs: thin display geometry, and relate postcodes to parents.

Both runs load full layers into memory, compute, then write back through the
store. Each stage is timed and recorded as a :class:`StageResult`.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from shapely.geometry import MultiPolygon

from .config import RunConfig
from .core.geometry_utils import dissolve
from .core.types import Region
from .layers import CED, LGA, POA, SED, STE, RegionLayer
from .overlay import Assignments, OverlayMatcher, attribute_of, layer_assignments
from .topology import TopologyBuilder

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class StageResult:
    """Outcome of running a single stage."""

    name: str
    count: int
    elapsed: float


@dataclass
class ThinResult:
    """Everything a thinning run produced."""

    geometries: Dict[Tuple[str, str], MultiPolygon]
    states: Dict[str, MultiPolygon]
    history: List[StageResult] = field(default_factory=list)


def _run_stage(name: str, history: List[StageResult], func: Callable[[], T]) -> T:
    start = time.perf_counter()
    logger.info("%s", name)
    result = func()
    elapsed = time.perf_counter() - start
    count = result if isinstance(result, int) else len(result)
    history.append(StageResult(name, count, elapsed))
    logger.info("%s: %d in %.2fs", name, count, elapsed)
    return result


def build_layers(config: RunConfig, store) -> Dict[str, RegionLayer]:
    """The four source layers of a run, in processing order."""
    return OrderedDict(
        (layer.name, layer) for layer in (
            RegionLayer(POA, config.poa_release, store),
            RegionLayer(LGA, config.lga_release, store),
            RegionLayer(SED, config.sed_release, store),
            RegionLayer(CED, config.ced_release, store),
        )
    )


def thin_layers(
    layers: Sequence[RegionLayer],
    builder: TopologyBuilder,
    save: bool = True,
) -> Tuple[Dict[Tuple[str, str], MultiPolygon], List[StageResult]]:
    """Load, simplify and optionally save every layer through one builder.

    All layers must be loaded before node discovery, since node identity
    depends on every layer's boundaries.
    """
    history: List[StageResult] = []

    for layer in layers:
        regions = _run_stage(f"Load {layer.source_table}", history, layer.load)
        for region in regions:
            builder.add_region(layer.name, region)

    _run_stage("Find nodes", history, builder.find_nodes)
    _run_stage("Create edges", history, builder.create_edges)
    _run_stage("Simplify edges", history, builder.simplify_edges)
    geometries = _run_stage("Reassemble polygons", history, builder.reassemble)

    if save:
        for layer in layers:
            _run_stage(
                f"Save {layer.descriptor.display_table}",
                history,
                lambda layer=layer: layer.save_all(builder.regions(layer.name)),
            )

    return geometries, history


def dissolve_states(lga_regions: Sequence[Region]) -> Dict[str, MultiPolygon]:
    """Union LGAs by their state attribute into one geometry per state.

    Simplified geometry is used where present, so states inherit the LGAs'
    thinned borders.
    """
    groups: Dict[str, List[MultiPolygon]] = OrderedDict()
    for region in lga_regions:
        if region.extra is None:
            logger.warning("LGA %s has no state code", region.code)
            continue
        geometry = region.simplified if region.simplified is not None else region.geometry
        groups.setdefault(region.extra, []).append(geometry)

    states = OrderedDict()
    for state_code, geometries in groups.items():
        states[state_code] = dissolve(geometries)
        logger.debug(
            "State %s: %d LGAs dissolved into %d polygons",
            state_code, len(geometries), len(states[state_code].geoms),
        )
    return states


def run_thin(config: RunConfig, store) -> ThinResult:
    """Thin every layer, write display geometry, then write state outlines."""
    layers = build_layers(config, store)
    builder = TopologyBuilder(
        tolerance=config.tolerance,
        algorithm=config.algorithm,
        node_precision=config.node_precision,
    )
    geometries, history = thin_layers(list(layers.values()), builder)

    states = _run_stage(
        "Create states", history, lambda: dissolve_states(builder.regions(LGA.dataset))
    )
    for state_code, geometry in states.items():
        store.update_display_geometry(STE, state_code, geometry)

    return ThinResult(geometries=geometries, states=states, history=history)


def relate_regions(
    fine_regions: Sequence[Region],
    lga_regions: Sequence[Region],
    sed_regions: Sequence[Region],
    ced_regions: Sequence[Region],
    matcher: Optional[OverlayMatcher] = None,
) -> Assignments:
    """Assign postal areas to LGA, state, SED and CED.

    The state comes from the assigned LGA, not from a separate overlay.
    """
    matcher = matcher or OverlayMatcher()
    assignments = matcher.match(
        fine_regions,
        OrderedDict([('lga', lga_regions), ('sed', sed_regions), ('ced', ced_regions)]),
    )
    states = attribute_of(layer_assignments(assignments, 'lga'), lga_regions)

    return OrderedDict(
        (code, OrderedDict([
            ('lga', parents['lga']),
            ('ste', states[code]),
            ('sed', parents['sed']),
            ('ced', parents['ced']),
        ]))
        for code, parents in assignments.items()
    )


def run_relate(config: RunConfig, store, matcher: Optional[OverlayMatcher] = None) -> Assignments:
    """Load raw layers, assign postal areas and write the postcode table."""
    layers = build_layers(config, store)
    history: List[StageResult] = []
    loaded = {
        name: _run_stage(f"Load {layer.source_table}", history, layer.load)
        for name, layer in layers.items()
    }

    assignments = _run_stage(
        "Match regions",
        history,
        lambda: relate_regions(loaded['poa'], loaded['lga'], loaded['sed'], loaded['ced'], matcher),
    )
    for code, parents in assignments.items():
        store.insert_assignment(code, parents)

    return assignments


__all__ = [
    "StageResult",
    "ThinResult",
    "build_layers",
    "thin_layers",
    "dissolve_states",
    "run_thin",
    "relate_regions",
    "run_relate",
]
