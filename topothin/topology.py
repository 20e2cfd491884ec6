"""Topology-preserving simplification across several region layers.

Regions from every layer are decomposed into a shared planar structure:

1. **Nodes** are coordinates where boundaries meet or diverge, plus the
   start point of every ring.
2. **Edges** are the coordinate runs between consecutive nodes along a ring.
   A run shared by several rings (in either direction, in any layer) is
   stored once.
3. Each edge is simplified exactly once, with its endpoints pinned.
4. Rings are rebuilt from their simplified edges, so neighbouring regions
   keep identical borders.

Edges live in an arena addressed by index; rings are ordered lists of
``(edge_index, reversed)`` pairs.

Examples:
    >>> builder = TopologyBuilder(tolerance=0.001)
    >>> for region in lga_regions:
    ...     builder.add_region('lga', region)
    >>> for region in poa_regions:
    ...     builder.add_region('poa', region)
    >>> simplified = builder.run()
    >>> simplified[('lga', '10050')]
    <MULTIPOLYGON (...)>
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Hashable, Iterator, List, Optional, Sequence, Set, Tuple

import numpy as np
from shapely.geometry import MultiPolygon, Polygon
from shapely.validation import explain_validity

from .core.errors import (
    DuplicateRegionError,
    InvalidGeometryError,
    InvalidStateError,
    SimplificationError,
)
from .core.geometry_utils import polygon_rings, to_multipolygon
from .core.types import BuildStage, Region, SimplifyAlgorithm
from .core.validation_utils import ring_problem
from .simplify import retain_farthest_vertex, simplify_edge

logger = logging.getLogger(__name__)

CoordKey = Hashable
EdgeRef = Tuple[int, bool]
RegionKey = Tuple[str, str]


@dataclass
class _Ring:
    """An open ring (closing coordinate dropped) with its node keys."""
    coords: np.ndarray
    keys: List[CoordKey]


@dataclass
class _RegionEntry:
    layer: str
    region: Region
    polygons: List[List[_Ring]]
    edges: List[List[List[EdgeRef]]] = field(default_factory=list)


def _make_key_function(precision: Optional[float]) -> Callable[[float, float], CoordKey]:
    """Build the function mapping a coordinate to its node identity.

    With no precision, coordinates are identical only if their floats are
    equal. Otherwise both axes are snapped to a grid of the given spacing.
    """
    if precision is None:
        return lambda x, y: (x, y)
    if precision <= 0:
        raise ValueError(f"node_precision must be positive, got {precision}")
    return lambda x, y: (round(x / precision), round(y / precision))


class TopologyBuilder:
    """Simplify regions from several layers so shared borders stay seamless.

    Args:
        tolerance: Default simplification tolerance for :meth:`simplify_edges`
        algorithm: Simplification algorithm applied to every edge
        node_precision: Grid spacing used to decide when two coordinates are
            the same node. None (default) requires exact float equality.

    The builder is a one-shot state machine::

        EMPTY -> LOADED -> NODES_FOUND -> EDGES_BUILT -> SIMPLIFIED -> REASSEMBLED

    Repeating the call that produced the current stage is a no-op; any
    other out-of-order call raises :class:`InvalidStateError`.
    """

    def __init__(
        self,
        tolerance: float = 0.0,
        algorithm: SimplifyAlgorithm = SimplifyAlgorithm.RDP,
        node_precision: Optional[float] = None,
    ):
        if tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {tolerance}")
        self.tolerance = tolerance
        self.algorithm = algorithm
        self.node_precision = node_precision
        self._key = _make_key_function(node_precision)

        self._stage = BuildStage.EMPTY
        self._entries: List[_RegionEntry] = []
        self._lookup: Dict[RegionKey, _RegionEntry] = {}
        self._canonical: Dict[CoordKey, Tuple[float, float]] = {}
        self._nodes: Set[CoordKey] = set()
        self._edges: List[np.ndarray] = []
        self._edge_index: Dict[Tuple[CoordKey, ...], int] = {}
        self._simplified: List[np.ndarray] = []
        self._applied_tolerance: Optional[float] = None
        self._results: Dict[RegionKey, MultiPolygon] = {}

    # ------------------------------------------------------------------
    # State handling
    # ------------------------------------------------------------------

    @property
    def stage(self) -> BuildStage:
        return self._stage

    def _should_run(self, required: BuildStage, target: BuildStage) -> bool:
        if self._stage is target:
            logger.debug("Stage %s already reached, skipping", target.name)
            return False
        if self._stage is not required:
            raise InvalidStateError(
                f"Cannot move to {target.name} from {self._stage.name}; "
                f"builder must be in {required.name}",
                current=self._stage,
                required=required,
            )
        return True

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def add_region(self, layer: str, region: Region) -> None:
        """Register a region's rings for processing.

        No geometric work is done beyond validating and indexing the rings.

        Raises:
            InvalidGeometryError: If the geometry is empty, not polygonal, or
                a ring is unclosed, degenerate or self-intersecting
            DuplicateRegionError: If the code is already registered for layer
            InvalidStateError: If node discovery has already started
        """
        if self._stage not in (BuildStage.EMPTY, BuildStage.LOADED):
            raise InvalidStateError(
                f"Cannot add regions once the builder is {self._stage.name}",
                current=self._stage,
                required=BuildStage.LOADED,
            )

        region_key = (layer, region.code)
        if region_key in self._lookup:
            raise DuplicateRegionError(layer, region.code)

        geometry = region.geometry
        if geometry is None or geometry.geom_type not in ('Polygon', 'MultiPolygon'):
            kind = None if geometry is None else geometry.geom_type
            raise InvalidGeometryError(
                f"{layer} {region.code}: expected polygonal geometry, got {kind}",
                layer=layer,
                code=region.code,
            )

        multipolygon = to_multipolygon(geometry)
        if multipolygon.is_empty:
            raise InvalidGeometryError(
                f"{layer} {region.code}: geometry is empty",
                layer=layer,
                code=region.code,
            )

        polygons = [
            [self._prepare_ring(layer, region.code, coords) for coords in polygon_rings(polygon)]
            for polygon in multipolygon.geoms
        ]

        entry = _RegionEntry(layer=layer, region=region, polygons=polygons)
        self._entries.append(entry)
        self._lookup[region_key] = entry
        self._stage = BuildStage.LOADED

    def _prepare_ring(self, layer: str, code: str, coords: np.ndarray) -> _Ring:
        problem = ring_problem(coords)
        if problem is not None:
            raise InvalidGeometryError(f"{layer} {code}: {problem}", layer=layer, code=code)

        # Drop the closing coordinate and collapse runs that share a node key
        keys: List[CoordKey] = []
        points: List[Tuple[float, float]] = []
        for x, y in coords[:-1].tolist():
            key = self._key(x, y)
            if keys and keys[-1] == key:
                continue
            keys.append(key)
            points.append(self._snap(key, x, y))
        while len(keys) > 1 and keys[-1] == keys[0]:
            keys.pop()
            points.pop()

        if len(keys) < 3:
            raise InvalidGeometryError(
                f"{layer} {code}: ring collapses to {len(keys)} distinct coordinates",
                layer=layer,
                code=code,
            )

        return _Ring(coords=np.array(points, dtype=float), keys=keys)

    def _snap(self, key: CoordKey, x: float, y: float) -> Tuple[float, float]:
        # Under a grid precision every key resolves to the first coordinate
        # seen for it, so rings meeting at a node share exact values
        if self.node_precision is None:
            return x, y
        return self._canonical.setdefault(key, (x, y))

    def _iter_rings(self) -> Iterator[_Ring]:
        for entry in self._entries:
            for polygon in entry.polygons:
                yield from polygon

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def find_nodes(self) -> int:
        """Find every node across all registered rings.

        A coordinate is a node if it starts a ring, if the rings through it
        reach it from more than two different neighbours, or if a ring
        doubles back on itself there. Coordinates inside a boundary shared
        identically by several rings are not nodes.

        Returns:
            Number of nodes found
        """
        if not self._should_run(BuildStage.LOADED, BuildStage.NODES_FOUND):
            return len(self._nodes)

        neighbours: Dict[CoordKey, Set[CoordKey]] = {}
        nodes: Set[CoordKey] = set()

        for ring in self._iter_rings():
            keys = ring.keys
            count = len(keys)
            nodes.add(keys[0])
            for index, key in enumerate(keys):
                previous_key = keys[index - 1]
                next_key = keys[(index + 1) % count]
                # Only possible under node_precision: simple rings never double
                # back, but distinct coordinates can share a grid key
                if previous_key == next_key:
                    nodes.add(key)
                neighbours.setdefault(key, set()).update((previous_key, next_key))

        nodes.update(key for key, adjacent in neighbours.items() if len(adjacent) > 2)

        self._nodes = nodes
        self._stage = BuildStage.NODES_FOUND
        logger.info("Found %d nodes in %d regions", len(nodes), len(self._entries))
        return len(nodes)

    def create_edges(self) -> int:
        """Split every ring at its nodes and register the resulting edges.

        Edges are indexed by endpoint pair and path, regardless of direction,
        so a border walked clockwise by one region and anticlockwise by its
        neighbour resolves to a single edge.

        Returns:
            Number of distinct edges
        """
        if not self._should_run(BuildStage.NODES_FOUND, BuildStage.EDGES_BUILT):
            return len(self._edges)

        for entry in self._entries:
            entry.edges = [
                [self._split_ring(ring) for ring in polygon]
                for polygon in entry.polygons
            ]

        self._stage = BuildStage.EDGES_BUILT
        logger.info("Created %d edges", len(self._edges))
        return len(self._edges)

    def _split_ring(self, ring: _Ring) -> List[EdgeRef]:
        count = len(ring.keys)
        cuts = [index for index, key in enumerate(ring.keys) if key in self._nodes]
        refs: List[EdgeRef] = []

        for position, start in enumerate(cuts):
            end = cuts[position + 1] if position + 1 < len(cuts) else count
            positions = np.arange(start, end + 1) % count
            path = tuple(ring.keys[i] for i in positions)
            refs.append(self._register_edge(path, ring.coords[positions]))

        return refs

    def _register_edge(self, path: Tuple[CoordKey, ...], coords: np.ndarray) -> EdgeRef:
        index = self._edge_index.get(path)
        if index is not None:
            return index, False

        index = self._edge_index.get(path[::-1])
        if index is not None:
            return index, True

        index = len(self._edges)
        self._edges.append(coords)
        self._edge_index[path] = index
        return index, False

    def simplify_edges(self, tolerance: Optional[float] = None) -> int:
        """Simplify each distinct edge exactly once.

        Rings left with fewer than four coordinates get back the vertex
        farthest from each of their edges' chords.

        Args:
            tolerance: Overrides the builder's default tolerance

        Returns:
            Number of edges simplified
        """
        tolerance = self.tolerance if tolerance is None else tolerance
        if tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {tolerance}")

        if self._stage is BuildStage.SIMPLIFIED and tolerance != self._applied_tolerance:
            raise InvalidStateError(
                f"Edges already simplified with tolerance {self._applied_tolerance}",
                current=self._stage,
                required=BuildStage.EDGES_BUILT,
            )
        if not self._should_run(BuildStage.EDGES_BUILT, BuildStage.SIMPLIFIED):
            return len(self._simplified)

        self._simplified = [
            simplify_edge(edge, tolerance, self.algorithm) for edge in self._edges
        ]
        restored = self._restore_collapsed_rings()
        self._applied_tolerance = tolerance
        self._stage = BuildStage.SIMPLIFIED

        before = sum(len(edge) for edge in self._edges)
        after = sum(len(edge) for edge in self._simplified)
        logger.info(
            "Simplified %d edges with tolerance %g (%d -> %d coordinates)",
            len(self._simplified), tolerance, before, after,
        )
        if restored:
            logger.debug("Restored a vertex in %d collapsed rings", restored)
        return len(self._simplified)

    def _restore_collapsed_rings(self) -> int:
        """Give back a vertex to each edge of a ring that fell below four coordinates.

        Only rings of one or two edges can collapse this way. The edges are
        shared, so every ring using them sees the same restored vertex.
        """
        restored = 0
        for entry in self._entries:
            for polygon in entry.edges:
                for refs in polygon:
                    if sum(len(self._simplified[index]) - 1 for index, _ in refs) >= 3:
                        continue
                    for index, _ in refs:
                        self._simplified[index] = retain_farthest_vertex(
                            self._simplified[index], self._edges[index]
                        )
                    restored += 1
        return restored

    def reassemble(self) -> Dict[RegionKey, MultiPolygon]:
        """Rebuild every region from its simplified edges.

        The result is also stored on each region as ``simplified``.

        Returns:
            Mapping of ``(layer, code)`` to simplified MultiPolygon

        Raises:
            SimplificationError: If a rebuilt ring collapses or the rebuilt
                geometry is invalid although its source was valid
        """
        if not self._should_run(BuildStage.SIMPLIFIED, BuildStage.REASSEMBLED):
            return dict(self._results)

        results: Dict[RegionKey, MultiPolygon] = {}
        for entry in self._entries:
            geometry = self._assemble_region(entry)
            entry.region.simplified = geometry
            results[(entry.layer, entry.region.code)] = geometry

        self._results = results
        self._stage = BuildStage.REASSEMBLED
        logger.info("Reassembled %d regions", len(results))
        return dict(results)

    def _assemble_region(self, entry: _RegionEntry) -> MultiPolygon:
        layer, code = entry.layer, entry.region.code
        polygons = []

        for polygon_refs in entry.edges:
            rings = [self._assemble_ring(refs) for refs in polygon_refs]
            for ring in rings:
                if len(ring) < 4:
                    raise SimplificationError(
                        f"{layer} {code}: ring collapsed to {len(ring)} coordinates",
                        layer=layer,
                        code=code,
                        reason="collapsed ring",
                    )
            polygons.append(Polygon(rings[0], rings[1:]))

        geometry = MultiPolygon(polygons)
        if not geometry.is_valid and entry.region.geometry.is_valid:
            reason = explain_validity(geometry)
            raise SimplificationError(
                f"{layer} {code}: simplification produced invalid geometry ({reason})",
                layer=layer,
                code=code,
                reason=reason,
            )
        return geometry

    def _assemble_ring(self, refs: Sequence[EdgeRef]) -> np.ndarray:
        parts = []
        for position, (index, reverse) in enumerate(refs):
            edge = self._simplified[index]
            if reverse:
                edge = edge[::-1]
            parts.append(edge if position == 0 else edge[1:])
        return np.vstack(parts)

    def run(self, tolerance: Optional[float] = None) -> Dict[RegionKey, MultiPolygon]:
        """Run whichever of the remaining stages have not run yet."""
        if self._stage.value < BuildStage.NODES_FOUND.value:
            self.find_nodes()
        if self._stage.value < BuildStage.EDGES_BUILT.value:
            self.create_edges()
        if self._stage.value < BuildStage.SIMPLIFIED.value:
            self.simplify_edges(tolerance)
        return self.reassemble()

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def regions(self, layer: Optional[str] = None) -> List[Region]:
        """Registered regions in registration order, optionally for one layer."""
        return [
            entry.region for entry in self._entries
            if layer is None or entry.layer == layer
        ]

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def edge_coords(self, index: int, simplified: bool = False) -> np.ndarray:
        """Coordinates of an edge, before or after simplification."""
        if simplified:
            if self._stage.value < BuildStage.SIMPLIFIED.value:
                raise InvalidStateError(
                    "Edges have not been simplified yet",
                    current=self._stage,
                    required=BuildStage.SIMPLIFIED,
                )
            return self._simplified[index].copy()
        return self._edges[index].copy()

    def ring_edges(self, layer: str, code: str) -> List[List[List[EdgeRef]]]:
        """Edge references of a region: per polygon, per ring (exterior first)."""
        if self._stage.value < BuildStage.EDGES_BUILT.value:
            raise InvalidStateError(
                "Edges have not been created yet",
                current=self._stage,
                required=BuildStage.EDGES_BUILT,
            )
        entry = self._lookup[(layer, code)]
        return [[list(ring) for ring in polygon] for polygon in entry.edges]


__all__ = [
    'TopologyBuilder',
]
