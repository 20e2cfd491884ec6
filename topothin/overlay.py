"""Best-overlap assignment of fine regions to coarse regions.

For every fine region (e.g. a postal area) and every coarse layer (e.g. local
government areas), the matcher picks one coarse region:

- the first coarse region that fully covers the fine region, otherwise
- the coarse region sharing the largest intersection area with it, otherwise
- nothing, in which case an :class:`UnmatchedRegionWarning` is issued.

The scan is O(F x C) per layer. A bounding-box index narrows the candidate
set without changing the outcome, because candidates are still visited in
registration order.
"""

import logging
import time
import warnings
from typing import Dict, Mapping, Optional, Sequence, Tuple

from shapely.geometry.base import BaseGeometry
from shapely.strtree import STRtree

from .core.errors import UnmatchedRegionWarning
from .core.geometry_utils import polygonal_area
from .core.types import Region

logger = logging.getLogger(__name__)

CONTAINMENT_SCORE = float('inf')

Assignments = Dict[str, Dict[str, Optional[str]]]


class OverlayMatcher:
    """Assign each fine region to its best-matching region in coarse layers.

    Args:
        use_index: Prefilter candidates with an STRtree (default True).
            Disable to force the exhaustive nested scan.

    Examples:
        >>> matcher = OverlayMatcher()
        >>> assignments = matcher.match(postal_areas, {'lga': lgas, 'ced': divisions})
        >>> assignments['2600']
        {'lga': '89399', 'ced': '101'}
    """

    def __init__(self, use_index: bool = True):
        self.use_index = use_index

    def match(
        self,
        fine_regions: Sequence[Region],
        coarse_layers: Mapping[str, Sequence[Region]],
    ) -> Assignments:
        """Assign every fine region in every coarse layer.

        Args:
            fine_regions: Regions to assign
            coarse_layers: Ordered mapping of layer name to candidate regions

        Returns:
            Mapping of fine code to ``{layer: coarse code or None}``, in the
            order of ``fine_regions`` and ``coarse_layers``
        """
        assignments: Assignments = {region.code: {} for region in fine_regions}

        for layer, coarse_regions in coarse_layers.items():
            layer_result = self.match_layer(fine_regions, coarse_regions, layer)
            for code, parent in layer_result.items():
                assignments[code][layer] = parent

        return assignments

    def match_layer(
        self,
        fine_regions: Sequence[Region],
        coarse_regions: Sequence[Region],
        layer: str = '',
    ) -> Dict[str, Optional[str]]:
        """Assign every fine region to one region of a single coarse layer."""
        start = time.perf_counter()
        geometries = [region.geometry for region in coarse_regions]
        tree = STRtree(geometries) if self.use_index and geometries else None

        result: Dict[str, Optional[str]] = {}
        unmatched = 0
        for fine in fine_regions:
            if tree is not None:
                candidates = sorted(int(i) for i in tree.query(fine.geometry))
            else:
                candidates = range(len(coarse_regions))

            parent, score = _best_match(fine.geometry, [coarse_regions[i] for i in candidates])
            result[fine.code] = parent

            if parent is None:
                unmatched += 1
                message = f"{fine.code} has no matching {layer or 'coarse'} region"
                logger.warning(message)
                warnings.warn(message, UnmatchedRegionWarning, stacklevel=2)
            else:
                logger.debug("%s -> %s %s (score %g)", fine.code, layer, parent, score)

        logger.info(
            "Matched %d regions against %d %s regions in %.2fs (%d unmatched)",
            len(fine_regions), len(coarse_regions), layer or 'coarse',
            time.perf_counter() - start, unmatched,
        )
        return result


def _best_match(
    geometry: BaseGeometry,
    candidates: Sequence[Region],
) -> Tuple[Optional[str], float]:
    """Pick a candidate by containment first, then by largest shared area.

    Returns:
        Tuple of (code or None, score). The score is the shared area, or
        CONTAINMENT_SCORE for a covering region.
    """
    best_code: Optional[str] = None
    best_score = 0.0

    for candidate in candidates:
        if geometry.covered_by(candidate.geometry):
            # Scores only ever replace on strictly greater, so the first
            # covering region is final
            return candidate.code, CONTAINMENT_SCORE

        if geometry.overlaps(candidate.geometry):
            intersection = geometry.intersection(candidate.geometry)
            if intersection.is_empty:
                continue
            area = polygonal_area(intersection)
            if area > best_score:
                best_score = area
                best_code = candidate.code

    return best_code, best_score


def attribute_of(
    assignments: Mapping[str, Optional[str]],
    regions: Sequence[Region],
) -> Dict[str, Optional[str]]:
    """Look up the ``extra`` attribute of each assigned coarse region.

    Args:
        assignments: Fine code to coarse code for one layer
        regions: The coarse regions of that layer

    Returns:
        Fine code to the assigned region's ``extra`` value (None when
        unassigned)

    Examples:
        >>> states = attribute_of({'2600': '89399'}, lgas)
        >>> states['2600']
        '8'
    """
    extras = {region.code: region.extra for region in regions}
    return {
        code: None if parent is None else extras.get(parent)
        for code, parent in assignments.items()
    }


def layer_assignments(assignments: Assignments, layer: str) -> Dict[str, Optional[str]]:
    """Extract a single layer's column from a full assignment mapping."""
    return {code: parents.get(layer) for code, parents in assignments.items()}


__all__ = [
    'CONTAINMENT_SCORE',
    'OverlayMatcher',
    'attribute_of',
    'layer_assignments',
]
