"""Ring validation utilities used when regions are registered."""

from typing import Optional
import numpy as np
from shapely.geometry import LinearRing
from shapely.validation import explain_validity


def is_ring_closed(
    coords: np.ndarray,
    tolerance: float = 0.0
) -> bool:
    """Check if coordinate ring is closed (first == last).

    Args:
        coords: Coordinate array (Nx2 or Nx3)
        tolerance: Tolerance for coordinate comparison (0 = exact)

    Returns:
        True if ring is closed (first point equals last point within tolerance)

    Examples:
        >>> coords = np.array([[0, 0], [1, 0], [1, 1], [0, 0]])
        >>> is_ring_closed(coords)
        True

        >>> coords = np.array([[0, 0], [1, 0], [1, 1]])
        >>> is_ring_closed(coords)
        False
    """
    if len(coords) < 2:
        return False

    return np.allclose(coords[0], coords[-1], rtol=0.0, atol=tolerance)


def ring_problem(coords: np.ndarray) -> Optional[str]:
    """Describe why a coordinate ring cannot be used, or return None.

    A usable ring is closed, has at least four coordinates and does not
    cross itself.

    Examples:
        >>> ring_problem(np.array([[0, 0], [1, 0], [1, 1], [0, 0]])) is None
        True

        >>> ring_problem(np.array([[0, 0], [2, 2], [2, 0], [0, 2], [0, 0]]))
        'ring self-intersects: ...'
    """
    if not is_ring_closed(coords):
        return "ring is not closed"

    if len(coords) < 4:
        return f"ring has {len(coords)} coordinates, at least 4 required"

    ring = LinearRing(coords)
    if not ring.is_simple:
        return f"ring self-intersects: {explain_validity(ring)}"

    return None


__all__ = [
    'is_ring_closed',
    'ring_problem',
]
