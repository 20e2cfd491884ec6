"""Edge simplification.

Boundary edges are simplified as bare coordinate arrays using the
high-performance simplification library algorithms:
- Ramer-Douglas-Peucker (RDP)
- Visvalingam-Whyatt (VW)
- Topology-preserving Visvalingam-Whyatt (VWP)

Whatever the algorithm, the first and last coordinate of an edge are never
moved, so edges that meet at a node still meet after simplification.
"""

from typing import Callable, Dict

import numpy as np
from simplification.cutil import (
    simplify_coords as _rdp_simplify,
    simplify_coords_vw as _vw_simplify,
    simplify_coords_vwp as _vwp_simplify
)

from .core.types import SimplifyAlgorithm


# ============================================================================
# Private processing functions (work with numpy arrays)
# ============================================================================

def _simplify_rdp_wrapper(vertices: np.ndarray, epsilon: float) -> np.ndarray:
    """Internal function: Simplify using Ramer-Douglas-Peucker algorithm.

    Args:
        vertices: Numpy array of 2D vertices (Nx2)
        epsilon: Tolerance value for RDP algorithm

    Returns:
        Numpy array of simplified vertices
    """
    if len(vertices) < 3:
        return vertices.copy()

    result = _rdp_simplify(np.ascontiguousarray(vertices, dtype=float), epsilon)
    return np.array(result) if not isinstance(result, np.ndarray) else result


def _simplify_vw_wrapper(vertices: np.ndarray, threshold: float) -> np.ndarray:
    """Internal function: Simplify using Visvalingam-Whyatt algorithm.

    Args:
        vertices: Numpy array of 2D vertices (Nx2)
        threshold: Area threshold for VW algorithm

    Returns:
        Numpy array of simplified vertices
    """
    if len(vertices) < 3:
        return vertices.copy()

    result = _vw_simplify(np.ascontiguousarray(vertices, dtype=float), threshold)
    return np.array(result) if not isinstance(result, np.ndarray) else result


def _simplify_vwp_wrapper(vertices: np.ndarray, threshold: float) -> np.ndarray:
    """Internal function: Simplify using topology-preserving Visvalingam-Whyatt.

    Args:
        vertices: Numpy array of 2D vertices (Nx2)
        threshold: Area threshold for VWP algorithm

    Returns:
        Numpy array of simplified vertices
    """
    if len(vertices) < 3:
        return vertices.copy()

    result = _vwp_simplify(np.ascontiguousarray(vertices, dtype=float), threshold)
    return np.array(result) if not isinstance(result, np.ndarray) else result


_SIMPLIFIERS: Dict[SimplifyAlgorithm, Callable[[np.ndarray, float], np.ndarray]] = {
    SimplifyAlgorithm.RDP: _simplify_rdp_wrapper,
    SimplifyAlgorithm.VW: _simplify_vw_wrapper,
    SimplifyAlgorithm.VWP: _simplify_vwp_wrapper,
}


def _pin_endpoints(simplified: np.ndarray, original: np.ndarray) -> np.ndarray:
    """Internal function: Restore the exact original endpoints.

    The simplification library keeps endpoints, but values round-trip through
    a native buffer, so they are copied back bit for bit.
    """
    if len(simplified) < 2:
        return original[[0, -1]].copy()

    result = np.array(simplified, dtype=float)
    result[0] = original[0]
    result[-1] = original[-1]
    return result


def _simplify_closed(
    vertices: np.ndarray,
    tolerance: float,
    simplifier: Callable[[np.ndarray, float], np.ndarray]
) -> np.ndarray:
    """Internal function: Simplify an edge that starts and ends at one node.

    The edge is cut at the vertex farthest from the node and both halves are
    simplified as open lines. A result too short to form a ring falls back
    to the unsimplified edge.
    """
    distances = np.linalg.norm(vertices - vertices[0], axis=1)
    split = int(np.argmax(distances))
    if split == 0:
        return vertices.copy()

    head = vertices[:split + 1]
    tail = vertices[split:]
    first = _pin_endpoints(simplifier(head, tolerance), head)
    second = _pin_endpoints(simplifier(tail, tolerance), tail)
    result = np.vstack([first, second[1:]])

    if len(result) < 4:
        return vertices.copy()

    return result


# ============================================================================
# Public API functions
# ============================================================================

def simplify_edge(
    coords: np.ndarray,
    tolerance: float,
    algorithm: SimplifyAlgorithm = SimplifyAlgorithm.RDP
) -> np.ndarray:
    """Simplify a single boundary edge while keeping its endpoints fixed.

    Args:
        coords: Edge coordinates (Nx2). The first and last coordinates are
            nodes and are returned unchanged.
        tolerance: Simplification tolerance. For RDP this is a distance, for
            VW/VWP an area threshold. Zero returns the edge unchanged.
        algorithm: Simplification algorithm to apply

    Returns:
        New numpy array with the same or fewer vertices

    Raises:
        ValueError: If tolerance is negative

    Examples:
        >>> edge = np.array([(0, 0), (1, 0.01), (2, 0), (3, 0)])
        >>> simplify_edge(edge, 0.1)
        array([[0., 0.],
               [3., 0.]])
    """
    if tolerance < 0:
        raise ValueError(f"tolerance must be non-negative, got {tolerance}")

    vertices = np.asarray(coords, dtype=float)
    if tolerance == 0 or len(vertices) < 3:
        return vertices.copy()

    simplifier = _SIMPLIFIERS[algorithm]

    if np.array_equal(vertices[0], vertices[-1]):
        return _simplify_closed(vertices, tolerance, simplifier)

    return _pin_endpoints(simplifier(vertices, tolerance), vertices)


def retain_farthest_vertex(simplified: np.ndarray, original: np.ndarray) -> np.ndarray:
    """Put back the interior vertex farthest from an edge's chord.

    Used for edges of rings made of fewer than three edges, where straight
    chords alone would collapse the ring. Edges that kept an interior vertex,
    or never had one, are returned unchanged.

    Args:
        simplified: Simplified edge coordinates
        original: The edge before simplification

    Returns:
        Edge with at least three coordinates where the original had them

    Examples:
        >>> edge = np.array([(0, 0), (1, 0.4), (2, 0.5), (3, 0)])
        >>> retain_farthest_vertex(edge[[0, -1]], edge)
        array([[0. , 0. ],
               [2. , 0.5],
               [3. , 0. ]])
    """
    if len(simplified) >= 3 or len(original) < 3:
        return simplified

    start, end = original[0], original[-1]
    interior = original[1:-1]
    chord = end - start
    length = np.hypot(chord[0], chord[1])
    if length == 0:
        distances = np.linalg.norm(interior - start, axis=1)
    else:
        offsets = interior - start
        distances = np.abs(chord[0] * offsets[:, 1] - chord[1] * offsets[:, 0]) / length

    farthest = int(np.argmax(distances)) + 1
    return original[[0, farthest, -1]].copy()


__all__ = [
    'simplify_edge',
    'retain_farthest_vertex',
]
