import numpy as np
import pytest

from topothin.core import SimplifyAlgorithm
from topothin.simplify import retain_farthest_vertex, simplify_edge


class TestSimplifyRDP:
    """Tests for RDP edge simplification."""

    def test_wavy_edge_rdp(self):
        """Test basic RDP simplification."""
        x = np.linspace(0, 10, 100)
        edge = np.column_stack([x, np.sin(x)])

        result = simplify_edge(edge, 0.1)

        # Should have significantly fewer vertices
        assert len(result) < len(edge)
        assert len(result) > 2  # But not too few

    def test_straight_edge_rdp(self):
        """A straight edge collapses to its endpoints."""
        edge = np.array([(0, 0), (1, 0), (2, 0), (3, 0)], dtype=float)
        result = simplify_edge(edge, 0.01)

        np.testing.assert_array_equal(result, [(0, 0), (3, 0)])

    def test_endpoints_exact(self):
        """Endpoints come back bit for bit."""
        start = (0.1 + 0.2, 151.20000000000002)
        end = (1.0 / 3.0, 150.9999999999999)
        edge = np.array([start, (0.31, 151.1), (0.32, 151.05), end])

        for tolerance in (0.0, 1e-6, 0.01, 10.0):
            result = simplify_edge(edge, tolerance)
            assert tuple(result[0]) == start
            assert tuple(result[-1]) == end

    def test_zero_tolerance_unchanged(self):
        """Tolerance zero returns a copy of the edge."""
        edge = np.array([(0, 0), (1, 0), (2, 0)], dtype=float)
        result = simplify_edge(edge, 0.0)

        np.testing.assert_array_equal(result, edge)
        assert result is not edge

    def test_two_point_edge(self):
        """Edges without interior vertices are returned as-is."""
        edge = np.array([(0, 0), (5, 5)], dtype=float)
        np.testing.assert_array_equal(simplify_edge(edge, 1.0), edge)

    def test_negative_tolerance(self):
        with pytest.raises(ValueError):
            simplify_edge(np.array([(0, 0), (1, 1), (2, 0)], dtype=float), -0.1)


class TestClosedEdges:
    """Tests for edges that start and end at the same node."""

    def test_closed_edge_stays_closed(self):
        """A closed edge keeps its shared start and end node."""
        t = np.linspace(0, 2 * np.pi, 60)
        edge = np.column_stack([np.cos(t), np.sin(t)])
        edge[-1] = edge[0]

        result = simplify_edge(edge, 0.05)

        assert len(result) < len(edge)
        assert len(result) >= 4
        np.testing.assert_array_equal(result[0], result[-1])

    def test_closed_edge_too_small_kept(self):
        """A closed edge that would collapse is left unsimplified."""
        edge = np.array([(0, 0), (1, 0), (1, 1), (0, 1), (0, 0)], dtype=float)
        result = simplify_edge(edge, 10.0)

        np.testing.assert_array_equal(result, edge)


class TestRetainFarthestVertex:
    """Tests for restoring a vertex to a flattened edge."""

    def test_farthest_from_chord(self):
        edge = np.array([(0.0, 0.0), (1.0, 0.4), (2.0, 0.5), (3.0, 0.0)])

        result = retain_farthest_vertex(edge[[0, -1]], edge)

        np.testing.assert_array_equal(result, [(0.0, 0.0), (2.0, 0.5), (3.0, 0.0)])

    def test_distance_measured_across_chord(self):
        """Vertices on either side of a slanted chord are compared by distance."""
        edge = np.array([(0.0, 0.0), (1.0, 1.5), (2.0, 1.0), (3.0, 2.0)])

        result = retain_farthest_vertex(edge[[0, -1]], edge)

        np.testing.assert_array_equal(result[1], (1.0, 1.5))

    def test_simplified_edge_with_vertices_unchanged(self):
        edge = np.array([(0.0, 0.0), (1.0, 0.4), (2.0, 0.5), (3.0, 0.0)])
        simplified = edge[[0, 2, 3]]

        assert retain_farthest_vertex(simplified, edge) is simplified

    def test_two_point_edge_unchanged(self):
        edge = np.array([(0.0, 0.0), (3.0, 0.0)])
        assert len(retain_farthest_vertex(edge, edge)) == 2


class TestSimplifyVW:
    """Tests for Visvalingam-Whyatt edge simplification."""

    def test_curved_edge_vw(self):
        """Test basic VW simplification."""
        t = np.linspace(0, np.pi, 200)
        edge = np.column_stack([np.cos(t), np.sin(t)])

        result = simplify_edge(edge, 0.001, SimplifyAlgorithm.VW)

        assert len(result) < len(edge)
        assert len(result) > 10
        np.testing.assert_array_equal(result[0], edge[0])
        np.testing.assert_array_equal(result[-1], edge[-1])

    def test_vwp_edge(self):
        """Test basic VWP simplification."""
        edge = np.array([(i, i ** 2) for i in range(50)], dtype=float)
        result = simplify_edge(edge, 10.0, SimplifyAlgorithm.VWP)

        assert len(result) < len(edge)
        np.testing.assert_array_equal(result[0], edge[0])
        np.testing.assert_array_equal(result[-1], edge[-1])
