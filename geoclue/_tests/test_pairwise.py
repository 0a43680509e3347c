"""
Unit tests for the spherical point-to-segment distance kernel.

Tests:
1. Kernel against known great-circle values (cross-track, endpoint, degenerate)
2. Directional minimum over vertex blocks
3. Region-to-region distance (touching, separated, symmetric)

Run with: python -m pytest geoclue/_tests/test_pairwise.py -v
"""

import math

import numpy as np
import pytest
from pyproj import Geod
from shapely.geometry import MultiPolygon, Polygon, box

from geoclue.config_types import GeodesyConfig
from geoclue.geometry.pairwise import (
    EARTH_RADIUS_KM,
    PairwiseDistanceCalculator,
    directional_min_km,
    explode_vertices,
    lonlat_to_unit_vectors,
    min_distance_km,
    point_segment_distances_km,
    polygon_to_segments,
)

# One degree of arc on the mean-radius sphere
ONE_DEGREE_KM = math.radians(1.0) * EARTH_RADIUS_KM

SPHERE = Geod(a=EARTH_RADIUS_KM * 1000.0, f=0.0)


def _kernel(point, start, end):
    """Distance from one lon/lat point to one lon/lat segment."""
    return point_segment_distances_km(
        lonlat_to_unit_vectors(np.array([point], dtype=float)),
        lonlat_to_unit_vectors(np.array([start], dtype=float)),
        lonlat_to_unit_vectors(np.array([end], dtype=float)),
    )[0, 0]


class TestPolygonDecomposition:
    """Vertex and segment extraction."""

    def test_box_vertices_drop_closing_point(self):
        """A box has 4 distinct vertices."""
        assert explode_vertices(box(0, 0, 1, 1)).shape == (4, 2)

    def test_box_segments(self):
        """A closed ring of 5 coords gives 4 segments."""
        starts, ends = polygon_to_segments(box(0, 0, 1, 1))
        assert starts.shape == (4, 2)
        assert ends.shape == (4, 2)

    def test_holes_are_included(self):
        """Interior rings contribute segments too."""
        outer = [(0, 0), (10, 0), (10, 10), (0, 10)]
        hole = [(4, 4), (6, 4), (6, 6), (4, 6)]
        starts, _ = polygon_to_segments(Polygon(outer, [hole]))
        assert len(starts) == 8

    def test_multipolygon_members_are_included(self):
        geom = MultiPolygon([box(0, 0, 1, 1), box(5, 5, 6, 6)])
        assert explode_vertices(geom).shape == (8, 2)

    def test_non_polygonal_rejected(self):
        from shapely.geometry import Point

        with pytest.raises(ValueError):
            polygon_to_segments(Point(0, 0))


class TestPointSegmentKernel:
    """Great-circle distances against hand-computed and pyproj values."""

    def test_perpendicular_foot_inside_segment(self):
        """(0, 1) to equator segment (-1, 0)-(1, 0) is one degree."""
        d = _kernel((0, 1), (-1, 0), (1, 0))
        assert d == pytest.approx(ONE_DEGREE_KM, rel=1e-9)
        assert d == pytest.approx(111.195, abs=1e-3)

    def test_foot_outside_segment_uses_nearest_endpoint(self):
        """(5, 0) is 4 degrees from the (1, 0) endpoint."""
        d = _kernel((5, 0), (-1, 0), (1, 0))
        assert d == pytest.approx(4 * ONE_DEGREE_KM, rel=1e-9)
        assert d == pytest.approx(444.78, abs=0.01)

    def test_degenerate_segment_is_point_distance(self):
        """Zero-length segment reduces to point-to-point distance."""
        d = _kernel((0, 1), (0, 0), (0, 0))
        assert d == pytest.approx(ONE_DEGREE_KM, rel=1e-9)

    def test_point_on_segment_is_zero(self):
        d = _kernel((0.5, 0), (-1, 0), (1, 0))
        assert d == pytest.approx(0.0, abs=1e-6)

    def test_matches_pyproj_sphere_for_endpoint_case(self):
        """Endpoint distance agrees with pyproj on the same sphere."""
        _, _, meters = SPHERE.inv(30.0, 45.0, 32.0, 46.5)
        d = _kernel((30.0, 45.0), (32.0, 46.5), (32.0, 46.5))
        assert d == pytest.approx(meters / 1000.0, rel=1e-6)

    def test_nan_input_gives_nan(self):
        d = point_segment_distances_km(
            np.array([[np.nan, np.nan, np.nan]]),
            lonlat_to_unit_vectors(np.array([[0.0, 0.0]])),
            lonlat_to_unit_vectors(np.array([[1.0, 0.0]])),
        )
        assert np.isnan(d[0, 0])


class TestDirectionalMinimum:
    """Vertex-block minimum over all segments."""

    def test_small_chunks_give_same_result(self):
        vertices = explode_vertices(box(0, 0, 1, 1))
        starts, ends = polygon_to_segments(box(10, 0, 11, 1))
        full = directional_min_km(vertices, starts, ends, chunk_size=256)
        chunked = directional_min_km(vertices, starts, ends, chunk_size=1)
        assert chunked == pytest.approx(full, rel=1e-12)

    def test_no_segments_is_infinite(self):
        vertices = explode_vertices(box(0, 0, 1, 1))
        empty = np.empty((0, 2))
        assert directional_min_km(vertices, empty, empty) == math.inf

    def test_all_invalid_is_infinite(self):
        vertices = np.array([[np.nan, np.nan]])
        starts, ends = polygon_to_segments(box(0, 0, 1, 1))
        assert directional_min_km(vertices, starts, ends) == math.inf


class TestRegionDistance:
    """min_distance_km and PairwiseDistanceCalculator."""

    def test_touching_boxes_are_zero(self):
        assert min_distance_km(box(0, 0, 1, 1), box(1, 0, 2, 1)) == 0.0

    def test_overlapping_boxes_are_zero(self):
        assert min_distance_km(box(0, 0, 2, 2), box(1, 1, 3, 3)) == 0.0

    def test_separated_boxes(self):
        """Unit boxes 9 degrees apart on the equator are ~1000 km apart."""
        d = min_distance_km(box(0, 0, 1, 1), box(10, 0, 11, 1))
        assert 995.0 <= d <= 1005.0

    def test_symmetric(self):
        a = box(0, 0, 1, 1)
        b = Polygon([(5, 3), (8, 2), (7, 6)])
        assert min_distance_km(a, b) == pytest.approx(min_distance_km(b, a), abs=1e-9)

    def test_vertex_to_long_edge_uses_cross_track(self):
        """Closest approach lands mid-edge, not at a vertex."""
        small = Polygon([(0, 2), (0.1, 3), (-0.1, 3)])
        wide = box(-5, -1, 5, 0)
        d = min_distance_km(small, wide)
        assert d == pytest.approx(2 * ONE_DEGREE_KM, rel=1e-6)

    def test_multipolygon_uses_closest_member(self):
        near_island = MultiPolygon([box(50, 0, 60, 10), box(2, 0, 3, 1)])
        d = min_distance_km(box(0, 0, 1, 1), near_island)
        assert d < 120.0

    def test_calculator_uses_configured_radius(self):
        half = PairwiseDistanceCalculator(
            GeodesyConfig(earth_radius_km=EARTH_RADIUS_KM / 2)
        )
        full = PairwiseDistanceCalculator()
        a, b = box(0, 0, 1, 1), box(10, 0, 11, 1)
        assert half.distance(a, b) == pytest.approx(full.distance(a, b) / 2)
