"""
Unit tests for mainland polygon selection.

Run with: python -m pytest geoclue/_tests/test_mainland.py -v
"""

import importlib

import numpy as np
import pytest
from shapely.geometry import LineString, MultiPolygon, Polygon, box

from geoclue.errors import InvalidRegionError
from geoclue.geometry.mainland import (
    build_mainland_table,
    mainland,
    mainland_polygon,
    projected_areas,
)
from geoclue.models import Region

# The package re-exports the `mainland` function, which shadows the submodule
# attribute, so fetch the module object explicitly.
mainland_module = importlib.import_module("geoclue.geometry.mainland")


class TestMainlandPolygon:
    """Largest-member selection."""

    def test_polygon_is_returned_unchanged(self):
        poly = box(0, 0, 1, 1)
        assert mainland_polygon(poly) is poly

    def test_largest_member_wins(self):
        big, small = box(20, 0, 25, 5), box(40, 0, 40.5, 0.5)
        assert mainland_polygon(MultiPolygon([small, big])).equals(big)

    def test_area_is_measured_equal_area_not_in_degrees(self):
        """A polar box larger in square degrees is smaller on the ground."""
        polar = box(0, 80, 10, 85)
        equatorial = box(0, 0, 3, 3)
        assert polar.area > equatorial.area
        result = mainland_polygon(MultiPolygon([polar, equatorial]))
        assert result.equals(equatorial)

    def test_tie_keeps_first_member(self, monkeypatch):
        """Equal areas: the first member in input order is chosen."""
        first, second = box(0, 0, 1, 1), box(5, 5, 6, 6)
        monkeypatch.setattr(
            mainland_module,
            "projected_areas",
            lambda polygons, *args, **kwargs: np.array([7.0, 7.0]),
        )
        assert mainland_polygon(MultiPolygon([first, second])).equals(first)
        assert mainland_polygon(MultiPolygon([second, first])).equals(second)

    def test_deterministic(self):
        geom = MultiPolygon([box(0, 0, 2, 2), box(5, 5, 6, 6), box(9, 9, 9.5, 9.5)])
        assert mainland_polygon(geom).equals(mainland_polygon(geom))

    def test_empty_multipolygon_raises(self):
        with pytest.raises(InvalidRegionError):
            mainland_polygon(MultiPolygon([]))

    def test_empty_polygon_raises(self):
        with pytest.raises(InvalidRegionError):
            mainland_polygon(Polygon())

    def test_non_polygonal_raises(self):
        with pytest.raises(InvalidRegionError):
            mainland_polygon(LineString([(0, 0), (1, 1)]))


class TestProjectedAreas:
    def test_areas_follow_input_order(self):
        areas = projected_areas([box(0, 0, 1, 1), box(0, 0, 2, 2)])
        assert areas.shape == (2,)
        assert areas[1] == pytest.approx(4 * areas[0], rel=1e-3)

    def test_one_degree_box_at_equator(self):
        """~12,300 km² for a 1x1 degree box at the equator."""
        (area,) = projected_areas([box(0, 0, 1, 1)])
        assert area / 1e6 == pytest.approx(12340, rel=0.01)


class TestMainlandTable:
    """Side-table construction."""

    def test_mainland_region_copy(self, regions):
        delta = next(r for r in regions if r.region_id == "DDD")
        result = mainland(delta)
        assert result == delta
        assert result.geometry.equals(box(20, 0, 25, 5))
        assert delta.is_multipart

    def test_table_covers_valid_regions(self, regions):
        table = build_mainland_table(regions)
        assert set(table) == {"AAA", "BBB", "CCC", "DDD"}
        assert table["DDD"].equals(box(20, 0, 25, 5))

    def test_invalid_region_skipped(self, regions):
        broken = Region(region_id="ZZZ", name="Broken", geometry=MultiPolygon([]))
        table = build_mainland_table([*regions, broken])
        assert "ZZZ" not in table
        assert len(table) == len(regions)
