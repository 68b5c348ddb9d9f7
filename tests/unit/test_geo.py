"""Tests for haversine great-circle distance."""
import itertools

import pytest

from wildlife.analysis.geo import EARTH_RADIUS_M, haversine_m

POINTS = [
    (0.0, 0.0),
    (10.0, 50.0),
    (-122.3321, 47.6062),
    (151.2093, -33.8688),
    (179.9, 89.9),
    (-179.9, -89.9),
]


class TestHaversine:
    @pytest.mark.parametrize("lon,lat", POINTS)
    def test_identical_points_zero_exactly(self, lon, lat):
        assert haversine_m(lon, lat, lon, lat) == 0.0

    @pytest.mark.parametrize("a,b", list(itertools.combinations(POINTS, 2)))
    def test_symmetric(self, a, b):
        assert haversine_m(*a, *b) == haversine_m(*b, *a)

    @pytest.mark.parametrize("a,b,c", list(itertools.combinations(POINTS, 3)))
    def test_triangle_inequality(self, a, b, c):
        ab = haversine_m(*a, *b)
        bc = haversine_m(*b, *c)
        ac = haversine_m(*a, *c)
        assert ac <= ab + bc + 1e-6

    def test_one_degree_of_latitude(self):
        # One degree along a meridian = R * pi / 180 ≈ 111.195 km
        d = haversine_m(0.0, 0.0, 0.0, 1.0)
        assert d == pytest.approx(EARTH_RADIUS_M * 3.141592653589793 / 180.0, rel=1e-12)

    def test_known_city_pair(self):
        # Paris → London ≈ 343.5 km on a sphere
        d = haversine_m(2.3522, 48.8566, -0.1276, 51.5072)
        assert d == pytest.approx(343_500, rel=0.01)

    def test_antipodal_points_half_circumference(self):
        d = haversine_m(0.0, 0.0, 180.0, 0.0)
        assert d == pytest.approx(EARTH_RADIUS_M * 3.141592653589793, rel=1e-9)

    def test_longitude_wraps_across_dateline(self):
        # 179.9 and -179.9 are 0.2 degrees apart, not 359.8
        d = haversine_m(179.9, 0.0, -179.9, 0.0)
        assert d < 25_000
