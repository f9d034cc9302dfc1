# -*- coding: utf-8 -*-
"""
Geodetic Scaler Tests - Row latitudes and latitude-scaled cell spacing.

Dependencies
------------
pytest

Author
------
Duane Smalley, PhD
duane.d.smalley@gmail.com

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-10-19

Modified
--------
2026-10-19
"""

import numpy as np
import pytest

from demslope.geodesy import (
    cell_distances,
    horizontal_distance,
    output_row_latitudes,
    row_latitude,
)


class TestRowLatitude:
    """Test row index to latitude conversion."""

    def test_top_row(self):
        assert row_latitude(76.0, 0) == 76.0

    def test_one_degree_down(self):
        assert row_latitude(76.0, 3600) == pytest.approx(75.0)

    def test_custom_rows_per_degree(self):
        # 3 arc-second cells: 1200 rows per degree
        assert row_latitude(10.0, 1200, rows_per_degree=1200) == \
            pytest.approx(9.0)

    def test_monotonic_decrease(self):
        lats = row_latitude(76.0, np.arange(0, 475200, 4752))
        assert np.all(np.diff(lats) < 0)


class TestHorizontalDistance:
    """Test meridian convergence scaling."""

    def test_equator_equals_vertical(self):
        assert horizontal_distance(30.87, 0.0) == pytest.approx(30.87)

    def test_sixty_degrees_is_half(self):
        assert horizontal_distance(30.87, 60.0) == pytest.approx(30.87 / 2)

    def test_strictly_decreasing_with_latitude(self):
        lats = np.linspace(0.0, 89.9, 200)
        dist = horizontal_distance(30.87, lats)
        assert np.all(np.diff(dist) < 0)

    def test_symmetric_about_equator(self):
        lats = np.array([12.5, 45.0, 80.0])
        np.testing.assert_allclose(
            horizontal_distance(30.87, lats),
            horizontal_distance(30.87, -lats),
        )

    def test_positive_short_of_pole(self):
        assert horizontal_distance(30.87, 89.999) > 0


class TestOutputRowLatitudes:
    """Test output row centre sampling."""

    def test_row_centres(self):
        lats = output_row_latitudes(76.0, 0, 3, factor=3)
        expected = 76.0 - np.array([1.5, 4.5, 7.5]) / 3600.0
        np.testing.assert_allclose(lats, expected, rtol=0, atol=1e-12)

    def test_offset_first_row(self):
        lats = output_row_latitudes(76.0, 47520, 1, factor=3)
        assert lats[0] == pytest.approx(76.0 - 47521.5 / 3600.0)

    def test_cell_distances(self):
        lats, horz = cell_distances(0.0, 0, 4, 30.87, factor=3)
        assert lats.shape == (4,)
        assert horz.shape == (4,)
        assert np.all(horz < 30.87)
        np.testing.assert_allclose(horz, 30.87, rtol=1e-8)
