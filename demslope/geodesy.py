# -*- coding: utf-8 -*-
"""
Geodetic Scaler - Latitude-dependent ground spacing of geographic grids.

In an equirectangular (lat/lon) grid the angular cell size is constant,
but the ground distance covered by one cell of longitude shrinks with
the cosine of latitude as meridians converge. The vertical (north-south)
spacing stays constant. These helpers give, for a row of the mosaic, its
latitude and the horizontal ground distance between adjacent cells.

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

# Standard library
from typing import Tuple, Union

# Third-party
import numpy as np

ROWS_PER_DEGREE = 3600.0

ArrayLike = Union[float, np.ndarray]


def row_latitude(
    top_latitude: float,
    row_index: ArrayLike,
    rows_per_degree: float = ROWS_PER_DEGREE,
) -> ArrayLike:
    """Latitude of a mosaic row, measured from the mosaic's top edge.

    Parameters
    ----------
    top_latitude : float
        Latitude of the mosaic's top edge, degrees.
    row_index : float or np.ndarray
        Row position from the top row. Fractional values address
        positions inside a row (``0.5`` is the centre of row 0).
    rows_per_degree : float
        Rows spanning one degree. Default ``3600`` (1 arc-second cells).

    Returns
    -------
    float or np.ndarray
        Latitude in degrees.
    """
    return top_latitude - row_index / rows_per_degree


def horizontal_distance(
    vertical_distance: float,
    latitude: ArrayLike,
) -> ArrayLike:
    """Ground distance between horizontally adjacent cells at ``latitude``.

    Equal to ``vertical_distance`` at the equator and shrinking toward
    zero at the poles.

    Parameters
    ----------
    vertical_distance : float
        Constant north-south cell spacing.
    latitude : float or np.ndarray
        Latitude in degrees.

    Returns
    -------
    float or np.ndarray
        East-west cell spacing in the unit of ``vertical_distance``.
    """
    return vertical_distance * np.cos(np.radians(latitude))


def output_row_latitudes(
    top_latitude: float,
    first_row: int,
    n_rows: int,
    factor: int = 3,
    rows_per_degree: float = ROWS_PER_DEGREE,
) -> np.ndarray:
    """Centre latitudes of consecutive output rows.

    Output row ``j`` collapses input rows ``first_row + factor*j`` through
    ``first_row + factor*(j+1) - 1``; it is sampled at the centre of that
    band, half an output row below its top edge.

    Parameters
    ----------
    top_latitude : float
        Latitude of the mosaic's top edge.
    first_row : int
        Input row (from the mosaic top) where the first output row starts.
    n_rows : int
        Number of output rows.
    factor : int
        Input rows per output row.
    rows_per_degree : float
        Input rows spanning one degree.

    Returns
    -------
    np.ndarray
        float64 latitudes, shape ``(n_rows,)``.
    """
    centres = first_row + factor * (np.arange(n_rows, dtype=np.float64) + 0.5)
    return row_latitude(top_latitude, centres, rows_per_degree)


def cell_distances(
    top_latitude: float,
    first_row: int,
    n_rows: int,
    vertical_distance: float,
    factor: int = 3,
    rows_per_degree: float = ROWS_PER_DEGREE,
) -> Tuple[np.ndarray, np.ndarray]:
    """Per output row latitude and horizontal cell distance.

    Returns
    -------
    latitudes : np.ndarray
        Row-centre latitudes, shape ``(n_rows,)``.
    horizontal : np.ndarray
        Horizontal cell spacing at each latitude, shape ``(n_rows,)``.
    """
    latitudes = output_row_latitudes(
        top_latitude, first_row, n_rows, factor, rows_per_degree,
    )
    return latitudes, horizontal_distance(vertical_distance, latitudes)
