# -*- coding: utf-8 -*-
"""
Slope Kernel - Maximum local gradient of an elevation window.

Computes, for an ``h x w`` window of elevation cells, the steepest
rise-over-run between any two adjacent cells and converts it to a degree
(or percent) slope. Each cell is compared with its left, right, lower,
lower-left and lower-right neighbours when those fall inside the window;
the upward relations mirror pairs already visited from the cell above,
so every adjacent pair in the window is covered. Horizontal and vertical
pairs divide by the horizontal and vertical cell spacing; diagonal pairs
divide by ``sqrt(horizontal**2 + vertical**2)``.

Two evaluations are provided:

- ``max_slope_ratio`` walks a single window cell by cell. It is the
  reference definition and handles any window shape.
- ``max_slope_ratio_grid`` evaluates every ``factor x factor`` window of
  a row strip at once with numpy and is what the block processors use.
  Both return the same ratios to within floating-point rounding.

Dependencies
------------
numpy

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
import math
from typing import Optional, Union

# Third-party
import numpy as np

# demslope internal
from demslope.exceptions import ValidationError
from demslope.vocabulary import Quantization, SlopeUnits

# (row offset, col offset, relation) for the five visited neighbours.
_NEIGHBOURS = (
    (0, -1, 'horizontal'),   # left
    (0, 1, 'horizontal'),    # right
    (1, 0, 'vertical'),      # lower
    (1, -1, 'diagonal'),     # lower-left
    (1, 1, 'diagonal'),      # lower-right
)

# Largest float64 below 90; atan saturates at pi/2 for ratios above ~1e16.
_MAX_DEGREES = float(np.nextafter(90.0, 0.0))


def window_view(
    buffer: np.ndarray,
    row: int,
    col: int,
    height: int,
    width: int,
) -> np.ndarray:
    """Return an ``height x width`` view of ``buffer`` without copying.

    Parameters
    ----------
    buffer : np.ndarray
        2D elevation buffer, shape ``(rows, cols)``.
    row, col : int
        Upper-left cell of the window.
    height, width : int
        Window extent in cells.

    Returns
    -------
    np.ndarray
        View sharing memory with ``buffer``.

    Raises
    ------
    ValidationError
        If the window would extend past the buffer.
    """
    if buffer.ndim != 2:
        raise ValidationError(
            f"buffer must be 2D (rows, cols), got {buffer.ndim}D"
        )
    rows, cols = buffer.shape
    if (row < 0 or col < 0 or height < 0 or width < 0
            or row + height > rows or col + width > cols):
        raise ValidationError(
            f"window ({row}, {col}) size {height}x{width} exceeds "
            f"buffer of shape {buffer.shape}"
        )
    return buffer[row:row + height, col:col + width]


def max_slope_ratio(
    window: np.ndarray,
    horizontal: float,
    vertical: float,
) -> float:
    """Steepest rise-over-run between adjacent cells of one window.

    Parameters
    ----------
    window : np.ndarray
        2D elevation window, shape ``(h, w)``.
    horizontal : float
        Ground distance between horizontally adjacent cells.
    vertical : float
        Ground distance between vertically adjacent cells.

    Returns
    -------
    float
        Maximum ratio, ``0.0`` for a window with no adjacent pairs.
    """
    h, w = window.shape
    diagonal = math.hypot(horizontal, vertical)
    distance = {
        'horizontal': horizontal,
        'vertical': vertical,
        'diagonal': diagonal,
    }
    max_ratio = 0.0
    for r in range(h):
        for c in range(w):
            here = float(window[r, c])
            for dr, dc, relation in _NEIGHBOURS:
                r2 = r + dr
                c2 = c + dc
                if r2 >= h or c2 < 0 or c2 >= w:
                    continue
                ratio = abs(here - float(window[r2, c2])) / distance[relation]
                if ratio > max_ratio:
                    max_ratio = ratio
    return max_ratio


def ratio_to_degrees(ratio: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Convert rise-over-run to a slope angle in degrees, in ``[0, 90)``."""
    if np.ndim(ratio) == 0:
        return min(math.degrees(math.atan(float(ratio))), _MAX_DEGREES)
    return np.minimum(np.degrees(np.arctan(ratio)), _MAX_DEGREES)


def ratio_to_percent(ratio: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Convert rise-over-run to a percent slope."""
    return ratio * 100.0


def to_units(
    ratio: Union[float, np.ndarray],
    units: SlopeUnits = SlopeUnits.DEGREES,
) -> Union[float, np.ndarray]:
    """Convert rise-over-run to ``units``."""
    if units is SlopeUnits.PERCENT:
        return ratio_to_percent(ratio)
    return ratio_to_degrees(ratio)


def max_degree_slope(
    window: np.ndarray,
    horizontal: float,
    vertical: float,
) -> float:
    """Maximum slope of a window in degrees, in ``[0, 90)``.

    Examples
    --------
    >>> import numpy as np
    >>> from demslope.kernel import max_degree_slope
    >>> ramp = np.tile(np.arange(3, dtype=np.int16), (3, 1))
    >>> round(max_degree_slope(ramp, horizontal=1.0, vertical=1.0), 6)
    45.0
    """
    return ratio_to_degrees(max_slope_ratio(window, horizontal, vertical))


def window_slope(
    buffer: np.ndarray,
    row: int,
    col: int,
    height: int,
    width: int,
    horizontal: float,
    vertical: float,
) -> float:
    """Maximum degree slope of the window at ``(row, col)`` in ``buffer``."""
    window = window_view(buffer, row, col, height, width)
    return max_degree_slope(window, horizontal, vertical)


def _max_abs_diff(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    # Axes 1 and 3 index rows and cols inside each window.
    return np.abs(a - b).max(axis=(1, 3))


def max_slope_ratio_grid(
    rows: np.ndarray,
    factor: int,
    horizontal: Union[float, np.ndarray],
    vertical: float,
) -> np.ndarray:
    """Evaluate every ``factor x factor`` window of a row strip.

    Parameters
    ----------
    rows : np.ndarray
        2D elevation strip, shape ``(n * factor, m * factor)``.
    factor : int
        Window side length (the downsample factor).
    horizontal : float or np.ndarray
        Horizontal cell distance, scalar or one value per output row
        (shape ``(n,)``).
    vertical : float
        Vertical cell distance.

    Returns
    -------
    np.ndarray
        float64 ratios, shape ``(n, m)``.

    Raises
    ------
    ValidationError
        If the strip is not an exact multiple of ``factor`` or the
        distance array does not match the output row count.
    """
    if rows.ndim != 2:
        raise ValidationError(f"rows must be 2D, got {rows.ndim}D")
    n_rows, n_cols = rows.shape
    if n_rows % factor or n_cols % factor:
        raise ValidationError(
            f"strip shape {rows.shape} is not a multiple of factor {factor}"
        )
    n, m = n_rows // factor, n_cols // factor

    horizontal = np.asarray(horizontal, dtype=np.float64)
    if horizontal.ndim == 1:
        if horizontal.shape[0] != n:
            raise ValidationError(
                f"expected {n} horizontal distances, "
                f"got {horizontal.shape[0]}"
            )
        horizontal = horizontal[:, np.newaxis]

    if factor < 2 or n == 0 or m == 0:
        return np.zeros((n, m), dtype=np.float64)

    # int32 so differences of extreme int16 values cannot wrap.
    w = rows.reshape(n, factor, m, factor).astype(np.int32)

    horiz = _max_abs_diff(w[:, :, :, 1:], w[:, :, :, :-1])
    vert = _max_abs_diff(w[:, 1:, :, :], w[:, :-1, :, :])
    diag = np.maximum(
        _max_abs_diff(w[:, 1:, :, 1:], w[:, :-1, :, :-1]),    # lower-right
        _max_abs_diff(w[:, 1:, :, :-1], w[:, :-1, :, 1:]),    # lower-left
    )
    diagonal = np.hypot(horizontal, vertical)

    ratio = horiz / horizontal
    np.maximum(ratio, vert / vertical, out=ratio)
    np.maximum(ratio, diag / diagonal, out=ratio)
    return ratio


def quantize(
    values: np.ndarray,
    policy: Quantization = Quantization.ROUND,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Narrow slope values into uint8 cells.

    Parameters
    ----------
    values : np.ndarray
        Non-negative slope values.
    policy : Quantization
        ``ROUND`` (half to even) or ``TRUNCATE`` (toward zero).
    out : np.ndarray, optional
        uint8 destination with the shape of ``values``; written in place.

    Returns
    -------
    np.ndarray
        uint8 array (``out`` when given).
    """
    values = np.asarray(values, dtype=np.float64)
    if policy is Quantization.TRUNCATE:
        narrowed = np.array(np.trunc(values))
    else:
        narrowed = np.array(np.rint(values))
    np.clip(narrowed, 0, 255, out=narrowed)
    if out is None:
        return narrowed.astype(np.uint8)
    np.copyto(out, narrowed, casting='unsafe')
    return out
