# -*- coding: utf-8 -*-
"""
demslope Vocabulary - Enumerations shared by the kernel, writer and CLI.

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

from enum import Enum


class SlopeUnits(Enum):
    """Unit of the slope value stored in each output cell.

    ``DEGREES`` stores ``atan(rise / run)`` in degrees, always in
    ``[0, 90)``. ``PERCENT`` stores ``100 * rise / run``, clipped to the
    byte range.
    """

    DEGREES = "degrees"
    PERCENT = "percent"


class Quantization(Enum):
    """Policy for narrowing a floating-point slope into a uint8 cell.

    ``ROUND`` rounds half to even. ``TRUNCATE`` drops the fractional part
    (truncation toward zero).
    """

    ROUND = "round"
    TRUNCATE = "truncate"


class ByteOrder(Enum):
    """Byte order of the int16 elevation cells in the input stream."""

    LITTLE = "<"
    BIG = ">"
    NATIVE = "="
