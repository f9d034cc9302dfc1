# -*- coding: utf-8 -*-
"""
IO Module - Block-streamed raster sources and sinks.

Key Classes
-----------
- BlockReader: ABC for sources that fill a caller-owned block buffer
- BlockWriter: ABC for sinks that drain a caller-owned block buffer
- RawBlockReader: Headerless int16 elevation stream
- RawBlockWriter: Headerless uint8 slope stream with optional JSON sidecar

Author
------
Steven Siebert

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

from demslope.IO.base import BlockReader, BlockWriter
from demslope.IO.raw import RawBlockReader, RawBlockWriter, slope_metadata

__all__ = [
    'BlockReader',
    'BlockWriter',
    'RawBlockReader',
    'RawBlockWriter',
    'slope_metadata',
]
