# -*- coding: utf-8 -*-
"""
demslope - Maximum terrain slope from elevation mosaics larger than memory.

Streams a headerless int16 elevation mosaic in memory-bounded row-blocks,
computes the steepest local gradient of every ``3 x 3`` window on a pool
of worker threads, and writes a byte-valued slope raster at one third of
the input resolution. Horizontal cell spacing is corrected for latitude
so geographic (lat/lon) mosaics give true ground slopes.

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

__version__ = "0.1.0"
__author__ = "Duane Smalley"

from demslope.exceptions import (
    DemSlopeError,
    ValidationError,
    ResourceUnavailableError,
    AllocationError,
    ShortReadError,
    ProcessorError,
)
from demslope.vocabulary import ByteOrder, Quantization, SlopeUnits
from demslope.config import MosaicConfig
from demslope.kernel import max_degree_slope, max_slope_ratio
from demslope.pipeline import (
    PipelineContext,
    PipelineResult,
    PipelineState,
    SlopePipeline,
)

__all__ = [
    'DemSlopeError',
    'ValidationError',
    'ResourceUnavailableError',
    'AllocationError',
    'ShortReadError',
    'ProcessorError',
    'ByteOrder',
    'Quantization',
    'SlopeUnits',
    'MosaicConfig',
    'max_degree_slope',
    'max_slope_ratio',
    'PipelineContext',
    'PipelineResult',
    'PipelineState',
    'SlopePipeline',
]
