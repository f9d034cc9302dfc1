# -*- coding: utf-8 -*-
"""
Blocking Module - Row-block planning and parallel sub-block computation.

Cuts the mosaic into memory-bounded row-blocks, cuts each block into
factor-aligned sub-blocks, and computes the sub-blocks on a thread pool.

Key Classes
-----------
- BlockRegion: Row range of one row-block within the mosaic
- SubBlock: Row-group of a block owned by one worker
- SubBlockProcessor: Fills the output rows of one sub-block
- BlockPartitioner: Partitions a block and runs its sub-blocks fork-join

Usage
-----
    >>> from demslope.blocking import BlockPartitioner, plan_blocks
    >>> partitioner = BlockPartitioner(config)
    >>> for region in plan_blocks(config):
    ...     reader.read_block(input_block)
    ...     partitioner.run(input_block, output_block, region)
    ...     writer.write_block(output_block)

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

from demslope.blocking.base import (
    BlockRegion,
    SubBlock,
    check_partition,
    plan_blocks,
    plan_subblocks,
)
from demslope.blocking.processor import SubBlockProcessor
from demslope.blocking.partitioner import BlockPartitioner

__all__ = [
    'BlockRegion',
    'SubBlock',
    'check_partition',
    'plan_blocks',
    'plan_subblocks',
    'SubBlockProcessor',
    'BlockPartitioner',
]
