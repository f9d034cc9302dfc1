# -*- coding: utf-8 -*-
"""
Blocking Base - Row-block and sub-block region types.

Defines the ``BlockRegion`` and ``SubBlock`` named tuples that describe
where a memory-resident row-block sits in the mosaic and how it is cut
into row-groups for parallel computation, along with ``plan_blocks`` and
``check_partition`` for building and verifying those layouts. Regions
are index bounds only; they never own pixel data.

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
from typing import List, NamedTuple, Sequence

# demslope internal
from demslope.config import MosaicConfig
from demslope.exceptions import ValidationError
from demslope.geodesy import row_latitude


class BlockRegion(NamedTuple):
    """Row range of one row-block within the mosaic.

    All rows are mosaic coordinates. Use directly for slicing the
    conceptual full raster::

        block = mosaic[region.row_start:region.row_end]

    Attributes
    ----------
    index : int
        Zero-based block number.
    row_start : int
        First input row (inclusive).
    row_end : int
        Last input row (exclusive).
    out_row_start : int
        First output row (inclusive).
    out_row_end : int
        Last output row (exclusive).
    """

    index: int
    row_start: int
    row_end: int
    out_row_start: int
    out_row_end: int

    @property
    def rows(self) -> int:
        return self.row_end - self.row_start


class SubBlock(NamedTuple):
    """Row-group of a block assigned to one worker.

    Row bounds are local to the owning block's buffers, so they slice
    the persistent input and output buffers directly::

        rows = input_block[sub.row_start:sub.row_end]
        cells = output_block[sub.out_row_start:sub.out_row_end]

    Attributes
    ----------
    index : int
        Position within the block.
    row_start : int
        First input row in the block buffer (inclusive).
    row_end : int
        Last input row in the block buffer (exclusive).
    out_row_start : int
        First output row in the output buffer (inclusive).
    out_row_end : int
        Last output row in the output buffer (exclusive).
    mosaic_row : int
        Mosaic row of ``row_start``.
    top_latitude : float
        Latitude of the sub-block's top edge, degrees.
    """

    index: int
    row_start: int
    row_end: int
    out_row_start: int
    out_row_end: int
    mosaic_row: int
    top_latitude: float

    @property
    def rows(self) -> int:
        return self.row_end - self.row_start

    @property
    def out_rows(self) -> int:
        return self.out_row_end - self.out_row_start


def plan_blocks(config: MosaicConfig) -> List[BlockRegion]:
    """Row-blocks covering the whole mosaic, top to bottom.

    Parameters
    ----------
    config : MosaicConfig
        Validated run configuration.

    Returns
    -------
    List[BlockRegion]
        ``config.blocks`` contiguous regions of ``config.block_rows`` rows.
    """
    b = config.block_rows
    ob = config.output_block_rows
    return [
        BlockRegion(i, i * b, (i + 1) * b, i * ob, (i + 1) * ob)
        for i in range(config.blocks)
    ]


def plan_subblocks(
    block: BlockRegion,
    subblocks: int,
    factor: int,
    top_latitude: float,
    rows_per_degree: float,
) -> List[SubBlock]:
    """Split ``block`` into ``subblocks`` equal, factor-aligned row-groups.

    Raises
    ------
    ValidationError
        If the block height does not split into factor-aligned groups.
    """
    if block.rows % subblocks:
        raise ValidationError(
            f"block of {block.rows} rows does not split into "
            f"{subblocks} sub-blocks"
        )
    step = block.rows // subblocks
    if step % factor:
        raise ValidationError(
            f"sub-block height {step} is not divisible by factor {factor}"
        )
    out_step = step // factor
    subs = []
    for i in range(subblocks):
        mosaic_row = block.row_start + i * step
        subs.append(SubBlock(
            index=i,
            row_start=i * step,
            row_end=(i + 1) * step,
            out_row_start=i * out_step,
            out_row_end=(i + 1) * out_step,
            mosaic_row=mosaic_row,
            top_latitude=float(
                row_latitude(top_latitude, mosaic_row, rows_per_degree)
            ),
        ))
    return subs


def check_partition(
    subs: Sequence[SubBlock],
    block_rows: int,
    factor: int,
) -> None:
    """Verify sub-blocks tile a block exactly once.

    The input row ranges and the output row ranges must each be
    contiguous, non-overlapping and cover ``[0, block_rows)`` and
    ``[0, block_rows // factor)`` respectively, and every input range
    must map to its output range through ``factor``.

    Raises
    ------
    ValidationError
        On any gap, overlap or misalignment.
    """
    expected_row = 0
    expected_out = 0
    for sub in sorted(subs, key=lambda s: s.row_start):
        if sub.row_start != expected_row or sub.out_row_start != expected_out:
            raise ValidationError(
                f"sub-block {sub.index} starts at row {sub.row_start} "
                f"(output {sub.out_row_start}); expected {expected_row} "
                f"(output {expected_out})"
            )
        if sub.rows <= 0 or sub.rows % factor or \
                sub.out_rows * factor != sub.rows:
            raise ValidationError(
                f"sub-block {sub.index} rows [{sub.row_start}, "
                f"{sub.row_end}) are not aligned to factor {factor}"
            )
        expected_row = sub.row_end
        expected_out = sub.out_row_end
    if expected_row != block_rows or expected_out * factor != block_rows:
        raise ValidationError(
            f"sub-blocks cover {expected_row} of {block_rows} rows"
        )
