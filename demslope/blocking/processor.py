# -*- coding: utf-8 -*-
"""
Sub-Block Processor - Slope computation for one row-group of a block.

Reads the sub-block's rows of the persistent input buffer and fills the
matching rows of the persistent output buffer, one downsampled cell per
``factor x factor`` input window. Work proceeds in strips of
``strip_rows`` output rows so temporaries stay bounded regardless of
mosaic width. Each output row gets its own horizontal cell distance from
the latitude of its centre.

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
import logging

# Third-party
import numpy as np

# demslope internal
from demslope.blocking.base import SubBlock
from demslope.config import MosaicConfig
from demslope.exceptions import ValidationError
from demslope.geodesy import cell_distances
from demslope.kernel import max_slope_ratio_grid, quantize, to_units

logger = logging.getLogger(__name__)


class SubBlockProcessor:
    """Compute every output cell owned by one sub-block.

    Instances hold only configuration and are safe to share across
    worker threads; all per-call state lives in the buffers passed to
    ``process``.

    Parameters
    ----------
    config : MosaicConfig
        Run configuration supplying the downsample factor, physical
        spacing, output units and quantization policy.

    Examples
    --------
    >>> proc = SubBlockProcessor(config)
    >>> for sub in subs:
    ...     proc.process(input_block, output_block, sub)
    """

    def __init__(self, config: MosaicConfig) -> None:
        self._config = config

    @property
    def config(self) -> MosaicConfig:
        return self._config

    def process(
        self,
        input_block: np.ndarray,
        output_block: np.ndarray,
        sub: SubBlock,
    ) -> None:
        """Fill ``output_block[sub.out_row_start:sub.out_row_end]``.

        Parameters
        ----------
        input_block : np.ndarray
            int16 block buffer, shape ``(block_rows, width)``.
        output_block : np.ndarray
            uint8 block buffer, shape
            ``(block_rows // factor, width // factor)``.
        sub : SubBlock
            Row-group to compute.

        Raises
        ------
        ValidationError
            If the sub-block does not fit the buffers.
        """
        cfg = self._config
        f = cfg.downsample
        if sub.row_end > input_block.shape[0] or \
                sub.out_row_end > output_block.shape[0]:
            raise ValidationError(
                f"sub-block {sub.index} rows [{sub.row_start}, {sub.row_end})"
                f" exceed block buffers {input_block.shape} / "
                f"{output_block.shape}"
            )
        if input_block.shape[1] != output_block.shape[1] * f:
            raise ValidationError(
                f"input width {input_block.shape[1]} does not match output "
                f"width {output_block.shape[1]} x factor {f}"
            )

        rows = input_block[sub.row_start:sub.row_end]
        cells = output_block[sub.out_row_start:sub.out_row_end]
        logger.debug("Sub-block %d: input rows [%d, %d), mosaic row %d",
                     sub.index, sub.row_start, sub.row_end, sub.mosaic_row)

        for start in range(0, sub.out_rows, cfg.strip_rows):
            stop = min(start + cfg.strip_rows, sub.out_rows)
            _, horizontal = cell_distances(
                sub.top_latitude,
                start * f,
                stop - start,
                cfg.vertical_distance,
                factor=f,
                rows_per_degree=cfg.rows_per_degree,
            )
            ratio = max_slope_ratio_grid(
                rows[start * f:stop * f], f, horizontal,
                cfg.vertical_distance,
            )
            quantize(to_units(ratio, cfg.units), cfg.quantization,
                     out=cells[start:stop])
