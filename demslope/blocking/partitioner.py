# -*- coding: utf-8 -*-
"""
Block Partitioner - Fork-join fan-out of a row-block over a thread pool.

Splits a memory-resident row-block into factor-aligned sub-blocks, pairs
each with its starting latitude, submits one task per sub-block to a
``concurrent.futures`` thread pool, and blocks until every task has
finished. Sub-blocks read disjoint row ranges of the input buffer and
write disjoint row ranges of the output buffer, so no locking is needed.
numpy releases the GIL inside the kernel's array operations, which lets
the threads run concurrently.

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

# Standard library
import logging
from concurrent.futures import Executor, ThreadPoolExecutor, wait
from typing import List, Optional

# Third-party
import numpy as np

# demslope internal
from demslope.blocking.base import (
    BlockRegion,
    SubBlock,
    check_partition,
    plan_subblocks,
)
from demslope.blocking.processor import SubBlockProcessor
from demslope.config import MosaicConfig
from demslope.exceptions import ProcessorError, ValidationError

logger = logging.getLogger(__name__)


class BlockPartitioner:
    """Partition row-blocks and drive their sub-blocks to completion.

    Parameters
    ----------
    config : MosaicConfig
        Run configuration.
    processor : SubBlockProcessor, optional
        Per-sub-block worker. Defaults to ``SubBlockProcessor(config)``.

    Examples
    --------
    >>> partitioner = BlockPartitioner(config)
    >>> with ThreadPoolExecutor(max_workers=4) as pool:
    ...     partitioner.run(input_block, output_block, region, pool)
    """

    def __init__(
        self,
        config: MosaicConfig,
        processor: Optional[SubBlockProcessor] = None,
    ) -> None:
        self._config = config
        self._processor = processor or SubBlockProcessor(config)

    @property
    def processor(self) -> SubBlockProcessor:
        return self._processor

    def partition(self, block: BlockRegion) -> List[SubBlock]:
        """Sub-blocks of ``block`` with disjoint, gap-free row ranges.

        Parameters
        ----------
        block : BlockRegion
            Row-block position within the mosaic.

        Returns
        -------
        List[SubBlock]
            ``config.subblocks`` sub-blocks, top to bottom.
        """
        cfg = self._config
        subs = plan_subblocks(
            block, cfg.subblocks, cfg.downsample,
            cfg.top_latitude, cfg.rows_per_degree,
        )
        check_partition(subs, block.rows, cfg.downsample)
        return subs

    def run(
        self,
        input_block: np.ndarray,
        output_block: np.ndarray,
        block: BlockRegion,
        executor: Optional[Executor] = None,
    ) -> List[SubBlock]:
        """Compute every sub-block of ``block`` and wait for all of them.

        Parameters
        ----------
        input_block : np.ndarray
            Fully read int16 block buffer, shape ``(block_rows, width)``.
        output_block : np.ndarray
            uint8 block buffer to populate.
        block : BlockRegion
            Position of the block within the mosaic.
        executor : Executor, optional
            Pool to submit sub-block tasks to. When omitted, a pool of
            ``config.resolved_workers`` threads is created for this call.

        Returns
        -------
        List[SubBlock]
            The sub-blocks that were computed.

        Raises
        ------
        ValidationError
            If the buffers do not match the configured block geometry.
        ProcessorError
            If any sub-block task failed. Raised only after every task
            has settled, so the output buffer is never still being
            written when control returns.
        """
        cfg = self._config
        expected_in = (cfg.block_rows, cfg.width)
        expected_out = (cfg.output_block_rows, cfg.output_width)
        if input_block.shape != expected_in or \
                output_block.shape != expected_out:
            raise ValidationError(
                f"block buffers {input_block.shape} / {output_block.shape} "
                f"do not match configured {expected_in} / {expected_out}"
            )

        subs = self.partition(block)
        if executor is None:
            with ThreadPoolExecutor(
                max_workers=cfg.resolved_workers,
                thread_name_prefix='demslope',
            ) as pool:
                self._fan_out(pool, input_block, output_block, block, subs)
        else:
            self._fan_out(executor, input_block, output_block, block, subs)
        return subs

    def _fan_out(
        self,
        executor: Executor,
        input_block: np.ndarray,
        output_block: np.ndarray,
        block: BlockRegion,
        subs: List[SubBlock],
    ) -> None:
        logger.debug("Block %d: submitting %d sub-blocks",
                     block.index, len(subs))
        futures = {
            executor.submit(self._processor.process,
                            input_block, output_block, sub): sub
            for sub in subs
        }
        # Barrier: every task settles before the buffers are touched again.
        wait(futures)

        failed = [(futures[fut], fut.exception())
                  for fut in futures if fut.exception() is not None]
        if failed:
            sub, exc = min(failed, key=lambda item: item[0].index)
            raise ProcessorError(
                f"Block {block.index}: {len(failed)} of {len(subs)} "
                f"sub-blocks failed; sub-block {sub.index} "
                f"(mosaic row {sub.mosaic_row}): {exc}"
            ) from exc
