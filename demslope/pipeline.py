# -*- coding: utf-8 -*-
"""
Slope Pipeline - Sequential read / compute / write loop over a mosaic.

Drives the whole transform: for every row-block of the mosaic, read the
block into a persistent input buffer, compute it on the worker pool, and
write the persistent output buffer to the sink. Stages run strictly one
after another, so block ``N + 1`` is never read before block ``N`` has
been written and the two buffers can be reused without copies.

Progress is reported through the ``demslope.pipeline`` logger at start,
for every block stage, and at completion or failure. Fatal errors are
logged once here and re-raised; the CLI maps them to an exit status.

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
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

# Third-party
import numpy as np

# demslope internal
from demslope.IO.base import BlockReader, BlockWriter
from demslope.IO.raw import RawBlockReader, RawBlockWriter, slope_metadata
from demslope.blocking import BlockPartitioner, plan_blocks
from demslope.config import MosaicConfig
from demslope.exceptions import (
    AllocationError,
    ShortReadError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    """Stages of a pipeline run."""

    IDLE = "idle"
    READING = "reading"
    COMPUTING = "computing"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineResult:
    """Summary of a completed run.

    Attributes
    ----------
    blocks : int
        Row-blocks processed.
    cells_read : int
        Elevation cells consumed.
    bytes_written : int
        Slope bytes produced.
    elapsed : float
        Wall-clock seconds.
    """

    blocks: int
    cells_read: int
    bytes_written: int
    elapsed: float


class PipelineContext:
    """Owner of the two persistent block buffers.

    Both buffers are allocated once at construction and reused for every
    block. ``close()`` drops them; the context is single-use.

    Parameters
    ----------
    config : MosaicConfig
        Run configuration defining the buffer geometry.

    Raises
    ------
    AllocationError
        If either buffer cannot be allocated.
    """

    def __init__(self, config: MosaicConfig) -> None:
        self.input_block: Optional[np.ndarray] = self._allocate(
            'input', (config.block_rows, config.width), config.input_dtype,
        )
        self.output_block: Optional[np.ndarray] = self._allocate(
            'output', (config.output_block_rows, config.output_width),
            np.uint8,
        )

    @staticmethod
    def _allocate(name: str, shape, dtype) -> np.ndarray:
        logger.debug("Allocating %s block buffer %s %s", name, shape,
                     np.dtype(dtype))
        try:
            return np.empty(shape, dtype=dtype)
        except (MemoryError, ValueError) as exc:
            nbytes = int(np.prod(shape, dtype=np.float64)) * \
                np.dtype(dtype).itemsize
            raise AllocationError(
                f"Unable to allocate {name} block buffer of shape {shape} "
                f"({nbytes} bytes): {exc}"
            ) from exc

    @property
    def closed(self) -> bool:
        return self.input_block is None

    def close(self) -> None:
        self.input_block = None
        self.output_block = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class SlopePipeline:
    """Derive a downsampled maximum-slope raster from an elevation mosaic.

    Parameters
    ----------
    config : MosaicConfig
        Run configuration.
    partitioner : BlockPartitioner, optional
        Block fan-out strategy. Defaults to ``BlockPartitioner(config)``.

    Examples
    --------
    >>> config = MosaicConfig(input_path='mosaic.int',
    ...                       output_path='slope.byt')
    >>> result = SlopePipeline(config).run()
    >>> result.bytes_written == config.output_width * config.output_height
    True

    With in-memory streams:

    >>> src = io.BytesIO(dem.astype('<i2').tobytes())
    >>> dst = io.BytesIO()
    >>> SlopePipeline(config).run(RawBlockReader(src), RawBlockWriter(dst))
    """

    def __init__(
        self,
        config: MosaicConfig,
        partitioner: Optional[BlockPartitioner] = None,
    ) -> None:
        self._config = config
        self._partitioner = partitioner or BlockPartitioner(config)
        self._state = PipelineState.IDLE

    @property
    def config(self) -> MosaicConfig:
        return self._config

    @property
    def state(self) -> PipelineState:
        """Current stage; ``DONE`` or ``FAILED`` after ``run()``."""
        return self._state

    def _open_reader(self) -> BlockReader:
        cfg = self._config
        if cfg.input_path is None:
            raise ValidationError(
                "No input_path configured and no reader supplied"
            )
        logger.info("Opening input file %s", cfg.input_path)
        return RawBlockReader(
            cfg.input_path, dtype=cfg.input_dtype,
            expected_cells=cfg.width * cfg.height,
        )

    def _open_writer(self) -> BlockWriter:
        cfg = self._config
        if cfg.output_path is None:
            raise ValidationError(
                "No output_path configured and no writer supplied"
            )
        logger.info("Opening output file %s", cfg.output_path)
        return RawBlockWriter(
            cfg.output_path, metadata=slope_metadata(cfg),
            write_sidecar=cfg.write_sidecar,
        )

    def run(
        self,
        reader: Optional[BlockReader] = None,
        writer: Optional[BlockWriter] = None,
        progress_callback: Optional[Callable[[float], None]] = None,
    ) -> PipelineResult:
        """Process every block of the mosaic.

        Parameters
        ----------
        reader : BlockReader, optional
            Elevation source. Defaults to a raw reader on
            ``config.input_path``; readers passed in are not closed.
        writer : BlockWriter, optional
            Slope sink. Defaults to a raw writer on
            ``config.output_path``; writers passed in are not closed.
        progress_callback : callable, optional
            Called with the fraction of blocks completed after each block.

        Returns
        -------
        PipelineResult

        Raises
        ------
        ResourceUnavailableError
            If a stream cannot be opened.
        AllocationError
            If a block buffer cannot be allocated.
        ShortReadError
            If the input ends before the last block is complete.
        ProcessorError
            If a sub-block computation fails.
        """
        cfg = self._config
        regions = plan_blocks(cfg)
        start = time.perf_counter()
        logger.info(
            "Processing mosaic %s -> %s: %d x %d cells, %d blocks of %d "
            "rows, %d sub-blocks, downsample %d",
            cfg.input_path, cfg.output_path, cfg.width, cfg.height,
            cfg.blocks, cfg.block_rows, cfg.subblocks, cfg.downsample,
        )

        self._state = PipelineState.READING
        try:
            with ExitStack() as stack:
                logger.info("Allocating block buffers (%d + %d bytes)",
                            cfg.block_nbytes, cfg.output_block_cells)
                ctx = stack.enter_context(PipelineContext(cfg))

                if reader is None:
                    reader = stack.enter_context(self._open_reader())
                if writer is None:
                    writer = stack.enter_context(self._open_writer())
                cells_before = reader.cells_read
                bytes_before = writer.bytes_written

                pool = stack.enter_context(ThreadPoolExecutor(
                    max_workers=cfg.resolved_workers,
                    thread_name_prefix='demslope',
                ))

                for region in regions:
                    self._process_block(ctx, region, reader, writer, pool)
                    if progress_callback is not None:
                        progress_callback((region.index + 1) / cfg.blocks)

                writer.finalize()
                cells_read = reader.cells_read - cells_before
                bytes_written = writer.bytes_written - bytes_before
        except Exception as exc:
            failed_in = self._state
            self._state = PipelineState.FAILED
            logger.error("Fatal error while %s: %s", failed_in.value, exc)
            raise

        self._state = PipelineState.DONE
        elapsed = time.perf_counter() - start
        logger.info("Done: %d blocks, %d bytes written in %.1f s",
                    cfg.blocks, bytes_written, elapsed)
        return PipelineResult(
            blocks=cfg.blocks,
            cells_read=cells_read,
            bytes_written=bytes_written,
            elapsed=elapsed,
        )

    def _process_block(self, ctx, region, reader, writer, pool) -> None:
        cfg = self._config
        logger.info("Working on block %d of %d (rows %d-%d)",
                    region.index + 1, cfg.blocks,
                    region.row_start, region.row_end - 1)

        self._state = PipelineState.READING
        logger.info("Reading input block %d", region.index + 1)
        n = reader.read_block(ctx.input_block)
        if n != ctx.input_block.size:
            raise ShortReadError(
                f"Block {region.index + 1} of {cfg.blocks}: read {n} of "
                f"{ctx.input_block.size} cells"
            )

        self._state = PipelineState.COMPUTING
        logger.info("Processing block %d", region.index + 1)
        self._partitioner.run(ctx.input_block, ctx.output_block, region,
                              executor=pool)

        self._state = PipelineState.WRITING
        logger.info("Writing output block %d", region.index + 1)
        writer.write_block(ctx.output_block)
