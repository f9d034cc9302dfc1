# -*- coding: utf-8 -*-
"""
IO Base Classes - Abstract interfaces for block-streamed rasters.

Defines the abstract source and sink the pipeline streams row-blocks
through. A source fills a caller-owned buffer in place; a sink drains a
caller-owned buffer. Neither allocates per block.

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

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import numpy as np


class BlockReader(ABC):
    """
    Abstract base class for row-block sources.

    Attributes
    ----------
    cells_read : int
        Total cells delivered so far.
    """

    def __init__(self) -> None:
        self.cells_read = 0

    @abstractmethod
    def read_block(self, buffer: np.ndarray) -> int:
        """
        Fill ``buffer`` with the next cells of the stream.

        Parameters
        ----------
        buffer : np.ndarray
            C-contiguous destination, overwritten in place.

        Returns
        -------
        int
            Number of cells written into ``buffer``. Less than
            ``buffer.size`` only at end of stream.
        """
        pass

    def close(self) -> None:
        """
        Stop reading blocks. Caller-owned buffers are left untouched.

        Sources that opened their own stream close it here; sources
        wrapping a caller's stream leave it open.
        """
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class BlockWriter(ABC):
    """
    Abstract base class for row-block sinks.

    Attributes
    ----------
    metadata : Dict[str, Any]
        Description of the raster being written.
    bytes_written : int
        Total bytes written so far.
    """

    def __init__(self, metadata: Optional[Dict[str, Any]] = None) -> None:
        self.metadata = metadata or {}
        self.bytes_written = 0

    @abstractmethod
    def write_block(self, data: np.ndarray) -> None:
        """
        Append ``data`` to the stream in row-major order.

        Parameters
        ----------
        data : np.ndarray
            Block of output cells.
        """
        pass

    def finalize(self) -> None:
        """
        Flush the stream once the last block has been written.

        Sinks that describe the finished raster (a sidecar, a header)
        write it here.
        """
        pass

    def close(self) -> None:
        """
        Stop accepting blocks.

        Does not call ``finalize()``, so a sink closed after a failed
        run carries no sidecar. Sinks that opened their own stream close
        it here.
        """
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
