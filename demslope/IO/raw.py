# -*- coding: utf-8 -*-
"""
Raw Streams - Headerless binary elevation input and slope output.

``RawBlockReader`` reads a headerless row-major int16 mosaic into a
persistent buffer with ``readinto`` so no memory is allocated per block.
``RawBlockWriter`` appends headerless uint8 blocks and can write a JSON
sidecar (``<output>.json``) describing the grid, units and
geotransform, since the raw format itself carries none.

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
import json
import logging
import os
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, Union

# Third-party
import numpy as np

# demslope internal
from demslope.IO.base import BlockReader, BlockWriter
from demslope.config import ARCSEC_PER_DEGREE, MosaicConfig
from demslope.exceptions import ResourceUnavailableError, ValidationError

logger = logging.getLogger(__name__)

Source = Union[str, Path, BinaryIO]


def _byte_view(buffer: np.ndarray) -> memoryview:
    """Writable byte view of a C-contiguous array of any byte order."""
    if not buffer.flags['C_CONTIGUOUS']:
        raise ValidationError("buffer must be C-contiguous")
    return memoryview(buffer.reshape(-1).view(np.uint8))


class RawBlockReader(BlockReader):
    """Read a headerless raster stream block by block.

    Parameters
    ----------
    source : str, Path or binary file object
        File path to open, or an already open stream. Streams passed in
        are not closed by ``close()``.
    dtype : str or np.dtype
        Cell type of the stream. Default ``'<i2'``.
    expected_cells : int, optional
        Total cells the stream should hold. When ``source`` is a path a
        size mismatch is logged as a warning at open time.

    Raises
    ------
    ResourceUnavailableError
        If ``source`` is a path that cannot be opened.

    Examples
    --------
    >>> buffer = np.empty((rows, cols), dtype='<i2')
    >>> with RawBlockReader('mosaic.int') as reader:
    ...     n = reader.read_block(buffer)
    """

    def __init__(
        self,
        source: Source,
        dtype: Union[str, np.dtype] = '<i2',
        expected_cells: Optional[int] = None,
    ) -> None:
        super().__init__()
        self.dtype = np.dtype(dtype)
        if isinstance(source, (str, Path)):
            self.filepath: Optional[Path] = Path(source)
            try:
                self._stream = open(self.filepath, 'rb')
            except OSError as exc:
                raise ResourceUnavailableError(
                    f"Unable to open input file {self.filepath}: {exc}"
                ) from exc
            self._owns_stream = True
            if expected_cells is not None:
                self._check_size(expected_cells)
        else:
            self.filepath = None
            self._stream = source
            self._owns_stream = False

    def _check_size(self, expected_cells: int) -> None:
        expected = expected_cells * self.dtype.itemsize
        actual = os.fstat(self._stream.fileno()).st_size
        if actual != expected:
            logger.warning(
                "Input %s holds %d bytes; mosaic geometry expects %d",
                self.filepath, actual, expected,
            )

    def read_block(self, buffer: np.ndarray) -> int:
        """Fill ``buffer`` from the stream, looping over partial reads.

        Parameters
        ----------
        buffer : np.ndarray
            C-contiguous destination with this reader's dtype.

        Returns
        -------
        int
            Cells read; ``buffer.size`` unless the stream ended.

        Raises
        ------
        ValidationError
            If ``buffer`` has the wrong dtype or layout.
        """
        if buffer.dtype != self.dtype:
            raise ValidationError(
                f"buffer dtype {buffer.dtype} does not match stream dtype "
                f"{self.dtype}"
            )
        view = _byte_view(buffer)
        total = 0
        while total < view.nbytes:
            n = self._stream.readinto(view[total:])
            if not n:
                break
            total += n
        cells = total // self.dtype.itemsize
        self.cells_read += cells
        return cells

    def close(self) -> None:
        if self._owns_stream and not self._stream.closed:
            self._stream.close()


class RawBlockWriter(BlockWriter):
    """Write a headerless raster stream block by block.

    Parameters
    ----------
    target : str, Path or binary file object
        File path to create (truncating any existing file), or an open
        stream. Streams passed in are flushed but not closed.
    metadata : Dict[str, Any], optional
        Grid description written to the sidecar by ``finalize()``.
    write_sidecar : bool
        Write ``<target>.json`` on ``finalize()``. Only applies when
        ``target`` is a path. Default ``False``.

    Raises
    ------
    ResourceUnavailableError
        If ``target`` is a path that cannot be opened for writing.
    """

    def __init__(
        self,
        target: Source,
        metadata: Optional[Dict[str, Any]] = None,
        write_sidecar: bool = False,
    ) -> None:
        super().__init__(metadata)
        if isinstance(target, (str, Path)):
            self.filepath: Optional[Path] = Path(target)
            try:
                self._stream = open(self.filepath, 'wb')
            except OSError as exc:
                raise ResourceUnavailableError(
                    f"Unable to open output file {self.filepath}: {exc}"
                ) from exc
            self._owns_stream = True
        else:
            self.filepath = None
            self._stream = target
            self._owns_stream = False
        self._write_sidecar = write_sidecar

    def write_block(self, data: np.ndarray) -> None:
        """Append ``data`` as raw bytes."""
        data = np.ascontiguousarray(data)
        self._stream.write(memoryview(data.reshape(-1).view(np.uint8)))
        self.bytes_written += data.nbytes

    @property
    def sidecar_path(self) -> Optional[Path]:
        if self.filepath is None:
            return None
        return Path(str(self.filepath) + '.json')

    def finalize(self) -> None:
        """Flush the stream and write the JSON sidecar if enabled."""
        self._stream.flush()
        if not self._write_sidecar or self.sidecar_path is None:
            return
        sidecar = dict(self.metadata)
        sidecar['bytes'] = self.bytes_written
        with open(self.sidecar_path, 'w') as f:
            json.dump(sidecar, f, indent=2, default=str)
        logger.debug("Wrote sidecar %s", self.sidecar_path)

    def close(self) -> None:
        if self._stream.closed:
            return
        if self._owns_stream:
            self._stream.close()
        else:
            self._stream.flush()


def slope_metadata(config: MosaicConfig) -> Dict[str, Any]:
    """Describe the output slope raster of ``config``.

    The geotransform follows the GDAL convention
    ``(origin_lon, pixel_lon, 0, origin_lat, 0, -pixel_lat)`` with the
    origin at the upper-left corner of the upper-left cell.

    Returns
    -------
    Dict[str, Any]
        JSON-compatible description.
    """
    pixel_deg = config.cell_size_arcsec * config.downsample / ARCSEC_PER_DEGREE
    return {
        'format': 'raw',
        'rows': config.output_height,
        'cols': config.output_width,
        'dtype': 'uint8',
        'units': config.units.value,
        'quantization': config.quantization.value,
        'downsample': config.downsample,
        'crs': 'EPSG:4326',
        'transform': [
            config.left_longitude, pixel_deg, 0.0,
            config.top_latitude, 0.0, -pixel_deg,
        ],
        'source': str(config.input_path) if config.input_path else None,
        'source_shape': [config.height, config.width],
        'vertical_distance': config.vertical_distance,
    }
