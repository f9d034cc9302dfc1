# -*- coding: utf-8 -*-
"""
Mosaic Configuration - Immutable description of one slope run.

``MosaicConfig`` replaces compiled-in constants (paths, mosaic dimensions,
blocking factors, physical cell spacing) with a single frozen value that
is validated once at construction and passed to the pipeline. The
defaults describe the global 1 arc-second SRTM/ASTER mosaic: 1296000 x
475200 int16 cells with the upper-left corner at 180 W, 76 N, processed
as 10 row-blocks of 47520 rows, each split into 20 sub-blocks.

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
import dataclasses
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

# demslope internal
from demslope.exceptions import ValidationError
from demslope.vocabulary import ByteOrder, Quantization, SlopeUnits

ARCSEC_PER_DEGREE = 3600.0

DEFAULT_WIDTH = 1296000
DEFAULT_HEIGHT = 475200
DEFAULT_BLOCKS = 10
DEFAULT_SUBBLOCKS = 20
DEFAULT_VERTICAL_DISTANCE = 30.87


def _to_path(value: Optional[Union[str, Path]]) -> Optional[Path]:
    if value is None or isinstance(value, Path):
        return value
    if not isinstance(value, (str, os.PathLike)):
        raise ValidationError(
            f"expected a file path, got {type(value).__name__}"
        )
    return Path(value)


@dataclass(frozen=True)
class MosaicConfig:
    """Validated, immutable settings for a slope run.

    Parameters
    ----------
    input_path : Path, optional
        Raw int16 elevation mosaic. May be ``None`` when the caller
        supplies its own reader.
    output_path : Path, optional
        Raw uint8 slope raster. May be ``None`` when the caller supplies
        its own writer.
    width : int
        Mosaic width in cells.
    height : int
        Mosaic height in cells.
    block_rows : int
        Rows per memory-resident row-block. Must divide ``height`` and be
        divisible by ``downsample`` and ``subblocks``.
    subblocks : int
        Row-groups each block is split into for parallel computation.
    downsample : int
        Input cells per output cell along each axis.
    vertical_distance : float
        Ground distance between vertically adjacent cells, in the DEM's
        elevation unit (meters).
    top_latitude : float
        Latitude of the top edge of the mosaic, degrees.
    left_longitude : float
        Longitude of the left edge of the mosaic, degrees.
    cell_size_arcsec : float
        Angular cell size in arc-seconds.
    byte_order : ByteOrder
        Byte order of the input cells.
    workers : int, optional
        Thread pool size. ``None`` sizes the pool to the sub-block count
        capped at the CPU count.
    strip_rows : int
        Output rows computed per vectorized pass inside a sub-block.
    units : SlopeUnits
        Slope unit stored in the output.
    quantization : Quantization
        Float-to-byte narrowing policy.
    write_sidecar : bool
        Write a JSON description next to the output raster.
    log_path : Path, optional
        Progress log destination. ``None`` logs to stderr.

    Raises
    ------
    ValidationError
        If any dimension or blocking factor is inconsistent.
    """

    input_path: Optional[Path] = None
    output_path: Optional[Path] = None
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    block_rows: int = DEFAULT_HEIGHT // DEFAULT_BLOCKS
    subblocks: int = DEFAULT_SUBBLOCKS
    downsample: int = 3
    vertical_distance: float = DEFAULT_VERTICAL_DISTANCE
    top_latitude: float = 76.0
    left_longitude: float = -180.0
    cell_size_arcsec: float = 1.0
    byte_order: ByteOrder = ByteOrder.LITTLE
    workers: Optional[int] = None
    strip_rows: int = 8
    units: SlopeUnits = SlopeUnits.DEGREES
    quantization: Quantization = Quantization.ROUND
    write_sidecar: bool = True
    log_path: Optional[Path] = None

    def __post_init__(self) -> None:
        # Coerce loose inputs (strings from JSON or argparse) in place.
        set_ = object.__setattr__
        set_(self, 'input_path', _to_path(self.input_path))
        set_(self, 'output_path', _to_path(self.output_path))
        set_(self, 'log_path', _to_path(self.log_path))
        try:
            set_(self, 'byte_order', ByteOrder(self.byte_order))
            set_(self, 'units', SlopeUnits(self.units))
            set_(self, 'quantization', Quantization(self.quantization))
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        self._validate()

    def _validate(self) -> None:
        for name in ('width', 'height', 'block_rows', 'subblocks',
                     'downsample', 'strip_rows'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValidationError(
                    f"{name} must be an integer, got {type(value).__name__}"
                )
            if value <= 0:
                raise ValidationError(f"{name} must be positive, got {value}")
        if self.workers is not None:
            if not isinstance(self.workers, int) or \
                    isinstance(self.workers, bool):
                raise ValidationError(
                    f"workers must be an integer, "
                    f"got {type(self.workers).__name__}"
                )
            if self.workers <= 0:
                raise ValidationError(
                    f"workers must be positive, got {self.workers}"
                )
        for name in ('vertical_distance', 'top_latitude', 'left_longitude',
                     'cell_size_arcsec'):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ValidationError(
                    f"{name} must be a number, got {type(value).__name__}"
                )
        if not isinstance(self.write_sidecar, bool):
            raise ValidationError(
                f"write_sidecar must be a boolean, "
                f"got {type(self.write_sidecar).__name__}"
            )

        f = self.downsample
        if self.width % f or self.height % f:
            raise ValidationError(
                f"mosaic {self.width}x{self.height} is not divisible by "
                f"downsample factor {f}"
            )
        if self.height % self.block_rows:
            raise ValidationError(
                f"height {self.height} is not a multiple of "
                f"block_rows {self.block_rows}"
            )
        if self.block_rows % self.subblocks:
            raise ValidationError(
                f"block_rows {self.block_rows} is not divisible by "
                f"subblocks {self.subblocks}"
            )
        if (self.block_rows // self.subblocks) % f:
            raise ValidationError(
                f"sub-block height {self.block_rows // self.subblocks} is "
                f"not divisible by downsample factor {f}"
            )

        if not self.vertical_distance > 0:
            raise ValidationError(
                f"vertical_distance must be positive, "
                f"got {self.vertical_distance}"
            )
        if not self.cell_size_arcsec > 0:
            raise ValidationError(
                f"cell_size_arcsec must be positive, "
                f"got {self.cell_size_arcsec}"
            )
        if not -90.0 <= self.top_latitude <= 90.0:
            raise ValidationError(
                f"top_latitude must be in [-90, 90], got {self.top_latitude}"
            )
        bottom = self.top_latitude - self.height / self.rows_per_degree
        if bottom < -90.0:
            raise ValidationError(
                f"mosaic extends to latitude {bottom:.6f}, below -90"
            )

    # ------------------------------------------------------------------
    # Derived geometry
    # ------------------------------------------------------------------

    @property
    def blocks(self) -> int:
        """Number of row-blocks in the mosaic."""
        return self.height // self.block_rows

    @property
    def subblock_rows(self) -> int:
        """Input rows per sub-block."""
        return self.block_rows // self.subblocks

    @property
    def output_width(self) -> int:
        return self.width // self.downsample

    @property
    def output_height(self) -> int:
        return self.height // self.downsample

    @property
    def output_block_rows(self) -> int:
        return self.block_rows // self.downsample

    @property
    def block_cells(self) -> int:
        return self.width * self.block_rows

    @property
    def output_block_cells(self) -> int:
        return self.output_width * self.output_block_rows

    @property
    def block_nbytes(self) -> int:
        """Size of the persistent input buffer in bytes."""
        return self.block_cells * 2

    @property
    def rows_per_degree(self) -> float:
        """Input rows spanning one degree of latitude."""
        return ARCSEC_PER_DEGREE / self.cell_size_arcsec

    @property
    def input_dtype(self) -> str:
        return f"{self.byte_order.value}i2"

    @property
    def resolved_workers(self) -> int:
        """Thread pool size after applying the ``None`` default."""
        if self.workers is not None:
            return self.workers
        return max(1, min(self.subblocks, os.cpu_count() or 1))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def replace(self, **changes: Any) -> 'MosaicConfig':
        """Return a copy with ``changes`` applied and re-validated."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-compatible dictionary of every field."""
        out: Dict[str, Any] = {}
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if isinstance(value, Path):
                value = str(value)
            elif isinstance(value, (ByteOrder, SlopeUnits, Quantization)):
                value = value.value
            out[field.name] = value
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MosaicConfig':
        """Build a config from a plain dictionary.

        Accepts ``blocks`` as an alternative to ``block_rows``; when both
        are given they must agree.

        Parameters
        ----------
        data : Dict[str, Any]
            Field values. Unknown keys are rejected.

        Returns
        -------
        MosaicConfig

        Raises
        ------
        ValidationError
            On unknown keys or inconsistent geometry.
        """
        data = dict(data)
        blocks = data.pop('blocks', None)
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValidationError(f"Unknown configuration keys: {unknown}")
        if blocks is not None:
            height = data.get('height', DEFAULT_HEIGHT)
            for name, value in (('blocks', blocks), ('height', height)):
                if not isinstance(value, int) or isinstance(value, bool):
                    raise ValidationError(
                        f"{name} must be an integer, "
                        f"got {type(value).__name__}"
                    )
            if blocks <= 0 or height % blocks:
                raise ValidationError(
                    f"height {height} cannot be split into {blocks} blocks"
                )
            block_rows = height // blocks
            if data.get('block_rows', block_rows) != block_rows:
                raise ValidationError(
                    f"blocks={blocks} conflicts with "
                    f"block_rows={data['block_rows']}"
                )
            data['block_rows'] = block_rows
        return cls(**data)

    @classmethod
    def from_json(cls, filepath: Union[str, Path]) -> 'MosaicConfig':
        """Load a config from a JSON file holding a single object."""
        with open(filepath, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise ValidationError(f"{filepath}: {exc}") from exc
        if not isinstance(data, dict):
            raise ValidationError(
                f"{filepath}: expected a JSON object, "
                f"got {type(data).__name__}"
            )
        return cls.from_dict(data)
