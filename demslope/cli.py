# -*- coding: utf-8 -*-
"""
demslope CLI - Compute a maximum-slope raster from a raw elevation mosaic.

Options may come from a JSON config file (``--config``); flags given on
the command line override file values. Progress lines go to stderr or
to ``--log-file``.

Usage:
  demslope mosaic.int slope.byt
  demslope mosaic.int slope.byt --width 3600 --height 3600 --blocks 4
  demslope --config global_srtm.json
  demslope --help

Exit status: 0 on success, 1 on a fatal processing error (stream open,
allocation, short read, worker failure), 2 on invalid configuration.

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
import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# demslope internal
from demslope.config import DEFAULT_BLOCKS, MosaicConfig
from demslope.exceptions import DemSlopeError, ValidationError
from demslope.pipeline import SlopePipeline
from demslope.vocabulary import ByteOrder, Quantization, SlopeUnits

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'

# argparse dest -> MosaicConfig field
_FIELD_ARGS = {
    'input': 'input_path',
    'output': 'output_path',
    'width': 'width',
    'height': 'height',
    'block_rows': 'block_rows',
    'subblocks': 'subblocks',
    'downsample': 'downsample',
    'vertical_distance': 'vertical_distance',
    'top_latitude': 'top_latitude',
    'left_longitude': 'left_longitude',
    'cell_size': 'cell_size_arcsec',
    'byte_order': 'byte_order',
    'workers': 'workers',
    'strip_rows': 'strip_rows',
    'units': 'units',
    'quantization': 'quantization',
    'log_file': 'log_path',
}


# ── CLI ──────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Returns
    -------
    argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog='demslope',
        description="Derive a byte-valued maximum-slope raster, downsampled "
                    "by an integer factor, from a headerless int16 "
                    "elevation mosaic too large to hold in memory.",
    )
    parser.add_argument(
        "input", type=Path, nargs='?',
        help="Raw int16 elevation mosaic (row-major, no header).",
    )
    parser.add_argument(
        "output", type=Path, nargs='?',
        help="Raw uint8 slope raster to create.",
    )
    parser.add_argument(
        "--config", type=Path,
        help="JSON file of configuration values; flags override it.",
    )
    parser.add_argument("--width", type=int,
                        help="Mosaic width in cells (default: 1296000).")
    parser.add_argument("--height", type=int,
                        help="Mosaic height in cells (default: 475200).")
    blocking = parser.add_mutually_exclusive_group()
    blocking.add_argument("--blocks", type=int,
                          help="Number of row-blocks (default: 10).")
    blocking.add_argument("--block-rows", type=int,
                          help="Rows per row-block.")
    parser.add_argument("--subblocks", type=int,
                        help="Parallel sub-blocks per block (default: 20).")
    parser.add_argument("--downsample", type=int,
                        help="Cells per output cell on each axis "
                             "(default: 3).")
    parser.add_argument("--vertical-distance", type=float,
                        help="North-south cell spacing in meters "
                             "(default: 30.87).")
    parser.add_argument("--top-latitude", type=float,
                        help="Latitude of the mosaic's top edge "
                             "(default: 76).")
    parser.add_argument("--left-longitude", type=float,
                        help="Longitude of the mosaic's left edge "
                             "(default: -180).")
    parser.add_argument("--cell-size", type=float,
                        help="Cell size in arc-seconds (default: 1).")
    parser.add_argument("--byte-order",
                        choices=[b.value for b in ByteOrder],
                        help="Input byte order (default: '<').")
    parser.add_argument("--workers", type=int,
                        help="Worker threads (default: sub-block count "
                             "capped at CPU count).")
    parser.add_argument("--strip-rows", type=int,
                        help="Output rows per vectorized pass (default: 8).")
    parser.add_argument("--units", choices=[u.value for u in SlopeUnits],
                        help="Output slope units (default: degrees).")
    parser.add_argument("--quantization",
                        choices=[q.value for q in Quantization],
                        help="Float-to-byte policy (default: round).")
    parser.add_argument("--no-sidecar", action='store_true',
                        help="Do not write the <output>.json description.")
    parser.add_argument("--log-file", type=Path,
                        help="Write progress lines here instead of stderr.")
    parser.add_argument("-v", "--verbose", action='store_true',
                        help="Include per-sub-block debug lines.")
    return parser


def config_from_args(args: argparse.Namespace) -> MosaicConfig:
    """Merge ``--config`` file values with command-line flags.

    Raises
    ------
    ValidationError
        If the merged values do not form a valid configuration.
    """
    values: Dict[str, Any] = {}
    if args.config is not None:
        values.update(MosaicConfig.from_json(args.config).to_dict())

    for dest, field in _FIELD_ARGS.items():
        value = getattr(args, dest)
        if value is not None:
            values[field] = value
    if args.blocks is not None:
        values.pop('block_rows', None)
        values['blocks'] = args.blocks
    elif args.height is not None and args.block_rows is None and \
            args.config is None:
        # Keep the default block count when only the height changes.
        values['blocks'] = DEFAULT_BLOCKS
    if args.no_sidecar:
        values['write_sidecar'] = False
    return MosaicConfig.from_dict(values)


def configure_logging(
    log_path: Optional[Path] = None,
    verbose: bool = False,
) -> logging.Handler:
    """Attach the progress sink to the ``demslope`` logger.

    Parameters
    ----------
    log_path : Path, optional
        Log file to append to. ``None`` logs to stderr.
    verbose : bool
        Emit DEBUG records.

    Returns
    -------
    logging.Handler
        The installed handler, for removal by the caller.
    """
    if log_path is not None:
        handler: logging.Handler = logging.FileHandler(log_path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger = logging.getLogger('demslope')
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return handler


# ── Main ─────────────────────────────────────────────────────────────


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI.

    Parameters
    ----------
    argv : List[str], optional
        Arguments without the program name. Defaults to ``sys.argv[1:]``.

    Returns
    -------
    int
        Process exit status.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except (ValidationError, OSError) as exc:
        print(f"demslope: invalid configuration: {exc}", file=sys.stderr)
        return 2

    try:
        handler = configure_logging(config.log_path, args.verbose)
    except OSError as exc:
        print(f"demslope: unable to open log file: {exc}", file=sys.stderr)
        return 1
    try:
        SlopePipeline(config).run()
    except ValidationError as exc:
        print(f"demslope: {exc}", file=sys.stderr)
        return 2
    except (DemSlopeError, OSError) as exc:
        print(f"demslope: {exc}", file=sys.stderr)
        return 1
    finally:
        logging.getLogger('demslope').removeHandler(handler)
        handler.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())
