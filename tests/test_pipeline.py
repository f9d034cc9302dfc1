# -*- coding: utf-8 -*-
"""
Slope Pipeline Tests - End-to-end runs over small in-memory mosaics.

Dependencies
------------
pytest

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

import io
import json
import logging

import numpy as np
import pytest

import demslope.pipeline as pipeline_module
from demslope import (
    AllocationError,
    MosaicConfig,
    PipelineContext,
    PipelineState,
    ProcessorError,
    ResourceUnavailableError,
    ShortReadError,
    SlopePipeline,
    ValidationError,
)
from demslope.IO import RawBlockReader, RawBlockWriter
from demslope.blocking import BlockPartitioner, SubBlockProcessor
from demslope.kernel import max_degree_slope
from demslope.vocabulary import Quantization, SlopeUnits


def _config(**overrides):
    values = dict(width=9, height=9, block_rows=9, subblocks=3,
                  top_latitude=0.0, vertical_distance=1.0, workers=2)
    values.update(overrides)
    return MosaicConfig(**values)


def _run(config, dem, **kwargs):
    dem = np.asarray(dem)
    src = io.BytesIO(dem.astype(config.input_dtype).tobytes())
    dst = io.BytesIO()
    result = SlopePipeline(config).run(
        RawBlockReader(src, dtype=config.input_dtype),
        RawBlockWriter(dst),
        **kwargs,
    )
    out = np.frombuffer(dst.getvalue(), dtype=np.uint8)
    return result, out.reshape(config.output_height, config.output_width)


def _ramp(height, width):
    return np.tile(np.arange(width, dtype=np.int16), (height, 1))


# ---------------------------------------------------------------------------
# Slope values
# ---------------------------------------------------------------------------

class TestSlopeValues:
    """Test output cell values for known surfaces."""

    def test_constant_surface_is_flat(self):
        cfg = _config()
        result, out = _run(cfg, np.full((9, 9), 100, dtype=np.int16))
        assert out.shape == (3, 3)
        assert np.all(out == 0)
        assert result.bytes_written == 9
        assert result.cells_read == 81

    def test_ramp_is_forty_five(self):
        _, out = _run(_config(), _ramp(9, 9))
        assert np.all(out == 45)

    def test_rounding_policies(self):
        # Ratio 0.5 gives 26.57 degrees.
        _, rounded = _run(_config(vertical_distance=2.0), _ramp(9, 9))
        _, truncated = _run(
            _config(vertical_distance=2.0,
                    quantization=Quantization.TRUNCATE),
            _ramp(9, 9),
        )
        assert np.all(rounded == 27)
        assert np.all(truncated == 26)

    def test_percent_units(self):
        cfg = _config(vertical_distance=2.0, units=SlopeUnits.PERCENT)
        _, out = _run(cfg, _ramp(9, 9))
        assert np.all(out == 50)

    def test_percent_clips_to_byte(self):
        cfg = _config(units='percent')
        _, out = _run(cfg, _ramp(9, 9) * 10)
        assert np.all(out == 255)

    def test_step_between_windows_is_ignored(self):
        dem = np.zeros((9, 9), dtype=np.int16)
        dem[:, 3:6] = 500
        _, out = _run(_config(), dem)
        assert np.all(out == 0)

    def test_matches_reference_kernel(self):
        rng = np.random.RandomState(21)
        cfg = _config(width=12, height=18, block_rows=9, subblocks=3,
                      top_latitude=50.0, vertical_distance=30.87,
                      quantization=Quantization.TRUNCATE)
        dem = rng.randint(-100, 3000, size=(18, 12)).astype(np.int16)
        _, out = _run(cfg, dem)
        for i in range(6):
            lat = 50.0 - (3 * i + 1.5) / 3600.0
            h = 30.87 * np.cos(np.radians(lat))
            for j in range(4):
                win = dem[3 * i:3 * i + 3, 3 * j:3 * j + 3]
                assert out[i, j] == int(max_degree_slope(win, h, 30.87))

    def test_big_endian_input(self):
        cfg = _config(byte_order='>')
        _, out = _run(cfg, _ramp(9, 9))
        assert np.all(out == 45)


# ---------------------------------------------------------------------------
# Blocking
# ---------------------------------------------------------------------------

class TestBlocking:
    """Test that block layout does not change the result."""

    def test_multi_block_equals_single_block(self):
        rng = np.random.RandomState(4)
        dem = rng.randint(-200, 200, size=(36, 12)).astype(np.int16)
        base = dict(width=12, height=36, top_latitude=30.0,
                    vertical_distance=30.0)
        _, single = _run(MosaicConfig(block_rows=36, subblocks=4, **base),
                         dem)
        _, multi = _run(MosaicConfig(block_rows=18, subblocks=2, **base),
                        dem)
        np.testing.assert_array_equal(single, multi)

    def test_output_size(self):
        cfg = _config(width=12, height=36, block_rows=12, subblocks=2)
        result, out = _run(cfg, np.zeros((36, 12), dtype=np.int16))
        assert result.blocks == 3
        assert result.bytes_written == (12 // 3) * (36 // 3)

    def test_progress_callback(self):
        fractions = []
        cfg = _config(height=18)
        _run(cfg, _ramp(18, 9), progress_callback=fractions.append)
        assert fractions == [0.5, 1.0]


# ---------------------------------------------------------------------------
# Files and logging
# ---------------------------------------------------------------------------

class TestFiles:
    """Test path-based runs."""

    def test_file_run_with_sidecar(self, tmp_path):
        src = tmp_path / 'dem.int'
        dst = tmp_path / 'slope.byt'
        src.write_bytes(_ramp(18, 9).astype('<i2').tobytes())
        cfg = _config(height=18, input_path=src, output_path=dst)
        result = SlopePipeline(cfg).run()
        assert result.bytes_written == 18
        assert np.all(np.frombuffer(dst.read_bytes(), np.uint8) == 45)
        sidecar = json.loads((tmp_path / 'slope.byt.json').read_text())
        assert sidecar['rows'] == 6
        assert sidecar['cols'] == 3
        assert sidecar['bytes'] == 18

    def test_sidecar_disabled(self, tmp_path):
        src = tmp_path / 'dem.int'
        src.write_bytes(np.zeros(81, dtype='<i2').tobytes())
        cfg = _config(input_path=src, output_path=tmp_path / 'slope.byt',
                      write_sidecar=False)
        SlopePipeline(cfg).run()
        assert not (tmp_path / 'slope.byt.json').exists()

    def test_missing_input(self, tmp_path):
        cfg = _config(input_path=tmp_path / 'missing.int',
                      output_path=tmp_path / 'slope.byt')
        pipe = SlopePipeline(cfg)
        with pytest.raises(ResourceUnavailableError):
            pipe.run()
        assert pipe.state is PipelineState.FAILED

    def test_no_paths_and_no_streams(self):
        with pytest.raises(ValidationError, match="input_path"):
            SlopePipeline(_config()).run()

    def test_progress_log(self, caplog):
        with caplog.at_level(logging.INFO, logger='demslope'):
            _run(_config(height=18), _ramp(18, 9))
        text = caplog.text
        assert "Allocating block buffers" in text
        assert "Working on block 1 of 2" in text
        assert "Working on block 2 of 2" in text
        assert "Reading input block 2" in text
        assert "Processing block 2" in text
        assert "Writing output block 2" in text
        assert "Done: 2 blocks" in text


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------

class _BrokenProcessor(SubBlockProcessor):

    def process(self, input_block, output_block, sub):
        raise ArithmeticError("bad window")


class TestFailures:
    """Test fatal error handling."""

    def test_short_read(self, caplog):
        cfg = _config(height=18)
        pipe = SlopePipeline(cfg)
        src = io.BytesIO(_ramp(12, 9).astype('<i2').tobytes())
        with caplog.at_level(logging.ERROR, logger='demslope'):
            with pytest.raises(ShortReadError, match="Block 2 of 2"):
                pipe.run(RawBlockReader(src), RawBlockWriter(io.BytesIO()))
        assert pipe.state is PipelineState.FAILED
        assert "Fatal error while reading" in caplog.text

    def test_nothing_written_after_short_read(self):
        cfg = _config(height=18)
        src = io.BytesIO(_ramp(12, 9).astype('<i2').tobytes())
        dst = io.BytesIO()
        writer = RawBlockWriter(dst)
        with pytest.raises(ShortReadError):
            SlopePipeline(cfg).run(RawBlockReader(src), writer)
        assert writer.bytes_written == 9

    def test_worker_failure(self):
        cfg = _config()
        pipe = SlopePipeline(
            cfg, BlockPartitioner(cfg, _BrokenProcessor(cfg)),
        )
        src = io.BytesIO(_ramp(9, 9).astype('<i2').tobytes())
        with pytest.raises(ProcessorError, match="bad window"):
            pipe.run(RawBlockReader(src), RawBlockWriter(io.BytesIO()))
        assert pipe.state is PipelineState.FAILED

    def test_allocation_failure(self, monkeypatch):
        def fail(*args, **kwargs):
            raise MemoryError("out of memory")

        monkeypatch.setattr(pipeline_module.np, 'empty', fail)
        with pytest.raises(AllocationError, match="input block buffer"):
            PipelineContext(_config())

    def test_allocation_failure_is_memory_error(self, monkeypatch, caplog):
        def fail(*args, **kwargs):
            raise MemoryError("out of memory")

        monkeypatch.setattr(pipeline_module.np, 'empty', fail)
        pipe = SlopePipeline(_config())
        with caplog.at_level(logging.ERROR, logger='demslope'):
            with pytest.raises(MemoryError):
                pipe.run(
                    RawBlockReader(io.BytesIO()),
                    RawBlockWriter(io.BytesIO()),
                )
        assert pipe.state is PipelineState.FAILED
        assert "Fatal error while reading: Unable to allocate" in caplog.text


class TestPipelineContext:
    """Test persistent buffer ownership."""

    def test_buffer_geometry(self):
        cfg = _config(width=12, height=36, block_rows=18, subblocks=2,
                      byte_order='>')
        with PipelineContext(cfg) as ctx:
            assert ctx.input_block.shape == (18, 12)
            assert ctx.input_block.dtype == np.dtype('>i2')
            assert ctx.output_block.shape == (6, 4)
            assert ctx.output_block.dtype == np.uint8
        assert ctx.closed

    def test_state_transitions(self):
        pipe = SlopePipeline(_config())
        assert pipe.state is PipelineState.IDLE
        src = io.BytesIO(_ramp(9, 9).astype('<i2').tobytes())
        pipe.run(RawBlockReader(src), RawBlockWriter(io.BytesIO()))
        assert pipe.state is PipelineState.DONE
