"""
Tests for the chunk trace logger.
"""

import numpy as np
import pytest
from pypcmchunk.common.debug_logger import ChunkTraceLogger, resolve_logger
from pypcmchunk.wav.wav_codec import decode_wav, encode_wav
from pypcmchunk.core.container import AudioContainer


class TestChunkTraceLogger:
    """Test cases for trace output."""

    def test_header_written(self, tmp_path):
        log_file = tmp_path / "trace.log"
        ChunkTraceLogger(str(log_file))
        content = log_file.read_text()
        assert content.startswith("# pypcmchunk Trace Log")

    def test_disabled_writes_nothing(self, tmp_path):
        log_file = tmp_path / "trace.log"
        logger = ChunkTraceLogger(str(log_file), enabled=False)
        logger.log_field("COMM", "channel_count", 2)
        assert not log_file.exists()

    def test_log_field_records_source(self, tmp_path):
        log_file = tmp_path / "trace.log"
        logger = ChunkTraceLogger(str(log_file))
        logger.log_field("COMM", "channel_count", 2, offset=12)
        line = log_file.read_text().splitlines()[-1]
        assert "[PCMCHUNK]" in line
        assert "[test_debug_logger.py:" in line
        assert "[test_log_field_records_source]" in line
        assert "COMM: channel_count=2 (0x2)" in line
        assert "offset=12" in line

    def test_log_bytes_hex(self, tmp_path):
        log_file = tmp_path / "trace.log"
        logger = ChunkTraceLogger(str(log_file))
        logger.log_bytes("COMM", b"\x40\x0e", field="sample_rate")
        assert "hex=400e" in log_file.read_text()

    def test_log_samples_statistics(self, tmp_path):
        log_file = tmp_path / "trace.log"
        logger = ChunkTraceLogger(str(log_file))
        logger.log_samples("data", "samples", np.arange(20, dtype=np.uint32), channel=1)
        line = log_file.read_text().splitlines()[-1]
        assert "[CH1]" in line
        assert "size=20" in line
        assert "range=[0x0,0x13]" in line
        assert "..." in line

    def test_scope_depth_and_failure_marker(self, tmp_path):
        log_file = tmp_path / "trace.log"
        logger = ChunkTraceLogger(str(log_file))
        with logger.scope("outer"):
            assert logger.depth == 1
            logger.log_event("X", "inside")
        with pytest.raises(RuntimeError):
            with logger.scope("failing"):
                raise RuntimeError("boom")
        assert logger.depth == 0

        lines = log_file.read_text().splitlines()
        assert any("--> outer" in line for line in lines)
        assert any("[D1]" in line and "X: inside" in line for line in lines)
        assert any("<--* failing" in line for line in lines)

    def test_resolve_logger(self):
        assert resolve_logger(None).enabled is False
        logger = ChunkTraceLogger(enabled=False)
        assert resolve_logger(logger) is logger

    def test_tracing_does_not_change_results(self, tmp_path):
        container = AudioContainer(8000, 16, [[1, 2, 3]])
        logger = ChunkTraceLogger(str(tmp_path / "trace.log"))
        traced = encode_wav(container, logger)
        assert traced == encode_wav(container)
        assert decode_wav(traced, logger) == decode_wav(traced)
        text = (tmp_path / "trace.log").read_text()
        assert "decode_wav" in text
        assert "declared_size" in text
