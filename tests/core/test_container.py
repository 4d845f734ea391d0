"""
Tests for the AudioContainer value and its helpers.
"""

import numpy as np
import pytest
from pypcmchunk.core.container import (
    AudioContainer,
    deinterleave,
    interleave,
    toggle_8bit_sign,
)
from pypcmchunk.common.errors import InvalidContainer, TrailingData, UnsupportedBitDepth


class TestAudioContainer:
    """Test cases for container construction and equality."""

    def test_lists_become_uint32_arrays(self):
        container = AudioContainer(44100, 16, [[1, 2, 3], [4, 5, 6]])
        assert container.channel_count == 2
        assert container.frame_count == 3
        assert all(ch.dtype == np.uint32 for ch in container.frames)

    def test_empty_container(self):
        container = AudioContainer(8000, 8, [])
        assert container.channel_count == 0
        assert container.frame_count == 0

    def test_equality_compares_samples(self):
        a = AudioContainer(44100, 16, [[1, 2]], name=b"x")
        b = AudioContainer(44100, 16, [np.array([1, 2], dtype=np.uint32)], name=b"x")
        c = AudioContainer(44100, 16, [[1, 3]], name=b"x")
        assert a == b
        assert a != c

    def test_equality_ignores_diagnostics_and_raw_rate(self):
        a = AudioContainer(44100, 16, [[1]], aiff_rate_bytes=b"\x00" * 10)
        b = AudioContainer(44100, 16, [[1]], diagnostics=[TrailingData(1, 0)])
        assert a == b

    def test_copy_is_independent(self):
        original = AudioContainer(44100, 16, [[1, 2]])
        clone = original.copy()
        clone.frames[0][0] = 9
        assert original.frames[0][0] == 1


class TestValidateForEncoding:
    """Test cases for encode preconditions."""

    def test_valid_returns_width(self):
        assert AudioContainer(44100, 16, [[0], [0]]).validate_for_encoding() == 2

    def test_no_channels(self):
        with pytest.raises(InvalidContainer, match="no channels"):
            AudioContainer(44100, 16, []).validate_for_encoding()

    def test_ragged_channels(self):
        with pytest.raises(InvalidContainer, match="mismatched frame counts"):
            AudioContainer(44100, 16, [[1, 2], [1]]).validate_for_encoding()

    def test_sample_rate_out_of_range(self):
        with pytest.raises(InvalidContainer, match="Sample rate"):
            AudioContainer(1 << 32, 16, [[1]]).validate_for_encoding()

    def test_unsupported_depth(self):
        with pytest.raises(UnsupportedBitDepth):
            AudioContainer(44100, 24, [[1]]).validate_for_encoding()


class TestLayoutHelpers:
    """Test cases for interleaving and sign conversion."""

    def test_interleave(self):
        frames = [np.array([1, 2, 3], dtype=np.uint32), np.array([10, 20, 30], dtype=np.uint32)]
        np.testing.assert_array_equal(interleave(frames), [1, 10, 2, 20, 3, 30])

    def test_deinterleave(self):
        channels = deinterleave(np.array([1, 10, 2, 20], dtype=np.uint32), 2)
        np.testing.assert_array_equal(channels[0], [1, 2])
        np.testing.assert_array_equal(channels[1], [10, 20])

    def test_toggle_8bit_sign(self):
        container = AudioContainer(8000, 8, [[0x00, 0x80, 0xFF]])
        flipped = toggle_8bit_sign(container)
        np.testing.assert_array_equal(flipped.frames[0], [0x80, 0x00, 0x7F])
        np.testing.assert_array_equal(container.frames[0], [0x00, 0x80, 0xFF])

    def test_toggle_leaves_16_bit_alone(self):
        container = AudioContainer(8000, 16, [[0x1234]])
        assert toggle_8bit_sign(container) == container
