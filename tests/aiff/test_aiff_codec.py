"""
Tests for the AIFF container codec.
"""

import struct

import numpy as np
import pytest
from pypcmchunk.aiff.aiff_codec import decode_aiff, encode_aiff
from pypcmchunk.aiff.extended import int_to_extended
from pypcmchunk.core.container import AudioContainer
from pypcmchunk.common.errors import (
    ChunkSizeMismatch,
    DuplicateChunk,
    InvalidContainer,
    InvalidMagic,
    MissingPrerequisiteChunk,
    TruncatedInput,
    UnknownChunk,
    UnsupportedBitDepth,
)

RATE_44100 = bytes.fromhex("400eac44000000000000")


def chunk(tag, body):
    return tag + struct.pack(">I", len(body)) + body


def comm(channels, frames, bits, rate=RATE_44100):
    return chunk(b"COMM", struct.pack(">HIH", channels, frames, bits) + rate)


def ssnd(sample_bytes):
    return chunk(b"SSND", struct.pack(">II", 0, 0) + sample_bytes)


def form(*chunks):
    body = b"AIFF" + b"".join(chunks)
    return b"FORM" + struct.pack(">I", len(body)) + body


class TestDecodeAiff:
    """Test cases for AIFF decoding."""

    def test_decode_stereo_16_bit_non_interleaved(self):
        """SSND holds channel 0's frames first, then channel 1's."""
        samples = struct.pack(">3H3H", 1, 2, 3, 0xFFFF, 0x8000, 0x7FFF)
        container = decode_aiff(form(comm(2, 3, 16), ssnd(samples)))

        assert container.sample_rate == 44100
        assert container.bit_depth == 16
        assert container.channel_count == 2
        np.testing.assert_array_equal(container.frames[0], [1, 2, 3])
        np.testing.assert_array_equal(container.frames[1], [0xFFFF, 0x8000, 0x7FFF])
        assert container.name is None
        assert container.aiff_rate_bytes == RATE_44100
        assert container.diagnostics == []

    def test_decode_name_chunk(self):
        buffer = form(chunk(b"NAME", b"kick loop"), comm(1, 1, 8), ssnd(b"\x7f"))
        container = decode_aiff(buffer)
        assert container.name == b"kick loop"
        np.testing.assert_array_equal(container.frames[0], [0x7F])

    def test_decode_32_bit(self):
        buffer = form(comm(1, 2, 32), ssnd(b"\x12\x34\x56\x78\x00\x00\x00\x01"))
        container = decode_aiff(buffer)
        np.testing.assert_array_equal(container.frames[0], [0x12345678, 1])

    def test_invalid_form_tag(self):
        buffer = b"RIFF" + form(comm(1, 0, 16))[4:]
        with pytest.raises(InvalidMagic) as excinfo:
            decode_aiff(buffer)
        assert excinfo.value.expected == b"FORM"

    def test_invalid_form_type(self):
        buffer = bytearray(form(comm(1, 0, 16)))
        buffer[8:12] = b"AIFC"
        with pytest.raises(InvalidMagic) as excinfo:
            decode_aiff(bytes(buffer))
        assert excinfo.value.actual == b"AIFC"

    def test_unknown_chunk_is_fatal(self):
        buffer = form(comm(1, 1, 8), chunk(b"MARK", b"\x00\x00"), ssnd(b"\x01"))
        with pytest.raises(UnknownChunk) as excinfo:
            decode_aiff(buffer)
        assert excinfo.value.tag == b"MARK"

    def test_ssnd_before_comm(self):
        buffer = form(ssnd(b"\x01"), comm(1, 1, 8))
        with pytest.raises(MissingPrerequisiteChunk) as excinfo:
            decode_aiff(buffer)
        assert excinfo.value.missing == b"COMM"
        assert excinfo.value.required_by == b"SSND"

    def test_missing_comm(self):
        with pytest.raises(MissingPrerequisiteChunk):
            decode_aiff(form(chunk(b"NAME", b"x")))

    def test_missing_ssnd_with_frames(self):
        with pytest.raises(MissingPrerequisiteChunk) as excinfo:
            decode_aiff(form(comm(1, 4, 16)))
        assert excinfo.value.missing == b"SSND"

    def test_missing_ssnd_without_frames(self):
        container = decode_aiff(form(comm(2, 0, 16)))
        assert container.channel_count == 2
        assert container.frame_count == 0

    def test_ssnd_with_extra_bytes_is_mismatch(self):
        buffer = form(comm(1, 1, 8), ssnd(b"\x01\x02"))
        with pytest.raises(ChunkSizeMismatch) as excinfo:
            decode_aiff(buffer)
        assert excinfo.value.tag == b"SSND"

    def test_ssnd_too_small_for_comm(self):
        buffer = form(comm(1, 4, 16), ssnd(b"\x00\x01"))
        with pytest.raises(ChunkSizeMismatch):
            decode_aiff(buffer)

    def test_short_comm_is_mismatch(self):
        buffer = form(chunk(b"COMM", b"\x00\x01\x00\x00"))
        with pytest.raises(ChunkSizeMismatch):
            decode_aiff(buffer)

    def test_long_comm_extension_skipped(self):
        body = struct.pack(">HIH", 1, 1, 8) + RATE_44100 + b"NONE\x00\x00"
        container = decode_aiff(form(chunk(b"COMM", body), ssnd(b"\x05")))
        np.testing.assert_array_equal(container.frames[0], [5])

    def test_24_bit_rejected(self):
        buffer = form(comm(1, 1, 24), ssnd(b"\x00\x00\x01"))
        with pytest.raises(UnsupportedBitDepth):
            decode_aiff(buffer)

    def test_repeated_comm_after_ssnd_rejected(self):
        """A second COMM cannot reinterpret samples already decoded."""
        samples = struct.pack(">4H", 0x1234, 0x5678, 0x9ABC, 0xDEF0)
        buffer = form(comm(2, 2, 16), ssnd(samples), comm(1, 8, 8))
        with pytest.raises(DuplicateChunk) as excinfo:
            decode_aiff(buffer)
        assert excinfo.value.tag == b"COMM"
        assert excinfo.value.offset == 12 + 26 + 24

    def test_repeated_comm_before_ssnd_rejected(self):
        buffer = form(comm(1, 1, 16), comm(1, 2, 8), ssnd(b"\x01\x02"))
        with pytest.raises(DuplicateChunk) as excinfo:
            decode_aiff(buffer)
        assert excinfo.value.offset == 38

    def test_repeated_ssnd_rejected(self):
        buffer = form(comm(1, 1, 8), ssnd(b"\x01"), ssnd(b"\x02"))
        with pytest.raises(DuplicateChunk) as excinfo:
            decode_aiff(buffer)
        assert excinfo.value.tag == b"SSND"

    def test_truncated_inside_any_field(self):
        """Cutting the buffer anywhere but a chunk boundary yields TruncatedInput."""
        buffer = form(chunk(b"NAME", b"ab"), comm(1, 2, 16), ssnd(b"\x00\x01\x00\x02"))
        chunk_boundaries = {12, 12 + 10, 12 + 10 + 26}
        for cut in range(len(buffer)):
            if cut in chunk_boundaries:
                continue
            with pytest.raises(TruncatedInput):
                decode_aiff(buffer[:cut])


class TestEncodeAiff:
    """Test cases for AIFF encoding."""

    def test_layout(self):
        container = AudioContainer(44100, 16, [[1, 2], [3, 4]], name=b"ab")
        encoded = encode_aiff(container)
        expected = form(
            comm(2, 2, 16),
            chunk(b"NAME", b"ab"),
            ssnd(struct.pack(">4H", 1, 2, 3, 4)),
        )
        assert encoded == expected

    def test_form_size_covers_following_chunks(self):
        encoded = encode_aiff(AudioContainer(8000, 8, [[1, 2, 3]]))
        (form_size,) = struct.unpack(">I", encoded[4:8])
        assert form_size == len(encoded) - 8
        assert form_size == 4 + (8 + 18) + (8 + 8 + 3)

    def test_name_omitted_when_absent(self):
        encoded = encode_aiff(AudioContainer(8000, 8, [[1]]))
        assert b"NAME" not in encoded

    def test_sample_rate_encoded_as_extended(self):
        encoded = encode_aiff(AudioContainer(44100, 16, [[0]]))
        assert RATE_44100 in encoded

    def test_verbatim_rate_bytes_reused(self):
        odd_rate = bytes.fromhex("400dfa00000000000001")
        buffer = form(comm(1, 1, 8, rate=odd_rate), ssnd(b"\x00"))
        assert encode_aiff(decode_aiff(buffer)) == buffer

    def test_stale_rate_bytes_ignored(self):
        container = AudioContainer(48000, 16, [[0]], aiff_rate_bytes=RATE_44100)
        encoded = encode_aiff(container)
        assert int_to_extended(48000) in encoded
        assert RATE_44100 not in encoded

    def test_empty_channel_set(self):
        with pytest.raises(InvalidContainer):
            encode_aiff(AudioContainer(44100, 16, []))

    def test_mismatched_channels(self):
        with pytest.raises(InvalidContainer):
            encode_aiff(AudioContainer(44100, 16, [[1, 2], [1]]))

    def test_24_bit_rejected(self):
        with pytest.raises(UnsupportedBitDepth):
            encode_aiff(AudioContainer(44100, 24, [[1]]))


class TestAiffRoundTrip:
    """decode(encode(c)) == c for the supported depths."""

    @pytest.mark.parametrize("bit_depth", [8, 16, 32])
    def test_round_trip(self, bit_depth):
        rng = np.random.default_rng(bit_depth)
        mask = (1 << bit_depth) - 1
        frames = [
            rng.integers(0, mask, size=64, dtype=np.uint64, endpoint=True).astype(np.uint32)
            for _ in range(3)
        ]
        container = AudioContainer(22050, bit_depth, frames, name=b"round trip")
        assert decode_aiff(encode_aiff(container)) == container

    def test_round_trip_keeps_bytes(self):
        buffer = form(comm(2, 2, 16), chunk(b"NAME", b"n"), ssnd(b"\x00\x01\x00\x02\x00\x03\x00\x04"))
        assert encode_aiff(decode_aiff(buffer)) == buffer
