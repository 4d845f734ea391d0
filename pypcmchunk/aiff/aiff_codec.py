"""
Decoding and encoding of IFF/AIFF containers held in memory.

Big-endian throughout. The FORM header is followed by NAME, COMM and SSND
chunks; any other tag is rejected. SSND stores samples channel by channel
(all frames of channel 0, then channel 1, ...).
"""

from typing import Optional

import numpy as np

from .extended import extended_to_int, int_to_extended
from ..core.chunk_walker import ChunkWalker, FAIL_ON_UNKNOWN, write_chunk_header
from ..core.container import AudioContainer
from ..core.cursor import BinaryCursor
from ..core.pcm_codec import pack_samples, sample_width, unpack_samples
from ..common.constants import (
    AIFF_COMM_SIZE,
    AIFF_COMM_TAG,
    AIFF_FORM_TAG,
    AIFF_FORM_TYPE,
    AIFF_NAME_TAG,
    AIFF_SSND_HEADER_SIZE,
    AIFF_SSND_TAG,
    CHUNK_HEADER_SIZE,
    CHUNK_TAG_SIZE,
    EXTENDED_RATE_SIZE,
    U32_MAX,
)
from ..common.debug_logger import ChunkTraceLogger, resolve_logger
from ..common.errors import (
    ChunkSizeMismatch,
    DuplicateChunk,
    InvalidContainer,
    InvalidMagic,
    MissingPrerequisiteChunk,
)


class AiffDecoder:
    """
    Decodes one AIFF buffer. An instance is single-use; call decode() once.
    """

    def __init__(self, buffer: bytes, logger: Optional[ChunkTraceLogger] = None):
        self.logger = resolve_logger(logger)
        self.cursor = BinaryCursor("big", buffer)

        self.name: Optional[bytes] = None
        self.channel_count: Optional[int] = None
        self.sample_frame_count: int = 0
        self.bit_depth: int = 0
        self.rate_bytes: bytes = bytes(EXTENDED_RATE_SIZE)
        self.frames: Optional[list] = None

    def decode(self) -> AudioContainer:
        with self.logger.scope("decode_aiff"):
            self._read_form_header()

            walker = ChunkWalker(FAIL_ON_UNKNOWN, self.logger)
            walker.register(AIFF_NAME_TAG, self._read_name)
            walker.register(AIFF_COMM_TAG, self._read_comm)
            walker.register(AIFF_SSND_TAG, self._read_ssnd)
            walker.walk(self.cursor)

            if self.channel_count is None:
                raise MissingPrerequisiteChunk(AIFF_COMM_TAG)
            if self.frames is None:
                if self.sample_frame_count and self.channel_count:
                    raise MissingPrerequisiteChunk(AIFF_SSND_TAG)
                self.frames = [
                    np.zeros(0, dtype=np.uint32) for _ in range(self.channel_count)
                ]

            return AudioContainer(
                sample_rate=extended_to_int(self.rate_bytes),
                bit_depth=self.bit_depth,
                frames=self.frames,
                name=self.name,
                aiff_rate_bytes=self.rate_bytes,
                diagnostics=list(walker.diagnostics),
            )

    def _read_form_header(self):
        tag = self.cursor.read_exact(CHUNK_TAG_SIZE, "FORM tag")
        self.logger.log_field("FORM", "tag", tag)
        if tag != AIFF_FORM_TAG:
            raise InvalidMagic(AIFF_FORM_TAG, tag)

        form_size = self.cursor.read_u32("FORM size")
        self.logger.log_field("FORM", "size", form_size)
        if form_size + CHUNK_HEADER_SIZE != len(self.cursor.buffer):
            self.logger.log_event(
                "FORM", "size disagrees with buffer length",
                declared=form_size, buffer=len(self.cursor.buffer),
            )

        form_type = self.cursor.read_exact(CHUNK_TAG_SIZE, "FORM type")
        self.logger.log_field("FORM", "form_type", form_type)
        if form_type != AIFF_FORM_TYPE:
            raise InvalidMagic(AIFF_FORM_TYPE, form_type)

    def _read_name(self, cursor: BinaryCursor, size: int):
        # The chunk size doubles as the string's length prefix.
        self.name = cursor.read_exact(size, "NAME text")
        self.logger.log_field("NAME", "name", self.name)

    def _read_comm(self, cursor: BinaryCursor, size: int):
        if self.channel_count is not None:
            raise DuplicateChunk(AIFF_COMM_TAG, cursor.position - CHUNK_HEADER_SIZE)
        if size < AIFF_COMM_SIZE:
            raise ChunkSizeMismatch(AIFF_COMM_TAG, size, AIFF_COMM_SIZE)

        self.channel_count = cursor.read_u16("COMM channel_count")
        self.logger.log_field("COMM", "channel_count", self.channel_count)

        self.sample_frame_count = cursor.read_u32("COMM sample_frame_count")
        self.logger.log_field("COMM", "sample_frame_count", self.sample_frame_count)

        self.bit_depth = cursor.read_u16("COMM bit_depth")
        self.logger.log_field("COMM", "bit_depth", self.bit_depth)

        self.rate_bytes = cursor.read_exact(EXTENDED_RATE_SIZE, "COMM sample_rate")
        self.logger.log_bytes("COMM", self.rate_bytes, field="sample_rate",
                              decoded=extended_to_int(self.rate_bytes))

        if size > AIFF_COMM_SIZE:
            extra = size - AIFF_COMM_SIZE
            self.logger.log_event("COMM", "skipping extension bytes", count=extra)
            cursor.skip(extra, "COMM extension")

    def _read_ssnd(self, cursor: BinaryCursor, size: int):
        if self.channel_count is None:
            raise MissingPrerequisiteChunk(AIFF_COMM_TAG, AIFF_SSND_TAG)
        if self.frames is not None:
            raise DuplicateChunk(AIFF_SSND_TAG, cursor.position - CHUNK_HEADER_SIZE)

        width = sample_width(self.bit_depth)
        count = self.channel_count * self.sample_frame_count
        expected = AIFF_SSND_HEADER_SIZE + count * width
        if expected > size:
            raise ChunkSizeMismatch(AIFF_SSND_TAG, size, expected)

        offset = cursor.read_u32("SSND offset")
        block_size = cursor.read_u32("SSND block_size")
        self.logger.log_field("SSND", "offset", offset)
        self.logger.log_field("SSND", "block_size", block_size)

        samples = unpack_samples(cursor, count, self.bit_depth)
        per_channel = samples.reshape(self.channel_count, self.sample_frame_count)
        self.frames = [per_channel[ch].copy() for ch in range(self.channel_count)]
        for ch, channel in enumerate(self.frames):
            self.logger.log_samples("SSND", "samples", channel, channel=ch)


class AiffEncoder:
    """Serializes an AudioContainer as FORM/COMM/NAME/SSND."""

    def __init__(self, container: AudioContainer, logger: Optional[ChunkTraceLogger] = None):
        self.container = container
        self.logger = resolve_logger(logger)

    def _rate_bytes(self) -> bytes:
        raw = self.container.aiff_rate_bytes
        if (
            raw is not None
            and len(raw) == EXTENDED_RATE_SIZE
            and extended_to_int(raw) == self.container.sample_rate
        ):
            return bytes(raw)
        return int_to_extended(self.container.sample_rate)

    def encode(self) -> bytes:
        container = self.container
        with self.logger.scope("encode_aiff"):
            width = container.validate_for_encoding()
            if container.frame_count > U32_MAX:
                raise InvalidContainer(f"Too many frames: {container.frame_count}")

            name = container.name
            comm_size = AIFF_COMM_SIZE
            ssnd_size = (
                AIFF_SSND_HEADER_SIZE
                + container.frame_count * container.channel_count * width
            )
            form_size = (
                CHUNK_TAG_SIZE
                + CHUNK_HEADER_SIZE + comm_size
                + CHUNK_HEADER_SIZE + ssnd_size
            )
            if name is not None:
                form_size += CHUNK_HEADER_SIZE + len(name)
            if form_size > U32_MAX:
                raise InvalidContainer("Encoded AIFF exceeds 32-bit FORM size")

            cursor = BinaryCursor("big")
            write_chunk_header(cursor, AIFF_FORM_TAG, form_size)
            cursor.write_bytes(AIFF_FORM_TYPE)
            self.logger.log_field("FORM", "size", form_size)

            write_chunk_header(cursor, AIFF_COMM_TAG, comm_size)
            cursor.write_u16(container.channel_count)
            cursor.write_u32(container.frame_count)
            cursor.write_u16(container.bit_depth)
            cursor.write_bytes(self._rate_bytes())
            self.logger.log_field("COMM", "channel_count", container.channel_count)
            self.logger.log_field("COMM", "sample_frame_count", container.frame_count)
            self.logger.log_field("COMM", "bit_depth", container.bit_depth)

            if name is not None:
                cursor.write_bytes(AIFF_NAME_TAG)
                cursor.write_length_prefixed_string(name)
                self.logger.log_field("NAME", "name", name)

            write_chunk_header(cursor, AIFF_SSND_TAG, ssnd_size)
            cursor.write_u32(0)
            cursor.write_u32(0)
            pack_samples(cursor, np.concatenate(container.frames), container.bit_depth)
            self.logger.log_field("SSND", "size", ssnd_size)

            return cursor.get_bytes()


def decode_aiff(buffer: bytes, logger: Optional[ChunkTraceLogger] = None) -> AudioContainer:
    """
    Decodes an AIFF byte buffer.

    Raises:
        InvalidMagic, UnknownChunk, MissingPrerequisiteChunk, DuplicateChunk,
        ChunkSizeMismatch, TruncatedInput, UnsupportedBitDepth
    """
    return AiffDecoder(buffer, logger).decode()


def encode_aiff(container: AudioContainer, logger: Optional[ChunkTraceLogger] = None) -> bytes:
    return AiffEncoder(container, logger).encode()
