"""
Decoding and encoding of RIFF/WAVE containers held in memory.

Little-endian throughout. Only uncompressed integer PCM (audio_format 1)
is accepted. Unknown chunks are skipped, the opposite of the AIFF policy.
Samples in the data chunk are interleaved frame by frame.
"""

from typing import List, Optional

from ..core.chunk_walker import ChunkWalker, SKIP_UNKNOWN, write_chunk_header
from ..core.container import AudioContainer, deinterleave, interleave
from ..core.cursor import BinaryCursor
from ..core.pcm_codec import pack_samples, sample_width, unpack_samples
from ..common.constants import (
    CHUNK_HEADER_SIZE,
    CHUNK_TAG_SIZE,
    RIFF_TAG,
    U32_MAX,
    WAV_DATA_TAG,
    WAV_FMT_SIZE,
    WAV_FMT_TAG,
    WAVE_FORMAT_PCM,
    WAVE_FORMAT_TAG,
)
from ..common.debug_logger import ChunkTraceLogger, resolve_logger
from ..common.errors import (
    ChunkSizeMismatch,
    DuplicateChunk,
    InvalidContainer,
    InvalidMagic,
    MissingPrerequisiteChunk,
    RecoverableFormatIssue,
    TrailingData,
    UnsupportedEncoding,
)


class WavFormat:
    """The 16-byte PCM format record carried by the fmt chunk."""

    def __init__(
        self,
        audio_format: int = WAVE_FORMAT_PCM,
        channel_count: int = 0,
        sample_rate: int = 0,
        byte_rate: int = 0,
        block_align: int = 0,
        bit_depth: int = 0,
    ):
        self.audio_format = audio_format
        self.channel_count = channel_count
        self.sample_rate = sample_rate
        self.byte_rate = byte_rate
        self.block_align = block_align
        self.bit_depth = bit_depth

    @classmethod
    def for_container(cls, container: AudioContainer) -> "WavFormat":
        width = sample_width(container.bit_depth)
        block_align = container.channel_count * width
        return cls(
            audio_format=WAVE_FORMAT_PCM,
            channel_count=container.channel_count,
            sample_rate=container.sample_rate,
            byte_rate=container.sample_rate * block_align,
            block_align=block_align,
            bit_depth=container.bit_depth,
        )

    @classmethod
    def read(cls, cursor: BinaryCursor) -> "WavFormat":
        return cls(
            audio_format=cursor.read_u16("fmt audio_format"),
            channel_count=cursor.read_u16("fmt channel_count"),
            sample_rate=cursor.read_u32("fmt sample_rate"),
            byte_rate=cursor.read_u32("fmt byte_rate"),
            block_align=cursor.read_u16("fmt block_align"),
            bit_depth=cursor.read_u16("fmt bit_depth"),
        )

    def write(self, cursor: BinaryCursor):
        cursor.write_u16(self.audio_format)
        cursor.write_u16(self.channel_count)
        cursor.write_u32(self.sample_rate)
        cursor.write_u32(self.byte_rate)
        cursor.write_u16(self.block_align)
        cursor.write_u16(self.bit_depth)


class WavDecoder:
    """
    Decodes one WAV buffer. An instance is single-use; call decode() once.
    """

    def __init__(self, buffer: bytes, logger: Optional[ChunkTraceLogger] = None):
        self.logger = resolve_logger(logger)
        self.cursor = BinaryCursor("little", buffer)
        self.format: Optional[WavFormat] = None
        self.frames: Optional[list] = None
        self.diagnostics: List[RecoverableFormatIssue] = []

    def decode(self) -> AudioContainer:
        with self.logger.scope("decode_wav"):
            self._read_riff_header()

            walker = ChunkWalker(
                SKIP_UNKNOWN,
                self.logger,
                partial_tail_allowed=lambda: self.frames is not None,
            )
            walker.register(WAV_FMT_TAG, self._read_fmt)
            walker.register(WAV_DATA_TAG, self._read_data, clamp=True)
            walker.walk(self.cursor)

            if self.format is None:
                raise MissingPrerequisiteChunk(WAV_FMT_TAG)
            if self.frames is None:
                raise MissingPrerequisiteChunk(WAV_DATA_TAG)

            return AudioContainer(
                sample_rate=self.format.sample_rate,
                bit_depth=self.format.bit_depth,
                frames=self.frames,
                diagnostics=self.diagnostics + walker.diagnostics,
            )

    def _read_riff_header(self):
        tag = self.cursor.read_exact(CHUNK_TAG_SIZE, "RIFF tag")
        self.logger.log_field("RIFF", "tag", tag)
        if tag != RIFF_TAG:
            raise InvalidMagic(RIFF_TAG, tag)

        riff_size = self.cursor.read_u32("RIFF size")
        self.logger.log_field("RIFF", "size", riff_size)
        if riff_size + CHUNK_HEADER_SIZE != len(self.cursor.buffer):
            self.logger.log_event(
                "RIFF", "size disagrees with buffer length",
                declared=riff_size, buffer=len(self.cursor.buffer),
            )

        form_type = self.cursor.read_exact(CHUNK_TAG_SIZE, "RIFF format")
        self.logger.log_field("RIFF", "format", form_type)
        if form_type != WAVE_FORMAT_TAG:
            raise InvalidMagic(WAVE_FORMAT_TAG, form_type)

    def _read_fmt(self, cursor: BinaryCursor, size: int):
        if self.format is not None:
            raise DuplicateChunk(WAV_FMT_TAG, cursor.position - CHUNK_HEADER_SIZE)
        if size < WAV_FMT_SIZE:
            raise ChunkSizeMismatch(WAV_FMT_TAG, size, WAV_FMT_SIZE)

        fmt = WavFormat.read(cursor)
        for field_name in (
            "audio_format", "channel_count", "sample_rate",
            "byte_rate", "block_align", "bit_depth",
        ):
            self.logger.log_field("fmt ", field_name, getattr(fmt, field_name))

        if fmt.audio_format != WAVE_FORMAT_PCM:
            raise UnsupportedEncoding(
                f"Only PCM (format {WAVE_FORMAT_PCM}) is supported, got format {fmt.audio_format}"
            )
        if fmt.channel_count == 0:
            raise UnsupportedEncoding("fmt chunk declares zero channels")
        width = sample_width(fmt.bit_depth)
        if fmt.block_align != fmt.channel_count * width:
            raise UnsupportedEncoding(
                f"block_align {fmt.block_align} does not match "
                f"{fmt.channel_count} channels of {width}-byte samples"
            )

        if size > WAV_FMT_SIZE:
            extra = size - WAV_FMT_SIZE
            self.logger.log_event("fmt ", "skipping extension bytes", count=extra)
            cursor.skip(extra, "fmt extension")
        self.format = fmt

    def _read_data(self, cursor: BinaryCursor, size: int):
        fmt = self.format
        if fmt is None:
            raise MissingPrerequisiteChunk(WAV_FMT_TAG, WAV_DATA_TAG)
        if self.frames is not None:
            raise DuplicateChunk(WAV_DATA_TAG, cursor.position - CHUNK_HEADER_SIZE)

        frame_count = size // fmt.block_align
        self.logger.log_field("data", "frame_count", frame_count)
        samples = unpack_samples(cursor, frame_count * fmt.channel_count, fmt.bit_depth)
        self.frames = deinterleave(samples, fmt.channel_count)
        for ch, channel in enumerate(self.frames):
            self.logger.log_samples("data", "samples", channel, channel=ch)

        leftover = size - frame_count * fmt.block_align
        if leftover:
            offset = cursor.position
            tail = cursor.read_exact(leftover, "partial frame")
            self.logger.log_bytes("data", tail, policy="discard partial frame")
            self.diagnostics.append(TrailingData(leftover, offset))


class WavEncoder:
    """Serializes an AudioContainer as RIFF/fmt /data."""

    def __init__(self, container: AudioContainer, logger: Optional[ChunkTraceLogger] = None):
        self.container = container
        self.logger = resolve_logger(logger)

    def encode(self) -> bytes:
        container = self.container
        with self.logger.scope("encode_wav"):
            container.validate_for_encoding()
            fmt = WavFormat.for_container(container)
            if fmt.byte_rate > U32_MAX:
                raise InvalidContainer(f"byte_rate {fmt.byte_rate} exceeds 32 bits")

            data_size = container.frame_count * fmt.block_align
            riff_size = (
                CHUNK_TAG_SIZE
                + CHUNK_HEADER_SIZE + WAV_FMT_SIZE
                + CHUNK_HEADER_SIZE + data_size
            )
            if riff_size > U32_MAX:
                raise InvalidContainer("Encoded WAV exceeds 32-bit RIFF size")

            cursor = BinaryCursor("little")
            write_chunk_header(cursor, RIFF_TAG, riff_size)
            cursor.write_bytes(WAVE_FORMAT_TAG)
            self.logger.log_field("RIFF", "size", riff_size)

            write_chunk_header(cursor, WAV_FMT_TAG, WAV_FMT_SIZE)
            fmt.write(cursor)
            self.logger.log_field("fmt ", "byte_rate", fmt.byte_rate)
            self.logger.log_field("fmt ", "block_align", fmt.block_align)

            write_chunk_header(cursor, WAV_DATA_TAG, data_size)
            pack_samples(cursor, interleave(container.frames), container.bit_depth)
            self.logger.log_field("data", "size", data_size)

            return cursor.get_bytes()


def decode_wav(buffer: bytes, logger: Optional[ChunkTraceLogger] = None) -> AudioContainer:
    """
    Decodes a WAV byte buffer.

    A data chunk that overstates its size is clamped (TruncatedData) and
    leftover bytes are discarded (TrailingData); both are recorded on the
    returned container's diagnostics. An unknown chunk after data that
    overruns the buffer is also discarded as TrailingData. A second fmt or
    data chunk is fatal.

    Raises:
        InvalidMagic, MissingPrerequisiteChunk, DuplicateChunk, ChunkSizeMismatch,
        TruncatedInput, UnsupportedEncoding, UnsupportedBitDepth
    """
    return WavDecoder(buffer, logger).decode()


def encode_wav(container: AudioContainer, logger: Optional[ChunkTraceLogger] = None) -> bytes:
    return WavEncoder(container, logger).encode()
