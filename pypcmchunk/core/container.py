"""
Format-independent decoded audio: sample rate, bit depth and one uint32
sample array per channel.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from .pcm_codec import sample_width
from ..common.constants import U16_MAX, U32_MAX
from ..common.errors import InvalidContainer, RecoverableFormatIssue


@dataclass(eq=False)
class AudioContainer:
    """
    Decoded PCM audio.

    Attributes:
        sample_rate: Frames per second.
        bit_depth: Significant bits per sample.
        frames: One array per channel, all of the same length. Values are
                unsigned carriers of the stored integer (AIFF stores signed
                samples, 8-bit WAV stores unsigned ones).
        name: AIFF NAME chunk payload, if any.
        aiff_rate_bytes: Verbatim 80-bit AIFF sample-rate field, reused on
                         AIFF encode so non-integer rates survive a round trip.
        diagnostics: Recoverable anomalies seen while decoding.
    """

    sample_rate: int
    bit_depth: int
    frames: List[np.ndarray]
    name: Optional[bytes] = None
    aiff_rate_bytes: Optional[bytes] = None
    diagnostics: List[RecoverableFormatIssue] = field(default_factory=list)

    def __post_init__(self):
        self.frames = [np.array(channel, dtype=np.uint32) for channel in self.frames]

    @property
    def channel_count(self) -> int:
        return len(self.frames)

    @property
    def frame_count(self) -> int:
        return len(self.frames[0]) if self.frames else 0

    def __eq__(self, other) -> bool:
        if not isinstance(other, AudioContainer):
            return NotImplemented
        return (
            self.sample_rate == other.sample_rate
            and self.bit_depth == other.bit_depth
            and self.name == other.name
            and len(self.frames) == len(other.frames)
            and all(np.array_equal(a, b) for a, b in zip(self.frames, other.frames))
        )

    def validate_for_encoding(self) -> int:
        """
        Checks the invariants an encoder relies on.

        Returns:
            The per-sample byte width for this container's bit depth.

        Raises:
            InvalidContainer: Empty channel set, ragged channels or out-of-range fields.
            UnsupportedBitDepth: Bit depth the sample codec cannot pack.
        """
        if not self.frames:
            raise InvalidContainer("Container has no channels")
        if self.channel_count > U16_MAX:
            raise InvalidContainer(f"Too many channels: {self.channel_count}")
        lengths = {len(channel) for channel in self.frames}
        if len(lengths) != 1:
            raise InvalidContainer(
                f"Channels have mismatched frame counts: {sorted(lengths)}"
            )
        if not 0 <= self.sample_rate <= U32_MAX:
            raise InvalidContainer(f"Sample rate out of range: {self.sample_rate}")
        width = sample_width(self.bit_depth)
        if self.frame_count * self.channel_count * width > U32_MAX - 64:
            raise InvalidContainer("Sample data too large for a 32-bit chunk size")
        return width

    def copy(self) -> "AudioContainer":
        return AudioContainer(
            sample_rate=self.sample_rate,
            bit_depth=self.bit_depth,
            frames=[channel.copy() for channel in self.frames],
            name=self.name,
            aiff_rate_bytes=self.aiff_rate_bytes,
        )


def toggle_8bit_sign(container: AudioContainer) -> AudioContainer:
    """
    Converts 8-bit samples between the signed (AIFF) and offset-binary (WAV)
    conventions. Other depths are returned unchanged.
    """
    result = container.copy()
    if container.bit_depth <= 8:
        flip = np.uint32(1 << (container.bit_depth - 1))
        result.frames = [channel ^ flip for channel in result.frames]
    return result


def interleave(frames: Sequence[np.ndarray]) -> np.ndarray:
    """Frame-major layout: frame 0 of every channel, then frame 1, ..."""
    return np.stack(frames, axis=1).ravel()


def deinterleave(samples: np.ndarray, channel_count: int) -> List[np.ndarray]:
    per_frame = samples.reshape(-1, channel_count)
    return [per_frame[:, ch].copy() for ch in range(channel_count)]
