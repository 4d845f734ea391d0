"""
Randomized pattern mixing on top of decoded containers.
"""

from typing import List, Optional, Sequence

import numpy as np

from .envelopes import Envelope, constant
from ..core.container import AudioContainer
from ..common.debug_logger import ChunkTraceLogger, resolve_logger


class PatternMixer:
    """
    Builds a new container out of randomly chosen slices of the sources.

    Each output segment picks a source and a start frame at random, then
    reads the source at a playback rate given by an envelope: rate 1.0
    copies frames as-is, 2.0 skips every other frame, 0.5 repeats frames.
    Positions wrap around the end of the source.
    """

    def __init__(
        self,
        sources: Sequence[AudioContainer],
        rng: Optional[np.random.Generator] = None,
        logger: Optional[ChunkTraceLogger] = None,
    ):
        if not sources:
            raise ValueError("PatternMixer needs at least one source")
        first = sources[0]
        for source in sources:
            if source.bit_depth != first.bit_depth:
                raise ValueError(
                    f"Sources disagree on bit depth: {source.bit_depth} != {first.bit_depth}"
                )
            if source.channel_count != first.channel_count:
                raise ValueError(
                    f"Sources disagree on channel count: "
                    f"{source.channel_count} != {first.channel_count}"
                )
            if source.frame_count == 0:
                raise ValueError("Sources must contain at least one frame")
        self.sources = list(sources)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.logger = resolve_logger(logger)

    def _segment(self, length: int, rate: Envelope) -> List[np.ndarray]:
        source = self.sources[int(self.rng.integers(len(self.sources)))]
        start = int(self.rng.integers(source.frame_count))

        t = np.arange(length, dtype=np.float64) / max(length, 1)
        steps = np.maximum(rate(t), 0.0)
        positions = start + np.concatenate(([0.0], np.cumsum(steps[:-1])))
        indices = np.floor(positions).astype(np.int64) % source.frame_count

        self.logger.log_event(
            "MIX", "segment", start=start, length=length,
            first=int(indices[0]) if length else -1,
        )
        return [channel[indices] for channel in source.frames]

    def mix(
        self,
        total_frames: int,
        segment_frames: int,
        envelopes: Optional[Sequence[Envelope]] = None,
    ) -> AudioContainer:
        """
        Renders `total_frames` frames in segments of `segment_frames`.

        Args:
            total_frames: Length of the result.
            segment_frames: Length of each randomly chosen slice (the last
                            one may be shorter).
            envelopes: Playback-rate envelopes; one is picked at random per
                       segment. Defaults to a constant rate of 1.0.
        """
        if total_frames < 0 or segment_frames <= 0:
            raise ValueError("total_frames must be >= 0 and segment_frames > 0")
        choices = list(envelopes) if envelopes else [constant(1.0)]

        first = self.sources[0]
        pieces: List[List[np.ndarray]] = [[] for _ in range(first.channel_count)]
        with self.logger.scope("mix"):
            produced = 0
            while produced < total_frames:
                length = min(segment_frames, total_frames - produced)
                envelope = choices[int(self.rng.integers(len(choices)))]
                for ch, samples in enumerate(self._segment(length, envelope)):
                    pieces[ch].append(samples)
                produced += length

        frames = [
            np.concatenate(parts) if parts else np.zeros(0, dtype=np.uint32)
            for parts in pieces
        ]
        return AudioContainer(
            sample_rate=first.sample_rate,
            bit_depth=first.bit_depth,
            frames=frames,
        )


def shuffle_mirror(
    container: AudioContainer, rng: Optional[np.random.Generator] = None
) -> AudioContainer:
    """
    Shuffles the frames of channel 0 and copies the shuffled run into
    channel 1. Mono input is returned shuffled; further channels are kept.
    """
    if container.channel_count == 0:
        raise ValueError("Container has no channels")
    rng = rng if rng is not None else np.random.default_rng()
    result = container.copy()
    result.frames[0] = rng.permutation(result.frames[0])
    if result.channel_count > 1:
        result.frames[1] = result.frames[0].copy()
    return result
