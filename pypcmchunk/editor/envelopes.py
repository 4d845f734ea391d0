"""
Scalar envelope functions for the pattern mixer.

An envelope is any callable mapping normalized time (a float array in
[0, 1)) to a value array of the same shape. The builders below cover the
shapes the mixer uses; arbitrary callables work as well.
"""

import math
from typing import Callable, Sequence

import numpy as np

Envelope = Callable[[np.ndarray], np.ndarray]


def constant(value: float) -> Envelope:
    def envelope(t: np.ndarray) -> np.ndarray:
        return np.full_like(t, value, dtype=np.float64)

    return envelope


def linear_ramp(start: float, end: float) -> Envelope:
    def envelope(t: np.ndarray) -> np.ndarray:
        return start + (end - start) * np.asarray(t, dtype=np.float64)

    return envelope


def sine(center: float, depth: float, cycles: float = 1.0, phase: float = 0.0) -> Envelope:
    """Oscillates around `center` by +/- `depth`, `cycles` times over the segment."""

    def envelope(t: np.ndarray) -> np.ndarray:
        angle = 2.0 * math.pi * (cycles * np.asarray(t, dtype=np.float64) + phase)
        return center + depth * np.sin(angle)

    return envelope


def chain(envelopes: Sequence[Envelope]) -> Envelope:
    """
    Plays the given envelopes one after another, each over an equal share
    of the normalized time range.
    """
    if not envelopes:
        raise ValueError("chain() needs at least one envelope")
    count = len(envelopes)

    def envelope(t: np.ndarray) -> np.ndarray:
        t = np.asarray(t, dtype=np.float64)
        index = np.minimum((t * count).astype(np.int64), count - 1)
        local = t * count - index
        result = np.empty_like(t)
        for i, inner in enumerate(envelopes):
            selected = index == i
            if np.any(selected):
                result[selected] = inner(local[selected])
        return result

    return envelope
