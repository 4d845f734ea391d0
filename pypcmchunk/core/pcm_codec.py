"""
Packs and unpacks integer PCM samples to and from their stored width.

Samples are carried as unsigned 32-bit values holding the low `bit_depth`
bits of the stored integer; no sign extension is applied. A bit depth is
stored in ceil(bit_depth / 8) bytes. Widths of 1, 2 and 4 bytes are
supported. Three-byte (17-24 bit) samples are rejected with
UnsupportedBitDepth in both directions.
"""

import numpy as np

from .cursor import BinaryCursor
from ..common.constants import MAX_BIT_DEPTH, SUPPORTED_SAMPLE_WIDTHS
from ..common.errors import UnsupportedBitDepth


def sample_width(bit_depth: int) -> int:
    """
    Returns the number of bytes one sample of `bit_depth` bits occupies.

    Raises:
        UnsupportedBitDepth: For depths outside 1..32 and for 3-byte widths.
    """
    if not 1 <= bit_depth <= MAX_BIT_DEPTH:
        raise UnsupportedBitDepth(bit_depth)
    width = (bit_depth + 7) // 8
    if width not in SUPPORTED_SAMPLE_WIDTHS:
        raise UnsupportedBitDepth(bit_depth)
    return width


def sample_mask(bit_depth: int) -> int:
    return (1 << bit_depth) - 1


def _dtype(width: int, byteorder: str) -> np.dtype:
    prefix = ">" if byteorder == "big" else "<"
    return np.dtype(f"{prefix}u{width}")


def unpack_sample(cursor: BinaryCursor, bit_depth: int) -> int:
    """Reads one sample in the cursor's byte order."""
    width = sample_width(bit_depth)
    if width == 1:
        value = cursor.read_u8("sample")
    elif width == 2:
        value = cursor.read_u16("sample")
    else:
        value = cursor.read_u32("sample")
    return value & sample_mask(bit_depth)


def pack_sample(cursor: BinaryCursor, value: int, bit_depth: int):
    """Writes the low `bit_depth` bits of `value` in the cursor's byte order."""
    width = sample_width(bit_depth)
    value = int(value) & sample_mask(bit_depth)
    if width == 1:
        cursor.write_u8(value)
    elif width == 2:
        cursor.write_u16(value)
    else:
        cursor.write_u32(value)


def unpack_samples(cursor: BinaryCursor, count: int, bit_depth: int) -> np.ndarray:
    """
    Reads `count` consecutive samples.

    Returns:
        A uint32 array that owns its data (no view onto the cursor buffer).
    """
    width = sample_width(bit_depth)
    raw = cursor.read_exact(count * width, "sample data")
    samples = np.frombuffer(raw, dtype=_dtype(width, cursor.byteorder)).astype(np.uint32)
    samples &= np.uint32(sample_mask(bit_depth))
    return samples


def pack_samples(cursor: BinaryCursor, samples: np.ndarray, bit_depth: int):
    """Writes every sample in `samples` (flattened in C order)."""
    width = sample_width(bit_depth)
    values = np.asarray(samples, dtype=np.uint32).ravel() & np.uint32(sample_mask(bit_depth))
    cursor.write_bytes(values.astype(_dtype(width, cursor.byteorder)).tobytes())
