"""
Conversion between integer sample rates and the 80-bit IEEE 754 extended
precision field the AIFF COMM chunk stores them in.

Layout (big-endian): 1 sign bit, 15-bit exponent biased by 16383, and a
64-bit mantissa with an explicit integer bit.
"""

import struct

from ..common.constants import EXTENDED_RATE_SIZE, U32_MAX

EXTENDED_BIAS = 16383
_MANTISSA_BITS = 64


def int_to_extended(value: int) -> bytes:
    """Encodes a non-negative integer exactly."""
    if value < 0:
        raise ValueError(f"Sample rate must be non-negative, got {value}")
    if value == 0:
        return bytes(EXTENDED_RATE_SIZE)
    exponent = value.bit_length() - 1
    mantissa = value << (_MANTISSA_BITS - 1 - exponent)
    return struct.pack(">HQ", EXTENDED_BIAS + exponent, mantissa)


def extended_to_int(raw: bytes) -> int:
    """
    Decodes the integer part of an extended value. Negative, infinite and
    NaN encodings yield 0, as do values too large for a 32-bit rate; none
    of them carry a usable sample rate.
    """
    if len(raw) != EXTENDED_RATE_SIZE:
        raise ValueError(f"Extended value must be {EXTENDED_RATE_SIZE} bytes, got {len(raw)}")
    sign_exponent, mantissa = struct.unpack(">HQ", raw)
    if sign_exponent & 0x8000 or sign_exponent == 0x7FFF or mantissa == 0:
        return 0
    shift = sign_exponent - EXTENDED_BIAS - (_MANTISSA_BITS - 1)
    if shift >= 0:
        value = mantissa << shift
    else:
        value = mantissa >> -shift
    if value > U32_MAX:
        return 0
    return value
