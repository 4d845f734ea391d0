"""
Wire-level constants for the RIFF/WAVE and IFF/AIFF container formats.
Tags are kept as raw 4-byte values; they are compared as bytes, never decoded.
"""

CHUNK_TAG_SIZE = 4
CHUNK_HEADER_SIZE = 8

# AIFF (big-endian)
AIFF_FORM_TAG = b"FORM"
AIFF_FORM_TYPE = b"AIFF"
AIFF_NAME_TAG = b"NAME"
AIFF_COMM_TAG = b"COMM"
AIFF_SSND_TAG = b"SSND"
AIFF_COMM_SIZE = 18
AIFF_SSND_HEADER_SIZE = 8
EXTENDED_RATE_SIZE = 10

# WAV (little-endian)
RIFF_TAG = b"RIFF"
WAVE_FORMAT_TAG = b"WAVE"
WAV_FMT_TAG = b"fmt "
WAV_DATA_TAG = b"data"
WAV_FMT_SIZE = 16
WAVE_FORMAT_PCM = 1

SUPPORTED_SAMPLE_WIDTHS = (1, 2, 4)
MAX_BIT_DEPTH = 32
U16_MAX = 0xFFFF
U32_MAX = 0xFFFFFFFF
