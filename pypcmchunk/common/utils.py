from typing import Optional
import os

from .constants import AIFF_FORM_TAG, AIFF_FORM_TYPE, RIFF_TAG, WAVE_FORMAT_TAG

"""
Common utility functions for the pypcmchunk project.
"""

WAV = "wav"
AIFF = "aiff"

_EXTENSIONS = {
    ".wav": WAV,
    ".wave": WAV,
    ".aif": AIFF,
    ".aiff": AIFF,
}


def format_for_path(path: str) -> Optional[str]:
    """
    Determines the container format from a file extension.

    Args:
        path: File path; the extension is matched case-insensitively.

    Returns:
        "wav", "aiff", or None for unrecognized extensions.
    """
    return _EXTENSIONS.get(os.path.splitext(path)[1].lower())


def detect_format(buffer: bytes) -> Optional[str]:
    """
    Determines the container format from the outer 12-byte header.

    Returns:
        "wav", "aiff", or None when neither magic matches.
    """
    if len(buffer) < 12:
        return None
    if buffer[0:4] == RIFF_TAG and buffer[8:12] == WAVE_FORMAT_TAG:
        return WAV
    if buffer[0:4] == AIFF_FORM_TAG and buffer[8:12] == AIFF_FORM_TYPE:
        return AIFF
    return None
