"""
File access for the command surface. The codecs themselves only ever see bytes.
"""

from .errors import FileAccessError


def read_file(path: str) -> bytes:
    """Reads the whole file at `path` into memory."""
    try:
        with open(path, "rb") as stream:
            return stream.read()
    except OSError as e:
        raise FileAccessError(f"Failed to read audio file: {path}") from e


def write_file(path: str, data: bytes) -> None:
    """Creates or overwrites `path` with `data`."""
    try:
        with open(path, "wb") as stream:
            stream.write(data)
    except OSError as e:
        raise FileAccessError(f"Failed to write audio file: {path}") from e
