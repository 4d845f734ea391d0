"""
Exception hierarchy shared by the cursor, the chunk walker and the container codecs.
"""

from typing import Optional


class PcmChunkError(Exception):
    """Base class for pypcmchunk errors."""


class TruncatedInput(PcmChunkError, EOFError):
    """A read or skip asked for more bytes than the buffer still holds."""

    def __init__(self, requested: int, remaining: int, what: str = ""):
        self.requested = requested
        self.remaining = remaining
        self.what = what
        where = f" while reading {what}" if what else ""
        super().__init__(
            f"Truncated input{where}: requested {requested} bytes, {remaining} remaining"
        )


class InvalidMagic(PcmChunkError):
    """Container tag or form type does not match the expected magic."""

    def __init__(self, expected: bytes, actual: bytes):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Invalid magic: expected {expected!r}, got {actual!r}")


class UnknownChunk(PcmChunkError):
    def __init__(self, tag: bytes, offset: int):
        self.tag = tag
        self.offset = offset
        super().__init__(f"Unknown chunk {tag!r} at offset {offset}")


class MissingPrerequisiteChunk(PcmChunkError):
    def __init__(self, missing: bytes, required_by: Optional[bytes] = None):
        self.missing = missing
        self.required_by = required_by
        if required_by is None:
            message = f"Required chunk {missing!r} not found"
        else:
            message = f"Chunk {required_by!r} requires a preceding {missing!r} chunk"
        super().__init__(message)


class DuplicateChunk(PcmChunkError):
    """A chunk that may appear only once was seen again."""

    def __init__(self, tag: bytes, offset: int):
        self.tag = tag
        self.offset = offset
        super().__init__(f"Duplicate chunk {tag!r} at offset {offset}")


class ChunkSizeMismatch(PcmChunkError):
    """A chunk handler consumed a different number of bytes than the chunk declared."""

    def __init__(self, tag: bytes, declared: int, consumed: int):
        self.tag = tag
        self.declared = declared
        self.consumed = consumed
        super().__init__(
            f"Chunk {tag!r} declared {declared} bytes but handler consumed {consumed}"
        )


class UnsupportedEncoding(PcmChunkError):
    pass


class UnsupportedBitDepth(PcmChunkError):
    def __init__(self, bit_depth: int):
        self.bit_depth = bit_depth
        super().__init__(f"Unsupported bit depth: {bit_depth}")


class InvalidContainer(PcmChunkError):
    """The AudioContainer handed to an encoder violates its invariants."""


class FileAccessError(PcmChunkError):
    pass


class RecoverableFormatIssue(PcmChunkError):
    """
    Data-plane anomaly the decoders work around. Instances are recorded on
    AudioContainer.diagnostics instead of being raised.
    """


class TruncatedData(RecoverableFormatIssue):
    def __init__(self, tag: bytes, declared: int, available: int):
        self.tag = tag
        self.declared = declared
        self.available = available
        super().__init__(
            f"Chunk {tag!r} declares {declared} bytes, only {available} available; clamped"
        )


class TrailingData(RecoverableFormatIssue):
    def __init__(self, count: int, offset: int):
        self.count = count
        self.offset = offset
        super().__init__(f"{count} trailing bytes discarded at offset {offset}")
