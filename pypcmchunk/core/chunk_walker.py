"""
Generic tag + size chunk iteration shared by the AIFF and WAV decoders.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .cursor import BinaryCursor
from ..common.constants import CHUNK_HEADER_SIZE, CHUNK_TAG_SIZE
from ..common.debug_logger import ChunkTraceLogger, resolve_logger
from ..common.errors import (
    ChunkSizeMismatch,
    RecoverableFormatIssue,
    TrailingData,
    TruncatedData,
    TruncatedInput,
    UnknownChunk,
)

ChunkHandler = Callable[[BinaryCursor, int], None]

SKIP_UNKNOWN = "skip"
FAIL_ON_UNKNOWN = "fail"


@dataclass(frozen=True)
class ChunkHeader:
    tag: bytes
    declared_size: int
    offset: int

    @property
    def display_tag(self) -> str:
        return self.tag.decode("ascii", errors="replace")


@dataclass(frozen=True)
class _Registration:
    handler: ChunkHandler
    clamp: bool


def read_chunk_header(cursor: BinaryCursor) -> ChunkHeader:
    offset = cursor.position
    tag = cursor.read_exact(CHUNK_TAG_SIZE, "chunk tag")
    declared_size = cursor.read_u32("chunk size")
    return ChunkHeader(tag, declared_size, offset)


def write_chunk_header(cursor: BinaryCursor, tag: bytes, size: int):
    if len(tag) != CHUNK_TAG_SIZE:
        raise ValueError(f"Chunk tag must be {CHUNK_TAG_SIZE} bytes, got {tag!r}")
    cursor.write_bytes(tag)
    cursor.write_u32(size)


class ChunkWalker:
    """
    Reads chunk headers until the cursor is exhausted and dispatches each
    chunk body to the handler registered for its tag.

    After every handler the walker verifies that exactly the chunk's size
    was consumed and raises ChunkSizeMismatch otherwise. A declared size
    larger than what remains is fatal (TruncatedInput) unless the tag was
    registered with clamp=True, in which case the handler is given the
    remaining length and a TruncatedData diagnostic is recorded.
    """

    def __init__(
        self,
        unknown_policy: str,
        logger: Optional[ChunkTraceLogger] = None,
        partial_tail_allowed: Optional[Callable[[], bool]] = None,
    ):
        """
        Args:
            unknown_policy: SKIP_UNKNOWN to step over unregistered tags by their
                            declared size, FAIL_ON_UNKNOWN to raise UnknownChunk.
            logger: Trace logger; a disabled one is used when None.
            partial_tail_allowed: Consulted when fewer than CHUNK_HEADER_SIZE
                                  bytes remain. If it returns True those bytes
                                  are discarded as TrailingData; otherwise the
                                  next header read fails with TruncatedInput.
                                  Under SKIP_UNKNOWN it also lets an unknown
                                  chunk that overruns the buffer be discarded
                                  as TrailingData, ending the walk.
        """
        if unknown_policy not in (SKIP_UNKNOWN, FAIL_ON_UNKNOWN):
            raise ValueError(f"Unknown chunk policy: {unknown_policy!r}")
        self.unknown_policy = unknown_policy
        self.partial_tail_allowed = partial_tail_allowed
        self.logger = resolve_logger(logger)
        self.diagnostics: List[RecoverableFormatIssue] = []
        self._handlers: Dict[bytes, _Registration] = {}

    def register(self, tag: bytes, handler: ChunkHandler, clamp: bool = False):
        self._handlers[tag] = _Registration(handler, clamp)

    def walk(self, cursor: BinaryCursor) -> List[ChunkHeader]:
        """Walks every chunk left in the cursor; returns the headers in order."""
        seen: List[ChunkHeader] = []
        while not cursor.is_exhausted():
            if (
                cursor.remaining() < CHUNK_HEADER_SIZE
                and self.partial_tail_allowed is not None
                and self.partial_tail_allowed()
            ):
                self._discard_tail(cursor)
                break

            header = read_chunk_header(cursor)
            self.logger.log_field(
                header.display_tag, "declared_size", header.declared_size, offset=header.offset
            )
            seen.append(header)

            registration = self._handlers.get(header.tag)
            if registration is None:
                if not self._handle_unknown(cursor, header):
                    break
            else:
                self._dispatch(cursor, header, registration)
        return seen

    def _discard_tail(self, cursor: BinaryCursor):
        offset = cursor.position
        tail = cursor.read_exact(cursor.remaining(), "trailing bytes")
        self.logger.log_bytes("TRAILING", tail, offset=offset, policy="discard")
        self.diagnostics.append(TrailingData(len(tail), offset))

    def _handle_unknown(self, cursor: BinaryCursor, header: ChunkHeader) -> bool:
        """Returns False when the rest of the buffer was discarded as trailing data."""
        if self.unknown_policy == FAIL_ON_UNKNOWN:
            self.logger.log_event(header.display_tag, "unknown chunk", policy="fail")
            raise UnknownChunk(header.tag, header.offset)
        self.logger.log_event(
            header.display_tag, "unknown chunk", policy="skip", size=header.declared_size
        )
        available = cursor.remaining()
        if (
            header.declared_size > available
            and self.partial_tail_allowed is not None
            and self.partial_tail_allowed()
        ):
            self.logger.log_event(
                header.display_tag, "unknown chunk overruns buffer",
                policy="discard", declared=header.declared_size, available=available,
            )
            cursor.skip(available)
            self.diagnostics.append(
                TrailingData(cursor.position - header.offset, header.offset)
            )
            return False
        cursor.skip(header.declared_size, f"{header.display_tag} chunk body")
        return True

    def _dispatch(self, cursor: BinaryCursor, header: ChunkHeader, registration: _Registration):
        size = header.declared_size
        available = cursor.remaining()
        if size > available:
            if not registration.clamp:
                raise TruncatedInput(size, available, f"{header.display_tag} chunk body")
            self.logger.log_event(
                header.display_tag, "declared size exceeds buffer",
                policy="clamp", declared=size, available=available,
            )
            self.diagnostics.append(TruncatedData(header.tag, size, available))
            size = available

        start = cursor.position
        with self.logger.scope(header.display_tag):
            registration.handler(cursor, size)
        consumed = cursor.position - start
        if consumed != size:
            raise ChunkSizeMismatch(header.tag, size, consumed)
