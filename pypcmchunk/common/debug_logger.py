"""
Structured trace logging for chunk decoding and encoding.
Each record carries its source location, nesting depth and the decoded
field values, so a trace can be read side by side with a hex dump of the file.
"""

import time
import inspect
import contextlib
import numpy as np
from typing import Iterator, List, Union, Any
import os


class ChunkTraceLogger:
    """
    Trace logger handed explicitly to the cursor-level codecs.
    Disabled loggers accept every call and write nothing.
    """

    def __init__(self, log_file: str = "pcmchunk_trace.log", enabled: bool = True):
        self.log_file = log_file
        self.enabled = enabled
        self.depth = 0
        if enabled:
            # Clear log file and write header
            with open(log_file, 'w') as f:
                f.write(f"# pypcmchunk Trace Log - {time.strftime('%Y-%m-%d %H:%M:%S')}\n")
                f.write("# Format: [TIMESTAMP][PCMCHUNK][FILE:LINE][FUNC][D{n}] STAGE: data_type=values |META: ... |SRC: ...\n")
                f.write("#\n")

    @classmethod
    def disabled(cls) -> "ChunkTraceLogger":
        return cls(enabled=False)

    def _source(self, skip: int = 2):
        frame_info = inspect.currentframe()
        for _ in range(skip):
            frame_info = frame_info.f_back
        filename = os.path.basename(frame_info.f_code.co_filename)
        return filename, frame_info.f_lineno, frame_info.f_code.co_name

    def _write(self, source, body: str) -> None:
        filename, line_no, func_name = source
        timestamp = time.strftime('%Y-%m-%dT%H:%M:%S.') + f"{int(time.time() * 1000000) % 1000000:06d}"
        indent = "  " * self.depth
        with open(self.log_file, 'a') as f:
            f.write(
                f"[{timestamp}][PCMCHUNK][{filename}:{line_no}][{func_name}]"
                f"[D{self.depth}] {indent}{body}\n"
            )

    @staticmethod
    def _context(context) -> str:
        return " ".join(f"{key}={value}" for key, value in context.items())

    def log_field(self, stage: str, data_type: str, value: Union[int, bytes, str],
                  **context) -> None:
        """
        Log a single decoded or encoded header field.

        Args:
            stage: Chunk or record being processed (e.g. 'COMM', 'RIFF_HEADER')
            data_type: Field name (e.g. 'channel_count', 'declared_size')
            value: Field value; integers are shown in decimal and hex,
                   bytes as their repr and hex
            **context: Additional context (offset, policy, ...)
        """
        if not self.enabled:
            return

        if isinstance(value, bool):
            value_str = str(value)
        elif isinstance(value, int):
            value_str = f"{value} (0x{value:x})"
        elif isinstance(value, (bytes, bytearray)):
            value_str = f"{bytes(value)!r} hex={bytes(value).hex()}"
        else:
            value_str = str(value)

        self._write(
            self._source(),
            f"{stage}: {data_type}={value_str} |SRC: {self._context(context)}",
        )

    def log_samples(self, stage: str, data_type: str, values: Union[List, np.ndarray],
                    channel: int = 0, **context) -> None:
        """
        Log a block of sample values with summary statistics.
        """
        if not self.enabled:
            return

        values_array = np.asarray(values, dtype=np.int64)
        size = int(values_array.size)

        if size > 0:
            min_val = int(np.min(values_array))
            max_val = int(np.max(values_array))
            mean_val = float(np.mean(values_array))
            nonzero_count = int(np.count_nonzero(values_array))
        else:
            min_val = max_val = 0
            mean_val = 0.0
            nonzero_count = 0

        if size <= 10:
            values_str = f"[{','.join(f'0x{v:x}' for v in values_array)}]"
        else:
            # Show first 5 and last 5 values
            first_5 = ','.join(f'0x{v:x}' for v in values_array[:5])
            last_5 = ','.join(f'0x{v:x}' for v in values_array[-5:])
            values_str = f"[{first_5}...{last_5}]"

        self._write(
            self._source(),
            f"{stage}: [CH{channel}] {data_type}={values_str} "
            f"|META: size={size} range=[0x{min_val:x},0x{max_val:x}] "
            f"mean={mean_val:.3f} nonzero={nonzero_count} "
            f"|SRC: {self._context(context)}",
        )

    def log_bytes(self, stage: str, raw: bytes, **context) -> None:
        """
        Special logging for raw byte runs in hex format (skipped or opaque fields).
        """
        if not self.enabled:
            return

        self._write(
            self._source(),
            f"{stage}: hex={bytes(raw).hex()} |META: size={len(raw)} bytes "
            f"|SRC: {self._context(context)}",
        )

    def log_event(self, stage: str, message: str, **context) -> None:
        """Log a policy decision such as clamping, skipping or rejecting."""
        if not self.enabled:
            return

        self._write(self._source(), f"{stage}: {message} |SRC: {self._context(context)}")

    @contextlib.contextmanager
    def scope(self, name: str) -> Iterator["ChunkTraceLogger"]:
        """
        Bracket a nested operation with enter/leave lines. The leave line
        reports elapsed milliseconds and is marked with '*' when the
        operation raised.
        """
        if not self.enabled:
            yield self
            return

        source = self._source(3)
        self._write(source, f"--> {name}")
        self.depth += 1
        start = time.monotonic()
        failed = False
        try:
            yield self
        except BaseException:
            failed = True
            raise
        finally:
            self.depth -= 1
            elapsed_ms = (time.monotonic() - start) * 1000.0
            marker = "*" if failed else ""
            self._write(source, f"<--{marker} {name} {elapsed_ms:.3f}ms")


def resolve_logger(logger: Any) -> ChunkTraceLogger:
    """Returns the given logger, or a disabled one when None is passed."""
    if logger is None:
        return ChunkTraceLogger.disabled()
    return logger
