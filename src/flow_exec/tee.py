"""Stream a child pipe into a log file and the parent's stderr."""

import sys
from typing import BinaryIO

CHUNK_SIZE = 512


def diagnostic_stream() -> BinaryIO:
    """The parent's stderr as a byte stream."""
    return sys.stderr.buffer


def tee(stream: BinaryIO, log_file: BinaryIO, mirror: BinaryIO | None = None) -> None:
    """Copy ``stream`` chunk by chunk to ``log_file``, then to ``mirror``.

    Runs until a zero-length read. Each chunk is flushed to both
    destinations before the next one is read. ``log_file`` is left open.
    """
    if mirror is None:
        mirror = diagnostic_stream()
    while True:
        chunk = stream.read1(CHUNK_SIZE)
        if not chunk:
            return
        log_file.write(chunk)
        log_file.flush()
        mirror.write(chunk)
        mirror.flush()
