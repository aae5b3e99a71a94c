"""Prefix remote output lines with the host they came from."""
from __future__ import annotations

from typing import BinaryIO

# Longest line accepted before the scan is aborted.
MAX_LINE = 64 * 1024


class LineTooLongError(ValueError):
    """A single output line exceeded ``MAX_LINE`` bytes."""


def _scan_lines(data: bytes):
    """Yield newline-delimited lines of ``data``.

    The trailing ``\\r`` of each line is dropped and a final unterminated
    line is still yielded once the end of ``data`` is reached.
    """
    start = 0
    end = len(data)
    while start < end:
        idx = data.find(b"\n", start)
        stop = end if idx == -1 else idx
        if stop - start > MAX_LINE:
            raise LineTooLongError(f"line longer than {MAX_LINE} bytes")
        line = data[start:stop]
        if line.endswith(b"\r"):
            line = line[:-1]
        yield line
        if idx == -1:
            break
        start = idx + 1


class RemoteWriter:
    """Binary writer that rewrites each line as ``[host] line\\n``.

    ``write`` reports the length of the input, not the number of bytes
    forwarded to the sink, which is longer by the prefix.
    """

    def __init__(self, host: str, sink: BinaryIO):
        self.host = host
        self.sink = sink
        self._prefix = f"[{host}] ".encode("utf-8")

    def write(self, data: bytes) -> int:
        size = len(data)
        error: OSError | None = None
        for line in _scan_lines(data):
            try:
                self.sink.write(self._prefix + line + b"\n")
            except OSError as e:
                if error is None:
                    error = e
        if error is not None:
            raise error
        self.sink.flush()
        return size

    def flush(self) -> None:
        self.sink.flush()

    def __repr__(self) -> str:
        return f"RemoteWriter(host={self.host!r})"
