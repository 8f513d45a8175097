from __future__ import annotations

import asyncio
from pathlib import Path
from typing import BinaryIO

from .config import DEFAULT_CHUNK_SIZE
from .models import FileIdentifier, FileState

LF = 0x0A
CR = 0x0D


class LineCounter:
    """Incremental line counter fed with raw byte chunks.

    The first ``\\n`` or ``\\r`` seen in the stream becomes the terminator for
    the whole stream; only that byte is counted afterwards, so ``\\r\\n``
    pairs count once and stray terminators of the other kind are ignored.
    A non-empty stream whose last byte is not ``\\n``/``\\r`` gets one more
    line for the unterminated tail.
    """

    def __init__(self) -> None:
        self.lines = 0
        self.terminator: int | None = None
        self._last_byte: int | None = None

    def feed(self, chunk: bytes) -> None:
        if not chunk:
            return
        self._last_byte = chunk[-1]
        if self.terminator is None:
            first = _first_terminator_index(chunk)
            if first < 0:
                return
            self.terminator = chunk[first]
            self.lines += 1
            self.lines += chunk.count(self.terminator, first + 1)
            return
        self.lines += chunk.count(self.terminator)

    def total(self) -> int:
        if self._last_byte is None or self._last_byte in (LF, CR):
            return self.lines
        return self.lines + 1


def _first_terminator_index(chunk: bytes) -> int:
    lf_index = chunk.find(b"\n")
    cr_index = chunk.find(b"\r")
    if lf_index < 0:
        return cr_index
    if cr_index < 0:
        return lf_index
    return min(lf_index, cr_index)


async def count_stream_lines(
    stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> int:
    counter = LineCounter()
    while True:
        # one chunk per thread hop so cancellation is seen between reads
        chunk = await asyncio.to_thread(stream.read, chunk_size)
        if not chunk:
            break
        counter.feed(chunk)
    return counter.total()


async def count_file_lines(path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    stream = await asyncio.to_thread(path.open, "rb")
    # on cancellation close() blocks until the pending chunk read returns
    with stream:
        return await count_stream_lines(stream, chunk_size)


async def measure_file(
    identifier: FileIdentifier, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> FileState:
    lines = await count_file_lines(Path(identifier.path), chunk_size)
    return FileState(identifier=identifier, line_count=lines)
