from __future__ import annotations

import bz2
import gzip
import lzma
import os
import zlib
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import BinaryIO

from ytblock.core.exceptions import SourceUnreadable

# Lines longer than this are skipped, not split.
DEFAULT_MAX_LINE_BYTES = 4096
_DISCARD_CHUNK_BYTES = 64 * 1024

COMPRESSED_OPENERS: dict[str, Callable[[str], BinaryIO]] = {
    ".gz": lambda path: gzip.open(path, "rb"),
    ".bz2": lambda path: bz2.open(path, "rb"),
    ".xz": lambda path: lzma.open(path, "rb"),
}

# Truncated gzip streams raise EOFError, corrupt deflate data raises zlib.error.
_READ_ERRORS = (OSError, EOFError, zlib.error, lzma.LZMAError)


def compression_suffix(path: str) -> str | None:
    lower = path.lower()
    for suffix in COMPRESSED_OPENERS:
        if lower.endswith(suffix):
            return suffix
    return None


def is_compressed(path: str) -> bool:
    return compression_suffix(path) is not None


@dataclass(slots=True)
class LineRecord:
    line_number: int
    data: bytes = b""
    too_long: bool = False


class LineSource:
    """Reads newline-delimited records from a plain or compressed log file.

    Iterating opens the file, so every ``iter()`` call starts over from the
    first line. Lines longer than ``max_line_bytes`` (terminator excluded)
    come back as a ``too_long`` record without data and the remainder of
    that line is discarded. Any open, read or decompression failure raises
    ``SourceUnreadable`` and ends the iteration.
    """

    def __init__(self, path: str | os.PathLike[str], max_line_bytes: int = DEFAULT_MAX_LINE_BYTES):
        self.path = os.fspath(path)
        self.max_line_bytes = max(1, int(max_line_bytes))

    @property
    def compressed(self) -> bool:
        return is_compressed(self.path)

    def _open(self) -> BinaryIO:
        suffix = compression_suffix(self.path)
        if suffix is None:
            return open(self.path, "rb")
        return COMPRESSED_OPENERS[suffix](self.path)

    def _unreadable(self, exc: BaseException) -> SourceUnreadable:
        reason = str(exc) or exc.__class__.__name__
        return SourceUnreadable(self.path, reason)

    def _read(self, fp: BinaryIO, size: int) -> bytes:
        try:
            return fp.readline(size)
        except _READ_ERRORS as exc:
            raise self._unreadable(exc) from exc

    def _discard_rest_of_line(self, fp: BinaryIO) -> None:
        while True:
            chunk = self._read(fp, _DISCARD_CHUNK_BYTES)
            if not chunk or chunk.endswith(b"\n"):
                return

    def __iter__(self) -> Iterator[LineRecord]:
        try:
            fp = self._open()
        except _READ_ERRORS as exc:
            raise self._unreadable(exc) from exc

        with fp:
            line_number = 0
            limit = self.max_line_bytes
            while True:
                raw = self._read(fp, limit + 1)
                if not raw:
                    return
                line_number += 1

                if raw.endswith(b"\n"):
                    data = raw[:-1]
                    if data.endswith(b"\r"):
                        data = data[:-1]
                    yield LineRecord(line_number, data)
                    continue

                if len(raw) <= limit:
                    # last line without a terminator
                    yield LineRecord(line_number, raw)
                    continue

                self._discard_rest_of_line(fp)
                yield LineRecord(line_number, too_long=True)
