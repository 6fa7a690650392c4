"""Count lines, words and bytes, in the manner of ``wc``."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import BinaryIO, List, Optional

__all__ = ["Counts", "count_bytes", "count_stream", "main"]

_CHUNK = 512
_SEPARATORS = frozenset(b" \r\t\n\v\0")


@dataclass(frozen=True)
class Counts:
    """Totals for one input."""

    lines: int = 0
    words: int = 0
    chars: int = 0


class _Tally:
    def __init__(self) -> None:
        self.lines = 0
        self.words = 0
        self.chars = 0
        self.inword = False

    def feed(self, chunk: bytes) -> None:
        self.chars += len(chunk)
        for byte in chunk:
            if byte == 0x0A:
                self.lines += 1
            if byte in _SEPARATORS:
                self.inword = False
            elif not self.inword:
                self.words += 1
                self.inword = True

    def result(self) -> Counts:
        return Counts(self.lines, self.words, self.chars)


def count_bytes(data: bytes) -> Counts:
    """Count the lines, words and bytes in ``data``."""
    tally = _Tally()
    tally.feed(data)
    return tally.result()


def count_stream(stream: BinaryIO) -> Counts:
    """Count a binary stream, reading it in fixed-size chunks."""
    tally = _Tally()
    while chunk := stream.read(_CHUNK):
        tally.feed(chunk)
    return tally.result()


def _report(counts: Counts, name: str) -> None:
    sys.stdout.write(f"{counts.lines} {counts.words} {counts.chars} {name}\n")


def main(argv: Optional[List[str]] = None) -> int:
    """Print counts for each named file, or for standard input."""
    names = sys.argv[1:] if argv is None else list(argv)
    try:
        if not names:
            _report(count_stream(sys.stdin.buffer), "")
            return 0
        for name in names:
            try:
                stream = open(name, "rb")
            except OSError:
                sys.stdout.write(f"wc: cannot open {name}\n")
                return 1
            with stream:
                counts = count_stream(stream)
            _report(counts, name)
    except OSError:
        sys.stdout.write("wc: read error\n")
        return 1
    return 0