"""A walk through filling, terminating and appending to a byte buffer."""

from __future__ import annotations

import argparse
import sys
from typing import List, NamedTuple, Optional, Union

__all__ = ["DemoStep", "memset", "cstr", "strcat", "render", "demo_lines", "main"]


class DemoStep(NamedTuple):
    """One piece of demo output and whether to wait for Enter after it."""

    text: str
    pause: bool


def _byte(value: Union[int, str, bytes]) -> int:
    if isinstance(value, int):
        return value & 0xFF
    raw = value.encode("latin-1") if isinstance(value, str) else bytes(value)
    if len(raw) != 1:
        raise ValueError("expected a single character")
    return raw[0]


def memset(buf: bytearray, value: Union[int, str, bytes], count: int) -> bytearray:
    """Fill the first ``count`` bytes of ``buf`` with ``value``."""
    if count < 0 or count > len(buf):
        raise IndexError("memset out of range")
    buf[:count] = bytes([_byte(value)]) * count
    return buf


def cstr(buf: Union[bytes, bytearray]) -> str:
    """The text of ``buf`` up to its first NUL, or all of it if it has none."""
    end = buf.find(0)
    raw = bytes(buf if end < 0 else buf[:end])
    return raw.decode("latin-1")


def strcat(buf: bytearray, suffix: Union[str, bytes]) -> bytearray:
    """Append ``suffix`` after the string in ``buf``, keeping it NUL-terminated."""
    tail = suffix.encode("latin-1") if isinstance(suffix, str) else bytes(suffix)
    start = buf.find(0)
    if start < 0:
        raise ValueError("buffer holds no terminated string")
    end = start + len(tail) + 1
    if end > len(buf):
        raise ValueError("buffer too small for the appended string")
    buf[start:end] = tail + b"\0"
    return buf


def render(buf: Union[bytes, bytearray]) -> str:
    """Every byte of ``buf`` as a character, NULs included."""
    return bytes(buf).decode("latin-1")


def demo_lines() -> List[DemoStep]:
    """Produce the demo's output, step by step."""
    steps = []

    text = bytearray(b"almost every programmer should know memset!\0")
    memset(text, "-", 6)
    steps.append(DemoStep(cstr(text) + "\n", True))

    size = 10
    ptr = bytearray(size)
    memset(ptr, "G", size)
    steps.append(DemoStep(f"ptr looks like {cstr(ptr)} \n", True))

    memset(ptr, "A", 7)
    ptr[4] = 0
    shown = cstr(ptr)
    steps.append(
        DemoStep(
            f"Length of string {shown} is {len(shown)} ..... but ptr[5] = {chr(ptr[5])} \n",
            True,
        )
    )
    steps.append(DemoStep(f"Similarly ptr[6] = {chr(ptr[6])} \n", True))
    steps.append(DemoStep(f"But ptr[7] = {chr(ptr[7])} . It's garbage \n", True))
    steps.append(DemoStep(f"This is how ptr looks --- {render(ptr)}\n\n", False))

    strcat(ptr, "BBBB")
    shown = cstr(ptr)
    steps.append(
        DemoStep(f"After append string {shown}'s length is {len(shown)} \n", True)
    )
    steps.append(DemoStep(f"So, ptr[9] is still {chr(ptr[9])} \n", True))
    steps.append(
        DemoStep(f"After append, this is how ptr looks --- {render(ptr)}\n", False)
    )
    return steps


def main(argv: Optional[List[str]] = None) -> int:
    """Print the demo, waiting for Enter between steps."""
    parser = argparse.ArgumentParser(
        prog="memdemo", description="Show how memset, NUL bytes and strcat interact."
    )
    parser.add_argument(
        "--no-pause", action="store_true", help="do not wait for Enter between steps"
    )
    args = parser.parse_args(argv)
    for step in demo_lines():
        sys.stdout.write(step.text)
        sys.stdout.flush()
        if step.pause and not args.no_pause:
            sys.stdin.readline()
    return 0