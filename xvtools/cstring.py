"""NUL-terminated byte-string helpers.

Inputs may be ``bytes``, ``bytearray`` or ``str`` (taken as Latin-1). A
string ends at its first NUL byte or at the end of the object, whichever
comes first.
"""

from __future__ import annotations

from typing import BinaryIO, Optional, Union

__all__ = [
    "strcmp",
    "strncmp",
    "strncpy",
    "safestrcpy",
    "strlen",
    "strchr",
    "atoi",
    "memcmp",
    "memmove",
    "gets",
]

BytesLike = Union[bytes, bytearray, memoryview, str]


def _b(s: BytesLike) -> bytes:
    if isinstance(s, str):
        return s.encode("latin-1")
    return bytes(s)


def _char(c: Union[int, str, bytes]) -> int:
    if isinstance(c, int):
        return c & 0xFF
    raw = _b(c)
    if len(raw) != 1:
        raise ValueError("expected a single character")
    return raw[0]


def _at(s: bytes, i: int) -> int:
    return s[i] if i < len(s) else 0


def strlen(s: BytesLike) -> int:
    """Length of ``s`` up to its first NUL."""
    raw = _b(s)
    end = raw.find(0)
    return len(raw) if end < 0 else end


def _terminated(s: BytesLike) -> bytes:
    raw = _b(s)
    return raw[: strlen(raw)]


def strcmp(p: BytesLike, q: BytesLike) -> int:
    """Compare two strings; the result is the difference of the first
    differing bytes, or 0."""
    a, b = _b(p), _b(q)
    i = 0
    while _at(a, i) and _at(a, i) == _at(b, i):
        i += 1
    return _at(a, i) - _at(b, i)


def strncmp(p: BytesLike, q: BytesLike, n: int) -> int:
    """Compare at most ``n`` bytes of two strings."""
    a, b = _b(p), _b(q)
    i = 0
    while n > 0 and _at(a, i) and _at(a, i) == _at(b, i):
        n -= 1
        i += 1
    if n == 0:
        return 0
    return _at(a, i) - _at(b, i)


def strncpy(src: BytesLike, n: int) -> bytes:
    """Return an ``n``-byte buffer holding ``src``, truncated or NUL-padded."""
    if n <= 0:
        return b""
    return _terminated(src)[:n].ljust(n, b"\0")


def safestrcpy(src: BytesLike, n: int) -> bytes:
    """Return the string that fits in an ``n``-byte buffer with its NUL,
    without the terminating NUL."""
    if n <= 0:
        return b""
    return _terminated(src)[: n - 1]


def strchr(s: BytesLike, c: Union[int, str, bytes]) -> Optional[int]:
    """Index of the first ``c`` before the terminating NUL, or None."""
    wanted = _char(c)
    if wanted == 0:
        return None
    index = _terminated(s).find(wanted)
    return None if index < 0 else index


def atoi(s: BytesLike) -> int:
    """Value of the leading run of decimal digits, or 0."""
    n = 0
    for byte in _b(s):
        if not 0x30 <= byte <= 0x39:
            break
        n = n * 10 + byte - 0x30
    return n


def memcmp(a: BytesLike, b: BytesLike, n: int) -> int:
    """Compare the first ``n`` bytes of two buffers, NULs included."""
    x, y = _b(a), _b(b)
    if n > len(x) or n > len(y):
        raise ValueError("buffers shorter than the compared length")
    for left, right in zip(x[:n], y[:n]):
        if left != right:
            return left - right
    return 0


def memmove(buf: bytearray, dst: int, src: int, n: int) -> bytearray:
    """Copy ``n`` bytes within ``buf`` from ``src`` to ``dst``; overlap is safe."""
    if n <= 0:
        return buf
    if min(dst, src) < 0 or max(dst, src) + n > len(buf):
        raise IndexError("memmove out of range")
    buf[dst : dst + n] = buf[src : src + n]
    return buf


def gets(stream: BinaryIO, maximum: int) -> bytes:
    """Read one line of at most ``maximum - 1`` bytes from a binary stream.

    Reading stops after a newline or carriage return, which is kept.
    """
    line = bytearray()
    while len(line) + 1 < maximum:
        byte = stream.read(1)
        if not byte:
            break
        line += byte
        if byte in (b"\n", b"\r"):
            break
    return bytes(line)