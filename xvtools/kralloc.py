"""A first-fit free-list allocator over a simulated, growable heap.

Memory is handed out in units of one block header. The heap grows in
chunks of at least ``MIN_CORE`` units until ``limit_units`` is reached.
Addresses are byte offsets into the simulated heap.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Set

__all__ = ["HEADER_SIZE", "MIN_CORE", "FreeBlock", "Allocator"]

HEADER_SIZE = 8
MIN_CORE = 4096

_BASE = 0


class FreeBlock(NamedTuple):
    """A block on the free list: header byte address and size in units."""

    address: int
    units: int


@dataclass
class _Header:
    ptr: Optional[int]
    size: int


class Allocator:
    """Allocate and free blocks from a heap of at most ``limit_units`` units."""

    def __init__(self, limit_units: int = 1 << 20) -> None:
        if limit_units < 0:
            raise ValueError("limit must not be negative")
        self._limit = limit_units
        self._brk = 1  # unit 0 holds the list's sentinel header
        self._hdr: Dict[int, _Header] = {}
        self._freep: Optional[int] = None
        self._allocated: Set[int] = set()

    def _morecore(self, nunits: int) -> int:
        nunits = max(nunits, MIN_CORE)
        if (self._brk - 1) + nunits > self._limit:
            raise MemoryError("heap limit reached")
        hp = self._brk
        self._brk += nunits
        self._hdr[hp] = _Header(None, nunits)
        self._release(hp)
        return self._freep

    def malloc(self, nbytes: int) -> int:
        """Return the address of a block of at least ``nbytes`` bytes."""
        if nbytes < 0:
            raise ValueError("size must not be negative")
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        if self._freep is None:
            self._hdr[_BASE] = _Header(_BASE, 0)
            self._freep = _BASE
        prevp = self._freep
        p = self._hdr[prevp].ptr
        while True:
            header = self._hdr[p]
            if header.size >= nunits:
                if header.size == nunits:
                    self._hdr[prevp].ptr = header.ptr
                else:
                    header.size -= nunits
                    p += header.size
                    self._hdr[p] = _Header(None, nunits)
                self._freep = prevp
                self._allocated.add(p)
                return (p + 1) * HEADER_SIZE
            if p == self._freep:
                p = self._morecore(nunits)
            prevp, p = p, self._hdr[p].ptr

    def free(self, addr: int) -> None:
        """Return the block at ``addr`` to the free list."""
        if addr % HEADER_SIZE:
            raise ValueError(f"not a block address: {addr}")
        bp = addr // HEADER_SIZE - 1
        if bp not in self._allocated:
            raise ValueError(f"not an allocated block: {addr}")
        self._allocated.remove(bp)
        self._release(bp)

    def _release(self, bp: int) -> None:
        hdr = self._hdr
        p = self._freep
        while not (p < bp < hdr[p].ptr):
            if p >= hdr[p].ptr and (bp > p or bp < hdr[p].ptr):
                break
            p = hdr[p].ptr
        block = hdr[bp]
        upper = hdr[p].ptr
        if bp + block.size == upper:
            block.size += hdr[upper].size
            block.ptr = hdr[upper].ptr
            del hdr[upper]
        else:
            block.ptr = upper
        lower = hdr[p]
        if p + lower.size == bp:
            lower.size += block.size
            lower.ptr = block.ptr
            del hdr[bp]
        else:
            lower.ptr = bp
        self._freep = p

    def free_blocks(self) -> List[FreeBlock]:
        """The free list in address order."""
        if self._freep is None:
            return []
        blocks = []
        p = self._hdr[_BASE].ptr
        while p != _BASE:
            blocks.append(FreeBlock(p * HEADER_SIZE, self._hdr[p].size))
            p = self._hdr[p].ptr
        return blocks