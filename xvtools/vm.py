"""Two-level x86 page tables over a simulated physical memory.

Page directories and page tables live in pages of ``PhysicalMemory`` and
hold 32-bit little-endian entries, exactly as the processor would see
them. Physical addresses are used directly where the kernel would use
their kernel-virtual aliases.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from xvtools.mmu import (
    EXTMEM,
    KERNBASE,
    MASK32,
    NPDENTRIES,
    PGSIZE,
    PTE_P,
    PTE_U,
    PTE_W,
    pdx,
    pgrounddown,
    pgroundup,
    pte_addr,
    pte_flags,
    ptx,
)

__all__ = [
    "VmError",
    "OutOfMemory",
    "KernelMapping",
    "PhysicalMemory",
    "AddressSpace",
]

_WORD = struct.Struct("<I")
_JUNK = 0x01


class VmError(Exception):
    """Raised for an invalid memory or page-table operation."""


class OutOfMemory(VmError):
    """Raised when no physical page is free."""


@dataclass(frozen=True)
class KernelMapping:
    """A range of kernel virtual addresses mapped onto physical memory."""

    virt: int
    phys_start: int
    phys_end: int
    perm: int

    @property
    def size(self) -> int:
        """Length of the mapping in bytes, modulo 2**32."""
        return (self.phys_end - self.phys_start) & MASK32


class PhysicalMemory:
    """A pool of ``npages`` physical pages, starting at extended memory."""

    def __init__(self, npages: int) -> None:
        if npages < 0:
            raise ValueError("page count must not be negative")
        base = EXTMEM
        if base + npages * PGSIZE > MASK32 + 1:
            raise ValueError("memory does not fit in 32-bit addresses")
        self.base = base
        self.npages = npages
        self._pages: Dict[int, bytearray] = {}
        self._free: List[int] = [base + i * PGSIZE for i in reversed(range(npages))]

    @property
    def free_count(self) -> int:
        """Number of pages not handed out."""
        return len(self._free)

    def alloc(self) -> int:
        """Hand out a page, filled with junk, and return its address."""
        if not self._free:
            raise OutOfMemory("out of physical memory")
        pa = self._free.pop()
        self._pages[pa] = bytearray(bytes([_JUNK]) * PGSIZE)
        return pa

    def free(self, pa: int) -> None:
        """Give back the page at ``pa``."""
        if pa % PGSIZE or pa not in self._pages:
            raise VmError(f"kfree: 0x{pa:x} is not an allocated page")
        del self._pages[pa]
        self._free.append(pa)

    def _chunks(self, pa: int, n: int) -> Iterator[Tuple[bytearray, int, int]]:
        while n > 0:
            page_pa = pa - pa % PGSIZE
            page = self._pages.get(page_pa)
            if page is None:
                raise VmError(f"physical address 0x{pa:x} is not allocated")
            offset = pa - page_pa
            length = min(n, PGSIZE - offset)
            yield page, offset, length
            pa += length
            n -= length

    def read(self, pa: int, n: int) -> bytes:
        """Read ``n`` bytes starting at ``pa``."""
        if n < 0:
            raise ValueError("length must not be negative")
        return b"".join(
            bytes(page[offset : offset + length])
            for page, offset, length in self._chunks(pa, n)
        )

    def write(self, pa: int, data: bytes) -> None:
        """Write ``data`` starting at ``pa``."""
        view = memoryview(bytes(data))
        position = 0
        for page, offset, length in self._chunks(pa, len(view)):
            page[offset : offset + length] = view[position : position + length]
            position += length

    def read_word(self, pa: int) -> int:
        """Read the 32-bit entry at ``pa``."""
        return _WORD.unpack(self.read(pa, _WORD.size))[0]

    def write_word(self, pa: int, value: int) -> None:
        """Write a 32-bit entry at ``pa``."""
        self.write(pa, _WORD.pack(value & MASK32))


class AddressSpace:
    """A page directory with the kernel's mappings and a user part."""

    def __init__(
        self, memory: PhysicalMemory, kernel_map: Iterable[KernelMapping] = ()
    ) -> None:
        self.memory = memory
        self.kernel_map = tuple(kernel_map)
        self.pgdir = memory.alloc()
        memory.write(self.pgdir, bytes(PGSIZE))
        try:
            for mapping in self.kernel_map:
                self.map_pages(
                    mapping.virt, mapping.size, mapping.phys_start, mapping.perm
                )
        except VmError:
            self.free()
            raise

    def walk(self, va: int, alloc: bool = False) -> Optional[int]:
        """Physical address of the entry for ``va``, creating its page
        table if ``alloc`` is set; None if there is no page table."""
        mem = self.memory
        pde_pa = self.pgdir + pdx(va) * _WORD.size
        pde = mem.read_word(pde_pa)
        if pde & PTE_P:
            pgtab = pte_addr(pde)
        else:
            if not alloc:
                return None
            pgtab = mem.alloc()
            mem.write(pgtab, bytes(PGSIZE))
            mem.write_word(pde_pa, pgtab | PTE_P | PTE_W | PTE_U)
        return pgtab + ptx(va) * _WORD.size

    def entry(self, va: int) -> Optional[int]:
        """The page table entry for ``va``, or None without a page table."""
        pte_pa = self.walk(va)
        return None if pte_pa is None else self.memory.read_word(pte_pa)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map ``size`` bytes at ``va`` onto physical memory at ``pa``."""
        if size <= 0:
            raise VmError("mapping must not be empty")
        if va + size - 1 > MASK32:
            raise VmError("mapping runs past the end of the address space")
        a = pgrounddown(va)
        last = pgrounddown(va + size - 1)
        while True:
            pte_pa = self.walk(a, alloc=True)
            if self.memory.read_word(pte_pa) & PTE_P:
                raise VmError("remap")
            self.memory.write_word(pte_pa, pa | perm | PTE_P)
            if a == last:
                break
            a += PGSIZE
            pa += PGSIZE

    def init_user(self, code: bytes) -> None:
        """Load ``code``, shorter than a page, at user address 0."""
        if len(code) >= PGSIZE:
            raise VmError("inituvm: more than a page")
        mem = self.memory.alloc()
        self.memory.write(mem, bytes(PGSIZE))
        self.map_pages(0, PGSIZE, mem, PTE_W | PTE_U)
        self.memory.write(mem, code)

    def alloc_user(self, oldsz: int, newsz: int) -> int:
        """Grow the user part from ``oldsz`` to ``newsz`` bytes; return the new size."""
        if newsz >= KERNBASE:
            raise VmError("user memory would reach the kernel")
        if newsz < oldsz:
            return oldsz
        a = pgroundup(oldsz)
        while a < newsz:
            try:
                mem = self.memory.alloc()
            except OutOfMemory:
                self.dealloc_user(newsz, oldsz)
                raise OutOfMemory("allocuvm out of memory") from None
            self.memory.write(mem, bytes(PGSIZE))
            try:
                self.map_pages(a, PGSIZE, mem, PTE_W | PTE_U)
            except OutOfMemory:
                self.dealloc_user(newsz, oldsz)
                self.memory.free(mem)
                raise OutOfMemory("allocuvm out of memory (2)") from None
            a += PGSIZE
        return newsz

    def dealloc_user(self, oldsz: int, newsz: int) -> int:
        """Shrink the user part from ``oldsz`` to ``newsz`` bytes; return the new size."""
        if newsz >= oldsz:
            return oldsz
        a = pgroundup(newsz)
        while a < oldsz:
            pte_pa = self.walk(a)
            if pte_pa is None:
                a = ((pdx(a) + 1) << 22) - PGSIZE
            else:
                pte = self.memory.read_word(pte_pa)
                if pte & PTE_P:
                    pa = pte_addr(pte)
                    if pa == 0:
                        raise VmError("kfree")
                    self.memory.free(pa)
                    self.memory.write_word(pte_pa, 0)
            a += PGSIZE
        return newsz

    def free(self) -> None:
        """Release the user pages, every page table and the directory."""
        self.dealloc_user(KERNBASE, 0)
        directory = self.memory.read(self.pgdir, NPDENTRIES * _WORD.size)
        for (pde,) in _WORD.iter_unpack(directory):
            if pde & PTE_P:
                self.memory.free(pte_addr(pde))
        self.memory.free(self.pgdir)

    def clear_user(self, va: int) -> None:
        """Make the page at ``va`` inaccessible to user code."""
        pte_pa = self.walk(va)
        if pte_pa is None:
            raise VmError("clearpteu")
        self.memory.write_word(pte_pa, self.memory.read_word(pte_pa) & ~PTE_U)

    def copy(self, sz: int) -> "AddressSpace":
        """A new address space holding a copy of the first ``sz`` user bytes."""
        child = AddressSpace(self.memory, self.kernel_map)
        try:
            for va in range(0, sz, PGSIZE):
                pte_pa = self.walk(va)
                if pte_pa is None:
                    raise VmError("copyuvm: pte should exist")
                pte = self.memory.read_word(pte_pa)
                if not pte & PTE_P:
                    raise VmError("copyuvm: page not present")
                mem = self.memory.alloc()
                self.memory.write(mem, self.memory.read(pte_addr(pte), PGSIZE))
                try:
                    child.map_pages(va, PGSIZE, mem, pte_flags(pte))
                except VmError:
                    self.memory.free(mem)
                    raise
        except VmError:
            child.free()
            raise
        return child

    def user_to_kernel(self, va: int) -> Optional[int]:
        """Physical address of the user page holding ``va``, or None if
        it is not present and user-accessible."""
        pte_pa = self.walk(va)
        if pte_pa is None:
            return None
        pte = self.memory.read_word(pte_pa)
        if not pte & PTE_P or not pte & PTE_U:
            return None
        return pte_addr(pte)

    def _user_chunks(self, va: int, n: int) -> Iterator[Tuple[int, int]]:
        while n > 0:
            va0 = pgrounddown(va)
            pa0 = self.user_to_kernel(va0)
            if pa0 is None:
                raise VmError(f"user address 0x{va:x} is not mapped")
            length = min(PGSIZE - (va - va0), n)
            yield pa0 + (va - va0), length
            n -= length
            va = va0 + PGSIZE

    def copy_out(self, va: int, data: bytes) -> None:
        """Copy ``data`` to user address ``va``."""
        view = memoryview(bytes(data))
        position = 0
        for pa, length in self._user_chunks(va, len(view)):
            self.memory.write(pa, view[position : position + length])
            position += length

    def read_user(self, va: int, n: int) -> bytes:
        """Read ``n`` bytes from user address ``va``."""
        return b"".join(
            self.memory.read(pa, length) for pa, length in self._user_chunks(va, n)
        )