"""x86 memory-management constants, address arithmetic and descriptors."""

from __future__ import annotations

import struct
from dataclasses import dataclass, fields

__all__ = [
    "pdx",
    "ptx",
    "pgaddr",
    "pgroundup",
    "pgrounddown",
    "pte_addr",
    "pte_flags",
    "v2p",
    "p2v",
    "seg_asm",
    "seg_nullasm",
    "SegmentDescriptor",
    "GateDescriptor",
]

MASK32 = 0xFFFFFFFF

# System parameters.
NPROC = 64
KSTACKSIZE = 4096
NCPU = 8
NOFILE = 16
NFILE = 100
NINODE = 50
NDEV = 10
ROOTDEV = 1
MAXARG = 32
MAXOPBLOCKS = 10
LOGSIZE = MAXOPBLOCKS * 3
NBUF = MAXOPBLOCKS * 3
FSSIZE = 1000

# Memory layout.
EXTMEM = 0x100000
PHYSTOP = 0xE000000
DEVSPACE = 0xFE000000
KERNBASE = 0x80000000
KERNLINK = KERNBASE + EXTMEM

# Eflags and control registers.
FL_IF = 0x00000200
CR0_PE = 0x00000001
CR0_WP = 0x00010000
CR0_PG = 0x80000000
CR4_PSE = 0x00000010

# Segment selectors.
SEG_KCODE = 1
SEG_KDATA = 2
SEG_UCODE = 3
SEG_UDATA = 4
SEG_TSS = 5
NSEGS = 6

DPL_USER = 0x3

# Application segment type bits.
STA_X = 0x8
STA_W = 0x2
STA_R = 0x2

# System segment type bits.
STS_T32A = 0x9
STS_IG32 = 0xE
STS_TG32 = 0xF

# Paging.
NPDENTRIES = 1024
NPTENTRIES = 1024
PGSIZE = 4096
PTXSHIFT = 12
PDXSHIFT = 22

PTE_P = 0x001
PTE_W = 0x002
PTE_U = 0x004
PTE_PS = 0x080


def pdx(va: int) -> int:
    """Page directory index of ``va``."""
    return ((va & MASK32) >> PDXSHIFT) & 0x3FF


def ptx(va: int) -> int:
    """Page table index of ``va``."""
    return ((va & MASK32) >> PTXSHIFT) & 0x3FF


def pgaddr(d: int, t: int, o: int) -> int:
    """Virtual address from directory index, table index and offset."""
    return (d << PDXSHIFT | t << PTXSHIFT | o) & MASK32


def pgroundup(sz: int) -> int:
    """Round ``sz`` up to a page boundary."""
    return (sz + PGSIZE - 1) & ~(PGSIZE - 1) & MASK32


def pgrounddown(a: int) -> int:
    """Round ``a`` down to a page boundary."""
    return a & ~(PGSIZE - 1) & MASK32


def pte_addr(pte: int) -> int:
    """Physical address held in a page table entry."""
    return pte & ~0xFFF & MASK32


def pte_flags(pte: int) -> int:
    """Flag bits of a page table entry."""
    return pte & 0xFFF


def v2p(a: int) -> int:
    """Kernel virtual address to physical address."""
    return (a - KERNBASE) & MASK32


def p2v(a: int) -> int:
    """Physical address to kernel virtual address."""
    return (a + KERNBASE) & MASK32


def seg_asm(seg_type: int, base: int, lim: int) -> bytes:
    """Eight descriptor bytes for a 4K-granular 32-bit segment."""
    base &= MASK32
    lim &= MASK32
    return struct.pack(
        "<HHBBBB",
        (lim >> 12) & 0xFFFF,
        base & 0xFFFF,
        (base >> 16) & 0xFF,
        0x90 | seg_type,
        0xC0 | ((lim >> 28) & 0xF),
        (base >> 24) & 0xFF,
    )


def seg_nullasm() -> bytes:
    """The null segment descriptor."""
    return bytes(8)


def _check_widths(obj: object, widths: dict) -> None:
    for f in fields(obj):
        value = getattr(obj, f.name)
        if not 0 <= value < 1 << widths[f.name]:
            raise ValueError(f"{f.name}={value} does not fit in {widths[f.name]} bits")


_SEG_WIDTHS = {
    "lim_15_0": 16,
    "base_15_0": 16,
    "base_23_16": 8,
    "type": 4,
    "s": 1,
    "dpl": 2,
    "p": 1,
    "lim_19_16": 4,
    "avl": 1,
    "rsv1": 1,
    "db": 1,
    "g": 1,
    "base_31_24": 8,
}


@dataclass(frozen=True)
class SegmentDescriptor:
    """A segment descriptor, field by field."""

    lim_15_0: int = 0
    base_15_0: int = 0
    base_23_16: int = 0
    type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    lim_19_16: int = 0
    avl: int = 0
    rsv1: int = 0
    db: int = 0
    g: int = 0
    base_31_24: int = 0

    def __post_init__(self) -> None:
        _check_widths(self, _SEG_WIDTHS)

    @classmethod
    def segment(cls, seg_type: int, base: int, limit: int, dpl: int) -> "SegmentDescriptor":
        """A normal 32-bit segment with 4K granularity."""
        base &= MASK32
        limit &= MASK32
        return cls(
            lim_15_0=(limit >> 12) & 0xFFFF,
            base_15_0=base & 0xFFFF,
            base_23_16=(base >> 16) & 0xFF,
            type=seg_type,
            s=1,
            dpl=dpl,
            p=1,
            lim_19_16=(limit >> 28) & 0xF,
            avl=0,
            rsv1=0,
            db=1,
            g=1,
            base_31_24=base >> 24,
        )

    @classmethod
    def segment16(cls, seg_type: int, base: int, limit: int, dpl: int) -> "SegmentDescriptor":
        """A byte-granular segment."""
        base &= MASK32
        limit &= MASK32
        return cls(
            lim_15_0=limit & 0xFFFF,
            base_15_0=base & 0xFFFF,
            base_23_16=(base >> 16) & 0xFF,
            type=seg_type,
            s=1,
            dpl=dpl,
            p=1,
            lim_19_16=(limit >> 16) & 0xF,
            avl=0,
            rsv1=0,
            db=1,
            g=0,
            base_31_24=base >> 24,
        )

    def to_bytes(self) -> bytes:
        """The descriptor as the processor reads it."""
        low = self.lim_15_0 | self.base_15_0 << 16
        high = (
            self.base_23_16
            | self.type << 8
            | self.s << 12
            | self.dpl << 13
            | self.p << 15
            | self.lim_19_16 << 16
            | self.avl << 20
            | self.rsv1 << 21
            | self.db << 22
            | self.g << 23
            | self.base_31_24 << 24
        )
        return struct.pack("<II", low, high)


_GATE_WIDTHS = {
    "off_15_0": 16,
    "cs": 16,
    "args": 5,
    "rsv1": 3,
    "type": 4,
    "s": 1,
    "dpl": 2,
    "p": 1,
    "off_31_16": 16,
}


@dataclass(frozen=True)
class GateDescriptor:
    """An interrupt or trap gate descriptor."""

    off_15_0: int = 0
    cs: int = 0
    args: int = 0
    rsv1: int = 0
    type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    off_31_16: int = 0

    def __post_init__(self) -> None:
        _check_widths(self, _GATE_WIDTHS)

    @classmethod
    def make(cls, istrap: bool, sel: int, off: int, dpl: int) -> "GateDescriptor":
        """A present gate; trap gates leave interrupts enabled."""
        off &= MASK32
        return cls(
            off_15_0=off & 0xFFFF,
            cs=sel,
            args=0,
            rsv1=0,
            type=STS_TG32 if istrap else STS_IG32,
            s=0,
            dpl=dpl,
            p=1,
            off_31_16=off >> 16,
        )

    @property
    def offset(self) -> int:
        """The handler's full offset."""
        return self.off_31_16 << 16 | self.off_15_0

    def to_bytes(self) -> bytes:
        """The descriptor as the processor reads it."""
        low = self.off_15_0 | self.cs << 16
        high = (
            self.args
            | self.rsv1 << 5
            | self.type << 8
            | self.s << 12
            | self.dpl << 13
            | self.p << 15
            | self.off_31_16 << 16
        )
        return struct.pack("<II", low, high)