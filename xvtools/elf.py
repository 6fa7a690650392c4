"""Headers of 32-bit little-endian ELF executables."""

from __future__ import annotations

import struct
from dataclasses import astuple, dataclass
from typing import List

__all__ = [
    "ELF_MAGIC",
    "ELF_PROG_LOAD",
    "ELF_PROG_FLAG_EXEC",
    "ELF_PROG_FLAG_WRITE",
    "ELF_PROG_FLAG_READ",
    "ElfFormatError",
    "ElfHeader",
    "ProgramHeader",
]

ELF_MAGIC = 0x464C457F

ELF_PROG_LOAD = 1

ELF_PROG_FLAG_EXEC = 1
ELF_PROG_FLAG_WRITE = 2
ELF_PROG_FLAG_READ = 4

_HEADER = struct.Struct("<I12sHHIIIIIHHHHHH")
_PROGHDR = struct.Struct("<8I")


class ElfFormatError(ValueError):
    """Raised for data that is not a valid ELF structure."""


@dataclass(frozen=True)
class ProgramHeader:
    """One program section header."""

    SIZE = _PROGHDR.size

    type: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    flags: int = 0
    align: int = 0

    @classmethod
    def unpack(cls, data: bytes) -> "ProgramHeader":
        """Read a program header from the start of ``data``."""
        if len(data) < _PROGHDR.size:
            raise ElfFormatError("truncated program header")
        return cls(*_PROGHDR.unpack_from(data))

    def pack(self) -> bytes:
        """Encode the program header."""
        try:
            return _PROGHDR.pack(*astuple(self))
        except struct.error as exc:
            raise ElfFormatError(str(exc)) from exc

    @property
    def loadable(self) -> bool:
        """True for a segment to be loaded into memory."""
        return self.type == ELF_PROG_LOAD


@dataclass(frozen=True)
class ElfHeader:
    """The ELF file header."""

    SIZE = _HEADER.size

    magic: int = ELF_MAGIC
    elf: bytes = bytes(12)
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = 0
    phentsize: int = 0
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    def __post_init__(self) -> None:
        if len(self.elf) != 12:
            raise ElfFormatError("identification field must be 12 bytes")

    @classmethod
    def unpack(cls, data: bytes) -> "ElfHeader":
        """Read and check a file header from the start of ``data``."""
        if len(data) < _HEADER.size:
            raise ElfFormatError("truncated ELF header")
        header = cls(*_HEADER.unpack_from(data))
        if header.magic != ELF_MAGIC:
            raise ElfFormatError(f"bad magic 0x{header.magic:08x}")
        return header

    def pack(self) -> bytes:
        """Encode the file header."""
        try:
            return _HEADER.pack(*astuple(self))
        except struct.error as exc:
            raise ElfFormatError(str(exc)) from exc

    def program_headers(self, data: bytes) -> List[ProgramHeader]:
        """Read the program headers this header describes from ``data``."""
        headers = []
        for index in range(self.phnum):
            offset = self.phoff + index * _PROGHDR.size
            chunk = data[offset : offset + _PROGHDR.size]
            if len(chunk) < _PROGHDR.size:
                raise ElfFormatError(f"program header {index} is truncated")
            headers.append(ProgramHeader.unpack(chunk))
        return headers