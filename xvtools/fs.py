"""An in-memory file system behind the file-related system calls.

Paths, directory entries, link counts and open-file sharing follow the
kernel's rules: names are cut to ``DIRSIZ`` characters, a directory can
only be removed once empty, and an unlinked file lives on while it is
still open.
"""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from xvtools.mmu import NFILE, NOFILE, ROOTDEV
from xvtools.openflags import OpenFlag, is_readable, is_writable

__all__ = [
    "DIRSIZ",
    "ROOTINO",
    "DIRENT_SIZE",
    "FsError",
    "FileType",
    "Stat",
    "FileSystem",
]

DIRSIZ = 14
ROOTINO = 1

_DIRENT = struct.Struct("<H14s")
DIRENT_SIZE = _DIRENT.size


class FsError(OSError):
    """Raised when a file system call fails."""


class FileType(enum.IntEnum):
    """Kinds of inode."""

    DIR = 1
    FILE = 2
    DEV = 3


@dataclass(frozen=True)
class Stat:
    """What ``fstat`` reports about an open file."""

    type: FileType
    dev: int
    ino: int
    nlink: int
    size: int


@dataclass(eq=False)
class _Inode:
    inum: int
    type: FileType
    dev: int = ROOTDEV
    major: int = 0
    minor: int = 0
    nlink: int = 0
    ref: int = 0
    data: bytearray = field(default_factory=bytearray)
    entries: List[Tuple[int, str]] = field(default_factory=list)

    @property
    def size(self) -> int:
        if self.type == FileType.DIR:
            return len(self.entries) * DIRENT_SIZE
        return len(self.data)

    def contents(self) -> bytes:
        if self.type == FileType.DIR:
            return b"".join(
                _DIRENT.pack(inum, name.encode("utf-8")) for inum, name in self.entries
            )
        return bytes(self.data)


@dataclass(eq=False)
class _OpenFile:
    inode: _Inode
    readable: bool
    writable: bool
    off: int = 0
    ref: int = 1


class FileSystem:
    """A single-device file system with one process's descriptor table."""

    def __init__(self) -> None:
        root = _Inode(ROOTINO, FileType.DIR, nlink=1, ref=1)
        root.entries = [(ROOTINO, "."), (ROOTINO, "..")]
        self._inodes: Dict[int, _Inode] = {ROOTINO: root}
        self._root = root
        self._cwd = root
        self._fds: List[Optional[_OpenFile]] = [None] * NOFILE
        self._nfiles = 0

    # Inodes and directories.

    def _ialloc(self, type_: FileType) -> _Inode:
        inum = ROOTINO
        while inum in self._inodes:
            inum += 1
        inode = _Inode(inum, type_)
        self._inodes[inum] = inode
        return inode

    def _reap(self, ip: _Inode) -> None:
        if ip.ref == 0 and ip.nlink == 0:
            self._inodes.pop(ip.inum, None)

    def _idrop(self, ip: _Inode) -> None:
        ip.ref -= 1
        self._reap(ip)

    def _lookup(self, dp: _Inode, name: str) -> Optional[_Inode]:
        name = name[:DIRSIZ]
        for inum, entry in dp.entries:
            if inum and entry == name:
                return self._inodes[inum]
        return None

    def _slot(self, dp: _Inode, name: str) -> int:
        name = name[:DIRSIZ]
        for index, (inum, entry) in enumerate(dp.entries):
            if inum and entry == name:
                return index
        raise FsError(f"no entry {name}")

    def _dirlink(self, dp: _Inode, name: str, inum: int) -> None:
        if self._lookup(dp, name) is not None:
            raise FsError(f"{name} already exists")
        entry = (inum, name[:DIRSIZ])
        for index, (used, _) in enumerate(dp.entries):
            if not used:
                dp.entries[index] = entry
                return
        dp.entries.append(entry)

    def _isdirempty(self, dp: _Inode) -> bool:
        return all(not inum for inum, _ in dp.entries[2:])

    def _namex(self, path: str, parent: bool) -> Tuple[_Inode, str]:
        ip = self._root if path.startswith("/") else self._cwd
        elems = [elem[:DIRSIZ] for elem in path.split("/") if elem]
        if not elems:
            if parent:
                raise FsError(f"no parent for {path!r}")
            return ip, ""
        last = len(elems) - 1
        for index, name in enumerate(elems):
            if ip.type != FileType.DIR:
                raise FsError(f"not a directory in {path!r}")
            if parent and index == last:
                return ip, name
            found = self._lookup(ip, name)
            if found is None:
                raise FsError(f"no such file: {path!r}")
            ip = found
        return ip, elems[-1]

    def _namei(self, path: str) -> _Inode:
        return self._namex(path, parent=False)[0]

    def _nameiparent(self, path: str) -> Tuple[_Inode, str]:
        return self._namex(path, parent=True)

    def _create(self, path: str, type_: FileType, major: int, minor: int) -> _Inode:
        dp, name = self._nameiparent(path)
        existing = self._lookup(dp, name)
        if existing is not None:
            if type_ == FileType.FILE and existing.type == FileType.FILE:
                return existing
            raise FsError(f"{path!r} already exists")
        ip = self._ialloc(type_)
        ip.major = major
        ip.minor = minor
        ip.nlink = 1
        if type_ == FileType.DIR:
            dp.nlink += 1
            ip.entries = [(ip.inum, "."), (dp.inum, "..")]
        self._dirlink(dp, name, ip.inum)
        return ip

    # Descriptors.

    def _file(self, fd: int) -> _OpenFile:
        if not 0 <= fd < NOFILE or self._fds[fd] is None:
            raise FsError(f"bad file descriptor {fd}")
        return self._fds[fd]

    def _fdalloc(self, f: _OpenFile) -> int:
        for fd, slot in enumerate(self._fds):
            if slot is None:
                self._fds[fd] = f
                return fd
        raise FsError("too many open files")

    # System calls.

    def open(self, path: str, mode: int = OpenFlag.RDONLY) -> int:
        """Open ``path`` and return the lowest free descriptor."""
        mode = int(mode)
        if mode & OpenFlag.CREATE:
            ip = self._create(path, FileType.FILE, 0, 0)
        else:
            ip = self._namei(path)
            if ip.type == FileType.DIR and mode != OpenFlag.RDONLY:
                raise FsError(f"{path!r} is a directory")
        if self._nfiles >= NFILE:
            raise FsError("file table full")
        f = _OpenFile(ip, is_readable(mode), is_writable(mode))
        fd = self._fdalloc(f)
        self._nfiles += 1
        ip.ref += 1
        return fd

    def close(self, fd: int) -> None:
        """Close descriptor ``fd``."""
        f = self._file(fd)
        self._fds[fd] = None
        f.ref -= 1
        if f.ref == 0:
            self._nfiles -= 1
            self._idrop(f.inode)

    def read(self, fd: int, n: int) -> bytes:
        """Read up to ``n`` bytes at the file's offset."""
        f = self._file(fd)
        if n < 0:
            raise FsError("negative read length")
        if not f.readable:
            raise FsError(f"descriptor {fd} is not open for reading")
        if f.inode.type == FileType.DEV:
            raise FsError(f"no driver for device {f.inode.major}")
        data = f.inode.contents()[f.off : f.off + n]
        f.off += len(data)
        return data

    def write(self, fd: int, data: bytes) -> int:
        """Write ``data`` at the file's offset; return the count written."""
        f = self._file(fd)
        if not f.writable:
            raise FsError(f"descriptor {fd} is not open for writing")
        if f.inode.type == FileType.DEV:
            raise FsError(f"no driver for device {f.inode.major}")
        data = bytes(data)
        f.inode.data[f.off : f.off + len(data)] = data
        f.off += len(data)
        return len(data)

    def dup(self, fd: int) -> int:
        """A new descriptor sharing the open file of ``fd``."""
        f = self._file(fd)
        new = self._fdalloc(f)
        f.ref += 1
        return new

    def fstat(self, fd: int) -> Stat:
        """Facts about the inode open at ``fd``."""
        ip = self._file(fd).inode
        return Stat(ip.type, ip.dev, ip.inum, ip.nlink, ip.size)

    def link(self, old: str, new: str) -> None:
        """Make ``new`` another name for the file ``old``."""
        ip = self._namei(old)
        if ip.type == FileType.DIR:
            raise FsError(f"cannot link directory {old!r}")
        ip.nlink += 1
        try:
            dp, name = self._nameiparent(new)
            if dp.dev != ip.dev:
                raise FsError("cross-device link")
            self._dirlink(dp, name, ip.inum)
        except FsError:
            ip.nlink -= 1
            raise

    def unlink(self, path: str) -> None:
        """Remove the name ``path``."""
        dp, name = self._nameiparent(path)
        if name in (".", ".."):
            raise FsError(f"cannot unlink {name!r}")
        ip = self._lookup(dp, name)
        if ip is None:
            raise FsError(f"no such file: {path!r}")
        if ip.nlink < 1:
            raise FsError("unlink: nlink < 1")
        if ip.type == FileType.DIR and not self._isdirempty(ip):
            raise FsError(f"directory {path!r} is not empty")
        dp.entries[self._slot(dp, name)] = (0, "")
        if ip.type == FileType.DIR:
            dp.nlink -= 1
        ip.nlink -= 1
        self._reap(ip)

    def mkdir(self, path: str) -> None:
        """Create the directory ``path``."""
        self._create(path, FileType.DIR, 0, 0)

    def mknod(self, path: str, major: int, minor: int) -> None:
        """Create a device node at ``path``."""
        self._create(path, FileType.DEV, major, minor)

    def chdir(self, path: str) -> None:
        """Make ``path`` the current directory."""
        ip = self._namei(path)
        if ip.type != FileType.DIR:
            raise FsError(f"{path!r} is not a directory")
        ip.ref += 1
        old, self._cwd = self._cwd, ip
        self._idrop(old)