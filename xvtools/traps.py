"""Trap and system call numbers and the system call dispatch table."""

from __future__ import annotations

import enum
from typing import Callable, Dict, Union

__all__ = ["Syscall", "Trap", "Irq", "UnknownSyscall", "SyscallTable"]


class Syscall(enum.IntEnum):
    """System call numbers."""

    FORK = 1
    EXIT = 2
    WAIT = 3
    PIPE = 4
    READ = 5
    KILL = 6
    EXEC = 7
    FSTAT = 8
    CHDIR = 9
    DUP = 10
    GETPID = 11
    SBRK = 12
    SLEEP = 13
    UPTIME = 14
    OPEN = 15
    WRITE = 16
    MKNOD = 17
    UNLINK = 18
    LINK = 19
    MKDIR = 20
    CLOSE = 21
    HELLO_WORLD = 22


class Trap(enum.IntEnum):
    """Processor exceptions and the kernel's own trap vectors."""

    DIVIDE = 0
    DEBUG = 1
    NMI = 2
    BRKPT = 3
    OFLOW = 4
    BOUND = 5
    ILLOP = 6
    DEVICE = 7
    DBLFLT = 8
    TSS = 10
    SEGNP = 11
    STACK = 12
    GPFLT = 13
    PGFLT = 14
    FPERR = 16
    ALIGN = 17
    MCHK = 18
    SIMDERR = 19
    IRQ0 = 32
    SYSCALL = 64
    DEFAULT = 500


class Irq(enum.IntEnum):
    """Hardware interrupt lines, counted from ``Trap.IRQ0``."""

    TIMER = 0
    KBD = 1
    COM1 = 4
    IDE = 14
    ERROR = 19
    SPURIOUS = 31


class UnknownSyscall(LookupError):
    """Raised when a system call number has no handler."""

    def __init__(self, number: int) -> None:
        super().__init__(f"unknown sys call {number}")
        self.number = number


Handler = Callable[[], int]


class SyscallTable:
    """Maps system call numbers to their handlers."""

    def __init__(self) -> None:
        self._handlers: Dict[int, Handler] = {}

    def register(self, number: Union[int, Syscall], handler: Handler) -> None:
        """Install ``handler`` for system call ``number``."""
        try:
            number = Syscall(number)
        except ValueError:
            raise ValueError(f"no system call numbered {number}") from None
        if not callable(handler):
            raise TypeError("handler must be callable")
        self._handlers[int(number)] = handler

    def dispatch(self, number: int) -> int:
        """Run the handler for ``number`` and return its result."""
        handler = self._handlers.get(int(number))
        if handler is None:
            raise UnknownSyscall(number)
        return handler()