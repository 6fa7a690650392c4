"""Trap handling and the tick clock behind ``sleep`` and ``uptime``."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Optional

from xvtools.mmu import DPL_USER
from xvtools.traps import Irq, SyscallTable, Trap, UnknownSyscall

__all__ = [
    "KernelPanic",
    "TrapFrame",
    "Process",
    "TrapOutcome",
    "TickClock",
    "handle_trap",
]

_POLL_SECONDS = 0.05


class KernelPanic(RuntimeError):
    """Raised for a trap the kernel cannot survive."""


@dataclass
class TrapFrame:
    """The registers saved when a trap is taken."""

    trapno: int
    cs: int = 0
    eip: int = 0
    err: int = 0
    eax: int = 0
    fault_addr: int = 0


@dataclass(eq=False)
class Process:
    """The part of a process that trap handling looks at."""

    pid: int
    name: str = ""
    killed: bool = False
    running: bool = True
    tf: Optional[TrapFrame] = None


@dataclass(frozen=True)
class TrapOutcome:
    """What the trap handler decided.

    ``exited``: the process must exit; ``yielded``: it must give up the
    CPU; ``eoi``: the interrupt was acknowledged; ``device``: the device
    whose interrupt handler is due; ``message``: a console diagnostic.
    """

    exited: bool = False
    yielded: bool = False
    eoi: bool = False
    device: Optional[Irq] = None
    message: Optional[str] = None


class TickClock:
    """Counts timer interrupts and lets callers sleep for a number of them."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._ticks = 0

    def tick(self) -> int:
        """Count one timer interrupt and wake sleepers; return the count."""
        with self._cond:
            self._ticks += 1
            self._cond.notify_all()
            return self._ticks

    def uptime(self) -> int:
        """Number of ticks since start."""
        with self._cond:
            return self._ticks

    def sleep(self, n: int, killed: Optional[Callable[[], bool]] = None) -> bool:
        """Wait for ``n`` ticks. Return False if ``killed()`` turned true first."""
        if n < 0:
            raise ValueError("tick count must not be negative")
        with self._cond:
            start = self._ticks
            while self._ticks - start < n:
                if killed is not None and killed():
                    return False
                self._cond.wait(timeout=_POLL_SECONDS)
        return True


def _syscall(frame: TrapFrame, proc: Optional[Process], syscalls: SyscallTable) -> TrapOutcome:
    if proc is None:
        raise KernelPanic("system call with no current process")
    if proc.killed:
        return TrapOutcome(exited=True)
    proc.tf = frame
    message = None
    try:
        frame.eax = syscalls.dispatch(frame.eax)
    except UnknownSyscall as exc:
        message = f"{proc.pid} {proc.name}: unknown sys call {exc.number}"
        frame.eax = -1
    return TrapOutcome(exited=proc.killed, message=message)


def handle_trap(
    frame: TrapFrame,
    proc: Optional[Process],
    clock: TickClock,
    syscalls: SyscallTable,
    cpu: int = 0,
) -> TrapOutcome:
    """Handle one trap taken on ``cpu`` while ``proc`` (or nothing) runs."""
    if frame.trapno == Trap.SYSCALL:
        return _syscall(frame, proc, syscalls)

    irq = frame.trapno - Trap.IRQ0
    eoi = False
    device: Optional[Irq] = None
    message: Optional[str] = None

    if irq == Irq.TIMER:
        if cpu == 0:
            clock.tick()
        eoi = True
    elif irq == Irq.IDE:
        device = Irq.IDE
        eoi = True
    elif irq == Irq.IDE + 1:
        pass  # spurious secondary IDE interrupts
    elif irq in (Irq.KBD, Irq.COM1):
        device = Irq(irq)
        eoi = True
    elif irq in (7, Irq.SPURIOUS):
        message = f"cpu{cpu}: spurious interrupt at {frame.cs:x}:{frame.eip:x}"
        eoi = True
    else:
        if proc is None or frame.cs & 3 == 0:
            raise KernelPanic(
                f"unexpected trap {frame.trapno} from cpu {cpu} "
                f"eip {frame.eip:x} (cr2=0x{frame.fault_addr:x})"
            )
        message = (
            f"pid {proc.pid} {proc.name}: trap {frame.trapno} err {frame.err} "
            f"on cpu {cpu} eip 0x{frame.eip:x} addr 0x{frame.fault_addr:x}--kill proc"
        )
        proc.killed = True

    in_user = frame.cs & 3 == DPL_USER
    if proc is not None and proc.killed and in_user:
        return TrapOutcome(exited=True, eoi=eoi, device=device, message=message)

    yielded = proc is not None and proc.running and irq == Irq.TIMER
    return TrapOutcome(yielded=yielded, eoi=eoi, device=device, message=message)