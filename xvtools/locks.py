"""Spin locks, sleep locks and the nesting of interrupt disabling."""

from __future__ import annotations

import threading
import traceback
from typing import Any, Optional, Tuple

__all__ = ["LockError", "InterruptState", "interrupt_state", "SpinLock", "SleepLock"]

_MAX_PCS = 10


class LockError(RuntimeError):
    """Raised when a lock is misused."""


class InterruptState:
    """Per-CPU interrupt flag with matched disable/enable nesting."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self.ncli = 0
        self.intena = False

    def push(self) -> None:
        """Disable interrupts, remembering whether they were on."""
        was_enabled = self.enabled
        self.enabled = False
        if self.ncli == 0:
            self.intena = was_enabled
        self.ncli += 1

    def pop(self) -> None:
        """Undo one ``push``; the last one restores the saved state."""
        if self.enabled:
            raise LockError("popcli - interruptible")
        if self.ncli <= 0:
            raise LockError("popcli")
        self.ncli -= 1
        if self.ncli == 0 and self.intena:
            self.enabled = True


_local = threading.local()


def interrupt_state() -> InterruptState:
    """The interrupt state of the calling thread, which plays one CPU."""
    state = getattr(_local, "state", None)
    if state is None:
        state = _local.state = InterruptState(True)
    return state


class SpinLock:
    """A mutual exclusion lock that disables interrupts while held."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._owner: Optional[int] = None
        self.pcs: Tuple[str, ...] = ()

    @property
    def locked(self) -> bool:
        """True while some CPU holds the lock."""
        return self._lock.locked()

    def acquire(self) -> None:
        """Take the lock, waiting until it is free."""
        cpu = interrupt_state()
        cpu.push()
        if self.holding():
            cpu.pop()
            raise LockError(f"acquire: {self.name} already held")
        self._lock.acquire()
        self._owner = threading.get_ident()
        callers = traceback.extract_stack(limit=_MAX_PCS + 1)[:-1]
        self.pcs = tuple(f"{frame.filename}:{frame.lineno}" for frame in reversed(callers))

    def release(self) -> None:
        """Give the lock up."""
        if not self.holding():
            raise LockError(f"release: {self.name} not held")
        self.pcs = ()
        self._owner = None
        self._lock.release()
        interrupt_state().pop()

    def holding(self) -> bool:
        """True if the calling CPU holds the lock."""
        cpu = interrupt_state()
        cpu.push()
        held = self._lock.locked() and self._owner == threading.get_ident()
        cpu.pop()
        return held

    def __enter__(self) -> "SpinLock":
        self.acquire()
        return self

    def __exit__(self, *args: Any) -> None:
        self.release()


class SleepLock:
    """A long-term lock whose waiters sleep instead of spinning."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._cond = threading.Condition()
        self.locked = False
        self.pid = 0

    def acquire(self, pid: int) -> None:
        """Take the lock for process ``pid``, sleeping while it is held."""
        with self._cond:
            while self.locked:
                self._cond.wait()
            self.locked = True
            self.pid = pid

    def release(self) -> None:
        """Give the lock up and wake the sleepers."""
        with self._cond:
            self.locked = False
            self.pid = 0
            self._cond.notify_all()

    def holding(self, pid: int) -> bool:
        """True if process ``pid`` holds the lock."""
        with self._cond:
            return self.locked and self.pid == pid