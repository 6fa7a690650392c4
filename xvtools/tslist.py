"""A doubly linked list guarded by a lock."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional

__all__ = ["ListItem", "ThreadSafeList"]


@dataclass(eq=False)
class ListItem:
    """One node of the list."""

    value: Any
    prev: Optional["ListItem"] = field(default=None, repr=False)
    next: Optional["ListItem"] = field(default=None, repr=False)


class ThreadSafeList:
    """A linked list whose operations each hold the list's lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._head: Optional[ListItem] = None
        self._tail: Optional[ListItem] = None
        self._count = 0

    def add(self, value: Any) -> ListItem:
        """Append ``value`` and return its node."""
        with self._lock:
            item = ListItem(value, prev=self._tail)
            if self._tail is None:
                self._head = item
            else:
                self._tail.next = item
            self._tail = item
            self._count += 1
            return item

    def remove(self, value: Any) -> bool:
        """Unlink the first node holding this very object; True if found."""
        with self._lock:
            item = self._head
            while item is not None:
                if item.value is value:
                    if item.prev is None:
                        self._head = item.next
                    else:
                        item.prev.next = item.next
                    if item.next is None:
                        self._tail = item.prev
                    else:
                        item.next.prev = item.prev
                    item.prev = item.next = None
                    self._count -= 1
                    return True
                item = item.next
            return False

    def each(self, func: Callable[[ListItem], Any]) -> None:
        """Call ``func`` on each node in order until it returns 1."""
        with self._lock:
            item = self._head
            while item is not None:
                if func(item) == 1:
                    break
                item = item.next

    def __len__(self) -> int:
        with self._lock:
            return self._count

    def __iter__(self) -> Iterator[Any]:
        with self._lock:
            values = []
            item = self._head
            while item is not None:
                values.append(item.value)
                item = item.next
        yield from values