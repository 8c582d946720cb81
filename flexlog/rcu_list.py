"""A copy-on-write list: readers see stable snapshots while writers replace them."""

from __future__ import annotations

import threading
from typing import Any, Generic, Iterable, Iterator, Optional, TypeVar

from flexlog.hazard_pointer import HazardPointer, HazardPointerDomain

T = TypeVar("T")


class _Node(Generic[T]):
    __slots__ = ("items",)

    def __init__(self, items: tuple[T, ...] = ()) -> None:
        self.items = items


class ReadHandle(Generic[T]):
    """A protected snapshot of an :class:`RCUList`."""

    def __init__(self, rcu: "RCUList[T]") -> None:
        self._hp: Optional[HazardPointer] = HazardPointer(rcu.domain)
        head = rcu._head
        self._node: Optional[_Node[T]] = self._hp.protect(head) if head is not None else None

    def items(self) -> tuple[T, ...]:
        return self._node.items if self._node is not None else ()

    def empty(self) -> bool:
        return self._node is None or not self._node.items

    def close(self) -> None:
        """Release the snapshot so it can be reclaimed."""
        if self._hp is not None:
            self._hp.reset()
            self._hp = None
        self._node = None

    def __len__(self) -> int:
        return len(self._node.items) if self._node is not None else 0

    def __iter__(self) -> Iterator[T]:
        return iter(self.items())

    def __enter__(self) -> "ReadHandle[T]":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class RCUList(Generic[T]):
    """A list whose every change publishes a new immutable snapshot.

    Replaced snapshots are retired to a hazard-pointer domain, either the one
    given or one the list owns.
    """

    def __init__(self, domain: Optional[HazardPointerDomain] = None) -> None:
        self._domain = domain if domain is not None else HazardPointerDomain()
        self._head: Optional[_Node[T]] = None
        self._write_lock = threading.Lock()

    @property
    def domain(self) -> HazardPointerDomain:
        return self._domain

    def _publish(self, new_head: Optional[_Node[T]]) -> Optional[_Node[T]]:
        old = self._head
        self._head = new_head
        return old

    def _retire(self, node: Optional[_Node[T]]) -> None:
        if node is not None:
            self._domain.retire(node)

    def add(self, item: T) -> None:
        with self._write_lock:
            current = self._head.items if self._head is not None else ()
            old = self._publish(_Node(current + (item,)))
        self._retire(old)

    def add_range(self, items: Iterable[T]) -> None:
        extra = tuple(items)
        if not extra:
            return
        with self._write_lock:
            current = self._head.items if self._head is not None else ()
            old = self._publish(_Node(current + extra))
        self._retire(old)

    def remove(self, item: T) -> bool:
        """Remove every element equal to ``item``; return whether any was found."""
        with self._write_lock:
            head = self._head
            if head is None or item not in head.items:
                return False
            kept = tuple(existing for existing in head.items if not existing == item)
            old = self._publish(_Node(kept))
        self._retire(old)
        return True

    def clear(self) -> None:
        with self._write_lock:
            old = self._publish(None)
        self._retire(old)

    def read_handle(self) -> ReadHandle[T]:
        return ReadHandle(self)

    def estimated_size(self) -> int:
        head = self._head
        return len(head.items) if head is not None else 0