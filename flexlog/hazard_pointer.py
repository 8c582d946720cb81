"""Hazard pointers: deferred reclamation of objects that readers may still hold."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

T = TypeVar("T")

Deleter = Callable[[Any], None]


@dataclass
class _Slot:
    owner: Optional[int] = None
    obj: Any = None


@dataclass
class _Retired:
    obj: Any
    deleter: Optional[Deleter]
    epoch: int


class HazardPointerDomain:
    """Tracks protected objects and reclaims retired ones once nobody holds them.

    Each thread claims one slot the first time it protects an object and keeps
    it for the life of the domain; protecting again from the same thread
    replaces what that slot holds.
    """

    MAX_HAZARD_POINTERS = 100
    SCAN_THRESHOLD = 1000

    def __init__(
        self,
        *,
        max_hazard_pointers: int = MAX_HAZARD_POINTERS,
        scan_threshold: int = SCAN_THRESHOLD,
    ) -> None:
        self._slots = [_Slot() for _ in range(max_hazard_pointers)]
        self._scan_threshold = scan_threshold
        self._lock = threading.Lock()
        self._retired: list[_Retired] = []
        self._epoch = 0
        self._pending_scan = 0

    def __enter__(self) -> "HazardPointerDomain":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def protect(self, obj: Any) -> Optional[int]:
        """Mark ``obj`` as in use by the calling thread; return the slot index.

        Nothing is protected for ``None``, and ``None`` is returned.
        """
        if obj is None:
            return None
        me = threading.get_ident()
        with self._lock:
            for index, slot in enumerate(self._slots):
                if slot.owner == me or slot.owner is None:
                    slot.owner = me
                    slot.obj = obj
                    return index
        raise RuntimeError("Out of hazard pointers")

    def unprotect(self, index: int) -> None:
        """Clear the object held by slot ``index``; the slot stays claimed."""
        with self._lock:
            self._slots[index].obj = None

    def retire(self, obj: Any, deleter: Optional[Deleter] = None) -> None:
        """Queue ``obj`` for reclamation; ``deleter`` runs once it is safe."""
        with self._lock:
            self._retired.append(_Retired(obj, deleter, self._epoch))
            self._epoch += 1
            previous = self._pending_scan
            self._pending_scan += 1
        if previous >= self._scan_threshold:
            self.try_cleanup()

    def try_cleanup(self) -> None:
        """Reclaim every retired object that no slot currently protects."""
        with self._lock:
            self._pending_scan = 0
            protected = {id(slot.obj) for slot in self._slots if slot.obj is not None}
            if not self._retired:
                return
            deferred: list[_Retired] = []
            reclaim: list[_Retired] = []
            for node in self._retired:
                (deferred if id(node.obj) in protected else reclaim).append(node)
            self._retired = deferred
            if deferred:
                self._pending_scan += 1
        for node in reclaim:
            if node.deleter is not None:
                node.deleter(node.obj)

    def retired_count(self) -> int:
        """Number of retired objects still waiting to be reclaimed."""
        with self._lock:
            return len(self._retired)

    def close(self) -> None:
        """Reclaim all retired objects, protected or not, newest first."""
        with self._lock:
            nodes = self._retired
            self._retired = []
            self._pending_scan = 0
        for node in reversed(nodes):
            if node.deleter is not None:
                node.deleter(node.obj)


class HazardPointer:
    """Protects one object at a time within a domain; usable as a context manager."""

    def __init__(self, domain: HazardPointerDomain) -> None:
        self._domain = domain
        self._index = 0
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def protect(self, obj: T) -> T:
        """Protect ``obj`` and return it; ``None`` is returned unprotected."""
        if obj is None:
            return obj
        index = self._domain.protect(obj)
        if index is not None:
            self._index = index
            self._active = True
        return obj

    def reset(self) -> None:
        """Release the protection, if any."""
        if self._active:
            self._domain.unprotect(self._index)
            self._active = False

    def __enter__(self) -> "HazardPointer":
        return self

    def __exit__(self, *args: Any) -> None:
        self.reset()