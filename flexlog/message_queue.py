"""A bounded multi-producer, multi-consumer ring buffer of messages."""

from __future__ import annotations

import threading
from typing import Any, Optional


def _round_up_pow2(value: int) -> int:
    if value <= 1:
        return 1
    return 1 << (value - 1).bit_length()


class _Slot:
    __slots__ = ("sequence", "message")

    def __init__(self, sequence: int) -> None:
        self.sequence = sequence
        self.message: Any = None


class MessageQueue:
    """A fixed-size circular queue; capacity is rounded up to a power of two."""

    DEFAULT_CAPACITY = 1024

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self._capacity = _round_up_pow2(capacity or self.DEFAULT_CAPACITY)
        self._mask = self._capacity - 1
        self._slots = [_Slot(position) for position in range(self._capacity)]
        self._producer = 0
        self._consumer = 0
        self._peak = 0
        self._lock = threading.Lock()

    def try_enqueue(self, message: Any) -> bool:
        """Add ``message``; return False if it is None or the queue is full."""
        if message is None:
            return False
        with self._lock:
            position = self._producer
            slot = self._slots[position & self._mask]
            if slot.sequence != position:
                return False
            self._producer = position + 1
            slot.message = message
            slot.sequence = position + 1
            current = self._producer - self._consumer
            if current > self._peak:
                self._peak = current
        return True

    def try_dequeue(self) -> Optional[Any]:
        """Take the oldest message, or return None if there is none."""
        with self._lock:
            position = self._consumer
            slot = self._slots[position & self._mask]
            if slot.sequence != position + 1:
                return None
            self._consumer = position + 1
            message, slot.message = slot.message, None
            slot.sequence = position + self._capacity
            return message

    def dequeue_all(self) -> list[Any]:
        """Take every message that is ready, oldest first."""
        taken = []
        while (message := self.try_dequeue()) is not None:
            taken.append(message)
        return taken

    def is_empty(self) -> bool:
        with self._lock:
            return self._producer == self._consumer

    def size(self) -> int:
        with self._lock:
            return self._producer - self._consumer

    def __len__(self) -> int:
        return self.size()

    def capacity(self) -> int:
        return self._capacity

    def usage_percentage(self) -> float:
        return self.size() / self._capacity * 100.0

    def peak_usage(self) -> int:
        return self._peak

    def reset_peak_usage(self) -> None:
        self._peak = 0